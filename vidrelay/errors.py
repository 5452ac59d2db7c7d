class RelayError(Exception):
    """Base for errors that are rendered as a JSON error response."""

    status_code = 500

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class InputError(RelayError):
    status_code = 400


class RateLimitExceeded(RelayError):
    status_code = 429

    def __init__(self, retry_after):
        super().__init__(
            "Rate limit exceeded",
            f"Too many requests. Please try again in {retry_after} seconds.",
        )
        self.retry_after = retry_after

    def to_dict(self):
        body = super().to_dict()
        body["retryAfter"] = self.retry_after
        return body


class UpstreamError(RelayError):
    """The extraction service answered, but reported a failure."""

    status_code = 400


class UpstreamUnavailable(RelayError):
    """The extraction service could not be reached or returned garbage."""

    status_code = 503


class InternalError(RelayError):
    status_code = 500
