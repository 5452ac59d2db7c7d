import logging
from urllib.parse import urlparse

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from .config import Settings
from .errors import InputError, InternalError, RateLimitExceeded, RelayError, UpstreamUnavailable
from .platforms import classify
from .ratelimit import RateLimiter
from .upstream import build_upstream, fallback_video_info

logger = logging.getLogger(__name__)

CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]
CLIENT_IP_HEADERS = ("X-Real-IP", "CF-Connecting-IP")


def client_ip(req):
    forwarded = req.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    for header in CLIENT_IP_HEADERS:
        value = req.headers.get(header)
        if value:
            return value.strip()
    return req.remote_addr or "unknown"


def parse_video_url(req):
    body = req.get_json(silent=True)
    if not isinstance(body, dict):
        raise InputError("Invalid request body", "Expected a JSON object with a 'url' field")

    url = body.get("url")
    if not url or not isinstance(url, str) or not url.strip():
        raise InputError("URL is required")
    url = url.strip()

    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError:
        raise InputError("Invalid URL format")
    if parsed.scheme not in ("http", "https") or not hostname:
        raise InputError("Invalid URL format")
    return url


def add_allow_headers(response):
    response.headers["Access-Control-Allow-Headers"] = ", ".join(CORS_ALLOW_HEADERS)
    return response


def configure_logging(level):
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def create_app(settings=None, limiter=None, upstream=None):
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = Flask(__name__)
    # Registered before CORS so it runs after it and replaces any Allow-Headers it set
    app.after_request(add_allow_headers)
    CORS(app, origins="*", send_wildcard=True, allow_headers=CORS_ALLOW_HEADERS)

    if limiter is None:
        limiter = RateLimiter()
    if upstream is None:
        upstream = build_upstream(settings)

    @app.before_request
    def short_circuit_preflight():
        if request.method == 'OPTIONS':
            return app.response_class(status=200)

    @app.errorhandler(RateLimitExceeded)
    def handle_rate_limited(e):
        response = jsonify(e.to_dict())
        response.status_code = e.status_code
        response.headers["Retry-After"] = str(e.retry_after)
        response.headers["X-RateLimit-Remaining"] = "0"
        response.headers["X-RateLimit-Reset"] = str(e.retry_after)
        return response

    @app.errorhandler(RelayError)
    def handle_relay_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"error": e.name, "details": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        logger.exception("Error processing video")
        error = InternalError("Failed to process video", str(e) or "Unknown error")
        return jsonify(error.to_dict()), error.status_code

    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({"ok": True, "upstream": upstream.name})

    @app.route('/', methods=['POST'])
    @app.route('/process-video', methods=['POST'])
    def process_video():
        url = parse_video_url(request)

        ip = client_ip(request)
        rate = limiter.check(ip)
        logger.info("Request from IP: %s, rate limit remaining: %s", ip, rate.remaining)
        if not rate.allowed:
            logger.warning("Rate limit exceeded for IP: %s", ip)
            raise RateLimitExceeded(rate.reset_in_seconds)

        platform = classify(url)
        logger.info("Processing %s URL: %s", platform.value, url)

        try:
            video_info = upstream.extract(url, platform)
        except UpstreamUnavailable as e:
            logger.error("%s upstream call failed: %s", upstream.name, e.details or e.message)
            if not settings.falls_back:
                raise
            return jsonify({
                "success": True,
                "fallback": True,
                "videoInfo": fallback_video_info(url, platform).to_dict(),
                "message": "Extraction server is unavailable. Please ensure your server is running.",
            })

        logger.info("Video info processed successfully")
        response = jsonify({
            "success": True,
            "videoInfo": video_info.to_dict(),
            "message": upstream.message,
            "rateLimit": {
                "remaining": rate.remaining,
                "resetIn": rate.reset_in_seconds,
            },
        })
        response.headers["X-RateLimit-Remaining"] = str(rate.remaining)
        return response

    return app
