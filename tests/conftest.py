import pytest

from vidrelay import create_app
from vidrelay.config import Settings
from vidrelay.errors import UpstreamUnavailable
from vidrelay.models import Format, Platform, VideoInfo
from vidrelay.ratelimit import RateLimiter


class FakeClock:
    def __init__(self, start=1_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeResponse:
    def __init__(self, payload=None, status_code=200, invalid_json=False):
        self.payload = payload
        self.status_code = status_code
        self.invalid_json = invalid_json

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self.invalid_json:
            raise ValueError("No JSON object could be decoded")
        return self.payload


class StubUpstream:
    name = "stub"
    message = "Video processed successfully using stub"

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def extract(self, url, platform=None):
        self.calls.append((url, platform))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def video_info():
    return VideoInfo(
        title="Never Gonna Give You Up",
        thumbnail="https://img.youtube.com/vi/dQw4w9WgXcQ/maxresdefault.jpg",
        duration="3:33",
        platform=Platform.YOUTUBE,
        formats=[Format("720p", "MP4", "12.0 MB", "https://cdn.example/720.mp4")],
        audio_formats=[Format("128kbps", "M4A", "3.4 MB", "https://cdn.example/a.m4a")],
    )


@pytest.fixture
def upstream(video_info):
    return StubUpstream(result=video_info)


@pytest.fixture
def limiter(clock):
    return RateLimiter(max_requests=3, window_ms=60_000, clock=clock)


@pytest.fixture
def make_client(limiter):
    def _make(upstream_impl, **settings):
        app = create_app(Settings(**settings), limiter=limiter, upstream=upstream_impl)
        app.config["TESTING"] = True
        return app.test_client()

    return _make


@pytest.fixture
def client(make_client, upstream):
    return make_client(upstream)


@pytest.fixture
def unavailable():
    return StubUpstream(error=UpstreamUnavailable("Video service unavailable", "connection refused"))


@pytest.fixture
def fake_post(monkeypatch):
    """Replace requests.post; set .response (or .exc) before calling the adapter."""

    class FakePost:
        response = FakeResponse({})
        exc = None

        def __init__(self):
            self.calls = []

        def __call__(self, url, json=None, headers=None, timeout=None):
            self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
            if self.exc is not None:
                raise self.exc
            return self.response

    fake = FakePost()
    monkeypatch.setattr("vidrelay.upstream.requests.post", fake)
    return fake
