import pytest

from vidrelay.models import Platform
from vidrelay.platforms import classify


@pytest.mark.parametrize("value, expected", [
    ("https://youtu.be/abc123", Platform.YOUTUBE),
    ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", Platform.YOUTUBE),
    ("https://m.youtube.com/shorts/abc", Platform.YOUTUBE),
    ("https://www.facebook.com/watch?v=1", Platform.FACEBOOK),
    ("https://fb.watch/xyz/", Platform.FACEBOOK),
    ("https://www.instagram.com/reel/C0abc/", Platform.INSTAGRAM),
    ("https://www.tiktok.com/@user/video/123", Platform.TIKTOK),
    ("https://twitter.com/user/status/1", Platform.TWITTER),
    ("https://x.com/user/status/1", Platform.TWITTER),
    ("https://vimeo.com/76979871", Platform.VIMEO),
    ("https://example.com/x", Platform.UNKNOWN),
])
def test_classify_urls(value, expected):
    assert classify(value) == expected


def test_classify_bare_hostname_is_case_insensitive():
    assert classify("WWW.YouTube.COM") == Platform.YOUTUBE
    assert classify("vimeo.com") == Platform.VIMEO


def test_classify_empty():
    assert classify("") == Platform.UNKNOWN
    assert classify(None) == Platform.UNKNOWN


def test_platform_serializes_to_plain_string():
    assert Platform.TIKTOK.value == "tiktok"
    assert Platform.TIKTOK.label == "Tiktok"
