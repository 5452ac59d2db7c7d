from urllib.parse import urlparse

from .models import Platform

# Checked in order; the first platform with a matching domain wins
PLATFORM_DOMAINS = (
    (Platform.YOUTUBE, ("youtube.com", "youtu.be")),
    (Platform.FACEBOOK, ("facebook.com", "fb.com", "fb.watch")),
    (Platform.INSTAGRAM, ("instagram.com",)),
    (Platform.TIKTOK, ("tiktok.com",)),
    (Platform.TWITTER, ("twitter.com", "x.com")),
    (Platform.VIMEO, ("vimeo.com",)),
)


def hostname_of(value):
    value = (value or "").strip().lower()
    if "://" in value:
        return urlparse(value).hostname or ""
    return value


def classify(value):
    """Map a hostname (or a full URL) to a Platform by substring match."""
    host = hostname_of(value)
    for platform, domains in PLATFORM_DOMAINS:
        if any(domain in host for domain in domains):
            return platform
    return Platform.UNKNOWN
