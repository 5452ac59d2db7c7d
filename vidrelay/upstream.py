import logging
from urllib.parse import parse_qs, urlparse

import requests
from pytube import extract
from pytube.exceptions import PytubeError

from .config import UPSTREAM_COBALT, UPSTREAM_YTDLP
from .errors import UpstreamError, UpstreamUnavailable
from .models import Format, Platform, VideoInfo
from .platforms import classify

logger = logging.getLogger(__name__)

PLACEHOLDER_THUMBNAIL = "https://via.placeholder.com/1280x720/FF385C/FFFFFF?text=Video+Thumbnail"
YOUTUBE_THUMBNAIL = "https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"

MAX_VIDEO_FORMATS = 5
MAX_AUDIO_FORMATS = 3

JSON_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


def format_duration(seconds):
    seconds = int(seconds)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_size(num_bytes):
    try:
        megabytes = float(num_bytes) / 1024 / 1024
    except (TypeError, ValueError):
        return "Variable"
    if megabytes <= 0:
        return "Variable"
    return f"{megabytes:.1f} MB"


def youtube_video_id(url):
    try:
        return extract.video_id(url)
    except PytubeError:
        pass

    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    path = parsed.path.strip("/")
    if "youtu.be" in host:
        return path.split("/")[0]
    video_id = parse_qs(parsed.query).get("v", [""])[0]
    if video_id:
        return video_id
    parts = path.split("/")
    if len(parts) >= 2 and parts[0] in ("shorts", "embed", "live"):
        return parts[1]
    return ""


def resolve_thumbnail(url, platform):
    if platform == Platform.YOUTUBE:
        video_id = youtube_video_id(url)
        if video_id:
            return YOUTUBE_THUMBNAIL.format(video_id=video_id)
    return PLACEHOLDER_THUMBNAIL


def default_title(platform):
    return f"{platform.label} Video"


def audio_placeholder():
    return Format(quality="Audio", format="M4A", size="Variable", download_url="#")


def fallback_video_info(url, platform=None):
    """Demo payload returned when the extraction service cannot be reached."""
    platform = platform or classify(url)
    return VideoInfo(
        title="Demo Video (extraction server unavailable)",
        thumbnail=resolve_thumbnail(url, platform),
        duration="Unknown",
        platform=platform,
        formats=[Format(quality="Fallback", format="MP4", size="Unknown", download_url=url)],
        audio_formats=[Format(quality="Fallback Audio", format="Audio", size="Unknown", download_url="#")],
    )


class Upstream:
    """An extraction service that turns a page URL into a VideoInfo."""

    name = None
    message = "Video processed successfully"

    def __init__(self, timeout=None):
        self.timeout = timeout

    def extract(self, url, platform=None):
        raise NotImplementedError

    def _post(self, endpoint, payload, allow_error_status=False):
        logger.info("Calling %s upstream: %s", self.name, endpoint)
        try:
            resp = requests.post(endpoint, json=payload, headers=JSON_HEADERS, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamUnavailable("Video service unavailable", str(e)) from e

        if not resp.ok and not allow_error_status:
            raise UpstreamUnavailable(
                "Video service unavailable",
                f"{self.name} server returned {resp.status_code}",
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamUnavailable("Video service unavailable", "Upstream returned invalid JSON") from e
        if not isinstance(data, dict):
            raise UpstreamUnavailable("Video service unavailable", "Upstream returned an unexpected payload")
        if not resp.ok and "status" not in data:
            raise UpstreamUnavailable(
                "Video service unavailable",
                f"{self.name} server returned {resp.status_code}",
            )
        return data


class YtdlpServerUpstream(Upstream):
    """A self-hosted yt-dlp server exposing POST /api/video-info."""

    name = UPSTREAM_YTDLP
    message = "Video processed successfully using yt-dlp"

    def __init__(self, base_url, timeout=None):
        super().__init__(timeout=timeout)
        self.base_url = base_url.rstrip("/")

    @property
    def endpoint(self):
        return f"{self.base_url}/api/video-info"

    def extract(self, url, platform=None):
        platform = platform or classify(url)
        data = self._post(self.endpoint, {"url": url})
        logger.info("yt-dlp response received, title: %s", data.get("title") or "Unknown")
        return self.normalize(data, url, platform)

    @staticmethod
    def video_format(raw):
        ext = raw.get("ext")
        if raw.get("height"):
            quality = f"{raw['height']}p"
        else:
            quality = raw.get("format_note") or "Unknown"
        return Format(
            quality=quality,
            format=ext.upper() if ext else "MP4",
            size=format_size(raw.get("filesize")),
            download_url=raw.get("url") or "#",
        )

    @staticmethod
    def audio_format(raw):
        ext = raw.get("ext")
        return Format(
            quality=f"{raw['abr']}kbps" if raw.get("abr") else "Audio",
            format=ext.upper() if ext else "Audio",
            size=format_size(raw.get("filesize")),
            download_url=raw.get("url") or "#",
        )

    def normalize(self, data, url, platform):
        raw_formats = data.get("formats")
        if not isinstance(raw_formats, list):
            raw_formats = []
        raw_formats = [f for f in raw_formats if isinstance(f, dict)]

        videos = [
            f for f in raw_formats
            if f.get("vcodec") != "none" and f.get("acodec") != "none" and f.get("ext") == "mp4"
        ]
        audios = [
            f for f in raw_formats
            if f.get("vcodec") == "none" and f.get("acodec") != "none"
        ]

        formats = [self.video_format(f) for f in videos[:MAX_VIDEO_FORMATS]]
        audio_formats = [self.audio_format(f) for f in audios[:MAX_AUDIO_FORMATS]]

        if not formats:
            formats.append(Format(
                quality="Best Available",
                format="MP4",
                size="Variable",
                download_url=data.get("url") or url,
            ))
        if not audio_formats:
            audio_formats.append(audio_placeholder())

        duration = data.get("duration")
        try:
            duration = format_duration(duration) if duration else "Unknown"
        except (TypeError, ValueError):
            duration = "Unknown"

        return VideoInfo(
            title=data.get("title") or default_title(platform),
            thumbnail=data.get("thumbnail") or resolve_thumbnail(url, platform),
            duration=duration,
            platform=platform,
            formats=formats,
            audio_formats=audio_formats,
        )


class CobaltUpstream(Upstream):
    """The public Cobalt API."""

    name = UPSTREAM_COBALT
    message = "Video processed successfully using Cobalt"

    def __init__(self, api_url, timeout=None):
        super().__init__(timeout=timeout)
        self.api_url = api_url

    def extract(self, url, platform=None):
        platform = platform or classify(url)
        payload = {
            "url": url,
            "videoQuality": "1080",
            "filenameStyle": "basic",
            "downloadMode": "auto",
        }
        data = self._post(self.api_url, payload, allow_error_status=True)
        logger.info("Cobalt response received, status: %s", data.get("status"))
        return self.normalize(data, url, platform)

    @staticmethod
    def error_message(data):
        if data.get("text"):
            return data["text"]
        error = data.get("error")
        if isinstance(error, dict) and error.get("code"):
            return error["code"]
        if isinstance(error, str) and error:
            return error
        return "Video service reported an error"

    def normalize(self, data, url, platform):
        status = data.get("status")
        if status in ("error", "rate-limit"):
            raise UpstreamError(self.error_message(data))

        formats = []
        audio_formats = []

        if data.get("url"):
            formats.append(Format(quality="Best Available", format="MP4", download_url=data["url"]))
        if data.get("audio"):
            audio_formats.append(Format(quality="Audio", format="MP3", download_url=data["audio"]))

        picker = data.get("picker")
        if isinstance(picker, list):
            option = 0
            for item in picker:
                if not isinstance(item, dict) or not item.get("url"):
                    continue
                kind = (item.get("type") or "video").lower()
                if kind == "audio":
                    audio_formats.append(Format(quality="Audio", format="MP3", download_url=item["url"]))
                    continue
                option += 1
                formats.append(Format(
                    quality=f"Option {option}",
                    format="MP4" if kind == "video" else kind.upper(),
                    download_url=item["url"],
                ))

        if not formats and not audio_formats:
            raise UpstreamError("No download links found", "The video service returned no usable links")

        if not formats:
            formats.append(Format(quality="Best Available", format="MP4", download_url=url))
        if not audio_formats:
            audio_formats.append(audio_placeholder())

        return VideoInfo(
            title=data.get("filename") or default_title(platform),
            thumbnail=resolve_thumbnail(url, platform),
            duration="Unknown",
            platform=platform,
            formats=formats,
            audio_formats=audio_formats,
        )


def build_upstream(settings):
    if settings.upstream == UPSTREAM_COBALT:
        return CobaltUpstream(settings.cobalt_api_url, timeout=settings.upstream_timeout)
    return YtdlpServerUpstream(settings.ytdlp_server_url, timeout=settings.upstream_timeout)
