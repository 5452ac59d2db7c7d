from dataclasses import dataclass, field
from enum import Enum
from typing import List


class Platform(str, Enum):
    YOUTUBE = "youtube"
    FACEBOOK = "facebook"
    INSTAGRAM = "instagram"
    TIKTOK = "tiktok"
    TWITTER = "twitter"
    VIMEO = "vimeo"
    UNKNOWN = "unknown"

    @property
    def label(self):
        return self.value.capitalize()


@dataclass
class Format:
    quality: str
    format: str
    size: str = "Variable"
    download_url: str = "#"

    def to_dict(self):
        return {
            "quality": self.quality,
            "format": self.format,
            "size": self.size,
            "downloadUrl": self.download_url,
        }


@dataclass
class VideoInfo:
    title: str
    thumbnail: str
    duration: str
    platform: Platform
    formats: List[Format] = field(default_factory=list)
    audio_formats: List[Format] = field(default_factory=list)

    def to_dict(self):
        return {
            "title": self.title,
            "thumbnail": self.thumbnail,
            "duration": self.duration,
            "platform": self.platform.value,
            "formats": [f.to_dict() for f in self.formats],
            "audioFormats": [f.to_dict() for f in self.audio_formats],
        }
