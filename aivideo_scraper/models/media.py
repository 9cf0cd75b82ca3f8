"""Transient media descriptors produced while validating a post."""

from dataclasses import dataclass
from enum import Enum


class MediaFormat(str, Enum):
    """Playback format of a resolved media URL."""

    MP4 = "mp4"
    # Direct .webm links keep their own format so players can pick a decoder
    WEBM = "webm"
    DASH = "dash"
    HLS = "hls"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ResolvedMedia:
    """Candidate playable URL chosen by the media resolver."""

    url: str
    format: MediaFormat
    height_px: int = 0
    width_px: int = 0


@dataclass(frozen=True)
class ValidatedMetadata:
    """Basic metadata for a URL the validator accepted as video-like."""

    url: str
    format: str
    width_px: int
    height_px: int
    # Duration is not probed; 0 means unknown.
    duration_sec: float = 0
