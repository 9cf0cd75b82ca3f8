"""Choose a playable media URL for a post."""

import logging
import re
from typing import Optional, Union
from urllib.parse import urlsplit

from aivideo_scraper.models.media import MediaFormat, ResolvedMedia
from aivideo_scraper.models.post import RawPost

QUALITY_SUFFIX = re.compile(r"_\d+\.mp4")
VIDEO_EXTENSION = re.compile(r"\.(mp4|webm)$", re.IGNORECASE)

# Embedded players are not playable by the feed
EXTERNAL_PLATFORM_HOSTS = (
    "youtube.com",
    "youtu.be",
    "vimeo.com",
    "streamable.com",
    "tiktok.com",
)


def widescreen_width(height: int) -> int:
    return round(height * 16 / 9) if height else 0


def is_external_platform(url: Optional[str], media_type: Optional[str] = None) -> bool:
    """True if the URL (or embed type) points at a third-party video platform."""
    if media_type and any(media_type.lower().endswith(host) for host in EXTERNAL_PLATFORM_HOSTS):
        return True
    if not url:
        return False
    host = (urlsplit(url).hostname or "").lower()
    return any(host == platform or host.endswith("." + platform) for platform in EXTERNAL_PLATFORM_HOSTS)


class MediaResolver:
    """Resolve a post to a single candidate media URL, first match wins."""

    def __init__(self, logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None):
        self.logger = logger or logging.getLogger(__name__)

    def resolve(self, post: RawPost) -> Optional[ResolvedMedia]:
        """
        Resolve the playable media URL of a post.

        Order: native DASH manifest, native HLS manifest, native fallback MP4
        with its quality suffix stripped, direct .mp4/.webm link. Links to
        external platforms and everything else resolve to None.

        Args:
            post: Candidate post

        Returns:
            ResolvedMedia, or None if the post has nothing playable
        """
        video = post.native_video
        if post.is_native_video and video is not None:
            height = video.height_px
            width = widescreen_width(height)
            if video.dash_url:
                return ResolvedMedia(video.dash_url, MediaFormat.DASH, height, width)
            if video.hls_url:
                return ResolvedMedia(video.hls_url, MediaFormat.HLS, height, width)
            if video.fallback_url:
                base_url = QUALITY_SUFFIX.sub(".mp4", video.fallback_url, count=1)
                return ResolvedMedia(base_url, MediaFormat.MP4, height, width)

        url = post.direct_url
        if url:
            match = VIDEO_EXTENSION.search(urlsplit(url).path)
            if match:
                extension = match.group(1).lower()
                return ResolvedMedia(url, MediaFormat(extension))

        if is_external_platform(url, post.media_type):
            self.logger.debug(f"Post {post.id} links to an external video platform, skipping")
            return None

        return None
