"""Video URL validation and basic metadata derivation."""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import urlsplit

import aiohttp

from aivideo_scraper.config import PROBE_TIMEOUT_SEC
from aivideo_scraper.models.media import ValidatedMetadata
from aivideo_scraper.processing.media_resolver import widescreen_width

NATIVE_HOST = "v.redd.it"
VIDEO_SUFFIX = re.compile(r"\.(mp4|webm|mov|avi|mkv)$", re.IGNORECASE)
DASH_RENDITION = re.compile(r"DASH_(\d+)", re.IGNORECASE)
NATIVE_ID = re.compile(r"v\.redd\.it/([^/?#]+)", re.IGNORECASE)

DEFAULT_WIDTH = 1280
DEFAULT_HEIGHT = 720


@dataclass(frozen=True)
class ProbeResult:
    content_type: str = ""


class HttpProbe:
    """HEAD requests through a shared aiohttp session."""

    def __init__(self, session: Optional[aiohttp.ClientSession] = None):
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def head(self, url: str, timeout: float = PROBE_TIMEOUT_SEC) -> ProbeResult:
        """
        Issue a HEAD request and return the declared content type.

        Raises:
            aiohttp.ClientError: On connection or HTTP errors
            asyncio.TimeoutError: If the server does not answer in time
        """
        session = await self._get_session()
        async with session.head(
            url, timeout=aiohttp.ClientTimeout(total=timeout), allow_redirects=True
        ) as response:
            response.raise_for_status()
            return ProbeResult(content_type=response.headers.get("Content-Type", ""))

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()


class VideoValidator:
    """
    Confirm a candidate URL looks like playable video.

    The validator is lenient: when nothing confirms the URL it still returns
    default metadata. None is only returned on unexpected failures.
    """

    def __init__(
        self,
        probe: HttpProbe,
        timeout_sec: float = PROBE_TIMEOUT_SEC,
        logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
    ):
        self.probe = probe
        self.timeout_sec = timeout_sec
        self.logger = logger or logging.getLogger(__name__)

    async def validate(self, url: str) -> Optional[ValidatedMetadata]:
        """
        Validate a video URL.

        Args:
            url: Candidate media URL

        Returns:
            ValidatedMetadata, or None if validation failed unexpectedly
        """
        try:
            parts = urlsplit(url)
            if parts.scheme not in ("http", "https") or not parts.hostname:
                raise ValueError(f"Not an absolute http(s) URL: {url!r}")

            if parts.hostname.lower() == NATIVE_HOST:
                return self._native_metadata(url)

            return await self._probe_metadata(url, parts.path)
        except Exception as e:
            self.logger.error(f"Error validating video URL {url}: {e}")
            return None

    def _native_metadata(self, url: str) -> ValidatedMetadata:
        """Derive a direct MP4 rendition for v.redd.it URLs without a network probe."""
        height = DEFAULT_HEIGHT
        width = DEFAULT_WIDTH
        direct_url = url

        id_match = NATIVE_ID.search(url)
        video_id = id_match.group(1) if id_match else ""
        rendition = DASH_RENDITION.search(url) if "/DASH_" in url else None

        if rendition and video_id:
            # Already a concrete rendition such as DASH_1080.mp4
            height = int(rendition.group(1))
            width = widescreen_width(height)
        elif video_id:
            direct_url = f"https://{NATIVE_HOST}/{video_id}/DASH_{DEFAULT_HEIGHT}.mp4"

        if direct_url.split("?")[0].endswith(".mp4"):
            media_format = "mp4"
        elif "dash" in direct_url.lower():
            media_format = "dash"
        elif "hls" in direct_url.lower():
            media_format = "hls"
        else:
            media_format = "mp4"

        return ValidatedMetadata(url=direct_url, format=media_format, width_px=width, height_px=height)

    async def _probe_metadata(self, url: str, path: str) -> ValidatedMetadata:
        suffix = VIDEO_SUFFIX.search(path)

        try:
            result = await self.probe.head(url, timeout=self.timeout_sec)
            content_type = result.content_type.split(";")[0].strip().lower()
            if "video" in content_type or suffix:
                media_format = content_type.split("/")[1] if "/" in content_type and "video" in content_type else ""
                return ValidatedMetadata(
                    url=url,
                    format=media_format or (suffix.group(1).lower() if suffix else "mp4"),
                    width_px=DEFAULT_WIDTH,
                    height_px=DEFAULT_HEIGHT,
                )
        except Exception as e:
            self.logger.debug(f"HEAD probe failed for {url}, inferring from URL: {e}")

        if suffix:
            return ValidatedMetadata(
                url=url, format=suffix.group(1).lower(), width_px=DEFAULT_WIDTH, height_px=DEFAULT_HEIGHT
            )

        self.logger.debug(f"Could not confirm {url} as video, accepting with default metadata")
        return ValidatedMetadata(url=url, format="unknown", width_px=DEFAULT_WIDTH, height_px=DEFAULT_HEIGHT)
