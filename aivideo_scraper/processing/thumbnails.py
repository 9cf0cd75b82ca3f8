"""Thumbnail derivation with a content-addressed file cache."""

import asyncio
import hashlib
import logging
import os
from pathlib import Path
from typing import Optional, Union

from aivideo_scraper.config import ThumbnailConfig
from aivideo_scraper.exceptions import FrameExtractionError

# Thumbnail outcomes, also used as metric labels
CACHED = "cached"
GENERATED = "generated"
PLACEHOLDER = "placeholder"


def thumbnail_key(video_url: str) -> str:
    """Stable cache key for a video URL."""
    return hashlib.md5(video_url.encode("utf-8")).hexdigest()


class FfmpegFrameExtractor:
    """Snapshot a single frame of a remote video with the ffmpeg CLI."""

    def __init__(self, ffmpeg_path: str = "ffmpeg", timeout_sec: float = 30.0):
        self.ffmpeg_path = ffmpeg_path
        self.timeout_sec = timeout_sec

    async def snapshot_frame(self, video_url: str, at_seconds: float, out_path: Path, size: str) -> None:
        """
        Write one frame near ``at_seconds`` to ``out_path``.

        Raises:
            FrameExtractionError: If ffmpeg is missing, fails, or times out
        """
        try:
            process = await asyncio.create_subprocess_exec(
                self.ffmpeg_path,
                "-hide_banner", "-loglevel", "error", "-y",
                "-ss", f"{at_seconds:.3f}",
                "-i", video_url,
                "-frames:v", "1",
                "-s", size,
                str(out_path),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise FrameExtractionError(f"Could not start {self.ffmpeg_path}: {e}") from e

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout_sec)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise FrameExtractionError(f"ffmpeg timed out after {self.timeout_sec}s for {video_url}")

        if process.returncode != 0 or not out_path.exists():
            message = stderr.decode("utf-8", errors="replace").strip()[-500:]
            raise FrameExtractionError(f"ffmpeg exited with {process.returncode}: {message}")


class ThumbnailGenerator:
    """Return a thumbnail reference for a video, extracting a frame at most once per URL."""

    def __init__(
        self,
        config: ThumbnailConfig,
        extractor: Optional[FfmpegFrameExtractor] = None,
        prometheus_exporter=None,
        logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
    ):
        self.config = config
        self.extractor = extractor or FfmpegFrameExtractor(config.ffmpeg_path, config.timeout_sec)
        self.prometheus_exporter = prometheus_exporter
        self.logger = logger or logging.getLogger(__name__)
        self.cache_dir = Path(config.cache_dir)

    def _record(self, outcome: str) -> None:
        if self.prometheus_exporter:
            self.prometheus_exporter.record_thumbnail(outcome)

    async def generate_thumbnail(self, video_url: str) -> str:
        """
        Get or create the thumbnail for a video.

        Args:
            video_url: Validated video URL

        Returns:
            Public reference to the cached image, or the placeholder URL if
            extraction failed
        """
        key = thumbnail_key(video_url)
        filename = f"{key}.jpg"
        path = self.cache_dir / filename
        reference = f"{self.config.public_prefix.rstrip('/')}/{filename}"

        if path.exists():
            self.logger.debug(f"Using existing thumbnail for video: {video_url}")
            self._record(CACHED)
            return reference

        # Only a complete frame may land on the cache key
        partial_path = self.cache_dir / f"{key}.partial.jpg"
        try:
            os.makedirs(self.cache_dir, exist_ok=True)
            await self.extractor.snapshot_frame(video_url, self.config.at_seconds, partial_path, self.config.size)
            os.replace(partial_path, path)
        except (FrameExtractionError, OSError) as e:
            self.logger.error(f"Error extracting thumbnail from video {video_url}: {e}")
            partial_path.unlink(missing_ok=True)
            self._record(PLACEHOLDER)
            return self.config.placeholder_url

        self.logger.info(f"Generated thumbnail for video: {video_url}")
        self._record(GENERATED)
        return reference
