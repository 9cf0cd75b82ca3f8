"""Tests for thumbnail generation and caching."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from aivideo_scraper.config import ThumbnailConfig
from aivideo_scraper.exceptions import FrameExtractionError
from aivideo_scraper.processing.thumbnails import ThumbnailGenerator, thumbnail_key

VIDEO_URL = "https://v.redd.it/abc123/DASH_720.mp4"


@pytest.fixture
def config(tmp_path):
    return ThumbnailConfig(cache_dir=str(tmp_path / "thumbs"), public_prefix="/thumbnails/")


@pytest.fixture
def extractor():
    async def write_frame(video_url, at_seconds, out_path, size):
        out_path.write_bytes(b"\xff\xd8jpeg")

    extractor = AsyncMock()
    extractor.snapshot_frame.side_effect = write_frame
    return extractor


def test_thumbnail_key_is_stable():
    assert thumbnail_key(VIDEO_URL) == thumbnail_key(VIDEO_URL)
    assert thumbnail_key(VIDEO_URL) != thumbnail_key(VIDEO_URL + "?x=1")
    assert len(thumbnail_key(VIDEO_URL)) == 32


class TestThumbnailGenerator:
    """Test cases for the ThumbnailGenerator."""

    @pytest.mark.asyncio
    async def test_generates_once_then_uses_cache(self, config, extractor, tmp_path):
        exporter = MagicMock()
        generator = ThumbnailGenerator(config, extractor, prometheus_exporter=exporter)
        expected = f"/thumbnails/{thumbnail_key(VIDEO_URL)}.jpg"

        first = await generator.generate_thumbnail(VIDEO_URL)
        second = await generator.generate_thumbnail(VIDEO_URL)

        assert first == second == expected
        assert (tmp_path / "thumbs" / f"{thumbnail_key(VIDEO_URL)}.jpg").exists()
        extractor.snapshot_frame.assert_awaited_once()
        args = extractor.snapshot_frame.await_args.args
        assert args[0] == VIDEO_URL
        assert args[1] == config.at_seconds
        assert args[3] == "640x360"
        assert [c.args[0] for c in exporter.record_thumbnail.call_args_list] == ["generated", "cached"]

    @pytest.mark.asyncio
    async def test_failure_returns_placeholder(self, config, extractor):
        extractor.snapshot_frame.side_effect = FrameExtractionError("ffmpeg exited with 1")
        generator = ThumbnailGenerator(config, extractor)

        assert await generator.generate_thumbnail(VIDEO_URL) == config.placeholder_url

    @pytest.mark.asyncio
    async def test_failure_is_not_cached(self, config, extractor):
        write_frame = extractor.snapshot_frame.side_effect
        extractor.snapshot_frame.side_effect = FrameExtractionError("timeout")
        generator = ThumbnailGenerator(config, extractor)

        assert await generator.generate_thumbnail(VIDEO_URL) == config.placeholder_url

        extractor.snapshot_frame.side_effect = write_frame
        result = await generator.generate_thumbnail(VIDEO_URL)

        assert result == f"/thumbnails/{thumbnail_key(VIDEO_URL)}.jpg"
        assert extractor.snapshot_frame.await_count == 2

    @pytest.mark.asyncio
    async def test_truncated_frame_is_discarded(self, config, extractor, tmp_path):
        async def write_then_fail(video_url, at_seconds, out_path, size):
            out_path.write_bytes(b"trunc")
            raise FrameExtractionError("ffmpeg exited with 1")

        write_frame = extractor.snapshot_frame.side_effect
        extractor.snapshot_frame.side_effect = write_then_fail
        generator = ThumbnailGenerator(config, extractor)

        assert await generator.generate_thumbnail(VIDEO_URL) == config.placeholder_url
        assert list((tmp_path / "thumbs").iterdir()) == []

        extractor.snapshot_frame.side_effect = write_frame
        result = await generator.generate_thumbnail(VIDEO_URL)

        assert result == f"/thumbnails/{thumbnail_key(VIDEO_URL)}.jpg"
        assert extractor.snapshot_frame.await_count == 2
        assert (tmp_path / "thumbs" / f"{thumbnail_key(VIDEO_URL)}.jpg").read_bytes() == b"\xff\xd8jpeg"

    @pytest.mark.asyncio
    async def test_distinct_urls_get_distinct_files(self, config, extractor):
        generator = ThumbnailGenerator(config, extractor)

        first = await generator.generate_thumbnail(VIDEO_URL)
        second = await generator.generate_thumbnail("https://cdn.example.com/b.mp4")

        assert first != second
        assert extractor.snapshot_frame.await_count == 2
