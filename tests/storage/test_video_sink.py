"""Tests for the SQLAlchemy video sink."""

from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select, update

from aivideo_scraper.exceptions import PersistenceError
from aivideo_scraper.models.video import MediaMetadata, MediaRecord, VideoORM


def make_record(key="abc123", **overrides):
    values = dict(
        natural_key=key,
        title="AI generated video of a city at night",
        video_url=f"https://v.redd.it/{key}/DASH_720.mp4",
        thumbnail_url="/thumbnails/x.jpg",
        source_name="aivideo",
        tags=["aivideo", "city"],
        metadata=MediaMetadata(width_px=1280, height_px=720, format="mp4", source_score=50,
                               source_permalink_url=f"https://reddit.com/r/aivideo/comments/{key}/"),
        created_at=datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return MediaRecord(**values)


def row_count(database):
    with database.session() as db:
        return db.execute(select(func.count()).select_from(VideoORM)).scalar_one()


class TestVideoSink:
    """Test cases for SQLAlchemyVideoSink."""

    def test_create_and_find(self, video_sink):
        created = video_sink.create(make_record())

        found = video_sink.find_by_natural_key("abc123")
        assert found is not None
        assert found.title == created.title
        assert found.tags == ["aivideo", "city"]
        assert found.metadata.height_px == 720
        assert found.metadata.audio_url is None
        assert found.view_count == 0
        assert found.like_count == 0
        assert found.is_adult is False

    def test_find_missing_returns_none(self, video_sink):
        assert video_sink.find_by_natural_key("nope") is None

    def test_create_duplicate_key_fails(self, video_sink):
        video_sink.create(make_record())

        with pytest.raises(PersistenceError):
            video_sink.create(make_record())

    def test_update_ignores_engagement_columns(self, video_sink):
        video_sink.create(make_record())

        updated = video_sink.update("abc123", {"title": "New title", "views": 99, "likes": 7})

        assert updated.title == "New title"
        assert updated.view_count == 0
        assert updated.like_count == 0

    def test_update_missing_key_fails(self, video_sink):
        with pytest.raises(PersistenceError):
            video_sink.update("nope", {"title": "x"})

    def test_upsert_twice_keeps_one_row(self, video_sink, database):
        video_sink.upsert(make_record())
        second = video_sink.upsert(make_record(title="Updated title", tags=["aivideo"]))

        assert row_count(database) == 1
        assert second.title == "Updated title"
        assert second.tags == ["aivideo"]

    def test_upsert_preserves_engagement_and_creation_time(self, video_sink, database):
        first = video_sink.upsert(make_record())
        with database.session() as db:
            db.execute(update(VideoORM).where(VideoORM.reddit_id == "abc123").values(views=42, likes=5))
            db.commit()

        second = video_sink.upsert(
            make_record(
                thumbnail_url="/thumbnails/y.jpg",
                is_adult=True,
                created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            )
        )

        assert second.view_count == 42
        assert second.like_count == 5
        assert second.created_at == first.created_at
        assert second.thumbnail_url == "/thumbnails/y.jpg"
        assert second.is_adult is True

    def test_upsert_caps_tags(self, video_sink):
        record = video_sink.upsert(make_record(tags=[f"tag{i}" for i in range(20)]))

        assert len(record.tags) == 15

    def test_metadata_round_trip(self, video_sink):
        metadata = MediaMetadata(
            width_px=1920, height_px=1080, format="mp4", source_score=7,
            source_permalink_url="https://reddit.com/r/aivideo/comments/k/",
            audio_url="https://v.redd.it/k/DASH_AUDIO_128.mp4",
            media_sources={"fallback_url": "https://v.redd.it/k/DASH_1080.mp4"},
            author="pixelsmith",
        )

        stored = video_sink.upsert(make_record("k", metadata=metadata))

        assert stored.metadata == metadata


def test_check_connection(database):
    assert database.check_connection() is True
