"""
SQLAlchemy-backed persistence gateway for video records.

Records are keyed by the source post id. Re-ingesting a post updates the
pipeline-owned columns in place and leaves ``views``/``likes`` alone.
"""

import logging
from typing import Any, Dict, Optional, Protocol

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError

from aivideo_scraper.exceptions import PersistenceError
from aivideo_scraper.models.video import MediaRecord, VideoORM
from aivideo_scraper.storage.database import Database

logger = logging.getLogger(__name__)

# Columns the pipeline may overwrite on re-ingestion
UPDATABLE_COLUMNS = (
    "title",
    "description",
    "video_url",
    "thumbnail_url",
    "subreddit",
    "tags",
    "nsfw",
    "media_metadata",
)


class PersistenceGateway(Protocol):
    """Upsert-by-natural-key store for media records."""

    def find_by_natural_key(self, key: str) -> Optional[MediaRecord]:
        ...

    def create(self, record: MediaRecord) -> MediaRecord:
        ...

    def update(self, key: str, changes: Dict[str, Any]) -> MediaRecord:
        ...

    def upsert(self, record: MediaRecord) -> MediaRecord:
        ...


def _column_values(row: Dict[str, Any]) -> Dict[Any, Any]:
    """Key a dict of ORM attribute names by their table columns."""
    columns = VideoORM.__mapper__.columns
    return {columns[attribute]: value for attribute, value in row.items()}


class SQLAlchemyVideoSink:
    """PersistenceGateway implementation on PostgreSQL or SQLite."""

    def __init__(self, database: Database):
        self.database = database

    def find_by_natural_key(self, key: str) -> Optional[MediaRecord]:
        """Return the record stored under ``key``, if any."""
        with self.database.session() as db:
            row = db.execute(select(VideoORM).where(VideoORM.reddit_id == key)).scalar_one_or_none()
            return MediaRecord.from_orm(row) if row is not None else None

    def create(self, record: MediaRecord) -> MediaRecord:
        """
        Insert a new record.

        Raises:
            PersistenceError: If the insert fails, e.g. the key already exists
        """
        with self.database.session() as db:
            try:
                row = VideoORM(**record.to_row())
                db.add(row)
                db.commit()
                db.refresh(row)
                return MediaRecord.from_orm(row)
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError(f"Failed to create video {record.natural_key}: {e}") from e

    def update(self, key: str, changes: Dict[str, Any]) -> MediaRecord:
        """
        Apply a partial update to an existing record.

        Args:
            key: Natural key of the record
            changes: ORM attribute names to new values; views/likes are ignored

        Raises:
            PersistenceError: If the record does not exist or the update fails
        """
        with self.database.session() as db:
            try:
                row = db.execute(select(VideoORM).where(VideoORM.reddit_id == key)).scalar_one_or_none()
                if row is None:
                    raise PersistenceError(f"No video with key {key}")
                for attribute, value in changes.items():
                    if attribute in UPDATABLE_COLUMNS:
                        setattr(row, attribute, value)
                db.commit()
                db.refresh(row)
                return MediaRecord.from_orm(row)
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError(f"Failed to update video {key}: {e}") from e

    def upsert(self, record: MediaRecord) -> MediaRecord:
        """
        Insert or update a record in one statement.

        Uses ``INSERT ... ON CONFLICT (reddit_id) DO UPDATE`` so concurrent
        runs cannot lose updates. ``views``, ``likes`` and ``created_at`` are
        never part of the update set.

        Raises:
            PersistenceError: If the statement fails
        """
        values = record.to_row()
        with self.database.session() as db:
            try:
                dialect = db.bind.dialect.name
                if dialect == "sqlite":
                    stmt = sqlite.insert(VideoORM.__table__)
                elif dialect == "postgresql":
                    stmt = postgresql.insert(VideoORM.__table__)
                else:
                    raise PersistenceError(f"Unsupported database dialect: {dialect}")

                columns = VideoORM.__mapper__.columns
                stmt = stmt.values(_column_values(values))
                update_set = {
                    columns[attribute]: stmt.excluded[columns[attribute].key]
                    for attribute in UPDATABLE_COLUMNS
                }
                update_set[columns["updated_at"]] = func.now()
                stmt = stmt.on_conflict_do_update(index_elements=[columns["reddit_id"]], set_=update_set)
                db.execute(stmt)
                db.commit()

                row = db.execute(
                    select(VideoORM).where(VideoORM.reddit_id == record.natural_key)
                ).scalar_one()
                return MediaRecord.from_orm(row)
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError(f"Failed to upsert video {record.natural_key}: {e}") from e
