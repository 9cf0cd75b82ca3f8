"""Persisted video records and their ORM mapping."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, BigInteger, Boolean, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import expression
from sqlalchemy.sql.sqltypes import TIMESTAMP

MAX_TAGS = 15
MAX_TAG_LENGTH = 50

JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    pass


class VideoORM(Base):
    """
    SQLAlchemy ORM model for ingested videos.

    ``reddit_id`` is the natural key. ``views`` and ``likes`` belong to the
    consumers of the table and are only ever set by their server defaults
    during ingestion.
    """
    __tablename__ = "videos"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    reddit_id: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, comment="Source post id (natural key)")
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    video_url: Mapped[str] = mapped_column(Text, nullable=False)
    thumbnail_url: Mapped[str] = mapped_column(Text, nullable=False)
    subreddit: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    platform: Mapped[str] = mapped_column(String(32), nullable=False, server_default="reddit")
    tags: Mapped[List[str]] = mapped_column(JSONType, nullable=False, default=list)
    views: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    likes: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    nsfw: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=expression.false())
    # "metadata" is reserved on declarative classes
    media_metadata: Mapped[Dict[str, Any]] = mapped_column("metadata", JSONType, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<VideoORM(id={self.id}, reddit_id='{self.reddit_id}', subreddit='{self.subreddit}')>"


@dataclass
class MediaMetadata:
    """Media details stored alongside a record."""

    width_px: int = 0
    height_px: int = 0
    format: str = "unknown"
    duration_sec: float = 0
    source_score: int = 0
    source_permalink_url: str = ""
    audio_url: Optional[str] = None
    media_sources: Optional[Dict[str, str]] = None
    author: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "MediaMetadata":
        data = data or {}
        return cls(
            width_px=int(data.get("width_px", 0)),
            height_px=int(data.get("height_px", 0)),
            format=str(data.get("format", "unknown")),
            duration_sec=data.get("duration_sec", 0),
            source_score=int(data.get("source_score", 0)),
            source_permalink_url=str(data.get("source_permalink_url", "")),
            audio_url=data.get("audio_url"),
            media_sources=data.get("media_sources"),
            author=data.get("author"),
        )


@dataclass
class MediaRecord:
    """Read model of a persisted video, keyed by the source post id."""

    natural_key: str
    title: str
    video_url: str
    thumbnail_url: str
    source_name: str
    description: str = ""
    tags: List[str] = field(default_factory=list)
    is_adult: bool = False
    view_count: int = 0
    like_count: int = 0
    metadata: MediaMetadata = field(default_factory=MediaMetadata)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_orm(cls, row: VideoORM) -> "MediaRecord":
        return cls(
            natural_key=row.reddit_id,
            title=row.title,
            description=row.description or "",
            video_url=row.video_url,
            thumbnail_url=row.thumbnail_url,
            source_name=row.subreddit,
            tags=list(row.tags or []),
            is_adult=bool(row.nsfw),
            view_count=row.views or 0,
            like_count=row.likes or 0,
            metadata=MediaMetadata.from_dict(row.media_metadata),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_row(self) -> Dict[str, Any]:
        """Column values owned by the pipeline (no views/likes)."""
        row = {
            "reddit_id": self.natural_key,
            "title": self.title,
            "description": self.description,
            "video_url": self.video_url,
            "thumbnail_url": self.thumbnail_url,
            "subreddit": self.source_name,
            "platform": "reddit",
            "tags": list(self.tags)[:MAX_TAGS],
            "nsfw": self.is_adult,
            "media_metadata": self.metadata.to_dict(),
        }
        if self.created_at is not None:
            row["created_at"] = self.created_at
        return row
