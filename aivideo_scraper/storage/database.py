"""
SQLAlchemy engine and session handling for the video store.

Unlike a module-level engine, a ``Database`` instance is created by the
caller and passed to the components that need it.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from aivideo_scraper.models.video import Base

logger = logging.getLogger(__name__)


class Database:
    """Owns an engine and hands out sessions."""

    def __init__(self, database_url: str, engine_kwargs: Optional[Dict[str, Any]] = None):
        """
        Create the engine for ``database_url``.

        Args:
            database_url: SQLAlchemy URL, e.g. ``postgresql://...`` or ``sqlite://``
            engine_kwargs: Extra keyword arguments for ``create_engine``
        """
        kwargs: Dict[str, Any] = dict(engine_kwargs or {})
        if database_url.startswith("sqlite"):
            # In-memory SQLite must share one connection across sessions
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                kwargs.setdefault("poolclass", StaticPool)
            kwargs.setdefault("connect_args", {"check_same_thread": False})
        else:
            kwargs.setdefault("pool_size", 5)
            kwargs.setdefault("max_overflow", 10)
            kwargs.setdefault("pool_recycle", 1800)
            kwargs.setdefault("pool_pre_ping", True)

        self.engine: Engine = create_engine(database_url, **kwargs)
        self._session_factory = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Get a database session.

        Yields:
            SQLAlchemy session, closed on exit
        """
        db = self._session_factory()
        try:
            yield db
        finally:
            db.close()

    def create_schema(self) -> None:
        """Create the tables that do not exist yet."""
        Base.metadata.create_all(self.engine)
        logger.info("Database schema created or already present")

    def check_connection(self) -> bool:
        """Return True if a trivial query succeeds."""
        try:
            with self.session() as db:
                db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database connection test failed: {str(e)}")
            return False

    def dispose(self) -> None:
        self.engine.dispose()
