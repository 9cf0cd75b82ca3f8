"""Exception types raised by the ingestion pipeline."""

from typing import Optional


class ScraperError(Exception):
    """Base class for all pipeline errors."""


class SourceInaccessibleError(ScraperError):
    """Raised when a source has been banned, removed or made private."""

    def __init__(self, source_name: str, status: Optional[int] = None, reason: str = ""):
        self.source_name = source_name
        self.status = status
        self.reason = reason
        detail = f" ({reason})" if reason else ""
        super().__init__(f"r/{source_name} is inaccessible, status={status}{detail}")


class MalformedPostError(ScraperError):
    """Raised when an upstream payload is missing fields the pipeline needs."""


class FrameExtractionError(ScraperError):
    """Raised when the frame-extraction tool fails or times out."""


class PersistenceError(ScraperError):
    """Raised when the persistence gateway cannot complete a write."""
