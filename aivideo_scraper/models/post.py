"""Typed representation of an upstream Reddit post."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class NativeVideo:
    """Reddit-hosted (v.redd.it) video variants."""

    fallback_url: str
    dash_url: Optional[str] = None
    hls_url: Optional[str] = None
    height_px: int = 0


@dataclass(frozen=True)
class RawPost:
    """
    A candidate post as consumed by the pipeline.

    Built at the fetch boundary from an asyncpraw Submission and read-only
    from then on.
    """

    id: str
    score: int
    title: str
    source_name: str
    body_text: str = ""
    flair_text: str = ""
    is_native_video: bool = False
    native_video: Optional[NativeVideo] = None
    direct_url: Optional[str] = None
    media_type: Optional[str] = None  # e.g. "youtube.com" for embedded players
    is_adult_flagged: bool = False
    permalink: str = ""
    created_at_epoch: float = 0.0
    preview_image_url: Optional[str] = None
    author: Optional[str] = None  # None for deleted accounts

    @property
    def permalink_url(self) -> str:
        """Absolute URL of the post's comment page."""
        if self.permalink.startswith("http"):
            return self.permalink
        return f"https://reddit.com{self.permalink}"
