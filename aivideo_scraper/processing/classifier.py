"""Relevance classification of candidate posts."""

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Pattern, Tuple

from aivideo_scraper.models.post import RawPost
from aivideo_scraper.sources import SourceConfig

PRIMARY_TERMS: Tuple[str, ...] = (
    "ai", "artificial intelligence", "generated", "stable diffusion", "midjourney",
    "dall-e", "sora", "gpt", "chatgpt", "machine learning", "neural network",
    "deep learning", "algorithm", "automated", "synthetic",
)

SECONDARY_TERMS: Tuple[str, ...] = (
    "video", "created", "made", "produced", "animation", "render",
)

# Manual submissions only need one of these
LENIENT_TERMS: Tuple[str, ...] = PRIMARY_TERMS + (
    "aigenerated", "ai-generated", "ai generated",
)

# Soft reject reasons
REASON_LOW_SCORE = "low_score"
REASON_NO_PRIMARY_TERM = "no_primary_term"
REASON_NO_SECONDARY_TERM = "no_secondary_term"
REASON_EXCLUDED_TERM = "excluded_term"


def _compile(terms: Iterable[str]) -> Pattern[str]:
    # Word boundaries keep "ai" from matching inside "rain" or "paint"
    alternatives = "|".join(re.escape(term) for term in sorted(terms, key=len, reverse=True))
    return re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE)


@dataclass(frozen=True)
class Classification:
    accepted: bool
    reason: Optional[str] = None


class Classifier:
    """
    Accept or reject posts using a source's rules and fixed term vocabularies.

    Non-exempt sources need at least one primary term AND one secondary term
    in the title, body or flair.
    """

    def __init__(
        self,
        primary_terms: Iterable[str] = PRIMARY_TERMS,
        secondary_terms: Iterable[str] = SECONDARY_TERMS,
        lenient_terms: Iterable[str] = LENIENT_TERMS,
    ):
        self._primary = _compile(primary_terms)
        self._secondary = _compile(secondary_terms)
        self._lenient = _compile(lenient_terms)

    def classify(self, post: RawPost, config: SourceConfig, lenient: bool = False) -> Classification:
        """
        Classify a post against a source configuration.

        Args:
            post: Candidate post
            config: Rules of the source the post came from
            lenient: Require a single AI term instead of the primary/secondary pair

        Returns:
            Classification with the soft reject reason when not accepted
        """
        if post.score < config.min_relevance_score:
            return Classification(False, REASON_LOW_SCORE)

        if not config.exempt_from_term_filter:
            text = f"{post.title} {post.body_text} {post.flair_text}".lower()
            if lenient:
                if not self._lenient.search(text):
                    return Classification(False, REASON_NO_PRIMARY_TERM)
            else:
                if not self._primary.search(text):
                    return Classification(False, REASON_NO_PRIMARY_TERM)
                if not self._secondary.search(text):
                    return Classification(False, REASON_NO_SECONDARY_TERM)

        if config.exclude_terms:
            text = f"{post.title} {post.body_text}".lower()
            if any(term.lower() in text for term in config.exclude_terms):
                return Classification(False, REASON_EXCLUDED_TERM)

        return Classification(True)

    def accept(self, post: RawPost, config: SourceConfig) -> bool:
        """Return True if the post passes the source's relevance rules."""
        return self.classify(post, config).accepted
