"""Tag extraction from post titles."""

import re
from typing import Dict, List

from aivideo_scraper.models.video import MAX_TAG_LENGTH, MAX_TAGS

HASHTAG = re.compile(r"#(\w+)")
QUOTED = re.compile(r'"([^"]+)"')
BRACKETED = re.compile(r"\[([^\]]+)\]")
PARENTHESIZED = re.compile(r"\(([^)]+)\)")
NON_WORD = re.compile(r"[^\w\s#]")

PREFIX_PHRASES = ("using", "made with", "created by", "powered by", "generated by")
PREFIX_PATTERNS = [
    re.compile(rf"\b{re.escape(prefix)}\s+([\w ]+)", re.IGNORECASE) for prefix in PREFIX_PHRASES
]

STOP_WORDS = frozenset(
    ["the", "and", "but", "for", "with", "this", "that", "from", "what", "when", "where", "which"]
)


def _is_significant(word: str) -> bool:
    if len(word) <= 3 or word.lower() in STOP_WORDS:
        return False
    return (
        word[0].isupper()
        or "ai" in word.lower()
        or any(char.isdigit() for char in word)
        or len(word) > 6
    )


def extract_tags(title: str, source_name: str) -> List[str]:
    """
    Extract up to 15 lower-case tags from a post title.

    Tags are collected in priority order: the source name, hashtags, quoted
    phrases, bracketed terms, parenthetical terms, terms after phrases such
    as "made with", then significant title words.

    Args:
        title: Post title
        source_name: Name of the source the post came from

    Returns:
        Ordered list of unique tags
    """
    # dict preserves insertion order and drops duplicates
    tags: Dict[str, None] = {}

    def add(value: str) -> None:
        tag = " ".join(value.split()).lower()
        if tag:
            tags.setdefault(tag, None)

    add(source_name)

    for pattern in (HASHTAG, QUOTED, BRACKETED, PARENTHESIZED):
        for match in pattern.finditer(title):
            add(match.group(1))

    for pattern in PREFIX_PATTERNS:
        for match in pattern.finditer(title):
            add(match.group(1))

    for word in NON_WORD.sub(" ", title).split():
        if _is_significant(word):
            add(word)

    return [tag for tag in tags if len(tag) < MAX_TAG_LENGTH][:MAX_TAGS]


class TagExtractor:
    """Callable wrapper so the orchestrator can take the extractor as a collaborator."""

    def extract_tags(self, title: str, source_name: str) -> List[str]:
        return extract_tags(title, source_name)

    __call__ = extract_tags
