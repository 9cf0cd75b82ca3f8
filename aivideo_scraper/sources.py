"""Source catalog: the subreddits the pipeline ingests from."""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Optional


@dataclass(frozen=True)
class SourceConfig:
    """Relevance rules for a single source."""

    name: str
    min_relevance_score: int = 10
    exclude_terms: FrozenSet[str] = field(default_factory=frozenset)
    exempt_from_term_filter: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SourceConfig":
        """
        Build a SourceConfig from a YAML mapping.

        Args:
            data: Mapping with at least a ``name`` key

        Returns:
            SourceConfig instance

        Raises:
            ValueError: If the mapping has no name
        """
        name = str(data.get("name") or "").strip()
        if not name:
            raise ValueError("Source entry is missing 'name'")

        return cls(
            name=name,
            min_relevance_score=int(data.get("min_relevance_score", 10)),
            exclude_terms=frozenset(
                str(term).lower() for term in data.get("exclude_terms") or [] if str(term).strip()
            ),
            exempt_from_term_filter=bool(data.get("exempt_from_term_filter", False)),
        )


# AI-focused communities are exempt from the term filter; general-interest
# communities must mention AI generation explicitly.
DEFAULT_SOURCES: List[SourceConfig] = [
    SourceConfig("StableDiffusion", 10, exempt_from_term_filter=True),
    SourceConfig("midjourney", 10, exempt_from_term_filter=True),
    SourceConfig("sdforall", 10, exempt_from_term_filter=True),
    SourceConfig("aivideo", 10, exempt_from_term_filter=True),
    SourceConfig("AIGeneratedContent", 5, exempt_from_term_filter=True),
    SourceConfig("aiArt", 5, exempt_from_term_filter=True),
    SourceConfig("chatGPT", 10),
    SourceConfig("nextfuckinglevel", 10),
    SourceConfig("damnthatsinteresting", 10),
    SourceConfig("interestingasfuck", 10),
    SourceConfig("singularity", 10),
    SourceConfig("crazyfuckingvideos", 10),
]


class SourceCatalog:
    """Ordered, read-only collection of source configurations."""

    def __init__(self, sources: Iterable[SourceConfig]):
        self._sources = tuple(sources)
        self._by_name = {source.name.lower(): source for source in self._sources}

    @classmethod
    def default(cls) -> "SourceCatalog":
        return cls(DEFAULT_SOURCES)

    @classmethod
    def from_list(cls, entries: Optional[List[Dict[str, Any]]]) -> "SourceCatalog":
        """Build a catalog from YAML entries, falling back to the defaults when empty."""
        if not entries:
            return cls.default()
        return cls(SourceConfig.from_dict(entry) for entry in entries)

    def get(self, name: str) -> Optional[SourceConfig]:
        """Look up a source by name, case-insensitively."""
        return self._by_name.get(name.lower())

    @property
    def names(self) -> List[str]:
        return [source.name for source in self._sources]

    def __iter__(self) -> Iterator[SourceConfig]:
        return iter(self._sources)

    def __len__(self) -> int:
        return len(self._sources)
