"""Candidate post retrieval per source."""

import logging
from typing import List, Optional, Protocol, Set, Union

from aivideo_scraper.collector.rate_limiter import RateLimiter
from aivideo_scraper.config import FetchConfig
from aivideo_scraper.exceptions import SourceInaccessibleError
from aivideo_scraper.models.post import RawPost


class SourceClient(Protocol):
    """The listing calls the fetcher needs from the Reddit client."""

    async def list_popular(self, subreddit_name: str, limit: int) -> List[RawPost]:
        ...

    async def list_top_recent(self, subreddit_name: str, window: str, limit: int) -> List[RawPost]:
        ...

    async def fetch_post(self, id_or_url: str) -> RawPost:
        ...


class PostFetcher:
    """Fetch and deduplicate the popular and recent-top posts of a source."""

    def __init__(
        self,
        client: SourceClient,
        rate_limiter: RateLimiter,
        config: Optional[FetchConfig] = None,
        prometheus_exporter=None,
        logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
    ):
        self.client = client
        self.rate_limiter = rate_limiter
        self.config = config or FetchConfig()
        self.prometheus_exporter = prometheus_exporter
        self.logger = logger or logging.getLogger(__name__)

    async def fetch_candidates(self, source_name: str) -> List[RawPost]:
        """
        Fetch candidate posts for a source.

        Popular posts come first; recent-top posts are appended unless their
        id was already seen. A banned or removed source yields an empty list.

        Args:
            source_name: Subreddit name

        Returns:
            Deduplicated list of candidate posts

        Raises:
            Exception: Any upstream error other than an inaccessible source
        """
        try:
            popular = await self.client.list_popular(source_name, self.config.popular_limit)
            await self.rate_limiter.between_fetches()
            top_recent = await self.client.list_top_recent(
                source_name, self.config.top_recent_window, self.config.top_recent_limit
            )
        except SourceInaccessibleError as e:
            self.logger.warning(f"Skipping r/{source_name}: {e}")
            if self.prometheus_exporter:
                self.prometheus_exporter.record_inaccessible_source(source_name)
            return []

        posts: List[RawPost] = []
        seen_ids: Set[str] = set()
        for post in popular + top_recent:
            if post.id not in seen_ids:
                seen_ids.add(post.id)
                posts.append(post)

        self.logger.info(
            f"Fetched {len(posts)} candidates from r/{source_name} "
            f"({len(popular)} popular, {len(top_recent)} top/{self.config.top_recent_window})"
        )
        if self.prometheus_exporter:
            self.prometheus_exporter.record_candidates_fetched(source_name, len(posts))

        return posts
