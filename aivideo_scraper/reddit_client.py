"""Reddit API client wrapper for listing subreddit posts."""

import logging
from typing import Any, AsyncIterator, Dict, List, Optional

import asyncpraw
from asyncprawcore.exceptions import Forbidden, NotFound, Redirect
from asyncpraw.models import Subreddit

from aivideo_scraper.collector.error_handler import response_status, with_exponential_backoff
from aivideo_scraper.collector.rate_limiter import RateLimiter
from aivideo_scraper.config import Config
from aivideo_scraper.exceptions import SourceInaccessibleError
from aivideo_scraper.models.mapping import submission_to_post, submissions_to_posts
from aivideo_scraper.models.post import RawPost

logger = logging.getLogger(__name__)


class RedditClient:
    """Wrapper for the Reddit API client returning typed posts."""

    def __init__(self, config: Config, rate_limiter: RateLimiter, prometheus_exporter=None):
        """
        Initialize the Reddit client with configuration.

        Args:
            config: Application configuration with Reddit credentials
            rate_limiter: Spacing applied before every listing request
            prometheus_exporter: Optional Prometheus exporter for metrics
        """
        self.config = config
        self.rate_limiter = rate_limiter
        self.prometheus_exporter = prometheus_exporter
        self._reddit: Optional[asyncpraw.Reddit] = None
        self._subreddit_cache: Dict[str, Subreddit] = {}
        self._retry = with_exponential_backoff(max_attempts=config.fetch.max_attempts)

    async def initialize(self) -> asyncpraw.Reddit:
        """
        Create the asyncpraw client.

        Without a refresh token the client runs in read-only (application)
        mode, which is all listing requires.

        Raises:
            ValueError: If credentials are missing
        """
        if not self._reddit:
            if not (self.config.client_id and self.config.client_secret):
                raise ValueError("Missing Reddit API credentials")

            logger.info("Initializing Reddit client")
            kwargs: Dict[str, Any] = {
                "client_id": self.config.client_id,
                "client_secret": self.config.client_secret,
                "user_agent": self.config.user_agent,
            }
            if self.config.refresh_token:
                kwargs["refresh_token"] = self.config.refresh_token

            self._reddit = asyncpraw.Reddit(**kwargs)
            if not self.config.refresh_token:
                self._reddit.read_only = True

        return self._reddit

    async def get_subreddit(self, subreddit_name: str) -> Subreddit:
        """
        Get a lazy subreddit instance by name, with caching.

        Raises:
            ValueError: If the client is not initialized
        """
        if not self._reddit:
            raise ValueError("Reddit client not initialized")

        if subreddit_name not in self._subreddit_cache:
            self._subreddit_cache[subreddit_name] = await self._reddit.subreddit(subreddit_name)

        return self._subreddit_cache[subreddit_name]

    async def _collect(self, subreddit_name: str, label: str, listing: AsyncIterator[Any]) -> List[RawPost]:
        await self.rate_limiter.pre_request()

        if self.prometheus_exporter:
            self.prometheus_exporter.record_fetch_operation(label)

        try:
            if self.prometheus_exporter:
                with self.prometheus_exporter.time_request():
                    submissions = [submission async for submission in listing]
            else:
                submissions = [submission async for submission in listing]
        except (NotFound, Forbidden, Redirect) as e:
            status = response_status(e)
            raise SourceInaccessibleError(subreddit_name, status, type(e).__name__.lower()) from e

        return submissions_to_posts(submissions)

    async def list_popular(self, subreddit_name: str, limit: int) -> List[RawPost]:
        """
        List the currently popular ("hot") posts of a subreddit.

        Raises:
            SourceInaccessibleError: If the subreddit is banned, private or gone
        """
        async def hot() -> List[RawPost]:
            subreddit = await self.get_subreddit(subreddit_name)
            return await self._collect(subreddit_name, "popular", subreddit.hot(limit=limit))

        return await self._retry(hot)()

    async def list_top_recent(self, subreddit_name: str, window: str, limit: int) -> List[RawPost]:
        """
        List the top-scoring posts of a subreddit within a time window.

        Raises:
            SourceInaccessibleError: If the subreddit is banned, private or gone
        """
        async def top() -> List[RawPost]:
            subreddit = await self.get_subreddit(subreddit_name)
            return await self._collect(subreddit_name, "top_recent", subreddit.top(time_filter=window, limit=limit))

        return await self._retry(top)()

    async def fetch_post(self, id_or_url: str) -> RawPost:
        """
        Fetch a single post by id or by its reddit.com URL.

        Raises:
            ValueError: If the client is not initialized
            MalformedPostError: If the payload cannot be mapped
        """
        if not self._reddit:
            raise ValueError("Reddit client not initialized")

        async def get_submission() -> RawPost:
            await self.rate_limiter.pre_request()
            if id_or_url.startswith("http"):
                submission = await self._reddit.submission(url=id_or_url)
            else:
                submission = await self._reddit.submission(id_or_url)
            return submission_to_post(submission)

        return await self._retry(get_submission)()

    async def close(self) -> None:
        """Close the Reddit client and release resources."""
        if self._reddit:
            logger.info("Closing Reddit client")
            await self._reddit.close()
            self._reddit = None
            self._subreddit_cache = {}
