"""Delay policy for Reddit API requests."""

import asyncio
import time
from typing import Awaitable, Callable, Optional

from aivideo_scraper.config import RateLimitConfig

Sleeper = Callable[[float], Awaitable[None]]


class RateLimiter:
    """
    Rate limiter for Reddit API requests.

    Spaces requests by a minimum interval and applies the fixed pauses
    between the two listing calls of a source and between sources. The
    sleep function is injectable so spacing can be asserted in tests.
    """

    def __init__(self, config: RateLimitConfig, sleep: Optional[Sleeper] = None):
        """
        Initialize the rate limiter with configuration.

        Args:
            config: Rate limiting configuration
            sleep: Coroutine used to wait, defaults to asyncio.sleep
        """
        self.config = config
        self._sleep = sleep or asyncio.sleep
        self.last_request_time = 0.0

        # Absolute rate limit calculation
        self.min_interval = 60.0 / self.config.max_requests_per_minute

    async def pre_request(self) -> None:
        """
        Sleep if the previous request was less than ``min_interval`` ago.

        This should be called before each Reddit API request.
        """
        now = time.monotonic()
        elapsed = now - self.last_request_time
        if self.last_request_time and elapsed < self.min_interval:
            await self._sleep(self.min_interval - elapsed)
        self.last_request_time = time.monotonic()

    async def between_fetches(self) -> None:
        """Pause between the listing calls made for one source."""
        if self.config.fetch_delay_sec > 0:
            await self._sleep(self.config.fetch_delay_sec)

    async def between_sources(self) -> None:
        """Pause before moving on to the next source."""
        if self.config.source_delay_sec > 0:
            await self._sleep(self.config.source_delay_sec)
