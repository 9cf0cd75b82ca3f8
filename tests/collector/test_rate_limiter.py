"""Tests for the rate limiter module."""

import time
import unittest
from unittest.mock import AsyncMock

from aivideo_scraper.collector.rate_limiter import RateLimiter
from aivideo_scraper.config import RateLimitConfig


class TestRateLimiter(unittest.IsolatedAsyncioTestCase):
    """Test cases for the RateLimiter class."""

    def setUp(self):
        """Set up test environment."""
        self.sleep = AsyncMock()
        self.config = RateLimitConfig(
            max_requests_per_minute=60,  # 1 request per second
        )
        self.rate_limiter = RateLimiter(self.config, sleep=self.sleep)

    async def test_first_request_does_not_wait(self):
        await self.rate_limiter.pre_request()

        self.sleep.assert_not_called()
        self.assertGreater(self.rate_limiter.last_request_time, 0)

    async def test_back_to_back_requests_are_spaced(self):
        self.rate_limiter.last_request_time = time.monotonic()

        await self.rate_limiter.pre_request()

        self.sleep.assert_awaited_once()
        waited = self.sleep.await_args.args[0]
        self.assertGreater(waited, 0)
        self.assertLessEqual(waited, 1.0)

    async def test_no_wait_after_interval_elapsed(self):
        self.rate_limiter.last_request_time = time.monotonic() - 5

        await self.rate_limiter.pre_request()

        self.sleep.assert_not_called()

    async def test_fixed_pauses(self):
        await self.rate_limiter.between_fetches()
        await self.rate_limiter.between_sources()

        self.assertEqual([c.args[0] for c in self.sleep.await_args_list], [1.2, 2.0])

    async def test_zero_pauses_skip_sleeping(self):
        limiter = RateLimiter(RateLimitConfig(fetch_delay_sec=0, source_delay_sec=0), sleep=self.sleep)

        await limiter.between_fetches()
        await limiter.between_sources()

        self.sleep.assert_not_called()


if __name__ == "__main__":
    unittest.main()
