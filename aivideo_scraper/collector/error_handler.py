"""Retry logic for transient Reddit API failures."""

import asyncio
import logging
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, TypeVar, cast

from asyncprawcore.exceptions import ResponseException

logger = logging.getLogger(__name__)

T = TypeVar("T")
AsyncFunc = Callable[..., Awaitable[T]]

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def response_status(error: BaseException) -> Optional[int]:
    """Extract the HTTP status from an asyncprawcore response exception."""
    response = getattr(error, "response", None)
    status = getattr(response, "status", None)
    return status if isinstance(status, int) else None


def with_exponential_backoff(
    max_attempts: int = 3,
    initial_backoff: float = 2.0,
    max_backoff: float = 15.0,
    backoff_factor: float = 2.0,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> Callable[[AsyncFunc[T]], AsyncFunc[T]]:
    """
    Decorator for retrying a single upstream call on transient HTTP statuses.

    Only 429 and 5xx gateway/server statuses are retried; every other error
    is raised immediately.

    Args:
        max_attempts: Total attempts including the first one
        initial_backoff: Wait before the second attempt in seconds
        max_backoff: Maximum wait in seconds
        backoff_factor: Multiplier for the wait between attempts
        sleep: Coroutine used to wait, defaults to asyncio.sleep

    Returns:
        Decorator function
    """
    def decorator(func: AsyncFunc[T]) -> AsyncFunc[T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            attempt = 1
            backoff = initial_backoff

            while True:
                try:
                    return await func(*args, **kwargs)
                except ResponseException as e:
                    status = response_status(e)
                    if status not in RETRYABLE_STATUS_CODES or attempt >= max_attempts:
                        raise

                    logger.warning(
                        f"Reddit API {func.__name__} failed with status {status}. "
                        f"Retrying in {backoff:.2f}s (attempt {attempt}/{max_attempts})"
                    )
                    await (sleep or asyncio.sleep)(backoff)
                    attempt += 1
                    backoff = min(backoff * backoff_factor, max_backoff)

        return cast(AsyncFunc[T], wrapper)
    return decorator
