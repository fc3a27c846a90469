"""Error taxonomy and retry logic for Reddit fetches."""

import asyncio
import logging
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, TypeVar, cast

from reddit_quotes.collector.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

T = TypeVar("T")
AsyncFunc = Callable[..., Awaitable[T]]


class QuoteScraperError(Exception):
    """Base class for all scraper errors."""


class FetchError(QuoteScraperError):
    """Transport failure or non-2xx response from an upstream surface."""

    def __init__(self, message: str, status: Optional[int] = None, retry_after: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.retry_after = retry_after


class ShapeError(QuoteScraperError):
    """An upstream payload did not have the expected structure."""


class ExtractionError(QuoteScraperError):
    """Every detail extraction strategy failed for a post."""


class ConfigError(QuoteScraperError):
    """The run configuration is invalid."""


def with_exponential_backoff(
    max_retries: int = 4,
    initial_backoff: float = 1.0,
    max_backoff: float = 30.0,
    backoff_factor: float = 2.0,
    rate_limiter: Optional[RateLimiter] = None,
) -> Callable[[AsyncFunc[T]], AsyncFunc[T]]:
    """
    Decorator for retrying async functions with exponential backoff.

    The wrapped function is called afresh on every attempt. A 429 response
    waits for the rate limiter's Retry-After handling instead of the backoff
    delay but still counts as an attempt, so no request can retry forever.

    Args:
        max_retries: Maximum number of retries after the first attempt
        initial_backoff: Initial backoff time in seconds
        max_backoff: Maximum backoff time in seconds
        backoff_factor: Multiplier for backoff time between retries
        rate_limiter: Optional rate limiter for handling 429 responses

    Returns:
        Decorator function
    """
    def decorator(func: AsyncFunc[T]) -> AsyncFunc[T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            retries = 0
            backoff = initial_backoff

            while True:
                try:
                    return await func(*args, **kwargs)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    if retries >= max_retries:
                        logger.error(f"Max retries ({max_retries}) exceeded: {e}")
                        raise

                    retries += 1
                    if isinstance(e, FetchError) and e.status == 429 and rate_limiter:
                        logger.warning(f"Rate limited (429): {e} ({retries}/{max_retries})")
                        await rate_limiter.handle_429(e.retry_after)
                        continue

                    logger.warning(
                        f"Error: {e}. "
                        f"Retrying in {backoff:.2f}s ({retries}/{max_retries})"
                    )
                    await asyncio.sleep(backoff)
                    backoff = min(backoff * backoff_factor, max_backoff)

        return cast(AsyncFunc[T], wrapper)
    return decorator
