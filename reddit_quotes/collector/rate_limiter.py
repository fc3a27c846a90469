"""Request pacing for Reddit fetches and page navigations."""

import asyncio
import logging
import time
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER_SEC = 60.0


class RateLimiter:
    """
    Rate limiter for Reddit requests.

    Reddit penalises bursty traffic, so every request and navigation is
    spaced by a small fixed delay instead of being run concurrently.
    """

    def __init__(self, min_interval_sec: float = 0.5, sleep_buffer_sec: float = 2.0):
        """
        Initialize the rate limiter.

        Args:
            min_interval_sec: Minimum spacing between two consecutive requests
            sleep_buffer_sec: Extra seconds added on top of any Retry-After wait
        """
        self.min_interval_sec = min_interval_sec
        self.sleep_buffer_sec = sleep_buffer_sec
        self.last_request_time = 0.0

    async def pre_request(self) -> None:
        """Sleep until at least ``min_interval_sec`` has passed since the last request."""
        now = time.time()
        elapsed = now - self.last_request_time
        if elapsed < self.min_interval_sec:
            await asyncio.sleep(self.min_interval_sec - elapsed)
        self.last_request_time = time.time()

    async def handle_429(self, retry_after: Optional[str] = None) -> None:
        """
        Handle a 429 Too Many Requests response.

        Args:
            retry_after: Value of the Retry-After header, if available
        """
        wait_seconds = DEFAULT_RETRY_AFTER_SEC
        if retry_after:
            try:
                wait_seconds = float(retry_after)
            except (ValueError, TypeError):
                wait_seconds = DEFAULT_RETRY_AFTER_SEC

        wait_seconds += self.sleep_buffer_sec

        logger.warning(f"Rate limited (429). Waiting for {wait_seconds:.2f}s before retrying.")
        await asyncio.sleep(wait_seconds)
        self.last_request_time = time.time()
