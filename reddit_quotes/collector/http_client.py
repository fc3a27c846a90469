"""HTTP client for Reddit's structured JSON and rendered HTML surfaces."""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import aiohttp

from reddit_quotes.collector.error_handler import FetchError, ShapeError
from reddit_quotes.collector.rate_limiter import RateLimiter
from reddit_quotes.crawler.proxy import ProxyConfiguration
from reddit_quotes.text_utils import ACCEPT_LANGUAGE, pick_user_agent

logger = logging.getLogger(__name__)


class RedditHttpClient:
    """
    Thin aiohttp wrapper used by the discovery and extraction strategies.

    Every call rotates the user agent, sets locale-oriented headers, asks the
    proxy configuration for a fresh proxy URL and is bounded by a timeout.
    """

    def __init__(
        self,
        proxy_configuration: Optional[ProxyConfiguration] = None,
        rate_limiter: Optional[RateLimiter] = None,
        timeout_sec: float = 30.0,
    ):
        """
        Initialize the client.

        Args:
            proxy_configuration: Source of proxy URLs, or None for direct connections
            rate_limiter: Optional pacing applied before every request
            timeout_sec: Total timeout for a single request
        """
        self.proxy_configuration = proxy_configuration
        self.rate_limiter = rate_limiter
        self.timeout = aiohttp.ClientTimeout(total=timeout_sec)
        self._session: Optional[aiohttp.ClientSession] = None

    async def initialize(self) -> None:
        """Create the underlying HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self.timeout)

    async def close(self) -> None:
        """Close the HTTP session and release resources."""
        if self._session:
            await self._session.close()
            self._session = None

    def build_headers(self, accept: str, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "User-Agent": pick_user_agent(),
            "Accept": accept,
            "Accept-Language": ACCEPT_LANGUAGE,
        }
        if extra:
            headers.update(extra)
        return headers

    async def _get(self, url: str, headers: Dict[str, str]) -> str:
        await self.initialize()
        if self.rate_limiter:
            await self.rate_limiter.pre_request()

        proxy = self.proxy_configuration.new_url() if self.proxy_configuration else None
        try:
            async with self._session.get(url, headers=headers, proxy=proxy) as response:
                if response.status >= 400:
                    raise FetchError(
                        f"HTTP {response.status} for {url}",
                        status=response.status,
                        retry_after=response.headers.get("Retry-After"),
                    )
                return await response.text()
        except aiohttp.ClientError as e:
            raise FetchError(f"Request to {url} failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise FetchError(f"Request to {url} timed out") from e

    async def get_json(self, url: str, extra_headers: Optional[Dict[str, str]] = None) -> Any:
        """
        Fetch and decode a JSON document.

        Raises:
            FetchError: On transport failure, timeout or non-2xx status
            ShapeError: If the body is not valid JSON
        """
        body = await self._get(url, self.build_headers("application/json", extra_headers))
        try:
            return json.loads(body)
        except ValueError as e:
            raise ShapeError(f"Invalid JSON from {url}: {e}") from e

    async def get_text(self, url: str, extra_headers: Optional[Dict[str, str]] = None) -> str:
        """
        Fetch a rendered HTML page.

        Raises:
            FetchError: On transport failure, timeout or non-2xx status
        """
        return await self._get(url, self.build_headers("text/html", extra_headers))
