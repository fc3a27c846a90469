"""Playwright crawl runtime: request queue, browser sessions, retries and timeouts."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Set

from playwright.async_api import async_playwright

from reddit_quotes.collector.error_handler import FetchError, with_exponential_backoff
from reddit_quotes.collector.rate_limiter import RateLimiter
from reddit_quotes.config import Config
from reddit_quotes.crawler.proxy import ProxyConfiguration
from reddit_quotes.models.records import FetchRequest
from reddit_quotes.text_utils import ACCEPT_LANGUAGE, pick_user_agent

logger = logging.getLogger(__name__)

VIEWPORT = {"width": 1366, "height": 768}
BROWSER_LOCALE = "es-ES"

RequestHandler = Callable[[FetchRequest, Any], Awaitable[Any]]
FailedRequestHandler = Callable[[FetchRequest, Exception], Awaitable[None]]


@dataclass
class CrawlStats:
    """Counters for one crawl run."""

    enqueued: int = 0
    succeeded: int = 0
    failed: int = 0


class CrawlRunner:
    """
    Process queued post requests in a headless browser.

    Each attempt opens a fresh browser context with a rotated user agent and
    the next proxy, waits briefly, navigates to the post and hands the page to
    the request handler. Any failure is retried with backoff; once retries are
    exhausted the request is handed to the failed-request handler and the run
    carries on with the next request.
    """

    def __init__(
        self,
        config: Config,
        handler: RequestHandler,
        proxy_configuration: Optional[ProxyConfiguration] = None,
        prometheus_exporter=None,
        failed_request_handler: Optional[FailedRequestHandler] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        """
        Initialize the runner.

        Args:
            config: Run configuration (crawl limits and headless flag)
            handler: Coroutine called as ``handler(request, page)`` after navigation
            proxy_configuration: Proxy rotation for browser sessions, or None
            prometheus_exporter: Optional Prometheus exporter
            failed_request_handler: Called once a request has exhausted its retries
            rate_limiter: Waits out Retry-After when a navigation or fetch is rate limited
        """
        self.config = config
        self.crawl = config.crawl
        self.handler = handler
        self.proxy_configuration = proxy_configuration
        self.prometheus_exporter = prometheus_exporter
        self.failed_request_handler = failed_request_handler or self._log_failed_request
        self.rate_limiter = rate_limiter

        self.queue: "asyncio.Queue[FetchRequest]" = asyncio.Queue()
        self.stats = CrawlStats()
        self._enqueued: Set[str] = set()
        self._stopping = False

    def add_request(self, request: FetchRequest) -> bool:
        """
        Enqueue a request unless one with the same URL was already enqueued.

        Returns:
            True if the request was added
        """
        key = request.unique_key
        if key in self._enqueued:
            logger.debug(f"Skipping duplicate request {key}")
            return False
        self._enqueued.add(key)
        self.queue.put_nowait(request)
        self.stats.enqueued += 1
        return True

    def stop(self) -> None:
        """Stop taking new requests; in-flight requests finish their current attempt."""
        if not self._stopping:
            logger.warning("Crawl stopping, remaining queued requests will be skipped")
        self._stopping = True

    async def _log_failed_request(self, request: FetchRequest, error: Exception) -> None:
        logger.error(f"Request failed too many times: {request.url} ({error})")

    async def _attempt(self, browser: Any, request: FetchRequest) -> None:
        proxy = self.proxy_configuration.new_playwright_proxy() if self.proxy_configuration else None
        context = await browser.new_context(
            user_agent=pick_user_agent(),
            viewport=VIEWPORT,
            locale=BROWSER_LOCALE,
            extra_http_headers={"Accept-Language": ACCEPT_LANGUAGE},
            proxy=proxy,
        )
        try:
            page = await context.new_page()
            await asyncio.sleep(self.crawl.navigation_delay_sec)
            logger.info(f"Processing {request.url}")
            response = await page.goto(
                request.url,
                wait_until="domcontentloaded",
                timeout=self.crawl.navigation_timeout_sec * 1000,
            )
            if response is None:
                raise FetchError(f"Navigation to {request.url} returned no response")
            if response.status >= 400:
                # Blocked or rate limited pages are retried, never parsed
                raise FetchError(
                    f"Navigation to {request.url} failed (HTTP {response.status})",
                    status=response.status,
                    retry_after=response.headers.get("retry-after"),
                )
            await asyncio.wait_for(
                self.handler(request, page),
                timeout=self.crawl.request_handler_timeout_sec,
            )
        finally:
            await context.close()

    async def process_request(self, browser: Any, request: FetchRequest) -> bool:
        """
        Process one request with retries.

        Returns:
            True if the handler eventually succeeded
        """
        attempt = with_exponential_backoff(
            max_retries=self.crawl.max_request_retries,
            initial_backoff=self.crawl.initial_backoff_sec,
            max_backoff=self.crawl.max_backoff_sec,
            rate_limiter=self.rate_limiter,
        )(self._attempt)

        timer = self.prometheus_exporter.time_request() if self.prometheus_exporter else None
        try:
            if timer:
                with timer:
                    await attempt(browser, request)
            else:
                await attempt(browser, request)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.stats.failed += 1
            if self.prometheus_exporter:
                self.prometheus_exporter.record_request_failed()
            await self.failed_request_handler(request, e)
            return False

        self.stats.succeeded += 1
        return True

    async def _worker(self, browser: Any, worker_id: int) -> None:
        while True:
            try:
                request = self.queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                if self._stopping:
                    continue
                await self.process_request(browser, request)
            finally:
                self.queue.task_done()

    async def run_with_browser(self, browser: Any) -> CrawlStats:
        """Drain the queue with ``max_concurrency`` workers sharing one browser."""
        workers = max(1, self.crawl.max_concurrency)
        await asyncio.gather(*(self._worker(browser, i) for i in range(workers)))
        return self.stats

    async def run(self) -> CrawlStats:
        """
        Launch Chromium and process every queued request.

        Returns:
            CrawlStats for the run
        """
        if self.queue.empty():
            logger.info("No requests queued, skipping browser launch")
            return self.stats

        logger.info(f"Crawling {self.queue.qsize()} posts (headless={self.config.headless})")
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(headless=self.config.headless)
            try:
                return await self.run_with_browser(browser)
            finally:
                await browser.close()
