"""End-to-end quote collection run: discovery, admission, crawl, classification and export."""

import asyncio
import logging
from typing import Any, List, Optional, Set

import tqdm

from reddit_quotes.collector.classifier import Classifier
from reddit_quotes.collector.discovery import MAX_SEARCH_LIMIT, Discovery
from reddit_quotes.collector.error_handler import ExtractionError
from reddit_quotes.collector.extractor import DetailExtractor
from reddit_quotes.collector.frontier import Frontier
from reddit_quotes.collector.rate_limiter import RateLimiter
from reddit_quotes.config import Config
from reddit_quotes.crawler.lifecycle import LIFECYCLE_EVENTS, LifecycleEvents
from reddit_quotes.crawler.proxy import ProxyConfiguration
from reddit_quotes.crawler.runner import CrawlRunner
from reddit_quotes.models.records import FetchRequest
from reddit_quotes.storage.data_sink import DataSink
from reddit_quotes.storage.sheets_sink import SheetsSink

logger = logging.getLogger(__name__)


class QuotePipeline:
    """
    Drives one collection run.

    Discovery runs first for every (keyword, community) pair and fills the
    crawl queue through the frontier; the crawl runtime then visits each
    admitted post and the request handler turns it into output records.
    """

    def __init__(
        self,
        config: Config,
        discovery: Discovery,
        extractor: DetailExtractor,
        data_sink: DataSink,
        sheets_sink: Optional[SheetsSink] = None,
        proxy_configuration: Optional[ProxyConfiguration] = None,
        prometheus_exporter=None,
        lifecycle: Optional[LifecycleEvents] = None,
        rate_limiter: Optional[RateLimiter] = None,
        runner_factory=CrawlRunner,
    ):
        """
        Initialize the pipeline.

        Args:
            config: Validated run configuration
            discovery: Search strategy chain
            extractor: Post detail strategy chain
            data_sink: Append-only record store (dataset and CSV)
            sheets_sink: Optional buffered spreadsheet export
            proxy_configuration: Proxy rotation for browser sessions
            prometheus_exporter: Optional Prometheus exporter
            lifecycle: Event bus that triggers spreadsheet flushes
            rate_limiter: Shared pacing, used by the crawl runtime for 429 waits
            runner_factory: Callable building the crawl runtime
        """
        self.config = config
        self.discovery = discovery
        self.extractor = extractor
        self.data_sink = data_sink
        self.sheets_sink = sheets_sink
        self.proxy_configuration = proxy_configuration
        self.prometheus_exporter = prometheus_exporter
        self.lifecycle = lifecycle or LifecycleEvents()

        self.frontier = Frontier(config.max_posts_per_keyword)
        self.classifier = Classifier(
            keywords=config.keywords,
            countries=config.countries,
            min_score=config.min_score,
            min_text_length=config.min_text_length,
        )
        self.runner = runner_factory(
            config,
            self.handle_request,
            proxy_configuration=proxy_configuration,
            prometheus_exporter=prometheus_exporter,
            rate_limiter=rate_limiter,
        )
        self.saved_count = 0
        self._persisted: Set[str] = set()
        self._stopping = False

        if self.sheets_sink:
            for event in LIFECYCLE_EVENTS:
                self.lifecycle.on(event, self._flush_sheets)

    @property
    def search_limit(self) -> int:
        return min(MAX_SEARCH_LIMIT, self.config.max_posts_per_keyword)

    def stop(self) -> None:
        """Abort the run: skip remaining discovery and queued requests."""
        self._stopping = True
        self.runner.stop()

    async def _flush_sheets(self) -> None:
        if self.sheets_sink:
            await self.sheets_sink.flush()

    async def discover_and_enqueue(self) -> int:
        """
        Run discovery for every configured pair and enqueue admitted posts.

        Returns:
            Number of requests added to the crawl queue
        """
        keywords = [k.strip() for k in self.config.effective_keywords if isinstance(k, str) and k.strip()]
        subreddits: List[Optional[str]] = list(self.config.effective_subreddits) or [None]

        enqueued = 0
        for keyword in tqdm.tqdm(keywords, desc="Discovery"):
            for subreddit in subreddits:
                if self._stopping:
                    return enqueued

                hits = await self.discovery.discover(keyword, subreddit, self.search_limit)
                for hit in hits:
                    if self.frontier.quota_reached(keyword, subreddit):
                        break
                    request = self.frontier.admit(hit, keyword, subreddit)
                    if request is None:
                        continue
                    if self.runner.add_request(request):
                        enqueued += 1
                        if self.prometheus_exporter:
                            self.prometheus_exporter.record_request_admitted()

        logger.info(f"Discovery finished: {enqueued} posts queued")
        return enqueued

    async def handle_request(self, request: FetchRequest, page: Any) -> int:
        """
        Extract, classify and store one post.

        Records are written at most once per post: a retry of a request whose
        records were already saved returns without touching the sinks.

        Raises:
            ExtractionError: If no strategy could read the post, so the crawl retries it

        Returns:
            Number of records saved for the post
        """
        if request.unique_key in self._persisted:
            logger.info(f"Records for {request.url} already saved, skipping retry")
            return 0

        logger.info(f"Scraping post detail: {request.url}")
        raw_post = await self.extractor.extract(request, page)
        if raw_post is None:
            raise ExtractionError(f"Could not extract post {request.url}")

        records = self.classifier.classify_post(raw_post, request)
        if not records:
            return 0

        self.data_sink.append(records)
        self._persisted.add(request.unique_key)
        for record in records:
            if self.prometheus_exporter:
                self.prometheus_exporter.record_saved(record.country)
            self.saved_count += 1
            logger.info(f"Saved record: {record.quote_type} from {record.subreddit}, country={record.country}")

        if self.sheets_sink:
            await self.sheets_sink.push_rows(records)
        return len(records)

    async def run(self, install_signal_handlers: bool = False) -> int:
        """
        Execute the full run.

        Args:
            install_signal_handlers: Route SIGTERM/SIGINT/SIGUSR1 to lifecycle events

        Returns:
            Total number of records saved
        """
        if install_signal_handlers:
            self.lifecycle.install_signal_handlers(asyncio.get_running_loop(), on_abort=self.stop)
        self.lifecycle.start_persist_timer(self.config.crawl.persist_interval_sec)

        try:
            await self.discover_and_enqueue()
            stats = await self.runner.run()
            logger.info(f"Crawl finished: {stats.succeeded} succeeded, {stats.failed} failed")
        finally:
            await self.lifecycle.stop()
            await self._flush_sheets()
            self.data_sink.flush()

        logger.info(
            f"Run finished. Saved {self.saved_count} records to dataset"
            f"{' and attempted Sheets' if self.sheets_sink else ''}."
        )
        return self.saved_count
