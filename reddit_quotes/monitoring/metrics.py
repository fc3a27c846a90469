"""Prometheus metrics for monitoring a scrape run."""

import logging
import time
from typing import Optional

from prometheus_client import Counter, Histogram, start_http_server

logger = logging.getLogger(__name__)

SEARCH_HITS = Counter(
    "reddit_quotes_search_hits_total",
    "Search hits returned by discovery",
    ["strategy"],
)

REQUESTS_ADMITTED = Counter(
    "reddit_quotes_requests_admitted_total",
    "Post fetch requests admitted by the frontier",
)

EXTRACTIONS = Counter(
    "reddit_quotes_extractions_total",
    "Post detail extractions by the strategy that succeeded",
    ["strategy"],
)

RECORDS_SAVED = Counter(
    "reddit_quotes_records_saved_total",
    "Output records saved",
    ["country"],
)

REQUESTS_FAILED = Counter(
    "reddit_quotes_requests_failed_total",
    "Fetch requests abandoned after retries were exhausted",
)

REQUEST_DURATION = Histogram(
    "reddit_quotes_request_duration_seconds",
    "Duration of a processed fetch request in seconds",
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 90.0, 180.0],
)


class PrometheusExporter:
    """Prometheus metrics exporter for the quote scraper."""

    def __init__(self, port: int = 8000):
        """
        Initialize the Prometheus exporter.

        Args:
            port: Port to expose metrics on
        """
        self.port = port
        self.server_started = False

    def start_server(self) -> None:
        """Start the Prometheus metrics server."""
        if not self.server_started:
            try:
                start_http_server(self.port)
                self.server_started = True
                logger.info(f"Started Prometheus metrics server on port {self.port}")
            except Exception as e:
                logger.error(f"Failed to start Prometheus metrics server: {str(e)}")

    def record_search_hits(self, strategy: str, count: int) -> None:
        SEARCH_HITS.labels(strategy=strategy).inc(count)

    def record_request_admitted(self) -> None:
        REQUESTS_ADMITTED.inc()

    def record_extraction(self, strategy: str) -> None:
        """
        Record the outcome of a detail extraction.

        Args:
            strategy: Strategy that produced the post ('json', 'dom'), or 'failed'
        """
        EXTRACTIONS.labels(strategy=strategy).inc()

    def record_saved(self, country: str) -> None:
        RECORDS_SAVED.labels(country=country).inc()

    def record_request_failed(self) -> None:
        REQUESTS_FAILED.inc()

    def time_request(self) -> "RequestTimer":
        """
        Create a context manager for timing fetch requests.

        Returns:
            RequestTimer context manager
        """
        return RequestTimer()


class RequestTimer:
    """Context manager for timing fetch requests."""

    def __init__(self):
        self.start_time: Optional[float] = None

    def __enter__(self) -> "RequestTimer":
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.start_time is not None:
            REQUEST_DURATION.observe(time.time() - self.start_time)
