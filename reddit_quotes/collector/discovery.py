"""
Search-result discovery with a structured primary and a rendered fallback.

For each (keyword, community) pair the JSON search endpoint is queried
first. If it yields nothing, for whatever reason, the rendered old-reddit
search page is parsed instead. Failures never propagate out of a strategy:
an unreachable or reshaped surface simply produces no hits.
"""

import logging
from typing import List, Optional
from urllib.parse import quote, urlencode, urljoin

from bs4 import BeautifulSoup

from reddit_quotes.collector.error_handler import QuoteScraperError
from reddit_quotes.collector.http_client import RedditHttpClient
from reddit_quotes.models.mapping import search_listing_to_hits
from reddit_quotes.models.records import SearchHit
from reddit_quotes.text_utils import canonicalize_url, normalize_text, subreddit_from_url

logger = logging.getLogger(__name__)

REDDIT_URL = "https://www.reddit.com"
OLD_REDDIT_URL = "https://old.reddit.com"

MIN_SEARCH_LIMIT = 25
MAX_SEARCH_LIMIT = 100
MAX_HTML_HITS = 50

STRATEGY_JSON = "json"
STRATEGY_HTML = "html"


def clamp_limit(limit: int) -> int:
    """Clamp a requested search page size to what the endpoint accepts."""
    return max(MIN_SEARCH_LIMIT, min(limit, MAX_SEARCH_LIMIT))


def _subreddit_path(subreddit: Optional[str]) -> str:
    return f"/r/{quote(subreddit, safe='')}" if subreddit else ""


class JsonSearchStrategy:
    """Primary strategy: Reddit's structured ``search.json`` endpoint."""

    name = STRATEGY_JSON

    def __init__(self, client: RedditHttpClient):
        self.client = client

    def build_url(self, keyword: str, subreddit: Optional[str], limit: int) -> str:
        params = {
            "q": keyword,
            "restrict_sr": 1 if subreddit else 0,
            "sort": "new",
            "type": "link",
            "t": "all",
            "limit": clamp_limit(limit),
            "raw_json": 1,
            "source": "recent",
        }
        return f"{REDDIT_URL}{_subreddit_path(subreddit)}/search.json?{urlencode(params)}"

    async def search(self, keyword: str, subreddit: Optional[str], limit: int) -> List[SearchHit]:
        """
        Run one structured search.

        Args:
            keyword: Search phrase
            subreddit: Community to restrict to, or None for a site-wide search
            limit: Requested page size, clamped to 25..100

        Returns:
            Hits in search relevance order; empty on any failure
        """
        url = self.build_url(keyword, subreddit, limit)
        headers = {
            "Referer": f"{REDDIT_URL}{_subreddit_path(subreddit)}/search/",
            "Origin": REDDIT_URL,
        }
        try:
            payload = await self.client.get_json(url, extra_headers=headers)
            return search_listing_to_hits(payload, fallback_subreddit=subreddit)
        except QuoteScraperError as e:
            logger.warning(f"JSON search error for {url}: {e}")
            return []


class HtmlSearchStrategy:
    """Fallback strategy: parse post links out of the rendered search page."""

    name = STRATEGY_HTML

    def __init__(self, client: RedditHttpClient, max_hits: int = MAX_HTML_HITS):
        self.client = client
        self.max_hits = max_hits

    def build_url(self, keyword: str, subreddit: Optional[str]) -> str:
        params = {"q": keyword, "restrict_sr": 1 if subreddit else 0, "sort": "new"}
        return f"{OLD_REDDIT_URL}{_subreddit_path(subreddit)}/search/?{urlencode(params)}"

    def parse(self, html: str, subreddit: Optional[str]) -> List[SearchHit]:
        """
        Extract permalink-shaped anchors from a search page, in document order.

        The rendered page exposes no vote counts, so every hit scores 0.
        """
        soup = BeautifulSoup(html or "", "html.parser")
        hits: List[SearchHit] = []
        seen = set()

        for anchor in soup.find_all("a", href=True):
            if len(hits) >= self.max_hits:
                break
            href = anchor["href"]
            if "/comments/" not in href:
                continue
            title = normalize_text(anchor.get_text(" "))
            if not title:
                continue

            full_url = href if href.startswith("http") else urljoin(OLD_REDDIT_URL, href)
            canonical = canonicalize_url(full_url)
            if canonical in seen:
                continue
            seen.add(canonical)

            hits.append(
                SearchHit(
                    url=canonical,
                    title=title,
                    score=0,
                    subreddit=subreddit_from_url(canonical) or subreddit,
                )
            )
        return hits

    async def search(self, keyword: str, subreddit: Optional[str], limit: Optional[int] = None) -> List[SearchHit]:
        url = self.build_url(keyword, subreddit)
        try:
            html = await self.client.get_text(url)
        except QuoteScraperError as e:
            logger.warning(f"HTML search error for {url}: {e}")
            return []
        try:
            return self.parse(html, subreddit)
        except Exception as e:
            logger.warning(f"HTML search parse error for {url}: {e}")
            return []


class Discovery:
    """Runs the search strategies in priority order until one yields hits."""

    def __init__(self, strategies, prometheus_exporter=None):
        """
        Initialize discovery.

        Args:
            strategies: Search strategies, highest priority first
            prometheus_exporter: Optional Prometheus exporter for metrics
        """
        self.strategies = list(strategies)
        self.prometheus_exporter = prometheus_exporter

    @classmethod
    def default(cls, client: RedditHttpClient, prometheus_exporter=None) -> "Discovery":
        return cls([JsonSearchStrategy(client), HtmlSearchStrategy(client)], prometheus_exporter)

    async def discover(self, keyword: str, subreddit: Optional[str], limit: int) -> List[SearchHit]:
        """
        Find candidate posts for a (keyword, community) pair.

        Returns:
            Hits from the first strategy that produced any; empty if none did
        """
        label = f"r/{subreddit}" if subreddit else "all"
        for strategy in self.strategies:
            try:
                hits = await strategy.search(keyword, subreddit, limit)
            except Exception as e:
                logger.warning(f"Search strategy {strategy.name} failed for '{keyword}' {label}: {e}")
                hits = []

            if hits:
                logger.info(f"{strategy.name.upper()} search got {len(hits)} results for '{keyword}' {label}")
                if self.prometheus_exporter:
                    self.prometheus_exporter.record_search_hits(strategy.name, len(hits))
                return hits

        logger.warning(f"No results via JSON/HTML for '{keyword}' {label}")
        return []
