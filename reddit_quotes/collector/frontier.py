"""Admission gate between discovery and fetching."""

import logging
import threading
from typing import Dict, FrozenSet, Mapping, Optional, Set, Tuple

from reddit_quotes.models.records import FetchRequest, SearchHit
from reddit_quotes.text_utils import canonicalize_url

logger = logging.getLogger(__name__)

ALL_COMMUNITIES = "all"

QuotaKey = Tuple[str, str]


class Frontier:
    """
    Deduplicating, quota-bounded frontier for one run.

    Every canonical post URL is admitted at most once for the life of the
    instance, and each (keyword, community) pair admits at most
    ``max_posts_per_keyword`` posts. Counters only ever grow.
    """

    def __init__(self, max_posts_per_keyword: int):
        self.max_posts_per_keyword = max_posts_per_keyword
        self._seen: Set[str] = set()
        self._counters: Dict[QuotaKey, int] = {}
        self._lock = threading.Lock()

    @staticmethod
    def quota_key(keyword: str, subreddit: Optional[str]) -> QuotaKey:
        return (keyword, subreddit or ALL_COMMUNITIES)

    @property
    def seen(self) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self._seen)

    @property
    def counters(self) -> Mapping[QuotaKey, int]:
        with self._lock:
            return dict(self._counters)

    def quota_reached(self, keyword: str, subreddit: Optional[str]) -> bool:
        with self._lock:
            return self._counters.get(self.quota_key(keyword, subreddit), 0) >= self.max_posts_per_keyword

    def admit(self, hit: SearchHit, keyword: str, subreddit: Optional[str] = None) -> Optional[FetchRequest]:
        """
        Admit a search hit for fetching.

        Args:
            hit: Search hit returned by discovery
            keyword: Keyword whose search produced the hit
            subreddit: Community searched, or None for a site-wide search

        Returns:
            The FetchRequest to enqueue, or None if the hit was rejected
        """
        canonical = canonicalize_url(hit.url)
        key = self.quota_key(keyword, subreddit)

        with self._lock:
            if self._counters.get(key, 0) >= self.max_posts_per_keyword:
                return None
            if canonical in self._seen:
                logger.debug(f"Skipping already queued post {canonical}")
                return None

            self._seen.add(canonical)
            self._counters[key] = self._counters.get(key, 0) + 1

        return FetchRequest(
            url=canonical,
            keyword=keyword,
            subreddit=hit.subreddit or subreddit,
            search_title=hit.title,
        )
