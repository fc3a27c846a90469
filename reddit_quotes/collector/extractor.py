"""
Post detail extraction.

Two strategies produce the same RawPost shape: the structured ``.json``
endpoint (post and full comment tree in one call) and a DOM read of the
already-navigated post page. They are tried in that order; a strategy fails
by returning None or raising, and the next one is tried.
"""

import logging
from typing import Any, Dict, List, Optional

from reddit_quotes.collector.flattener import MAX_COMMENTS, flatten_comment_list
from reddit_quotes.collector.http_client import RedditHttpClient
from reddit_quotes.models.mapping import post_from_listing
from reddit_quotes.models.records import FetchRequest, RawComment, RawPost
from reddit_quotes.text_utils import normalize_text

logger = logging.getLogger(__name__)

STRATEGY_JSON = "json"
STRATEGY_DOM = "dom"

# Runs inside the page; receives the comment cap as its only argument
DOM_EXTRACT_SCRIPT = r"""
(maxComments) => {
    const clean = (text) => (text ? text.replace(/\s+/g, ' ').trim() : '');
    const article = document.querySelector('article') || document.querySelector('[data-test-id="post-content"]');
    const title =
        clean(document.querySelector('h1')?.textContent) ||
        clean(article?.querySelector('h1,h2,h3')?.textContent) ||
        '';
    const body =
        clean(article?.querySelector('[data-click-id="text"]')?.innerText) ||
        clean(article?.querySelector('[data-test-id="post-content"]')?.innerText) ||
        '';
    const subredditLink = article?.querySelector('a[href*="/r/"]');
    const subreddit =
        clean(subredditLink?.textContent) ||
        clean(subredditLink?.getAttribute('href')?.match(/\/r\/([^/]+)/)?.[1]) ||
        '';
    const author = clean(article?.querySelector('a[data-click-id="user"]')?.textContent);
    const createdAt = article?.querySelector('time')?.getAttribute('datetime') || null;
    const scoreSource = article?.querySelector('[id^="vote-arrows"]')?.parentElement || article;
    const scoreText = scoreSource?.textContent || '';

    const comments = Array.from(document.querySelectorAll('div[data-testid="comment"]'))
        .slice(0, maxComments)
        .map((comment) => {
            const text = clean(
                comment.querySelector('[data-testid="comment"]')?.innerText ||
                    comment.querySelector('[data-test-id="comment"]')?.innerText ||
                    comment.innerText,
            );
            const subtitle = comment.querySelector('[data-testid="comment-subtitle"]') || comment;
            return {
                text,
                scoreText: subtitle?.textContent || '',
                author: clean(comment.querySelector('a[data-testid="comment_author_link"]')?.textContent),
                createdAt: comment.querySelector('time')?.getAttribute('datetime') || null,
                permalink:
                    comment.querySelector('a[data-testid="comment_permalink_button"]')?.getAttribute('href') ||
                    comment.querySelector('a[href*="/comment/"]')?.getAttribute('href') ||
                    null,
                id: comment.getAttribute('id'),
            };
        })
        .filter((c) => c.text);

    return { title, body, subreddit, author, createdAt, scoreText, comments };
}
"""


def post_json_url(url: str) -> str:
    """Build the structured endpoint URL for a canonical post URL."""
    if url.endswith("/"):
        return f"{url}.json?raw_json=1"
    return f"{url}/.json?raw_json=1"


class JsonPostStrategy:
    """Primary strategy: one structured fetch of post plus comment tree."""

    name = STRATEGY_JSON

    def __init__(self, client: RedditHttpClient, max_comments: int = MAX_COMMENTS):
        self.client = client
        self.max_comments = max_comments

    async def extract(self, request: FetchRequest, page: Any = None) -> Optional[RawPost]:
        payload = await self.client.get_json(post_json_url(request.url), extra_headers={"Referer": request.url})
        return post_from_listing(payload, max_comments=self.max_comments)


def _strip_prefix(subreddit: str) -> str:
    return subreddit[2:] if subreddit.lower().startswith("r/") else subreddit


def raw_post_from_dom(data: Dict[str, Any], max_comments: int = MAX_COMMENTS) -> RawPost:
    """Convert the object returned by ``DOM_EXTRACT_SCRIPT`` to a RawPost."""
    comments: List[RawComment] = []
    for item in data.get("comments") or []:
        if not isinstance(item, dict):
            continue
        text = normalize_text(item.get("text"))
        if not text:
            continue
        comments.append(
            RawComment(
                text=text,
                score_text=item.get("scoreText") or "",
                author=normalize_text(item.get("author")),
                created_at=item.get("createdAt"),
                permalink=item.get("permalink"),
                id=item.get("id"),
            )
        )

    return RawPost(
        title=normalize_text(data.get("title")),
        body=normalize_text(data.get("body")),
        subreddit=_strip_prefix(normalize_text(data.get("subreddit"))),
        author=normalize_text(data.get("author")),
        created_at=data.get("createdAt"),
        score_text=data.get("scoreText") or "",
        comments=flatten_comment_list(comments, cap=max_comments),
    )


class DomPostStrategy:
    """Fallback strategy: read the rendered post page the crawler navigated to."""

    name = STRATEGY_DOM

    def __init__(self, max_comments: int = MAX_COMMENTS):
        self.max_comments = max_comments

    async def extract(self, request: FetchRequest, page: Any = None) -> Optional[RawPost]:
        if page is None:
            return None
        data = await page.evaluate(DOM_EXTRACT_SCRIPT, self.max_comments)
        if not isinstance(data, dict):
            return None
        raw_post = raw_post_from_dom(data, self.max_comments)
        if not (raw_post.title or raw_post.body or raw_post.comments):
            # Error and interstitial pages carry none of the post markup
            return None
        return raw_post


class DetailExtractor:
    """Tries each post extraction strategy in fixed priority order."""

    def __init__(self, strategies, prometheus_exporter=None):
        self.strategies = list(strategies)
        self.prometheus_exporter = prometheus_exporter

    @classmethod
    def default(cls, client: RedditHttpClient, prometheus_exporter=None) -> "DetailExtractor":
        return cls([JsonPostStrategy(client), DomPostStrategy()], prometheus_exporter)

    async def extract(self, request: FetchRequest, page: Any = None) -> Optional[RawPost]:
        """
        Extract a post and its comments.

        Args:
            request: The queued fetch request
            page: Playwright page already navigated to ``request.url``

        Returns:
            RawPost from the first strategy that succeeded, or None if all failed
        """
        for strategy in self.strategies:
            try:
                raw_post = await strategy.extract(request, page)
            except Exception as e:
                logger.warning(f"Post {strategy.name.upper()} failed for {request.url}: {e}")
                continue

            if raw_post is not None:
                if self.prometheus_exporter:
                    self.prometheus_exporter.record_extraction(strategy.name)
                return raw_post

        if self.prometheus_exporter:
            self.prometheus_exporter.record_extraction("failed")
        return None
