"""Mapping functions to convert Reddit JSON payloads to our data models."""

import logging
from typing import Any, Dict, List, Optional

from reddit_quotes.collector.error_handler import ShapeError
from reddit_quotes.collector.flattener import (
    MAX_COMMENTS,
    REDDIT_BASE_URL,
    epoch_to_iso,
    flatten_comment_tree,
)
from reddit_quotes.models.records import RawPost, SearchHit
from reddit_quotes.text_utils import normalize_text

logger = logging.getLogger(__name__)


def search_child_to_hit(data: Dict[str, Any], fallback_subreddit: Optional[str] = None) -> Optional[SearchHit]:
    """
    Convert the ``data`` object of one search result to a SearchHit.

    Args:
        data: The ``data`` field of a ``t3`` child from ``search.json``
        fallback_subreddit: Community searched, used when the payload has none

    Returns:
        A SearchHit, or None when the child has no permalink or title
    """
    if not isinstance(data, dict):
        return None
    permalink = data.get("permalink")
    title = data.get("title")
    if not permalink or not title:
        return None

    subreddit = data.get("subreddit")
    return SearchHit(
        url=f"{REDDIT_BASE_URL}{permalink}",
        title=title,
        score=data.get("score") or 0,
        subreddit=subreddit.lower() if subreddit else fallback_subreddit,
    )


def search_listing_to_hits(payload: Any, fallback_subreddit: Optional[str] = None) -> List[SearchHit]:
    """
    Convert a ``search.json`` listing to SearchHits, in relevance order.

    Raises:
        ShapeError: If the payload is not a listing object
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict):
        raise ShapeError("Unexpected search JSON shape")

    children = payload["data"].get("children") or []
    if not isinstance(children, list):
        raise ShapeError("Search listing children is not a list")

    hits = []
    for child in children:
        data = child.get("data") if isinstance(child, dict) else None
        hit = search_child_to_hit(data, fallback_subreddit)
        if hit:
            hits.append(hit)
    return hits


def post_from_listing(payload: Any, max_comments: int = MAX_COMMENTS) -> Optional[RawPost]:
    """
    Convert a post ``.json`` payload (post listing + comment listing) to a RawPost.

    Args:
        payload: Decoded JSON body of ``<post-url>/.json``
        max_comments: Cap applied to the flattened comment tree

    Returns:
        RawPost, or None if the post listing holds no post

    Raises:
        ShapeError: If the payload is not the two-part listing array
    """
    if not isinstance(payload, list) or len(payload) < 2:
        raise ShapeError("Unexpected post JSON shape")

    try:
        post = payload[0]["data"]["children"][0]["data"]
    except (KeyError, IndexError, TypeError):
        post = None
    if not isinstance(post, dict):
        logger.warning("Post JSON listing contained no post")
        return None

    return RawPost(
        title=normalize_text(post.get("title") or ""),
        body=normalize_text(post.get("selftext") or ""),
        subreddit=post.get("subreddit") or "",
        author=post.get("author") or "",
        created_at=epoch_to_iso(post.get("created_utc")),
        score_text=str(post.get("score") or 0),
        comments=flatten_comment_tree(payload[1], cap=max_comments),
    )
