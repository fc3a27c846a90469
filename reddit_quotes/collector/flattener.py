"""Flatten nested comment listings into bounded, pre-ordered comment lists."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from reddit_quotes.models.records import RawComment
from reddit_quotes.text_utils import normalize_text

logger = logging.getLogger(__name__)

MAX_COMMENTS = 100
COMMENT_KIND = "t1"
REDDIT_BASE_URL = "https://www.reddit.com"


def epoch_to_iso(created_utc: Any) -> Optional[str]:
    """Convert an epoch-seconds value to an ISO-8601 UTC string."""
    if not created_utc:
        return None
    try:
        return datetime.fromtimestamp(float(created_utc), tz=timezone.utc).isoformat()
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def _listing_children(listing: Any) -> List[Any]:
    if not isinstance(listing, dict):
        return []
    data = listing.get("data")
    if not isinstance(data, dict):
        return []
    children = data.get("children")
    return children if isinstance(children, list) else []


def comment_from_data(data: Dict[str, Any]) -> RawComment:
    """Map the ``data`` object of a ``t1`` node to a RawComment."""
    score = data.get("score")
    permalink = data.get("permalink")
    return RawComment(
        text=normalize_text(data.get("body") or ""),
        score_text="" if score is None else str(score),
        author=normalize_text(data.get("author") or ""),
        created_at=epoch_to_iso(data.get("created_utc")),
        permalink=f"{REDDIT_BASE_URL}{permalink}" if permalink else None,
        id=data.get("id"),
    )


def flatten_comment_tree(listing: Any, cap: int = MAX_COMMENTS) -> List[RawComment]:
    """
    Walk a structured comment listing depth-first, pre-order.

    Only comment nodes are kept; ``more`` stubs and any other kinds are
    skipped. Traversal uses an explicit stack and stops as soon as ``cap``
    comments have been collected, so neither depth nor breadth of the source
    tree is trusted.

    Args:
        listing: A ``Listing`` node whose children are comments
        cap: Maximum number of comments to return

    Returns:
        Flat list of at most ``cap`` comments in tree order
    """
    comments: List[RawComment] = []
    if cap <= 0:
        return comments

    # Children are pushed reversed so they pop in document order
    stack = list(reversed(_listing_children(listing)))
    while stack and len(comments) < cap:
        node = stack.pop()
        if not isinstance(node, dict) or node.get("kind") != COMMENT_KIND:
            continue
        data = node.get("data")
        if not isinstance(data, dict):
            continue

        comments.append(comment_from_data(data))

        replies = data.get("replies")
        if replies:
            stack.extend(reversed(_listing_children(replies)))

    return comments


def flatten_comment_list(comments: Sequence[RawComment], cap: int = MAX_COMMENTS) -> List[RawComment]:
    """Cap an already flat, document-ordered comment sequence."""
    if cap <= 0:
        return []
    return list(comments[:cap])
