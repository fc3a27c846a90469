"""Turn extracted posts into filtered, attributed, geo-tagged output records."""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional
from urllib.parse import urljoin

from reddit_quotes.geo import OTHER_COUNTRY, infer_country
from reddit_quotes.models.records import (
    QUOTE_TYPE_COMMENT,
    QUOTE_TYPE_POST_BODY,
    QUOTE_TYPE_POST_TITLE,
    Candidate,
    FetchRequest,
    OutputRecord,
    RawComment,
    RawPost,
)
from reddit_quotes.text_utils import (
    build_keyword_matchers,
    contains_keyword,
    detect_language,
    normalize_text,
    parse_score,
)

logger = logging.getLogger(__name__)


@dataclass
class PostContext:
    """Post-level fields shared by every record derived from one post."""

    url: str
    title: str
    subreddit: str
    score: int
    author: str
    created_at: Optional[str]
    candidates: List[Candidate] = field(default_factory=list)


def comment_url(comment: RawComment, post_url: str) -> str:
    """
    Resolve a stable URL for a comment.

    An absolute permalink is used as is, a relative one is resolved against
    the post; without a permalink the comment id becomes a fragment.
    """
    if comment.permalink:
        if comment.permalink.startswith("http"):
            return comment.permalink
        return urljoin(post_url, comment.permalink)
    if comment.id:
        return f"{post_url}#{comment.id}"
    return post_url


def build_candidates(
    raw_post: RawPost,
    post_url: str,
    search_title: Optional[str] = None,
    fallback_subreddit: Optional[str] = None,
) -> PostContext:
    """
    Split a RawPost into its title, body and comment candidates.

    Args:
        raw_post: Result of detail extraction
        post_url: Canonical URL of the post
        search_title: Title seen at discovery time, used if extraction found none
        fallback_subreddit: Community known from discovery

    Returns:
        PostContext holding post-level fields and the ordered candidates
    """
    title = normalize_text(raw_post.title or search_title or "")
    body = normalize_text(raw_post.body)
    author = normalize_text(raw_post.author)
    score = parse_score(raw_post.score_text)
    created_at = raw_post.created_at or None

    context = PostContext(
        url=post_url,
        title=title,
        subreddit=raw_post.subreddit or fallback_subreddit or "",
        score=score,
        author=author,
        created_at=created_at,
    )

    if title:
        context.candidates.append(
            Candidate(QUOTE_TYPE_POST_TITLE, title, score, created_at, author, post_url)
        )
    if body:
        context.candidates.append(
            Candidate(QUOTE_TYPE_POST_BODY, body, score, created_at, author, post_url)
        )

    for comment in raw_post.comments or []:
        context.candidates.append(
            Candidate(
                quote_type=QUOTE_TYPE_COMMENT,
                text=normalize_text(comment.text),
                score=parse_score(comment.score_text),
                created_at=comment.created_at or created_at,
                author=normalize_text(comment.author),
                url=comment_url(comment, post_url),
            )
        )

    return context


class Classifier:
    """Applies the length, score and country filters and assembles records."""

    def __init__(
        self,
        keywords: Iterable[str],
        countries: Iterable[str],
        min_score: int = 0,
        min_text_length: int = 50,
    ):
        """
        Initialize the classifier.

        Args:
            keywords: Configured keywords, in attribution priority order
            countries: Country allowlist
            min_score: Minimum parsed score for a candidate to be kept
            min_text_length: Minimum normalized text length for a candidate to be kept
        """
        self.keyword_matchers = build_keyword_matchers(keywords)
        self.countries = set(countries)
        self.min_score = min_score
        self.min_text_length = min_text_length

    def classify(self, candidate: Candidate, context: PostContext, origin_keyword: str) -> Optional[OutputRecord]:
        """
        Classify one candidate.

        Args:
            candidate: Text fragment to classify
            context: Post the fragment belongs to
            origin_keyword: Keyword whose search found the post

        Returns:
            OutputRecord, or None if the candidate was filtered out
        """
        text = normalize_text(candidate.text)
        if not text or len(text) < self.min_text_length:
            return None
        if candidate.score < self.min_score:
            return None

        topic = contains_keyword(text, self.keyword_matchers) or origin_keyword

        lang = detect_language(text)
        country = infer_country(context.subreddit, lang)
        if country == OTHER_COUNTRY or country not in self.countries:
            return None

        return OutputRecord(
            country=country,
            topic=topic,
            quote_type=candidate.quote_type,
            quote=text,
            post_title=context.title,
            subreddit=context.subreddit,
            score=candidate.score,
            url=candidate.url,
            created_at=candidate.created_at,
            lang=lang,
            author=normalize_text(candidate.author) or None,
        )

    def classify_post(self, raw_post: RawPost, request: FetchRequest, post_url: Optional[str] = None) -> List[OutputRecord]:
        """Build and classify every candidate of a post, in document order."""
        context = build_candidates(
            raw_post,
            post_url or request.url,
            search_title=request.search_title,
            fallback_subreddit=request.subreddit,
        )
        logger.info(f"Post {context.url}: {len(context.candidates)} candidates (title/body/comments)")

        records = []
        for candidate in context.candidates:
            record = self.classify(candidate, context, request.keyword)
            if record is not None:
                records.append(record)
        return records
