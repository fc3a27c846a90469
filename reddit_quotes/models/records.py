"""Data models passed between the discovery, extraction and classification stages."""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

# Column order shared by the dataset, CSV and spreadsheet outputs
OUTPUT_COLUMNS = [
    "country",
    "topic",
    "quote_type",
    "quote",
    "quote_en",
    "post_title",
    "post_title_en",
    "subreddit",
    "score",
    "url",
    "created_at",
    "lang",
    "author",
]

QUOTE_TYPE_POST_TITLE = "post_title"
QUOTE_TYPE_POST_BODY = "post_body"
QUOTE_TYPE_COMMENT = "comment"


@dataclass
class SearchHit:
    """A lightweight search result produced by discovery."""

    url: str
    title: str
    score: int = 0
    subreddit: Optional[str] = None


@dataclass
class FetchRequest:
    """
    A post admitted by the frontier and queued for detail extraction.

    The keyword, community and search title travel with the request so that
    records can still be attributed when extraction cannot re-derive them.
    """

    url: str
    keyword: str
    subreddit: Optional[str] = None
    search_title: Optional[str] = None

    @property
    def unique_key(self) -> str:
        return self.url


@dataclass
class RawComment:
    """A single comment fragment, scores and timestamps still unparsed."""

    text: str
    score_text: str = ""
    author: str = ""
    created_at: Optional[str] = None
    permalink: Optional[str] = None
    id: Optional[str] = None


@dataclass
class RawPost:
    """Uniform result of either extraction strategy."""

    title: str = ""
    body: str = ""
    subreddit: str = ""
    author: str = ""
    created_at: Optional[str] = None
    score_text: str = ""
    comments: List[RawComment] = field(default_factory=list)


@dataclass
class Candidate:
    """One unit of text eligible for classification."""

    quote_type: str
    text: str
    score: int
    created_at: Optional[str]
    author: str
    url: str


@dataclass(frozen=True)
class OutputRecord:
    """Final, immutable record persisted to every sink."""

    country: str
    topic: str
    quote_type: str
    quote: str
    post_title: str
    subreddit: str
    score: int
    url: str
    created_at: Optional[str]
    lang: str
    author: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        """Dataset representation (translation placeholders excluded)."""
        return asdict(self)

    def to_row(self) -> List[Any]:
        """
        Spreadsheet/CSV row in ``OUTPUT_COLUMNS`` order.

        The ``*_en`` columns are reserved and always empty. Missing values are
        written as empty strings.
        """
        return [
            self.country,
            self.topic,
            self.quote_type,
            self.quote,
            "",
            self.post_title,
            "",
            self.subreddit,
            self.score,
            self.url,
            self.created_at or "",
            self.lang,
            self.author or "",
        ]
