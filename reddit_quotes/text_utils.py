"""Stateless text and signal helpers shared by every pipeline stage."""

import logging
import random
import re
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, List, Optional
from urllib.parse import urlsplit

from langdetect import DetectorFactory, LangDetectException, detect_langs

logger = logging.getLogger(__name__)

# Make langdetect deterministic across runs
DetectorFactory.seed = 0

UNDETERMINED_LANGUAGE = "und"
MIN_LANGUAGE_TEXT_LENGTH = 10
MIN_LANGUAGE_CONFIDENCE = 0.5

# Three-letter (and spelled-out) codes normalised to two-letter codes
LANGUAGE_REMAP = {
    "eng": "en",
    "ind": "id",
    "indonesian": "id",
    "spa": "es",
}

USER_AGENT_POOL = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:122.0) Gecko/20100101 Firefox/122.0",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
]

ACCEPT_LANGUAGE = "es-ES,es;q=0.9,en;q=0.8"

DEFAULT_PORTS = {"http": 80, "https": 443}

_WHITESPACE_RE = re.compile(r"\s+")
_SCORE_RE = re.compile(r"(-?\d+(?:\.\d+)?)(k)?")
_SUBREDDIT_RE = re.compile(r"/r/([^/]+)")


def pick_user_agent() -> str:
    """Return a random user agent from the fixed pool."""
    return random.choice(USER_AGENT_POOL)


def normalize_text(text: Optional[str]) -> str:
    """Collapse whitespace runs to single spaces and strip the result."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text).strip()


def parse_score(text: Optional[str]) -> int:
    """
    Parse a vote count rendered as text.

    Thousands separators and bullet characters are removed, and a trailing
    ``k`` multiplies the value by 1000 (``"2.5k"`` -> 2500).

    Args:
        text: Raw score text, e.g. ``"1,234"``, ``"2.5k points"`` or ``"•42•"``

    Returns:
        The score rounded to the nearest integer, or 0 if nothing parses
    """
    if not text:
        return 0

    normalized = str(text).replace(",", "").replace("•", "").lower()
    match = _SCORE_RE.search(normalized)
    if not match:
        return 0

    try:
        value = Decimal(match.group(1))
    except InvalidOperation:
        return 0

    if match.group(2):
        value *= 1000
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class KeywordMatcher:
    """A configured keyword together with its lower-cased search form."""

    original: str
    lower: str


def build_keyword_matchers(keywords: Iterable[str]) -> List[KeywordMatcher]:
    """Build matchers in configured order, skipping blank keywords."""
    matchers = []
    for keyword in keywords:
        if keyword is None:
            continue
        lower = keyword.lower().strip()
        if lower:
            matchers.append(KeywordMatcher(original=keyword, lower=lower))
    return matchers


def contains_keyword(text: Optional[str], matchers: List[KeywordMatcher]) -> Optional[str]:
    """Return the first configured keyword contained in ``text``, case-insensitively."""
    if not text:
        return None
    lower_text = text.lower()
    for matcher in matchers:
        if matcher.lower in lower_text:
            return matcher.original
    return None


def detect_language(text: Optional[str]) -> str:
    """
    Detect the language of a text fragment.

    Args:
        text: Text to classify

    Returns:
        A two-letter code where one is known, the detector's own code otherwise,
        or ``"und"`` for short, featureless or low-confidence input
    """
    if not text or len(text) < MIN_LANGUAGE_TEXT_LENGTH:
        return UNDETERMINED_LANGUAGE

    try:
        detections = detect_langs(text)
    except LangDetectException as e:
        logger.debug(f"Language detection failed: {e}")
        return UNDETERMINED_LANGUAGE

    if not detections:
        return UNDETERMINED_LANGUAGE

    best = detections[0]
    if best.prob < MIN_LANGUAGE_CONFIDENCE:
        return UNDETERMINED_LANGUAGE

    code = best.lang
    return LANGUAGE_REMAP.get(code, code) or UNDETERMINED_LANGUAGE


def canonicalize_url(url: str) -> str:
    """
    Reduce a URL to origin + path, the identity used for post deduplication.

    Input that cannot be parsed as an absolute URL is returned unchanged.
    """
    try:
        parts = urlsplit(url)
        port = parts.port
    except (ValueError, TypeError):
        return url
    host = parts.hostname
    if not parts.scheme or not host:
        return url
    if ":" in host:
        host = f"[{host}]"
    scheme = parts.scheme.lower()
    # Origin drops userinfo and default ports and lower-cases scheme and host
    if port is not None and DEFAULT_PORTS.get(scheme) != port:
        host = f"{host}:{port}"
    return f"{scheme}://{host}{parts.path}"


def subreddit_from_url(url: str) -> Optional[str]:
    """Extract the lower-cased community name from an ``/r/<name>/`` path."""
    match = _SUBREDDIT_RE.search(url or "")
    return match.group(1).lower() if match else None
