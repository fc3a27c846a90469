"""Project-level pytest configuration and shared fixtures."""

from typing import Any, Dict

import pytest

from reddit_quotes.config import Config
from reddit_quotes.models.records import QUOTE_TYPE_COMMENT, OutputRecord

ENV_VARS = (
    "GOOGLE_SERVICE_ACCOUNT_KEY",
    "SPREADSHEET_ID",
    "SHEET_NAME",
    "PROXY_URLS",
    "USE_PROXY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep credentials and proxies from the developer's shell out of every test."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_record():
    """Factory for OutputRecord with overridable fields."""

    def _make(**overrides: Any) -> OutputRecord:
        values: Dict[str, Any] = {
            "country": "CL",
            "topic": "clases de programación para niños",
            "quote_type": QUOTE_TYPE_COMMENT,
            "quote": "Mi hijo empezó clases de programación para niños y le encantó la experiencia.",
            "post_title": "¿Alguien recomienda clases de programación?",
            "subreddit": "chile",
            "score": 15,
            "url": "https://www.reddit.com/r/chile/comments/abc123/post/c1/",
            "created_at": "2024-03-01T12:00:00+00:00",
            "lang": "es",
            "author": "usuario1",
        }
        values.update(overrides)
        return OutputRecord(**values)

    return _make


@pytest.fixture
def run_config(tmp_path) -> Config:
    """A valid configuration writing every output under a temporary directory."""
    config = Config(
        keywords=["clases de programación para niños"],
        subreddits=["chile"],
        dataset_path=str(tmp_path / "quotes.jsonl"),
        csv_path=str(tmp_path / "quotes.csv"),
    )
    config.crawl.navigation_delay_sec = 0
    config.crawl.initial_backoff_sec = 0
    config.crawl.persist_interval_sec = 0
    return config
