"""Tests for the Reddit HTTP client."""

import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock

import aiohttp

from reddit_quotes.collector.error_handler import FetchError, ShapeError
from reddit_quotes.collector.http_client import RedditHttpClient
from reddit_quotes.crawler.proxy import ProxyConfiguration
from reddit_quotes.text_utils import ACCEPT_LANGUAGE, USER_AGENT_POOL


def mock_session(status=200, body="{}", headers=None, error=None):
    response = MagicMock()
    response.status = status
    response.headers = headers or {}
    response.text = AsyncMock(return_value=body)

    session = MagicMock()
    if error is not None:
        session.get.side_effect = error
    else:
        session.get.return_value.__aenter__.return_value = response
    return session


class TestRedditHttpClient(unittest.TestCase):
    """Test cases for the RedditHttpClient class."""

    def setUp(self):
        self.proxies = ProxyConfiguration(["http://p1:8000"])
        self.client = RedditHttpClient(proxy_configuration=self.proxies)

    def test_headers(self):
        headers = self.client.build_headers("application/json", {"Referer": "https://www.reddit.com/"})

        self.assertIn(headers["User-Agent"], USER_AGENT_POOL)
        self.assertEqual(headers["Accept-Language"], ACCEPT_LANGUAGE)
        self.assertEqual(headers["Accept"], "application/json")
        self.assertEqual(headers["Referer"], "https://www.reddit.com/")

    def test_get_json(self):
        self.client._session = mock_session(body='{"kind": "Listing"}')

        payload = asyncio.run(self.client.get_json("https://www.reddit.com/search.json"))

        self.assertEqual(payload, {"kind": "Listing"})
        kwargs = self.client._session.get.call_args.kwargs
        self.assertEqual(kwargs["proxy"], "http://p1:8000")

    def test_invalid_json_is_shape_error(self):
        self.client._session = mock_session(body="<html>blocked</html>")
        with self.assertRaises(ShapeError):
            asyncio.run(self.client.get_json("https://www.reddit.com/search.json"))

    def test_http_error_status(self):
        self.client._session = mock_session(status=429, headers={"Retry-After": "30"})

        with self.assertRaises(FetchError) as ctx:
            asyncio.run(self.client.get_text("https://old.reddit.com/search/"))

        self.assertEqual(ctx.exception.status, 429)
        self.assertEqual(ctx.exception.retry_after, "30")

    def test_transport_errors(self):
        for error in (aiohttp.ClientConnectionError("reset"), asyncio.TimeoutError()):
            self.client._session = mock_session(error=error)
            with self.assertRaises(FetchError):
                asyncio.run(self.client.get_text("https://old.reddit.com/search/"))

    def test_close(self):
        session = MagicMock()
        session.close = AsyncMock()
        self.client._session = session

        asyncio.run(self.client.close())

        session.close.assert_awaited_once()
        self.assertIsNone(self.client._session)
