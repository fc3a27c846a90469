"""Tests for the post detail extractor."""

import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock

from payloads import comment_node, post_payload

from reddit_quotes.collector.error_handler import FetchError
from reddit_quotes.collector.extractor import (
    DOM_EXTRACT_SCRIPT,
    DetailExtractor,
    DomPostStrategy,
    JsonPostStrategy,
    post_json_url,
    raw_post_from_dom,
)
from reddit_quotes.models.records import FetchRequest, RawPost

POST_URL = "https://www.reddit.com/r/chile/comments/abc123/post/"


def dom_data(num_comments=2):
    return {
        "title": "  Título   DOM ",
        "body": "Cuerpo",
        "subreddit": "r/chile",
        "author": "autor",
        "createdAt": "2024-03-01T12:00:00.000Z",
        "scoreText": "1.2k",
        "comments": [
            {"text": f"comentario {i}", "scoreText": "5 points", "author": "u", "id": f"t1_{i}"}
            for i in range(num_comments)
        ] + [{"text": "   "}, "junk"],
    }


class TestPostJsonUrl(unittest.TestCase):

    def test_trailing_slash(self):
        self.assertEqual(post_json_url(POST_URL), POST_URL + ".json?raw_json=1")
        self.assertEqual(post_json_url(POST_URL.rstrip("/")), POST_URL + ".json?raw_json=1")


class TestJsonPostStrategy(unittest.TestCase):
    """Test cases for JsonPostStrategy."""

    def test_extract(self):
        client = MagicMock()
        client.get_json = AsyncMock(return_value=post_payload("Título", comments=[comment_node("c1", "Hola")]))
        strategy = JsonPostStrategy(client)

        post = asyncio.run(strategy.extract(FetchRequest(POST_URL, "kw")))

        self.assertEqual(post.title, "Título")
        self.assertEqual(len(post.comments), 1)
        client.get_json.assert_awaited_once_with(post_json_url(POST_URL), extra_headers={"Referer": POST_URL})


class TestDomPostStrategy(unittest.TestCase):
    """Test cases for DomPostStrategy."""

    def test_raw_post_from_dom(self):
        post = raw_post_from_dom(dom_data())

        self.assertEqual(post.title, "Título DOM")
        self.assertEqual(post.subreddit, "chile")
        self.assertEqual(post.score_text, "1.2k")
        self.assertEqual([c.text for c in post.comments], ["comentario 0", "comentario 1"])

    def test_comment_cap(self):
        self.assertEqual(len(raw_post_from_dom(dom_data(150)).comments), 100)

    def test_extract_evaluates_script(self):
        page = MagicMock()
        page.evaluate = AsyncMock(return_value=dom_data())

        post = asyncio.run(DomPostStrategy().extract(FetchRequest(POST_URL, "kw"), page))

        self.assertIsInstance(post, RawPost)
        page.evaluate.assert_awaited_once_with(DOM_EXTRACT_SCRIPT, 100)

    def test_without_page(self):
        self.assertIsNone(asyncio.run(DomPostStrategy().extract(FetchRequest(POST_URL, "kw"), None)))

    def test_empty_page_is_not_a_post(self):
        page = MagicMock()
        page.evaluate = AsyncMock(return_value={"title": " ", "body": "", "scoreText": "", "comments": []})
        self.assertIsNone(asyncio.run(DomPostStrategy().extract(FetchRequest(POST_URL, "kw"), page)))

    def test_non_object_result(self):
        page = MagicMock()
        page.evaluate = AsyncMock(return_value=None)
        self.assertIsNone(asyncio.run(DomPostStrategy().extract(FetchRequest(POST_URL, "kw"), page)))


class TestDetailExtractor(unittest.TestCase):
    """Test cases for the DetailExtractor chain."""

    def setUp(self):
        self.request = FetchRequest(POST_URL, "kw")
        self.exporter = MagicMock()

    def make_strategy(self, name, result=None, error=None):
        strategy = MagicMock()
        strategy.name = name
        strategy.extract = AsyncMock(return_value=result, side_effect=error)
        return strategy

    def test_json_success_skips_dom(self):
        post = RawPost(title="t")
        primary = self.make_strategy("json", post)
        fallback = self.make_strategy("dom", RawPost(title="other"))

        result = asyncio.run(DetailExtractor([primary, fallback], self.exporter).extract(self.request, "page"))

        self.assertIs(result, post)
        fallback.extract.assert_not_called()
        self.exporter.record_extraction.assert_called_once_with("json")

    def test_dom_fallback_after_json_error(self):
        primary = self.make_strategy("json", error=FetchError("HTTP 403", status=403))
        fallback = self.make_strategy("dom", RawPost(title="dom"))

        with self.assertLogs("reddit_quotes.collector.extractor", level="WARNING") as logs:
            result = asyncio.run(DetailExtractor([primary, fallback], self.exporter).extract(self.request, "page"))

        self.assertEqual(result.title, "dom")
        fallback.extract.assert_awaited_once_with(self.request, "page")
        self.exporter.record_extraction.assert_called_once_with("dom")
        self.assertTrue(any("Post JSON failed" in line for line in logs.output))

    def test_all_fail(self):
        primary = self.make_strategy("json", None)
        fallback = self.make_strategy("dom", error=RuntimeError("selector"))

        result = asyncio.run(DetailExtractor([primary, fallback], self.exporter).extract(self.request, "page"))

        self.assertIsNone(result)
        self.exporter.record_extraction.assert_called_once_with("failed")
