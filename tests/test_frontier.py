"""Tests for the frontier admission gate."""

import unittest

from reddit_quotes.collector.frontier import Frontier
from reddit_quotes.models.records import SearchHit


def hit(post_id: str, subreddit=None, suffix: str = "") -> SearchHit:
    return SearchHit(
        url=f"https://www.reddit.com/r/chile/comments/{post_id}/titulo/{suffix}",
        title=f"Post {post_id}",
        subreddit=subreddit,
    )


class TestFrontier(unittest.TestCase):
    """Test cases for the Frontier class."""

    def setUp(self):
        self.frontier = Frontier(max_posts_per_keyword=3)

    def test_admit_returns_canonical_request(self):
        request = self.frontier.admit(hit("a1", suffix="?utm=1"), "kw", "chile")

        self.assertIsNotNone(request)
        self.assertEqual(request.url, "https://www.reddit.com/r/chile/comments/a1/titulo/")
        self.assertEqual(request.keyword, "kw")
        self.assertEqual(request.subreddit, "chile")
        self.assertEqual(request.search_title, "Post a1")

    def test_hit_subreddit_takes_precedence(self):
        request = self.frontier.admit(hit("a1", subreddit="santiago"), "kw", None)
        self.assertEqual(request.subreddit, "santiago")

    def test_duplicate_url_is_rejected(self):
        self.assertIsNotNone(self.frontier.admit(hit("a1"), "kw", "chile"))
        self.assertIsNone(self.frontier.admit(hit("a1", suffix="#frag"), "kw", "chile"))
        # Seen across other keyword/community pairs too
        self.assertIsNone(self.frontier.admit(hit("a1"), "other kw", "mexico"))
        self.assertEqual(self.frontier.counters[("kw", "chile")], 1)

    def test_quota_is_never_exceeded(self):
        admitted = [self.frontier.admit(hit(f"p{i}"), "kw", "chile") for i in range(10)]

        self.assertEqual(sum(1 for r in admitted if r is not None), 3)
        self.assertTrue(self.frontier.quota_reached("kw", "chile"))
        self.assertEqual(self.frontier.counters[("kw", "chile")], 3)

    def test_quotas_are_per_pair(self):
        for i in range(3):
            self.frontier.admit(hit(f"c{i}"), "kw", "chile")
        self.assertIsNotNone(self.frontier.admit(hit("m0"), "kw", "mexico"))
        self.assertIsNotNone(self.frontier.admit(hit("x0"), "kw", None))
        self.assertIn(("kw", "all"), self.frontier.counters)

    def test_rejected_by_quota_is_not_marked_seen(self):
        for i in range(3):
            self.frontier.admit(hit(f"c{i}"), "kw", "chile")
        self.assertIsNone(self.frontier.admit(hit("late"), "kw", "chile"))
        self.assertNotIn("https://www.reddit.com/r/chile/comments/late/titulo/", self.frontier.seen)
