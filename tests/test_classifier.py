"""Tests for candidate building and classification."""

import unittest

from reddit_quotes.collector.classifier import Classifier, PostContext, build_candidates, comment_url
from reddit_quotes.models.records import Candidate, FetchRequest, RawComment, RawPost

KEYWORD = "clases de programación para niños"
POST_URL = "https://www.reddit.com/r/chile/comments/abc123/post/"
TITLE = "Busco recomendaciones de clases de programación para niños en Santiago centro"
LONG_COMMENT = "Mi hija hizo un curso de robótica el año pasado y le encantó mucho."


def scenario_post() -> RawPost:
    return RawPost(
        title=TITLE,
        body="",
        subreddit="chile",
        author="autor_post",
        created_at="2024-03-01T12:00:00+00:00",
        score_text="1.2k",
        comments=[
            RawComment(text="Yo también busco", score_text="3", id="c1"),
            RawComment(
                text=LONG_COMMENT,
                score_text="15",
                author="mamá",
                permalink="https://www.reddit.com/r/chile/comments/abc123/post/c2/",
                id="c2",
            ),
            RawComment(text="Sí, muy bueno", score_text="1", id="c3"),
        ],
    )


class TestBuildCandidates(unittest.TestCase):
    """Test cases for build_candidates."""

    def test_order_and_fields(self):
        context = build_candidates(scenario_post(), POST_URL)

        self.assertEqual([c.quote_type for c in context.candidates], ["post_title", "comment", "comment", "comment"])
        self.assertEqual(context.score, 1200)
        self.assertEqual(context.candidates[0].url, POST_URL)
        self.assertEqual(context.candidates[2].score, 15)
        self.assertEqual(context.candidates[2].url, "https://www.reddit.com/r/chile/comments/abc123/post/c2/")
        # Comments without a timestamp inherit the post's
        self.assertEqual(context.candidates[1].created_at, "2024-03-01T12:00:00+00:00")

    def test_search_title_and_subreddit_fallbacks(self):
        context = build_candidates(RawPost(body="cuerpo"), POST_URL, search_title="Título", fallback_subreddit="chile")

        self.assertEqual(context.title, "Título")
        self.assertEqual(context.subreddit, "chile")
        self.assertEqual([c.quote_type for c in context.candidates], ["post_title", "post_body"])

    def test_comment_url(self):
        self.assertEqual(comment_url(RawComment(text="x", permalink="/r/chile/comments/abc123/post/c9/"), POST_URL),
                         "https://www.reddit.com/r/chile/comments/abc123/post/c9/")
        self.assertEqual(comment_url(RawComment(text="x", id="t1_c9"), POST_URL), POST_URL + "#t1_c9")
        self.assertEqual(comment_url(RawComment(text="x"), POST_URL), POST_URL)


class TestClassifier(unittest.TestCase):
    """Test cases for the Classifier class."""

    def setUp(self):
        self.classifier = Classifier(
            keywords=[KEYWORD, "robótica"],
            countries=["ID", "US", "MX", "AR", "CL", "CO"],
        )
        self.context = PostContext(
            url=POST_URL, title=TITLE, subreddit="chile", score=10, author="a", created_at=None
        )

    def candidate(self, text, score=10, quote_type="comment"):
        return Candidate(quote_type, text, score, None, "", POST_URL)

    def test_post_scenario(self):
        request = FetchRequest(POST_URL, KEYWORD, subreddit="chile", search_title=TITLE)

        records = self.classifier.classify_post(scenario_post(), request)

        self.assertEqual(len(records), 2)
        self.assertEqual([r.country for r in records], ["CL", "CL"])
        self.assertEqual([r.score for r in records], [1200, 15])
        self.assertEqual([r.quote_type for r in records], ["post_title", "comment"])
        self.assertEqual(records[0].topic, KEYWORD)
        self.assertEqual(records[1].topic, "robótica")
        self.assertEqual(records[1].author, "mamá")
        self.assertEqual(records[0].post_title, TITLE)
        self.assertEqual(records[1].subreddit, "chile")

    def test_length_filter(self):
        self.assertIsNone(self.classifier.classify(self.candidate("x" * 49), self.context, KEYWORD))
        self.assertIsNotNone(self.classifier.classify(self.candidate("palabra " * 7), self.context, KEYWORD))

    def test_score_filter(self):
        classifier = Classifier([KEYWORD], ["CL"], min_score=5)
        text = "Una opinión bastante larga sobre las clases que tomaron mis hijos este año."
        self.assertIsNone(classifier.classify(self.candidate(text, score=4), self.context, KEYWORD))
        self.assertIsNotNone(classifier.classify(self.candidate(text, score=5), self.context, KEYWORD))

    def test_topic_falls_back_to_search_keyword(self):
        text = "Una opinión bastante larga sobre cursos para chicos, sin mencionar nada más."
        record = self.classifier.classify(self.candidate(text), self.context, "origen")
        self.assertEqual(record.topic, "origen")

    def test_country_allowlist(self):
        classifier = Classifier([KEYWORD], ["MX"])
        text = "Una opinión bastante larga sobre las clases que tomaron mis hijos este año."
        self.assertIsNone(classifier.classify(self.candidate(text), self.context, KEYWORD))

    def test_unknown_community_is_dropped(self):
        context = PostContext(url=POST_URL, title="t", subreddit="unknownsub", score=0, author="", created_at=None)
        text = "My kids have been learning to code with an online tutor and they love it so far."
        self.assertIsNone(self.classifier.classify(self.candidate(text), context, KEYWORD))

    def test_empty_author_becomes_none(self):
        text = "Una opinión bastante larga sobre las clases que tomaron mis hijos este año."
        record = self.classifier.classify(self.candidate(text), self.context, KEYWORD)
        self.assertIsNone(record.author)
