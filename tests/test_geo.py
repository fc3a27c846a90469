"""Tests for country inference."""

import unittest

from reddit_quotes.geo import COUNTRY_SUBREDDITS, DEFAULT_COUNTRIES, infer_country


class TestInferCountry(unittest.TestCase):
    """Test cases for infer_country."""

    def test_table_lookup_ignores_case(self):
        self.assertEqual(infer_country("bali", "en"), "ID")
        self.assertEqual(infer_country("Parenting", "en"), "US")
        self.assertEqual(infer_country("CHILE", None), "CL")

    def test_indonesian_language_outside_table(self):
        self.assertEqual(infer_country("somewhere", "id"), "ID")

    def test_unknown_community(self):
        self.assertEqual(infer_country("unknownsub", "en"), "other")
        self.assertEqual(infer_country(None, "es"), "other")

    def test_table_wins_over_language(self):
        self.assertEqual(infer_country("mexico", "id"), "MX")

    def test_default_countries_are_in_table(self):
        self.assertEqual(set(DEFAULT_COUNTRIES), set(COUNTRY_SUBREDDITS))
