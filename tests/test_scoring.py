"""
Unit tests for composite scoring: bounds, symmetry, exact-match
flooring, duration decay and the reference scenario.
"""

import sys
import os
import unittest

# Ensure project root is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from attrs import evolve

from helpers import CONFIG, make_track
from scoring import duration_similarity, score, score_breakdown, text_similarity


SOURCE = make_track("spotify:1", "Blinding Lights", "The Weeknd", 200040)
VIDEO = make_track(
    "yt:1", "Blinding Lights (Official Video)", "The Weeknd VEVO", 201000, platform="youtube"
)

PAIRS = [
    (SOURCE, VIDEO),
    (SOURCE, make_track("yt:2", "Save Your Tears", "The Weeknd", 215000, "youtube")),
    (make_track("a", "Someone Like You", "Adele", 285240),
     make_track("b", "Someone Like You (Live)", "Adele - Topic", 301000, "youtube")),
    (make_track("a", "Hello", "Adele", 0), make_track("b", "Hallo", "Adel", 295000)),
    (make_track("a", "", "", 0), make_track("b", "Something", "Someone", 120000)),
]


class TestTextSimilarity(unittest.TestCase):

    def test_identical_strings(self):
        self.assertGreaterEqual(text_similarity("blinding lights", "blinding lights"), 0.98)

    def test_equal_empty_strings_floored(self):
        self.assertGreaterEqual(text_similarity("", ""), 0.98)

    def test_word_order_insensitive(self):
        self.assertEqual(text_similarity("lights blinding", "blinding lights"), 1.0)

    def test_unrelated_strings_low(self):
        self.assertLess(text_similarity("blinding lights", "xyz"), 0.3)


class TestDurationSimilarity(unittest.TestCase):

    def test_equal_durations(self):
        self.assertEqual(duration_similarity(200000, 200000, 3000), 1.0)

    def test_linear_decay(self):
        self.assertAlmostEqual(duration_similarity(200000, 204500, 3000), 0.5)

    def test_zero_at_three_tolerances(self):
        self.assertEqual(duration_similarity(200000, 209000, 3000), 0.0)
        self.assertEqual(duration_similarity(200000, 300000, 3000), 0.0)

    def test_missing_duration_is_mismatch(self):
        self.assertEqual(duration_similarity(0, 200000, 3000), 0.0)
        self.assertEqual(duration_similarity(0, 0, 3000), 0.0)


class TestScore(unittest.TestCase):

    def test_reference_scenario(self):
        breakdown = score_breakdown(SOURCE, VIDEO, CONFIG)
        self.assertTrue(breakdown.exact_title)
        self.assertTrue(breakdown.exact_artist)
        self.assertGreaterEqual(breakdown.title_score, 0.98)
        self.assertGreaterEqual(breakdown.artist_score, 0.98)
        self.assertGreaterEqual(breakdown.composite, 0.95)
        self.assertLessEqual(breakdown.composite, 0.99)

    def test_exact_match_capped_below_one(self):
        self.assertAlmostEqual(score(SOURCE, SOURCE, CONFIG), 0.99)

    def test_bounds(self):
        for a, b in PAIRS:
            value = score(a, b, CONFIG)
            self.assertGreaterEqual(value, 0.0)
            self.assertLessEqual(value, 1.0)

    def test_symmetric(self):
        for a, b in PAIRS:
            self.assertAlmostEqual(score(a, b, CONFIG), score(b, a, CONFIG))

    def test_exact_title_floor_applies(self):
        a = make_track("a", "Blinding Lights", "The Weeknd")
        b = make_track("b", "BLINDING LIGHTS | Lyrics Channel", "Someone Else")
        self.assertGreaterEqual(score_breakdown(a, b, CONFIG).title_score, 0.98)

    def test_same_song_beats_other_song(self):
        other = make_track("yt:2", "Save Your Tears", "The Weeknd", 215000, "youtube")
        self.assertGreater(score(SOURCE, VIDEO, CONFIG), score(SOURCE, other, CONFIG))

    def test_missing_duration_penalized_by_default(self):
        a = make_track("a", "Hello", "Adele", 0)
        b = make_track("b", "Hello", "Adele", 0)
        self.assertAlmostEqual(score(a, b, CONFIG), 0.95)

    def test_missing_duration_weight_redistributed_when_ignored(self):
        config = evolve(CONFIG, ignore_missing_duration=True)
        a = make_track("a", "Hello", "Adele", 0)
        b = make_track("b", "Hello", "Adele", 0)
        self.assertAlmostEqual(score(a, b, config), 0.99)

    def test_ignore_missing_duration_keeps_known_durations(self):
        config = evolve(CONFIG, ignore_missing_duration=True)
        self.assertAlmostEqual(score(SOURCE, VIDEO, config), score(SOURCE, VIDEO, CONFIG))

    def test_breakdown_as_dict(self):
        data = score_breakdown(SOURCE, VIDEO, CONFIG).as_dict()
        self.assertEqual(
            set(data),
            {"title_score", "artist_score", "duration_score",
             "exact_title", "exact_artist", "composite"},
        )


if __name__ == "__main__":
    unittest.main()
