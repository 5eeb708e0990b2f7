"""
Tests for the value types: Track invariants and MatchConfig validation.
"""

import sys
import os
import unittest

# Ensure project root is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from config import ConfigurationError
from models import MatchConfig, MatchResult, MatchStatus, Platform, Track


class TestTrack(unittest.TestCase):

    def test_platform_converted_from_string(self):
        track = Track(id="1", platform="spotify", title="A", artist="B")
        self.assertIs(track.platform, Platform.SPOTIFY)

    def test_artists_stored_as_tuple(self):
        track = Track(id="1", platform="spotify", title="A", artist="B", artists=["B", "C"])
        self.assertEqual(track.artists, ("B", "C"))

    def test_negative_duration_rejected(self):
        with self.assertRaises(ValueError):
            Track(id="1", platform="spotify", title="A", artist="B", duration_ms=-1)

    def test_raw_ignored_for_equality(self):
        a = Track(id="1", platform="spotify", title="A", artist="B", raw={"x": 1})
        b = Track(id="1", platform="spotify", title="A", artist="B", raw={"x": 2})
        self.assertEqual(a, b)
        self.assertEqual(hash(a), hash(b))

    def test_unknown_platform_rejected(self):
        with self.assertRaises(ValueError):
            Track(id="1", platform="napster", title="A", artist="B")

    def test_missing_title_or_artist_rejected(self):
        with self.assertRaises(TypeError):
            Track(id="1", platform="spotify", title=None, artist="B")
        with self.assertRaises(TypeError):
            Track(id="1", platform="spotify", title="A", artist=None)


class TestMatchConfig(unittest.TestCase):

    def test_explicit_values_accepted(self):
        config = MatchConfig(
            title_weight=0.55, artist_weight=0.30, duration_weight=0.15,
            duration_tolerance_ms=3000,
            high_confidence_threshold=0.80, low_confidence_threshold=0.55,
            max_search_results=10,
        )
        self.assertEqual(config.max_search_results, 10)
        self.assertFalse(config.ignore_missing_duration)

    def test_low_above_high_rejected(self):
        with self.assertRaises(ConfigurationError):
            MatchConfig(high_confidence_threshold=0.5, low_confidence_threshold=0.6)

    def test_threshold_outside_unit_interval_rejected(self):
        with self.assertRaises(ConfigurationError):
            MatchConfig(high_confidence_threshold=1.2, low_confidence_threshold=0.5)
        with self.assertRaises(ConfigurationError):
            MatchConfig(high_confidence_threshold=0.8, low_confidence_threshold=-0.1)

    def test_negative_weight_rejected(self):
        with self.assertRaises(ConfigurationError):
            MatchConfig(title_weight=-0.1)

    def test_all_zero_weights_rejected(self):
        with self.assertRaises(ConfigurationError):
            MatchConfig(title_weight=0, artist_weight=0, duration_weight=0)

    def test_non_positive_tolerance_rejected(self):
        with self.assertRaises(ConfigurationError):
            MatchConfig(duration_tolerance_ms=0)

    def test_zero_max_results_rejected(self):
        with self.assertRaises(ConfigurationError):
            MatchConfig(max_search_results=0)


class TestMatchResult(unittest.TestCase):

    def test_defaults_describe_not_found(self):
        source = Track(id="1", platform="spotify", title="A", artist="B")
        result = MatchResult(source=source)
        self.assertIsNone(result.target)
        self.assertEqual(result.confidence, 0.0)
        self.assertEqual(result.status, MatchStatus.NOT_FOUND)


if __name__ == "__main__":
    unittest.main()
