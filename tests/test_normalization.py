"""
Unit tests for title/artist normalization and search query building.
"""

import sys
import os
import unittest

# Ensure project root is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from models import Platform, Track
from normalization import build_search_query, normalize_artist, normalize_title


# ── normalize_title() tests ──────────────────────────────

class TestNormalizeTitle(unittest.TestCase):

    def test_lowercases(self):
        self.assertEqual(normalize_title("BLINDING LIGHTS"), "blinding lights")

    def test_strips_feat_parenthetical(self):
        self.assertEqual(normalize_title("Levitating (feat. DaBaby)"), "levitating")

    def test_strips_ft_bracket(self):
        self.assertEqual(normalize_title("Stay [ft. Justin Bieber]"), "stay")

    def test_strips_official_music_video_suffix(self):
        self.assertEqual(normalize_title("Hello - Official Music Video"), "hello")

    def test_strips_en_dash_video_suffix(self):
        self.assertEqual(normalize_title("Hello – Official Video"), "hello")

    def test_strips_official_audio_suffix(self):
        self.assertEqual(normalize_title("Hello - Official Audio"), "hello")

    def test_strips_official_parenthetical(self):
        self.assertEqual(normalize_title("Blinding Lights (Official Video)"), "blinding lights")

    def test_strips_lyrics_audio_visualizer(self):
        self.assertEqual(normalize_title("Song (Lyrics)"), "song")
        self.assertEqual(normalize_title("Song (Lyric)"), "song")
        self.assertEqual(normalize_title("Song (Audio)"), "song")
        self.assertEqual(normalize_title("Song (Visualizer)"), "song")
        self.assertEqual(normalize_title("Song (Visualiser)"), "song")

    def test_truncates_at_pipe(self):
        self.assertEqual(normalize_title("Song | Artist | Label Records"), "song")

    def test_stacked_suffixes_fully_removed(self):
        self.assertEqual(
            normalize_title("Song - Official Video - Official Audio"), "song"
        )

    def test_normalizes_curly_quotes(self):
        self.assertEqual(normalize_title("Don’t Stop “Now”"), "don't stop \"now\"")

    def test_collapses_whitespace(self):
        self.assertEqual(normalize_title("  hello   \t world  "), "hello world")

    def test_keeps_version_annotations(self):
        # Live and remix versions are different recordings.
        self.assertEqual(normalize_title("Song (Live)"), "song (live)")

    def test_empty_string(self):
        self.assertEqual(normalize_title(""), "")


# ── normalize_artist() tests ─────────────────────────────

class TestNormalizeArtist(unittest.TestCase):

    def test_strips_concatenated_vevo(self):
        self.assertEqual(normalize_artist("TheWeekndVEVO"), "the weeknd")

    def test_strips_spaced_vevo(self):
        self.assertEqual(normalize_artist("The Weeknd VEVO"), "the weeknd")

    def test_strips_topic_suffix(self):
        self.assertEqual(normalize_artist("Adele - Topic"), "adele")

    def test_strips_official_suffix(self):
        self.assertEqual(normalize_artist("Queen Official"), "queen")

    def test_splits_camel_case(self):
        self.assertEqual(normalize_artist("JeremyZucker"), "jeremy zucker")

    def test_ampersand_becomes_and(self):
        self.assertEqual(normalize_artist("Simon & Garfunkel"), "simon and garfunkel")

    def test_comma_becomes_and(self):
        self.assertEqual(normalize_artist("Dua Lipa, Elton John"), "dua lipa and elton john")

    def test_separator_styles_compare_equal(self):
        self.assertEqual(normalize_artist("A & B"), normalize_artist("A, B"))
        self.assertEqual(normalize_artist("A & B"), normalize_artist("a and b"))

    def test_stacked_channel_suffixes(self):
        self.assertEqual(normalize_artist("Name VEVO Topic"), "name")

    def test_normalizes_quotes(self):
        self.assertEqual(normalize_artist("Guns N’ Roses"), "guns n' roses")

    def test_empty_string(self):
        self.assertEqual(normalize_artist(""), "")


# ── idempotence ──────────────────────────────────────────

class TestIdempotence(unittest.TestCase):

    SAMPLES = [
        "",
        "Blinding Lights (Official Video)",
        "Song - Official Video - Official Audio",
        "Levitating (feat. DaBaby) | Dua Lipa",
        "Hello – Official Music Video (Lyrics)",
        "Name VEVO Topic",
        "TheWeekndVEVO",
        "Simon & Garfunkel, Paul Simon",
        "AC/DC - Topic",
        "  spaced   out  ",
        "Don’t Stop “Now”",
    ]

    def test_normalize_title_idempotent(self):
        for sample in self.SAMPLES:
            once = normalize_title(sample)
            self.assertEqual(normalize_title(once), once, sample)

    def test_normalize_artist_idempotent(self):
        for sample in self.SAMPLES:
            once = normalize_artist(sample)
            self.assertEqual(normalize_artist(once), once, sample)


# ── build_search_query() tests ───────────────────────────

class TestBuildSearchQuery(unittest.TestCase):

    def test_artist_then_title(self):
        track = Track(
            id="4NRXx6U8ABQ",
            platform=Platform.YOUTUBE,
            title="Blinding Lights (Official Video)",
            artist="The Weeknd VEVO",
            duration_ms=201000,
        )
        self.assertEqual(build_search_query(track), "the weeknd blinding lights")


if __name__ == "__main__":
    unittest.main()
