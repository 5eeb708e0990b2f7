"""
Composite similarity scoring between a source track and one candidate.

Title and artist similarity use rapidfuzz's token_sort_ratio: an Indel
(insertion/deletion) ratio computed after sorting whitespace tokens, so
it is symmetric in its arguments and insensitive to word order.
"""

from typing import Any, Dict

from attrs import define
from rapidfuzz import fuzz

from config import EXACT_MATCH_BONUS, EXACT_MATCH_FLOOR, MAX_FUZZY_CONFIDENCE
from models import MatchConfig, Track
from normalization import normalize_artist, normalize_title

# Duration similarity falls to zero at this many tolerance widths.
DURATION_DECAY_WIDTHS = 3


@define(frozen=True, slots=True)
class ScoreBreakdown:
    """Sub-scores behind one composite score, kept for logging."""

    title_score: float
    artist_score: float
    duration_score: float
    exact_title: bool
    exact_artist: bool
    composite: float

    def as_dict(self) -> Dict[str, Any]:
        return {
            "title_score": round(self.title_score, 3),
            "artist_score": round(self.artist_score, 3),
            "duration_score": round(self.duration_score, 3),
            "exact_title": self.exact_title,
            "exact_artist": self.exact_artist,
            "composite": round(self.composite, 3),
        }


def text_similarity(left: str, right: str) -> float:
    """Similarity in [0, 1] of two already-normalized strings."""
    similarity = fuzz.token_sort_ratio(left, right) / 100.0
    if left == right:
        similarity = max(similarity, EXACT_MATCH_FLOOR)
    return similarity


def duration_similarity(source_ms: int, candidate_ms: int, tolerance_ms: int) -> float:
    """
    Linear decay from 1.0 at equal durations to 0.0 at three tolerance
    widths apart. A zero duration on either side counts as unknown and
    scores 0.0 rather than matching anything.
    """
    if source_ms <= 0 or candidate_ms <= 0:
        return 0.0
    diff = abs(source_ms - candidate_ms)
    return max(0.0, 1.0 - diff / (tolerance_ms * DURATION_DECAY_WIDTHS))


def score_breakdown(source: Track, candidate: Track, config: MatchConfig) -> ScoreBreakdown:
    source_title = normalize_title(source.title)
    candidate_title = normalize_title(candidate.title)
    source_artist = normalize_artist(source.artist)
    candidate_artist = normalize_artist(candidate.artist)

    exact_title = source_title == candidate_title
    exact_artist = source_artist == candidate_artist
    title_score = text_similarity(source_title, candidate_title)
    artist_score = text_similarity(source_artist, candidate_artist)
    duration_score = duration_similarity(
        source.duration_ms, candidate.duration_ms, config.duration_tolerance_ms
    )

    duration_unknown = source.duration_ms <= 0 or candidate.duration_ms <= 0
    text_weight = config.title_weight + config.artist_weight
    if config.ignore_missing_duration and duration_unknown and text_weight > 0:
        # Spread the duration weight over title and artist in proportion.
        scale = (text_weight + config.duration_weight) / text_weight
        composite = (
            title_score * config.title_weight + artist_score * config.artist_weight
        ) * scale
    else:
        composite = (
            title_score * config.title_weight
            + artist_score * config.artist_weight
            + duration_score * config.duration_weight
        )

    if exact_title and exact_artist:
        # 1.0 stays reserved for identifier matches.
        composite = min(MAX_FUZZY_CONFIDENCE, composite + EXACT_MATCH_BONUS)

    composite = min(1.0, max(0.0, composite))
    return ScoreBreakdown(
        title_score=title_score,
        artist_score=artist_score,
        duration_score=duration_score,
        exact_title=exact_title,
        exact_artist=exact_artist,
        composite=composite,
    )


def score(source: Track, candidate: Track, config: MatchConfig) -> float:
    """Composite similarity of ``candidate`` to ``source`` in [0, 1]."""
    return score_breakdown(source, candidate, config).composite
