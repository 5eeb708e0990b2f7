"""Shared builders for the test suite."""

from models import MatchConfig, Track

CONFIG = MatchConfig(
    title_weight=0.55,
    artist_weight=0.30,
    duration_weight=0.15,
    duration_tolerance_ms=3000,
    high_confidence_threshold=0.80,
    low_confidence_threshold=0.55,
    max_search_results=10,
)


def make_track(
    track_id: str,
    title: str,
    artist: str,
    duration_ms: int = 200000,
    platform: str = "spotify",
    isrc: str = None,
) -> Track:
    return Track(
        id=track_id,
        platform=platform,
        title=title,
        artist=artist,
        artists=[artist],
        duration_ms=duration_ms,
        isrc=isrc,
    )
