"""
Value types shared by every stage of the matcher.

Tracks are immutable once built from a platform response; MatchConfig
rejects invalid weights and thresholds at construction time.
"""

from enum import Enum
from typing import Any, Dict, Optional, Tuple

from attrs import define, field, validators

from config import (
    ARTIST_WEIGHT,
    DURATION_TOLERANCE_MS,
    DURATION_WEIGHT,
    HIGH_CONFIDENCE_THRESHOLD,
    LOW_CONFIDENCE_THRESHOLD,
    MAX_SEARCH_RESULTS,
    TITLE_WEIGHT,
    ConfigurationError,
)


class Platform(str, Enum):
    SPOTIFY = "spotify"
    YOUTUBE = "youtube"
    APPLE = "apple"
    DEEZER = "deezer"
    TIDAL = "tidal"


class MatchStatus(str, Enum):
    MATCHED = "matched"
    LOW_CONFIDENCE = "low_confidence"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"


# Statuses that describe a target we would act on.
ACTIONABLE_STATUSES = frozenset({MatchStatus.MATCHED, MatchStatus.LOW_CONFIDENCE})


def _non_negative(instance, attribute, value) -> None:
    if value < 0:
        raise ValueError(f"{attribute.name} must be non-negative, got {value}")


@define(frozen=True, slots=True)
class Track:
    """A platform-tagged recording.

    ``raw`` keeps the platform-native payload for display and debugging
    only; it never takes part in equality or hashing.
    """

    id: str
    platform: Platform = field(converter=Platform)
    title: str = field(validator=validators.instance_of(str))
    artist: str = field(validator=validators.instance_of(str))
    artists: Tuple[str, ...] = field(default=(), converter=tuple)
    album: Optional[str] = None
    duration_ms: int = field(
        default=0, validator=[validators.instance_of(int), _non_negative]
    )
    isrc: Optional[str] = None
    video_id: Optional[str] = None
    raw: Dict[str, Any] = field(factory=dict, eq=False, repr=False)


def _check_weight(instance, attribute, value) -> None:
    if value < 0:
        raise ConfigurationError(f"{attribute.name} must be non-negative, got {value}")


def _check_unit_interval(instance, attribute, value) -> None:
    if not 0.0 <= value <= 1.0:
        raise ConfigurationError(f"{attribute.name} must be within [0, 1], got {value}")


@define(frozen=True, slots=True)
class MatchConfig:
    """Immutable scoring configuration.

    Weights need not sum to 1; composite scores are clamped to [0, 1].
    With ``ignore_missing_duration`` set, a zero duration on either side
    drops the duration term instead of scoring it as a mismatch.
    """

    title_weight: float = field(default=TITLE_WEIGHT, validator=_check_weight)
    artist_weight: float = field(default=ARTIST_WEIGHT, validator=_check_weight)
    duration_weight: float = field(default=DURATION_WEIGHT, validator=_check_weight)
    duration_tolerance_ms: int = DURATION_TOLERANCE_MS
    high_confidence_threshold: float = field(
        default=HIGH_CONFIDENCE_THRESHOLD, validator=_check_unit_interval
    )
    low_confidence_threshold: float = field(
        default=LOW_CONFIDENCE_THRESHOLD, validator=_check_unit_interval
    )
    max_search_results: int = MAX_SEARCH_RESULTS
    ignore_missing_duration: bool = False

    def __attrs_post_init__(self) -> None:
        if self.title_weight + self.artist_weight + self.duration_weight <= 0:
            raise ConfigurationError("At least one scoring weight must be positive")
        if self.duration_tolerance_ms <= 0:
            raise ConfigurationError(
                f"duration_tolerance_ms must be positive, got {self.duration_tolerance_ms}"
            )
        if self.low_confidence_threshold > self.high_confidence_threshold:
            raise ConfigurationError(
                "low_confidence_threshold "
                f"({self.low_confidence_threshold}) must not exceed "
                f"high_confidence_threshold ({self.high_confidence_threshold})"
            )
        if self.max_search_results < 1:
            raise ConfigurationError(
                f"max_search_results must be at least 1, got {self.max_search_results}"
            )


@define(slots=True)
class MatchResult:
    """Decision for one source track.

    ``target`` may be set even when the status is ``not_found``: it is
    then the best candidate that was not good enough to act on.
    """

    source: Track
    target: Optional[Track] = None
    confidence: float = 0.0
    status: MatchStatus = MatchStatus.NOT_FOUND
    existing_id: Optional[str] = None
    method: str = ""
    reasoning: Optional[str] = None


@define(frozen=True, slots=True)
class AIMatch:
    """Outcome of one language-model matching call."""

    match: Optional[Track]
    confidence: float
    reasoning: str
    fallback: bool = False
