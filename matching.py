"""
Single-track matching: ISRC fast path, candidate search, selection and
status classification.

Selection is pluggable: FuzzyStrategy scores every candidate
deterministically, AIStrategy asks a language model. Both share the
fast path and the threshold classification.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple

from openai import OpenAI

from cancellation import CancellationToken, MatchingCancelled
from config import ISRC_MATCH_CONFIDENCE, LLM_MODEL, ConfigurationError
from llm_matching import match_with_ai
from models import MatchConfig, MatchResult, MatchStatus, Track
from normalization import build_search_query
from scoring import score_breakdown

logger = logging.getLogger(__name__)

SearchFn = Callable[[str], List[Track]]
Selection = Tuple[Optional[Track], float, Optional[str]]


class MatchStrategy(ABC):
    """Picks at most one target among non-empty search candidates."""

    name = ""

    @abstractmethod
    def select(
        self,
        source: Track,
        candidates: List[Track],
        config: MatchConfig,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Selection:
        """Return (target, confidence, reasoning)."""


class FuzzyStrategy(MatchStrategy):
    """Composite fuzzy score over every candidate; first seen wins ties."""

    name = "fuzzy"

    def select(
        self,
        source: Track,
        candidates: List[Track],
        config: MatchConfig,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Selection:
        best_match: Optional[Track] = None
        best_score = 0.0

        # Every candidate is scored; search order is not a ranking.
        for candidate in candidates:
            breakdown = score_breakdown(source, candidate, config)
            logger.debug(
                '"%s" vs "%s" by %s: %s',
                source.title, candidate.title, candidate.artist, breakdown.as_dict(),
            )
            if best_match is None or breakdown.composite > best_score:
                best_match = candidate
                best_score = breakdown.composite

        return best_match, best_score, None


class AIStrategy(MatchStrategy):
    """Delegates the choice to match_with_ai."""

    name = "ai"

    def __init__(self, client: Optional[OpenAI], model: str = LLM_MODEL):
        self.client = client
        self.model = model

    def select(
        self,
        source: Track,
        candidates: List[Track],
        config: MatchConfig,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Selection:
        decision = match_with_ai(
            source, candidates, self.client, model=self.model, cancel_token=cancel_token
        )
        return decision.match, decision.confidence, decision.reasoning


def build_strategy(name: str, client: Optional[OpenAI] = None) -> MatchStrategy:
    """Return the strategy registered under ``name`` ("fuzzy" or "ai")."""
    if name == FuzzyStrategy.name:
        return FuzzyStrategy()
    if name == AIStrategy.name:
        return AIStrategy(client)
    raise ConfigurationError(f"Unknown match strategy: {name!r}")


def classify(confidence: float, config: MatchConfig) -> MatchStatus:
    """Map a confidence score onto a status using the configured thresholds."""
    if confidence < config.low_confidence_threshold:
        return MatchStatus.NOT_FOUND
    if confidence >= config.high_confidence_threshold:
        return MatchStatus.MATCHED
    return MatchStatus.LOW_CONFIDENCE


def _isrc_lookup(source: Track, search_fn: SearchFn) -> Optional[Track]:
    """First hit for the source ISRC, or None. Search failures are swallowed."""
    try:
        hits = search_fn(source.isrc)
    except MatchingCancelled:
        raise
    except Exception as exc:
        logger.warning('ISRC search for "%s" failed, using text search: %s', source.title, exc)
        return None
    return hits[0] if hits else None


def match_track(
    source: Track,
    search_fn: SearchFn,
    config: Optional[MatchConfig] = None,
    strategy: Optional[MatchStrategy] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> MatchResult:
    """
    Decide which candidate, if any, is the same song as ``source``.

    "Nothing good enough" is reported through the returned status;
    errors from the text search propagate to the caller. MatchingCancelled
    is raised before the text search once ``cancel_token`` is cancelled.
    """
    if config is None:
        config = MatchConfig()
    if strategy is None:
        strategy = FuzzyStrategy()

    # Stage 1: an exact industry identifier is authoritative
    if source.isrc:
        hit = _isrc_lookup(source, search_fn)
        if hit is not None:
            logger.debug('[ISRC]  "%s" → %s', source.title, hit.id)
            return MatchResult(
                source=source,
                target=hit,
                confidence=ISRC_MATCH_CONFIDENCE,
                status=MatchStatus.MATCHED,
                method="isrc",
            )

    # Stage 2: normalized text search
    if cancel_token is not None:
        cancel_token.raise_if_cancelled()
    candidates = search_fn(build_search_query(source))
    if not candidates:
        return MatchResult(source=source)

    target, confidence, reasoning = strategy.select(source, candidates, config, cancel_token)
    status = classify(confidence, config) if target is not None else MatchStatus.NOT_FOUND

    logger.debug(
        '[%s] "%s" → %s (%.3f, %s)',
        strategy.name.upper(), source.title,
        target.id if target else None, confidence, status.value,
    )
    return MatchResult(
        source=source,
        target=target,
        confidence=confidence,
        status=status,
        method=strategy.name,
        reasoning=reasoning,
    )
