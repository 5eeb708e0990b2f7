"""
LLM-powered candidate selection, the alternate matching strategy.

Asks an OpenAI chat model to pick the best candidate for a source track.
Includes exponential backoff with jitter, an in-memory result cache, and
a fixed low-confidence fallback so one bad response never aborts a batch.
"""

import hashlib
import json
import logging
import os
import random
import time
from typing import Any, Dict, List, Optional, Tuple

from openai import OpenAI

from cancellation import CancellationToken
from config import (
    AI_FALLBACK_CONFIDENCE,
    AI_REQUEST_DELAY,
    BACKOFF_BASE,
    BACKOFF_MAX,
    LLM_MAX_TOKENS,
    LLM_MODEL,
    LLM_TEMPERATURE,
    LLM_TIMEOUT,
    MAX_RETRIES,
)
from models import AIMatch, Track
from normalization import build_search_query

logger = logging.getLogger(__name__)


class AIResponseError(Exception):
    """Raised when the model output cannot be turned into a decision."""


# ── In-memory cache ──────────────────────────────────────
# Keyed on the normalized source query plus the candidate ids, so the
# same decision is never paid for twice within a run.
_match_cache: Dict[str, AIMatch] = {}


def _cache_key(source: Track, candidates: List[Track]) -> str:
    """Produce a stable cache key from a source track and its candidates."""
    material = "\x1f".join(
        [build_search_query(source)] + [f"{c.platform.value}:{c.id}" for c in candidates]
    )
    return hashlib.sha256(material.encode()).hexdigest()


def clear_cache() -> None:
    """Clear the LLM result cache (useful between runs or in tests)."""
    _match_cache.clear()


def _pause(seconds: float, cancel_token: Optional[CancellationToken]) -> None:
    if cancel_token is None:
        time.sleep(seconds)
    else:
        cancel_token.sleep(seconds)


def _backoff_sleep(attempt: int, cancel_token: Optional[CancellationToken] = None) -> None:
    """Sleep with exponential backoff + jitter."""
    delay = min(BACKOFF_BASE ** attempt + random.uniform(0, 1), BACKOFF_MAX)
    logger.info("Retrying in %.1fs (attempt %d)...", delay, attempt + 1)
    _pause(delay, cancel_token)


def create_client() -> Optional[OpenAI]:
    """Build an OpenAI client from OPENAI_API_KEY, or None when unset."""
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        logger.warning("OPENAI_API_KEY not set — AI matching will use the fallback only.")
        return None
    return OpenAI(api_key=api_key, timeout=LLM_TIMEOUT)


# ── Prompt construction ──────────────────────────────────

SYSTEM_PROMPT = """You are a music matching expert.
Your job is to decide which candidate track on a streaming platform is the same recording as a source track.

RULES:
1. Titles vary: "Official Video", "Lyrics", "Remaster" tags and different spellings do not change the song.
2. Artist names vary: "VEVO" or "- Topic" channel suffixes, featured artists, different artist order.
3. Durations of the same recording are usually within about 10 seconds of each other.
4. Live versions, remixes and covers are NOT the same recording unless the source is one too.
5. If no candidate is the same recording, answer -1. Do NOT force a match.

Return ONLY valid JSON. No other text."""


def _seconds(duration_ms: int) -> int:
    return int(round(duration_ms / 1000))


def _build_user_prompt(source: Track, candidates: List[Track]) -> str:
    """Build the user prompt for the LLM call."""
    candidate_list = "\n".join(
        f'{i}. Title: "{c.title}" | Artist: "{c.artist}" | '
        f"Duration: {_seconds(c.duration_ms)} seconds"
        for i, c in enumerate(candidates)
    )

    return (
        f"Find the best match for this source track:\n\n"
        f'SOURCE TITLE: "{source.title}"\n'
        f'SOURCE ARTIST: "{source.artist}"\n'
        f"SOURCE DURATION: {_seconds(source.duration_ms)} seconds\n\n"
        f"CANDIDATES:\n{candidate_list}\n\n"
        f"Return JSON with this exact structure:\n"
        f'{{"bestMatchIndex": <0-{len(candidates) - 1} or -1>, '
        f'"confidence": <number between 0 and 1>, '
        f'"reasoning": "brief explanation"}}'
    )


# ── Response parsing ─────────────────────────────────────

def _extract_json_object(raw: str) -> Dict[str, Any]:
    """
    Return the first JSON object embedded in the model output.

    Tolerates prose and markdown fences around the object.
    """
    decoder = json.JSONDecoder()
    start = raw.find("{")
    while start != -1:
        try:
            parsed, _ = decoder.raw_decode(raw, start)
        except json.JSONDecodeError:
            start = raw.find("{", start + 1)
            continue
        if isinstance(parsed, dict):
            return parsed
        start = raw.find("{", start + 1)
    raise AIResponseError("No JSON object found in model response")


def _parse_llm_response(raw: str, candidate_count: int) -> Tuple[int, float, str]:
    """
    Parse and validate the model decision.

    Returns (best_match_index, confidence, reasoning); the index is -1
    when the model found no acceptable candidate.
    """
    parsed = _extract_json_object(raw)

    if parsed.get("bestMatchIndex") is None:
        raise AIResponseError("Response has no bestMatchIndex")
    index = parsed["bestMatchIndex"]
    if isinstance(index, float) and index.is_integer():
        index = int(index)
    if isinstance(index, bool) or not isinstance(index, int):
        raise AIResponseError(f"bestMatchIndex is not an integer: {index!r}")
    if index != -1 and not 0 <= index < candidate_count:
        raise AIResponseError(f"Invalid match index: {index}")

    try:
        confidence = float(parsed.get("confidence", 0.0))
    except (TypeError, ValueError) as exc:
        raise AIResponseError(f"Invalid confidence: {parsed.get('confidence')!r}") from exc
    if confidence != confidence:  # NaN
        raise AIResponseError("Confidence is NaN")
    confidence = min(1.0, max(0.0, confidence))

    reasoning = str(parsed.get("reasoning", "")).strip()
    return index, confidence, reasoning


def _fallback(candidates: List[Track], reason: str) -> AIMatch:
    return AIMatch(
        match=candidates[0],
        confidence=AI_FALLBACK_CONFIDENCE,
        reasoning=f"AI matching failed: {reason}. Using first candidate as fallback.",
        fallback=True,
    )


# ── Core LLM call ────────────────────────────────────────

def match_with_ai(
    source: Track,
    candidates: List[Track],
    client: Optional[OpenAI],
    model: str = LLM_MODEL,
    max_retries: Optional[int] = None,
    request_delay: Optional[float] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> AIMatch:
    """
    Use the LLM to pick the best candidate for a source track.

    Never raises: API errors, malformed JSON and invalid indices are
    retried with backoff, then converted into the fallback result
    (first candidate, fixed low confidence). The only exception is
    MatchingCancelled, raised from the waits between calls once
    ``cancel_token`` is cancelled.
    """
    if not candidates:
        return AIMatch(match=None, confidence=0.0, reasoning="No candidates provided")

    if client is None:
        return _fallback(candidates, "no LLM client configured")

    if max_retries is None:
        max_retries = MAX_RETRIES
    if request_delay is None:
        request_delay = AI_REQUEST_DELAY

    key = _cache_key(source, candidates)
    cached = _match_cache.get(key)
    if cached is not None:
        logger.info('Cache hit for "%s"', source.title)
        return cached

    user_prompt = _build_user_prompt(source, candidates)
    last_error: Optional[str] = None

    for attempt in range(max_retries + 1):
        # Rate limit: pause before every model call to avoid 429 errors
        if request_delay > 0:
            _pause(request_delay, cancel_token)
        elif cancel_token is not None:
            cancel_token.raise_if_cancelled()

        try:
            response = client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=LLM_TEMPERATURE,
                max_tokens=LLM_MAX_TOKENS,
                response_format={"type": "json_object"},
            )

            raw = (response.choices[0].message.content or "").strip()
            index, confidence, reasoning = _parse_llm_response(raw, len(candidates))

            result = AIMatch(
                match=candidates[index] if index != -1 else None,
                confidence=confidence,
                reasoning=reasoning,
            )
            _match_cache[key] = result
            return result

        except AIResponseError as exc:
            last_error = f"Invalid model response: {exc}"
            logger.warning("Attempt %d: %s", attempt + 1, last_error)
        except Exception as exc:
            last_error = f"API error: {exc}"
            logger.warning("Attempt %d: %s", attempt + 1, last_error)

        if attempt < max_retries:
            _backoff_sleep(attempt, cancel_token)

    logger.error(
        'AI matching for "%s" failed after %d attempts: %s',
        source.title, max_retries + 1, last_error,
    )
    return _fallback(candidates, last_error or "unknown error")
