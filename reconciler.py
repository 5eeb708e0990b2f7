"""
Batch orchestration: runs the matcher over a list of source tracks,
marks tracks already present at the destination, and deduplicates the
final result set.
"""

import logging
import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Iterable, List, Optional, Set

from attrs import evolve

from cancellation import CancellationToken, MatchingCancelled
from config import MAX_WORKERS, SEARCH_REQUEST_DELAY
from matching import FuzzyStrategy, MatchStrategy, SearchFn, match_track
from models import ACTIONABLE_STATUSES, MatchConfig, MatchResult, MatchStatus, Track

logger = logging.getLogger(__name__)

ProgressFn = Callable[[int, int], None]

__all__ = [
    "CancellationToken",
    "MatchingCancelled",
    "deduplicate_results",
    "log_summary",
    "mark_existing",
    "match_tracks",
    "summarize_results",
]


def _throttled(search_fn: SearchFn, delay: float, token: CancellationToken) -> SearchFn:
    """
    Wrap ``search_fn`` so every call is preceded by a fixed delay.

    No search starts once ``token`` is cancelled, including one that was
    waiting out the delay.
    """

    def search(query: str) -> List[Track]:
        token.sleep(delay)
        return search_fn(query)

    return search


def _escalate(result: MatchResult, target_id: str) -> MatchResult:
    return evolve(result, status=MatchStatus.ALREADY_EXISTS, existing_id=target_id)


def mark_existing(result: MatchResult, existing_ids: Set[str]) -> MatchResult:
    """Escalate an actionable match whose target is already at the destination."""
    if (
        result.target is not None
        and result.status in ACTIONABLE_STATUSES
        and result.target.id in existing_ids
    ):
        return _escalate(result, result.target.id)
    return result


def match_tracks(
    sources: List[Track],
    search_fn: SearchFn,
    existing_ids: Set[str],
    config: Optional[MatchConfig] = None,
    on_progress: Optional[ProgressFn] = None,
    strategy: Optional[MatchStrategy] = None,
    max_workers: int = MAX_WORKERS,
    request_delay: float = SEARCH_REQUEST_DELAY,
    cancel_token: Optional[CancellationToken] = None,
) -> List[MatchResult]:
    """
    Match every source track against the target platform.

    Returns one MatchResult per source, in input order, whatever order
    the workers finish in. A failing track becomes a ``not_found``
    result and does not stop the batch. Cancelling ``cancel_token``
    makes the whole call raise MatchingCancelled.

    Args:
        sources: Tracks to look up on the target platform.
        search_fn: Candidate search for the target platform.
        existing_ids: Target identifiers already at the destination.
        config: Scoring configuration (defaults from the environment).
        on_progress: Called with (completed, total) after every track;
            an exception it raises is logged, not propagated.
        strategy: Candidate selection strategy (fuzzy by default).
        max_workers: Source tracks in flight at once.
        request_delay: Seconds to wait before every search call.
        cancel_token: Shared cooperative cancellation flag.
    """
    if config is None:
        config = MatchConfig()
    if strategy is None:
        strategy = FuzzyStrategy()
    if cancel_token is None:
        cancel_token = CancellationToken()

    total = len(sources)
    results: List[Optional[MatchResult]] = [None] * total
    if total == 0:
        return []

    search = _throttled(search_fn, request_delay, cancel_token)
    lock = threading.Lock()
    completed = 0

    def work(index: int) -> None:
        nonlocal completed
        if cancel_token.cancelled:
            return

        source = sources[index]
        try:
            result = match_track(source, search, config, strategy, cancel_token=cancel_token)
        except MatchingCancelled:
            raise
        except Exception as exc:
            logger.exception('Matching failed for "%s" by %s', source.title, source.artist)
            result = MatchResult(source=source, reasoning=f"Matching failed: {exc}")
        result = mark_existing(result, existing_ids)

        with lock:
            results[index] = result
            completed += 1
            if on_progress is not None:
                try:
                    on_progress(completed, total)
                except Exception:
                    logger.exception("Progress callback failed at %d/%d", completed, total)

    with ThreadPoolExecutor(max_workers=max(1, max_workers), thread_name_prefix="matcher") as pool:
        futures = [pool.submit(work, index) for index in range(total)]
        for future in as_completed(futures):
            try:
                future.result()
            except MatchingCancelled:
                pass
            if cancel_token.cancelled:
                for pending in futures:
                    pending.cancel()
                break

    if cancel_token.cancelled:
        raise MatchingCancelled(f"Matching cancelled after {completed} of {total} tracks")

    log_summary(results)
    return results


def deduplicate_results(results: Iterable[MatchResult]) -> List[MatchResult]:
    """
    Keep only the first claim on each target track.

    Later actionable results pointing at an already-claimed target are
    returned as ``already_exists`` copies; the input is not modified.
    """
    seen: Set[str] = set()
    deduped: List[MatchResult] = []

    for result in results:
        target = result.target
        if target is None or result.status == MatchStatus.NOT_FOUND:
            deduped.append(result)
            continue
        if target.id in seen and result.status in ACTIONABLE_STATUSES:
            deduped.append(_escalate(result, target.id))
            continue
        seen.add(target.id)
        deduped.append(result)

    return deduped


def summarize_results(results: Iterable[MatchResult]) -> Dict[str, int]:
    """Count results per status (every status present, zero included)."""
    counts = Counter(result.status for result in results)
    return {status.value: counts.get(status, 0) for status in MatchStatus}


def log_summary(results: Iterable[MatchResult]) -> None:
    summary = summarize_results(results)
    logger.info(
        "Match summary: matched=%d, low_confidence=%d, not_found=%d, already_exists=%d",
        summary["matched"], summary["low_confidence"],
        summary["not_found"], summary["already_exists"],
    )
