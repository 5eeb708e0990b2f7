"""
Track Matcher
=============
Finds, for every track of a source playlist, the same song on a target
platform: ISRC lookup first, then normalized text search scored by a
fuzzy composite (or, with MATCH_STRATEGY=ai, chosen by an LLM).

Usage:
    python main.py
"""

import logging
import sys

from config import (
    MATCH_STRATEGY,
    ConfigurationError,
    setup_logging,
    validate_config,
)
from ingestion import load_existing_ids, load_source_tracks, load_target_catalog
from llm_matching import create_client
from matching import build_strategy
from models import MatchConfig
from output import write_csv
from providers import CatalogSearchGateway, ProviderRegistry
from reconciler import deduplicate_results, match_tracks, summarize_results

logger = logging.getLogger(__name__)


def _log_progress(completed: int, total: int) -> None:
    if completed == total or completed % 10 == 0:
        logger.info("  matched %d/%d", completed, total)


def main() -> None:
    setup_logging()

    logger.info("=" * 55)
    logger.info("  Track Matcher")
    logger.info("=" * 55)

    # Validate configuration
    try:
        validate_config(MATCH_STRATEGY)
        config = MatchConfig()
        client = create_client() if MATCH_STRATEGY == "ai" else None
        strategy = build_strategy(MATCH_STRATEGY, client)
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        sys.exit(1)

    # Step 1: Ingest data
    logger.info("[1] Loading data...")
    try:
        sources = load_source_tracks()
        catalog = load_target_catalog()
        existing_ids = load_existing_ids()
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Data ingestion failed: %s", exc)
        sys.exit(1)

    if not catalog:
        logger.error("Target catalog is empty — nothing to match against")
        sys.exit(1)

    # Step 2: Wire the target platform search
    target_platform = catalog[0].platform
    registry = ProviderRegistry([CatalogSearchGateway(target_platform, catalog)])
    search_fn = registry.search_fn(target_platform, config)

    # Step 3: Match
    logger.info("[2] Matching %d tracks (%s strategy)...", len(sources), strategy.name)
    results = match_tracks(
        sources, search_fn, existing_ids, config,
        on_progress=_log_progress, strategy=strategy,
    )
    results = deduplicate_results(results)

    # Step 4: Output CSV
    logger.info("[3] Writing output...")
    write_csv(results)

    # Step 5: Display results
    logger.info("")
    logger.info("=" * 55)
    logger.info("  RESULTS")
    logger.info("=" * 55)
    logger.info("  %-35s %-25s %-10s %s", "Source", "Target", "Confidence", "Status")
    logger.info("  %s %s %s %s", "-" * 35, "-" * 25, "-" * 10, "-" * 14)
    for r in results:
        logger.info(
            "  %-35s %-25s %-10.3f %s",
            f"{r.source.artist} - {r.source.title}"[:35],
            (r.target.id if r.target else "")[:25],
            r.confidence,
            r.status.value,
        )

    logger.info("Summary: %s", summarize_results(results))
    logger.info("Done.")


if __name__ == "__main__":
    main()
