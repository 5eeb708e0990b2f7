"""
Output module: writes match results to CSV.
"""

import csv
import logging
from typing import Dict, List

from config import OUTPUT_DIR
from models import MatchResult

logger = logging.getLogger(__name__)

FIELDNAMES = [
    "source_id",
    "source_title",
    "source_artist",
    "target_id",
    "target_title",
    "target_artist",
    "confidence",
    "status",
    "method",
    "existing_id",
    "reasoning",
]


def result_row(result: MatchResult) -> Dict[str, str]:
    """Flatten one MatchResult into a CSV row."""
    target = result.target
    return {
        "source_id": result.source.id,
        "source_title": result.source.title,
        "source_artist": result.source.artist,
        "target_id": target.id if target else "",
        "target_title": target.title if target else "",
        "target_artist": target.artist if target else "",
        "confidence": f"{result.confidence:.3f}",
        "status": result.status.value,
        "method": result.method,
        "existing_id": result.existing_id or "",
        "reasoning": result.reasoning or "",
    }


def write_csv(results: List[MatchResult]) -> str:
    """
    Write the match results to CSV.

    Returns the path to the output file.
    """
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    output_path = OUTPUT_DIR / "match_results.csv"

    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
        writer.writeheader()
        writer.writerows(result_row(r) for r in results)

    logger.info("Output saved to: %s", output_path)
    return str(output_path)
