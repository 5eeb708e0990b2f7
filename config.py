"""
Configuration and environment setup for the track matcher.

Centralizes paths, matching defaults, rate-limit policy, LLM settings,
logging configuration, and startup validation so that problems are
caught early and reported clearly.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import List

from dotenv import load_dotenv

load_dotenv()

# ── Paths ─────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent
DATA_DIR = BASE_DIR / "data"
OUTPUT_DIR = BASE_DIR / "output"
LOG_DIR = BASE_DIR / "logs"

SOURCE_TRACKS_FILE = DATA_DIR / "source_tracks.json"
TARGET_CATALOG_FILE = DATA_DIR / "target_catalog.json"
EXISTING_IDS_FILE = DATA_DIR / "existing_ids.json"

# ── Remote data sources (empty = local files only) ───────
SOURCE_TRACKS_URL = os.getenv("SOURCE_TRACKS_URL", "")
TARGET_CATALOG_URL = os.getenv("TARGET_CATALOG_URL", "")
HTTP_TIMEOUT = 10  # seconds

# ── Matching defaults ─────────────────────────────────────
TITLE_WEIGHT = float(os.getenv("MATCH_TITLE_WEIGHT", "0.55"))
ARTIST_WEIGHT = float(os.getenv("MATCH_ARTIST_WEIGHT", "0.30"))
DURATION_WEIGHT = float(os.getenv("MATCH_DURATION_WEIGHT", "0.15"))
DURATION_TOLERANCE_MS = int(os.getenv("MATCH_DURATION_TOLERANCE_MS", "3000"))
HIGH_CONFIDENCE_THRESHOLD = float(os.getenv("MATCH_HIGH_CONFIDENCE", "0.80"))
LOW_CONFIDENCE_THRESHOLD = float(os.getenv("MATCH_LOW_CONFIDENCE", "0.55"))
MAX_SEARCH_RESULTS = int(os.getenv("MATCH_MAX_SEARCH_RESULTS", "10"))

ISRC_MATCH_CONFIDENCE = 0.99
EXACT_MATCH_FLOOR = 0.98
EXACT_MATCH_BONUS = 0.10
MAX_FUZZY_CONFIDENCE = 0.99

VALID_STRATEGIES = {"fuzzy", "ai"}
MATCH_STRATEGY = os.getenv("MATCH_STRATEGY", "fuzzy").strip().lower()

# ── Batch / rate limiting ────────────────────────────────
MAX_WORKERS = int(os.getenv("MAX_WORKERS", "3"))
SEARCH_REQUEST_DELAY = float(os.getenv("SEARCH_REQUEST_DELAY", "0.2"))  # seconds before each search
AI_REQUEST_DELAY = float(os.getenv("AI_REQUEST_DELAY", "0.3"))          # seconds before each LLM call

# ── Retry / backoff (LLM only) ───────────────────────────
MAX_RETRIES = int(os.getenv("LLM_MAX_RETRIES", "2"))
BACKOFF_BASE = 2          # seconds – exponential base
BACKOFF_MAX = 30          # seconds – cap per retry

# ── LLM ──────────────────────────────────────────────────
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")
LLM_TEMPERATURE = 0.1
LLM_MAX_TOKENS = 500
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "30"))
AI_FALLBACK_CONFIDENCE = 0.3

# ── Logging ───────────────────────────────────────────────
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "false").lower() == "true"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024   # 10 MB
LOG_FILE_BACKUP_COUNT = 5


def setup_logging(level: int = logging.INFO) -> None:
    """
    Configure root logger with console output and optional file rotation.

    Set LOG_TO_FILE=true in .env to enable file logging to logs/matcher.log
    with automatic rotation at 10 MB (5 backups kept).
    """
    handlers = [logging.StreamHandler(sys.stdout)]

    if LOG_TO_FILE:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            LOG_DIR / "matcher.log",
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
    )


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""


def validate_config(strategy: str = MATCH_STRATEGY) -> None:
    """
    Check the selected strategy, required data files and env vars.

    Raises ConfigurationError with a clear message if anything
    is missing, so the batch fails fast instead of halfway
    through matching.
    """
    errors: List[str] = []

    if strategy not in VALID_STRATEGIES:
        errors.append(
            f"Unknown MATCH_STRATEGY '{strategy}' "
            f"(expected one of: {', '.join(sorted(VALID_STRATEGIES))})"
        )

    for path in (SOURCE_TRACKS_FILE, TARGET_CATALOG_FILE):
        if not path.exists():
            errors.append(f"Data file not found: {path}")

    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        if strategy == "ai":
            errors.append("OPENAI_API_KEY must be set when MATCH_STRATEGY=ai")
        else:
            logging.getLogger(__name__).warning(
                "OPENAI_API_KEY not set — AI matching is unavailable. "
                "Only fuzzy matching will be used."
            )

    if errors:
        raise ConfigurationError(
            "Configuration errors:\n  • " + "\n  • ".join(errors)
        )
