"""
Data ingestion: load source tracks, the target catalog, and the ids
already present at the destination.

All I/O lives here so the matching logic stays pure.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Set

import requests as http_requests

from config import (
    EXISTING_IDS_FILE,
    HTTP_TIMEOUT,
    SOURCE_TRACKS_FILE,
    SOURCE_TRACKS_URL,
    TARGET_CATALOG_FILE,
    TARGET_CATALOG_URL,
)
from models import Platform, Track

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"


# ── Track documents ───────────────────────────────────────

def fetch_track_document(api_url: str, local_path: Path) -> dict:
    """
    Fetch a track document from an API endpoint.

    Falls back to the local JSON file if the API is unavailable or no
    URL is configured. Validates the structure before returning.

    Raises:
        FileNotFoundError: If both the API and local file are unavailable.
        ValueError: If the data doesn't contain the expected structure.
    """
    data = None

    if api_url:
        try:
            logger.info("Fetching tracks from API: %s", api_url)
            response = http_requests.get(api_url, timeout=HTTP_TIMEOUT)
            response.raise_for_status()
            data = response.json()
        except Exception as exc:
            logger.warning("API request failed: %s — falling back to local file", exc)

    if data is None:
        if not local_path.exists():
            raise FileNotFoundError(
                f"Track data unavailable: API failed and local file not found at {local_path}"
            )
        logger.info("Loading tracks from local file: %s", local_path)
        with open(local_path, "r", encoding="utf-8") as f:
            data = json.load(f)

    _validate_track_document(data)
    return data


def _validate_track_document(data: Any) -> None:
    """Ensure the document has a known platform and a list of tracks with ids."""
    if not isinstance(data, dict):
        raise ValueError("Track data must be a JSON object")
    if "platform" not in data:
        raise ValueError("Track data missing top-level 'platform' key")
    try:
        Platform(data["platform"])
    except ValueError:
        raise ValueError(f"Unknown platform '{data['platform']}'") from None
    tracks = data.get("tracks")
    if not isinstance(tracks, list):
        raise ValueError("'tracks' must be a list")
    for i, track in enumerate(tracks):
        if not isinstance(track, dict):
            raise ValueError(f"Track {i} must be an object")
        if not track.get("id"):
            raise ValueError(f"Track {i} missing required key 'id'")


def track_from_dict(entry: Dict[str, Any], platform: Platform) -> Track:
    """
    Build a Track from one document entry.

    Missing title/artist become "Unknown" and a missing duration
    becomes 0, so Track never holds None for them.
    """
    artists = [str(a) for a in entry.get("artists") or [] if a]
    artist = str(entry.get("artist") or (artists[0] if artists else UNKNOWN))
    duration = int(entry.get("duration_ms") or 0)
    if duration < 0:
        raise ValueError(f"Track {entry['id']} has a negative duration")

    return Track(
        id=str(entry["id"]),
        platform=platform,
        title=str(entry.get("title") or UNKNOWN),
        artist=artist,
        artists=artists or [artist],
        album=entry.get("album") or None,
        duration_ms=duration,
        isrc=entry.get("isrc") or None,
        video_id=entry.get("video_id") or None,
        raw=entry,
    )


def fetch_tracks(api_url: str, local_path: Path) -> List[Track]:
    """Load a track document and convert every entry into a Track."""
    document = fetch_track_document(api_url, local_path)
    platform = Platform(document["platform"])
    tracks = [track_from_dict(entry, platform) for entry in document["tracks"]]
    logger.info("Loaded %d %s tracks", len(tracks), platform.value)
    return tracks


def load_source_tracks() -> List[Track]:
    return fetch_tracks(SOURCE_TRACKS_URL, SOURCE_TRACKS_FILE)


def load_target_catalog() -> List[Track]:
    return fetch_tracks(TARGET_CATALOG_URL, TARGET_CATALOG_FILE)


# ── Existing destination ids ──────────────────────────────

def load_existing_ids(path: Path = EXISTING_IDS_FILE) -> Set[str]:
    """
    Load the target ids already present at the destination.

    The file holds a JSON list of ids. A missing file means an empty
    destination.

    Raises:
        ValueError: If the file is not a JSON list.
    """
    if not path.exists():
        logger.info("No existing-ids file at %s — treating destination as empty", path)
        return set()

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError("Existing ids file must contain a JSON list")

    existing = {str(item) for item in data}
    logger.info("Loaded %d existing destination ids", len(existing))
    return existing
