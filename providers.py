"""
Candidate search gateways and the registry that hands them to the batch.

The registry is an ordinary object built by the caller; nothing here
keeps module-level state.
"""

import logging
import re
from functools import partial
from typing import Dict, Iterable, List, Protocol

from rapidfuzz import fuzz, process

from config import ConfigurationError
from matching import SearchFn
from models import MatchConfig, Platform, Track
from normalization import build_search_query

logger = logging.getLogger(__name__)

# CC-XXX-YY-NNNNN without the dashes, e.g. USUG11904206
ISRC_RE = re.compile(r"^[A-Z]{2}[A-Z0-9]{3}\d{7}$")

DEFAULT_SCORE_CUTOFF = 50.0


class SearchGateway(Protocol):
    """Searches one target platform for candidate tracks."""

    platform: Platform

    def search(self, query: str, limit: int) -> List[Track]:
        ...


def looks_like_isrc(query: str) -> bool:
    return bool(ISRC_RE.match(query.strip().upper()))


class CatalogSearchGateway:
    """
    Search gateway over an in-memory list of target tracks.

    ISRC-shaped queries return exact ISRC hits only. Text queries are
    ranked by token_set_ratio against each track's own search query.
    """

    def __init__(
        self,
        platform: Platform,
        tracks: Iterable[Track],
        score_cutoff: float = DEFAULT_SCORE_CUTOFF,
    ):
        self.platform = Platform(platform)
        self.tracks = list(tracks)
        self.score_cutoff = score_cutoff
        self._queries = [build_search_query(track) for track in self.tracks]
        self._by_isrc: Dict[str, List[Track]] = {}
        for track in self.tracks:
            if track.isrc:
                self._by_isrc.setdefault(track.isrc.upper(), []).append(track)

    def search(self, query: str, limit: int) -> List[Track]:
        if looks_like_isrc(query):
            return self._by_isrc.get(query.strip().upper(), [])[:limit]

        ranked = process.extract(
            query,
            self._queries,
            scorer=fuzz.token_set_ratio,
            limit=limit,
            score_cutoff=self.score_cutoff,
        )
        return [self.tracks[index] for _, _, index in ranked]


class ProviderRegistry:
    """Explicit container of search gateways, one per platform."""

    def __init__(self, gateways: Iterable[SearchGateway] = ()):
        self._gateways: Dict[Platform, SearchGateway] = {}
        for gateway in gateways:
            self.register(gateway)

    def register(self, gateway: SearchGateway) -> None:
        platform = Platform(gateway.platform)
        if platform in self._gateways:
            raise ConfigurationError(f"A search gateway for {platform.value} is already registered")
        self._gateways[platform] = gateway
        logger.debug("Registered search gateway for %s", platform.value)

    def get(self, platform: Platform) -> SearchGateway:
        try:
            return self._gateways[Platform(platform)]
        except (KeyError, ValueError):
            raise ConfigurationError(f"No search gateway registered for {platform!r}") from None

    def platforms(self) -> List[Platform]:
        return list(self._gateways)

    def search_fn(self, platform: Platform, config: MatchConfig) -> SearchFn:
        """One-argument search callable bound to ``config.max_search_results``."""
        return partial(self.get(platform).search, limit=config.max_search_results)
