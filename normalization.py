"""
Text normalization for titles and artist names. Pure functions, no I/O.

Vendor titles and channel names carry decoration (feature credits,
"Official Video" tags, VEVO/Topic channel suffixes) that defeats literal
comparison. Both sides of every comparison go through the same
functions here.
"""

import re
from typing import Callable

from models import Track

# ── Title patterns ───────────────────────────────────────
_FEAT_PAREN_RE = re.compile(r"\s*\((?:feat|ft)\.?\s+[^)]*\)", re.IGNORECASE)
_FEAT_BRACKET_RE = re.compile(r"\s*\[(?:feat|ft)\.?\s+[^\]]*\]", re.IGNORECASE)
_VIDEO_SUFFIX_RE = re.compile(
    r"\s*[-–—]\s*(?:official\s+)?(?:music\s+)?video\s*$", re.IGNORECASE
)
_AUDIO_SUFFIX_RE = re.compile(r"\s*[-–—]\s*official\s+audio\s*$", re.IGNORECASE)
_ANNOTATION_RES = (
    re.compile(r"\s*[(\[]official\s+[^)\]]*[)\]]", re.IGNORECASE),
    re.compile(r"\s*[(\[]lyrics?\s*[)\]]", re.IGNORECASE),
    re.compile(r"\s*[(\[]audio\s*[)\]]", re.IGNORECASE),
    re.compile(r"\s*[(\[]visuali[sz]er\s*[)\]]", re.IGNORECASE),
)
_PIPE_TAIL_RE = re.compile(r"\s*\|.*$", re.DOTALL)

# ── Artist patterns ──────────────────────────────────────
_VEVO_SUFFIX_RE = re.compile(r"vevo$", re.IGNORECASE)
_TOPIC_SUFFIX_RE = re.compile(r"\s*-?\s*topic$", re.IGNORECASE)
_OFFICIAL_SUFFIX_RE = re.compile(r"\s*-?\s*official$", re.IGNORECASE)
_CAMEL_CASE_RE = re.compile(r"([a-z])([A-Z])")
_AMPERSAND_RE = re.compile(r"\s*&\s*")
_COMMA_RE = re.compile(r"\s*,\s*")

# ── Shared ───────────────────────────────────────────────
_QUOTE_TABLE = str.maketrans({
    "‘": "'", "’": "'", "‚": "'", "‛": "'",
    "“": '"', "”": '"', "„": '"', "‟": '"',
})
_WHITESPACE_RE = re.compile(r"\s+")


def _collapse(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text.translate(_QUOTE_TABLE)).strip()


def _until_stable(step: Callable[[str], str], text: str) -> str:
    """Apply ``step`` until the text stops changing.

    Stripping one decoration can expose another ("Song - Official Video
    - Official Audio"), so a single pass is not idempotent.
    """
    previous = None
    while text != previous:
        previous, text = text, step(text)
    return text


def _title_pass(text: str) -> str:
    text = text.lower()
    text = _FEAT_PAREN_RE.sub("", text)
    text = _FEAT_BRACKET_RE.sub("", text)
    text = _VIDEO_SUFFIX_RE.sub("", text)
    text = _AUDIO_SUFFIX_RE.sub("", text)
    for pattern in _ANNOTATION_RES:
        text = pattern.sub("", text)
    text = _PIPE_TAIL_RE.sub("", text)
    return _collapse(text)


def _artist_pass(text: str) -> str:
    text = text.strip()
    text = _VEVO_SUFFIX_RE.sub("", text).rstrip()
    text = _TOPIC_SUFFIX_RE.sub("", text)
    text = _OFFICIAL_SUFFIX_RE.sub("", text)
    # Split "JeremyZucker" before lowercasing hides the boundary.
    text = _CAMEL_CASE_RE.sub(r"\1 \2", text)
    text = text.lower()
    text = _AMPERSAND_RE.sub(" and ", text)
    text = _COMMA_RE.sub(" and ", text)
    return _collapse(text)


def normalize_title(raw: str) -> str:
    """
    Canonicalize a track title for comparison.

    Lowercases, drops feature credits, "Official Video"/"Official Audio"
    suffixes, (Official ...)/(Lyrics)/(Audio)/(Visualizer) annotations
    and anything after a "|", straightens quotes and collapses whitespace.
    """
    return _until_stable(_title_pass, raw or "")


def normalize_artist(raw: str) -> str:
    """
    Canonicalize an artist or channel name for comparison.

    Drops VEVO/Topic/Official channel suffixes, splits CamelCase channel
    names, rewrites "&" and "," separators as "and", lowercases,
    straightens quotes and collapses whitespace.
    """
    return _until_stable(_artist_pass, raw or "")


def build_search_query(track: Track) -> str:
    """Build the text query sent to a search gateway for ``track``."""
    return f"{normalize_artist(track.artist)} {normalize_title(track.title)}"
