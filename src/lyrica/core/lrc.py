"""LRC parsing: `[mm:ss.xx]text` lines into ordered (offset, text) pairs."""

import logging
import re
from typing import Optional, Tuple

from .models import LyricLine, LyricsDocument

logger = logging.getLogger(__name__)

# [mm:ss.xx] or [mm:ss.xxx]; anything after the tag is the lyric text
_LINE_RE = re.compile(r"\[(\d{2}):(\d{2})\.(\d{2,3})\](.*)")


def parse_lrc(text: Optional[str]) -> Optional[Tuple[LyricLine, ...]]:
    """Parse synced lyrics.

    Lines without a valid timestamp tag, and tags with no text after them,
    are dropped. Lines keep file order; nothing is sorted.

    Returns:
        The parsed lines, or None when no line carried a usable timestamp.
    """
    if not text:
        return None

    parsed = []
    for raw in text.split("\n"):
        match = _LINE_RE.search(raw)
        if not match:
            continue
        minutes, seconds, fraction, content = match.groups()
        content = content.strip()
        if not content:
            continue
        offset = (int(minutes) * 60 + int(seconds)) * 1000 + int(fraction.ljust(3, "0"))
        parsed.append(LyricLine(offset_ms=offset, text=content))

    return tuple(parsed) if parsed else None


def build_document(text: str, synced: bool) -> LyricsDocument:
    """Build the document for a lookup result, degrading to plain text."""
    lines = parse_lrc(text) if synced else None
    if synced and lines is None:
        logger.debug("Payload flagged synced but no timestamped lines parsed")
    return LyricsDocument(synced=lines is not None, lines=lines or (), raw_text=text)


def fallback_document(message: str) -> LyricsDocument:
    return LyricsDocument(synced=False, lines=(), raw_text=message)
