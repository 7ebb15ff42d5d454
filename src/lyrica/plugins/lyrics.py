"""
LRCLIB lyrics plugin.

LRCLIB (https://lrclib.net) is free and needs no API key. `GET /api/get`
matches on track and artist name and returns `syncedLyrics` (LRC) and/or
`plainLyrics`; a 404 means it has nothing for that pair.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from ..core.api_config import LRCLIB_GET_PATH
from ..core.errors import FetchError
from ..core.models import LyricsPayload
from .base import BasePlugin

logger = logging.getLogger(__name__)


def payload_from_record(data: Optional[Dict[str, Any]]) -> Optional[LyricsPayload]:
    """Pick the best lyrics out of an LRCLIB record, preferring synced text."""
    if not data:
        return None
    synced = (data.get("syncedLyrics") or "").strip()
    plain = (data.get("plainLyrics") or "").strip()
    if not synced and not plain:
        return None
    duration = data.get("duration")
    return LyricsPayload(
        text=synced or plain,
        synced=bool(synced),
        duration=float(duration) if duration is not None else None,
    )


class LrclibPlugin(BasePlugin):
    """Looks up lyrics by track and artist name."""

    @property
    def base_url(self) -> str:
        return self.settings.lrclib_base_url.rstrip("/")

    async def authenticate(self):
        """LRCLIB is anonymous; nothing to do."""
        pass

    async def get_record(
        self,
        track: str,
        artist: str,
        album: Optional[str] = None,
        duration_s: Optional[float] = None,
    ) -> Optional[Dict[str, Any]]:
        session = self._require_session()
        params: Dict[str, Any] = {"track_name": track, "artist_name": artist}
        if album:
            params["album_name"] = album
        if duration_s and duration_s > 0:
            params["duration"] = int(round(duration_s))

        try:
            async with session.get(f"{self.base_url}{LRCLIB_GET_PATH}", params=params) as r:
                if r.status == 404:
                    return None
                if r.status >= 400:
                    raise FetchError(f"LRCLIB request failed: HTTP {r.status}", r.status)
                return await r.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FetchError(f"LRCLIB request failed: {e}") from e

    async def get_lyrics(self, track: str, artist: str) -> Optional[LyricsPayload]:
        data = await self.get_record(track, artist)
        payload = payload_from_record(data)
        logger.debug(
            "LRCLIB %r by %r: %s",
            track,
            artist,
            "none" if payload is None else ("synced" if payload.synced else "plain"),
        )
        return payload
