"""
Client for a running Lyrica HTTP server.

This is what a browser client does, in Python: it fetches the login URL,
polls `/api/current-track` and looks up `/api/lyrics`. It satisfies the
same playback/lyrics source interfaces as the direct plugins, so the sync
core can run against either.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

import aiohttp

from ..core.errors import FetchError, LyricaError, SessionExpiredError
from ..core.models import LyricsPayload, PlaybackState, TrackSnapshot
from .base import BasePlugin

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "http://localhost:5000"


class LyricaApiClient(BasePlugin):
    def __init__(self, base_url: str = DEFAULT_SERVER_URL, settings=None, session=None) -> None:
        super().__init__(settings, session)
        self.base_url = base_url.rstrip("/")

    async def authenticate(self):
        """The server holds the app credentials; the client has none."""
        pass

    async def _get(self, path: str, params: Optional[Dict[str, str]] = None) -> Tuple[int, Dict[str, Any]]:
        session = self._require_session()
        try:
            async with session.get(f"{self.base_url}{path}", params=params) as r:
                try:
                    data = await r.json(content_type=None)
                except ValueError:
                    data = None
                return r.status, data if isinstance(data, dict) else {}
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FetchError(f"Request to {path} failed: {e}") from e

    async def login_url(self) -> str:
        status, data = await self._get("/auth/login")
        if status != 200 or not data.get("url"):
            raise LyricaError("Failed to initiate login")
        return data["url"]

    async def current_playback(self, credential: str) -> PlaybackState:
        status, data = await self._get("/api/current-track", {"access_token": credential})
        if status in (401, 403):
            raise SessionExpiredError(status)
        if status >= 400:
            raise FetchError(data.get("error") or f"HTTP {status}", status)
        if not data.get("isPlaying") or not data.get("track"):
            return PlaybackState(is_playing=False)
        return PlaybackState(is_playing=True, track=TrackSnapshot.from_api(data["track"]))

    async def get_lyrics(self, track: str, artist: str) -> Optional[LyricsPayload]:
        status, data = await self._get("/api/lyrics", {"track": track, "artist": artist})
        if status == 404:
            return None
        if status >= 400:
            raise FetchError(data.get("error") or f"HTTP {status}", status)
        if not data.get("lyrics"):
            return None
        duration = data.get("duration")
        return LyricsPayload(
            text=data["lyrics"],
            synced=bool(data.get("synced")),
            duration=float(duration) if duration is not None else None,
        )
