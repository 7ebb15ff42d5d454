# src/lyrica/plugins/spotify.py
"""
Spotify plugin: OAuth authorization-code flow and playback state.

Features:
- Authorization URL for the read-only playback scopes
- Code exchange and token refresh against the accounts service
- Current playback state via the Web API, throttled by a token bucket
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import aiohttp

from ..core.api_config import (
    SPOTIFY_AUTHORIZE_URL,
    SPOTIFY_PLAYER_URL,
    SPOTIFY_SCOPES,
    SPOTIFY_TOKEN_URL,
)
from ..core.auth import get_credentials
from ..core.errors import AuthError, FetchError, LyricaError, SessionExpiredError
from ..core.models import PlaybackState, TrackSnapshot
from ..core.ratelimit import AsyncRateLimiter
from .base import BasePlugin

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenGrant:
    access_token: str
    refresh_token: Optional[str]
    expires_in: int


def parse_playback(body: Optional[Dict[str, Any]]) -> PlaybackState:
    """Turn a `/me/player` response body into a `PlaybackState`.

    No body or no item means nothing is loaded in the player.
    """
    if not body or not body.get("item"):
        return PlaybackState(is_playing=False)

    item = body["item"]
    album = item.get("album") or {}
    images = album.get("images") or []
    artists = ", ".join(a.get("name", "") for a in item.get("artists") or [])
    track = TrackSnapshot(
        name=item.get("name") or "",
        artist=artists,
        album=album.get("name") or "",
        album_art_url=images[0].get("url") if images else None,
        duration_ms=int(item.get("duration_ms") or 0),
        progress_ms=int(body.get("progress_ms") or 0),
    )
    return PlaybackState(is_playing=bool(body.get("is_playing")), track=track)


class SpotifyPlugin(BasePlugin):
    """Spotify accounts + Web API client."""

    def __init__(self, settings=None, session: Optional[aiohttp.ClientSession] = None) -> None:
        super().__init__(settings, session)
        self.client_id: Optional[str] = None
        self.client_secret: Optional[str] = None
        self.redirect_uri: str = self.settings.spotify_redirect_uri
        self.limiter = AsyncRateLimiter(self.settings.playback_rate_limit, 1.0)

    async def authenticate(self):
        """Resolve app credentials: settings first, then keyring/env/secrets file."""
        self.client_id = self.settings.spotify_client_id or get_credentials("spotify", "client_id")
        self.client_secret = self.settings.spotify_client_secret or get_credentials(
            "spotify", "client_secret"
        )
        if not self.client_id or not self.client_secret:
            logger.warning(
                "Spotify client credentials are not configured; "
                "set SPOTIFY_CLIENT_ID/SPOTIFY_CLIENT_SECRET or run `lyrica config spotify`."
            )

    # ---------------- OAuth ----------------

    def authorize_url(self, state: Optional[str] = None) -> str:
        if not self.client_id:
            raise LyricaError("Spotify client id is not configured.")
        params = {
            "client_id": self.client_id,
            "response_type": "code",
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(SPOTIFY_SCOPES),
        }
        if state:
            params["state"] = state
        return f"{SPOTIFY_AUTHORIZE_URL}?{urlencode(params)}"

    def _basic_auth(self) -> aiohttp.BasicAuth:
        if not self.client_id or not self.client_secret:
            raise AuthError("Spotify client credentials are not configured.")
        return aiohttp.BasicAuth(self.client_id, self.client_secret)

    async def _token_request(self, data: Dict[str, str]) -> Dict[str, Any]:
        session = self._require_session()
        auth = self._basic_auth()
        try:
            async with session.post(SPOTIFY_TOKEN_URL, data=data, auth=auth) as r:
                try:
                    payload = await r.json(content_type=None) or {}
                except ValueError:
                    payload = {}
                if r.status != 200:
                    detail = payload.get("error_description") or payload.get("error") or ""
                    raise AuthError(f"Spotify token request failed: HTTP {r.status} {detail}".strip())
                return payload
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise AuthError(f"Spotify token request failed: {e}") from e

    async def exchange_code(self, code: str) -> TokenGrant:
        """Trade an authorization code for access and refresh tokens."""
        if not code:
            raise AuthError("Missing authorization code.")
        p = await self._token_request(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.redirect_uri,
            }
        )
        if not p.get("access_token"):
            raise AuthError("Spotify token response had no access_token.")
        return TokenGrant(
            access_token=p["access_token"],
            refresh_token=p.get("refresh_token"),
            expires_in=int(p.get("expires_in") or 3600),
        )

    async def refresh_access_token(self, refresh_token: str) -> TokenGrant:
        p = await self._token_request({"grant_type": "refresh_token", "refresh_token": refresh_token})
        if not p.get("access_token"):
            raise AuthError("Spotify refresh response had no access_token.")
        return TokenGrant(
            access_token=p["access_token"],
            # Spotify only sometimes rotates the refresh token
            refresh_token=p.get("refresh_token") or refresh_token,
            expires_in=int(p.get("expires_in") or 3600),
        )

    # ---------------- playback ----------------

    async def current_playback(self, credential: str) -> PlaybackState:
        session = self._require_session()
        await self.limiter.acquire()
        headers = {"Authorization": f"Bearer {credential}"}
        try:
            async with session.get(SPOTIFY_PLAYER_URL, headers=headers) as r:
                if r.status in (401, 403):
                    raise SessionExpiredError(r.status)
                if r.status == 204:
                    return PlaybackState(is_playing=False)
                if r.status == 429:
                    logger.warning(
                        "Spotify rate limit hit; Retry-After=%s", r.headers.get("Retry-After")
                    )
                if r.status >= 400:
                    raise FetchError(f"Spotify player request failed: HTTP {r.status}", r.status)
                body = await r.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FetchError(f"Spotify player request failed: {e}") from e
        return parse_playback(body)
