"""Interfaces the sync core polls. Plugins and the HTTP API client implement them."""

from typing import Optional, Protocol

from .models import LyricsPayload, PlaybackState


class PlaybackSource(Protocol):
    async def current_playback(self, credential: str) -> PlaybackState:
        """Return the account's playback state.

        Raises:
            SessionExpiredError: the credential was rejected (401/403).
            FetchError: any other failure.
        """
        ...


class LyricsSource(Protocol):
    async def get_lyrics(self, track: str, artist: str) -> Optional[LyricsPayload]:
        """Return lyrics for the pair, or None when none exist.

        Raises:
            FetchError: the lookup itself failed.
        """
        ...
