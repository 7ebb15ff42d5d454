"""Listener interface between the sync core and a presentation adapter."""

from typing import Optional

from .models import LyricsDocument, TrackSnapshot


class SyncListener:
    """Receives state changes from `LyricsSync` and `PositionTracker`.

    Every hook is a no-op here; adapters override the ones they render.
    """

    def on_track_changed(self, track: Optional[TrackSnapshot]) -> None:
        """Called on every applied poll result, including progress-only changes."""

    def on_lyrics_changed(self, lyrics: Optional[LyricsDocument]) -> None:
        """A new document replaced the old one; the view should scroll to the top."""

    def on_active_line_changed(self, index: int) -> None:
        """The highlighted line moved; scroll it into view when index >= 0."""

    def on_error(self, message: Optional[str]) -> None:
        """A user-visible error message was set (or cleared with None)."""

    def on_session_expired(self) -> None:
        """The credential was rejected and polling stopped."""

