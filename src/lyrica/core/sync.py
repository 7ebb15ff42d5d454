"""
Playback polling and lyrics fetching for a single session.

`LyricsSync` owns the `Session` for the current access token. A
`PeriodicTask` polls the playback source; whenever the (name, artist) pair
of the playing track changes, a lyrics lookup runs as its own task, is
parsed into a `LyricsDocument` and handed to the `PositionTracker`. All
changes are reported through a `SyncListener`.

Everything runs on one event loop. Responses that arrive after the state
has moved on (another token, another track) are dropped before they are
applied.
"""

import asyncio
import logging
from typing import Optional, Set, Tuple

from .errors import FetchError, SessionExpiredError
from .events import SyncListener
from .lrc import build_document, fallback_document
from .models import LyricsDocument, Session, TrackSnapshot
from .scheduler import PeriodicTask
from .sources import LyricsSource, PlaybackSource
from .tracker import PositionTracker

logger = logging.getLogger(__name__)

MSG_SESSION_EXPIRED = "Session expired. Please log in again."
MSG_FETCH_FAILED = "Failed to fetch current track"
MSG_AUTH_FAILED = "Authentication failed. Please try again."
LYRICS_NOT_AVAILABLE = "Lyrics not available for this track"
LYRICS_LOAD_FAILED = "Failed to load lyrics"

DEFAULT_POLL_INTERVAL_MS = 1000


class LyricsSync:
    def __init__(
        self,
        playback: PlaybackSource,
        lyrics: LyricsSource,
        listener: Optional[SyncListener] = None,
        *,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
    ) -> None:
        self._playback = playback
        self._lyrics = lyrics
        self._listener = listener or SyncListener()
        self.poll_interval_ms = poll_interval_ms
        self.session: Optional[Session] = None
        self.error: Optional[str] = None
        self.tracker = PositionTracker(on_change=self._active_line_changed)
        self._poller: Optional[PeriodicTask] = None
        self._lyrics_task: Optional[asyncio.Task] = None
        self._lyrics_tasks: Set[asyncio.Task] = set()

    # ---------------- read-only views ----------------

    @property
    def credential(self) -> Optional[str]:
        return self.session.credential if self.session else None

    @property
    def track(self) -> Optional[TrackSnapshot]:
        return self.session.track if self.session else None

    @property
    def lyrics(self) -> Optional[LyricsDocument]:
        return self.session.lyrics if self.session else None

    @property
    def active_index(self) -> int:
        return self.session.active_index if self.session else -1

    @property
    def polling(self) -> bool:
        return self._poller is not None and self._poller.running

    @property
    def pending_lyrics(self) -> Optional[asyncio.Task]:
        """The in-flight lyrics lookup, if any."""
        task = self._lyrics_task
        return task if task is not None and not task.done() else None

    # ---------------- session lifecycle ----------------

    def login(self, credential: str) -> None:
        """Start a session for `credential`, replacing any previous one.

        Must be called from a running event loop.
        """
        if not credential:
            raise ValueError("credential must be a non-empty string")
        self.logout()
        self.session = Session(credential=credential)
        self._poller = PeriodicTask(
            self.poll_once,
            self.poll_interval_ms / 1000.0,
            name="playback-poller",
        ).start()
        logger.debug("Session started; polling every %d ms", self.poll_interval_ms)

    def logout(self) -> None:
        """Stop polling and drop the session's state."""
        self._stop_poller()
        session, self.session = self.session, None
        self.tracker.reset()
        if session is not None and (session.track is not None or session.lyrics is not None):
            self._listener.on_track_changed(None)
            self._listener.on_lyrics_changed(None)

    def report_auth_failure(self) -> None:
        """The OAuth flow failed; stay logged out and tell the user."""
        self.logout()
        self._set_error(MSG_AUTH_FAILED)

    async def wait(self) -> None:
        """Wait until polling stops (logout or session expiry)."""
        poller = self._poller
        if poller is not None:
            await poller.wait()

    async def aclose(self) -> None:
        self.logout()
        self._lyrics_task = None
        tasks = [t for t in self._lyrics_tasks if not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ---------------- polling ----------------

    async def poll_once(self) -> None:
        """Run one poll tick against the playback source."""
        session = self.session
        if session is None:
            return
        credential = session.credential

        try:
            state = await self._playback.current_playback(credential)
        except SessionExpiredError as e:
            if self.session is session:
                logger.info("Token expired or invalid (HTTP %s), clearing session", e.status)
                self._expire()
            return
        except FetchError as e:
            if self.session is session:
                logger.warning("Error fetching track: %s", e)
                self._set_error(MSG_FETCH_FAILED)
            return

        if self.session is not session:
            logger.debug("Dropping playback response for a replaced session")
            return

        if state.is_playing and state.track is not None:
            self._apply_track(state.track)
            self._set_error(None)
        else:
            self._apply_track(None)

    def _apply_track(self, track: Optional[TrackSnapshot]) -> None:
        session = self.session
        previous_key = session.track.key if session.track is not None else None
        session.track = track
        self._listener.on_track_changed(track)

        new_key = track.key if track is not None else None
        if new_key != previous_key:
            self._track_identity_changed(session, track)
        else:
            self._update_position()

    def _track_identity_changed(self, session: Session, track: Optional[TrackSnapshot]) -> None:
        self.tracker.reset()
        session.active_index = -1
        session.lyrics = None
        self._listener.on_lyrics_changed(None)
        if track is None:
            return
        logger.debug("Track changed to %r by %r; fetching lyrics", track.name, track.artist)
        task = asyncio.get_running_loop().create_task(
            self._fetch_lyrics(session, track.key), name="lyrics-fetch"
        )
        self._lyrics_tasks.add(task)
        task.add_done_callback(self._lyrics_tasks.discard)
        self._lyrics_task = task

    # ---------------- lyrics ----------------

    async def _fetch_lyrics(self, session: Session, key: Tuple[str, str]) -> None:
        name, artist = key
        try:
            payload = await self._lyrics.get_lyrics(name, artist)
        except FetchError as e:
            logger.warning("Error fetching lyrics for %r by %r: %s", name, artist, e)
            document = fallback_document(LYRICS_LOAD_FAILED)
        except Exception:
            logger.exception("Unexpected error fetching lyrics for %r by %r", name, artist)
            document = fallback_document(LYRICS_LOAD_FAILED)
        else:
            if payload is None:
                document = fallback_document(LYRICS_NOT_AVAILABLE)
            else:
                document = build_document(payload.text, payload.synced)

        if self.session is not session or session.track is None or session.track.key != key:
            logger.debug("Dropping lyrics for %r by %r; track moved on", name, artist)
            return

        session.lyrics = document
        session.active_index = -1
        self.tracker.load(document.lines if document.synced else ())
        self._listener.on_lyrics_changed(document)
        self._update_position()

    # ---------------- position ----------------

    def _update_position(self) -> None:
        session = self.session
        if session is None or session.track is None:
            return
        if session.lyrics is None or not session.lyrics.synced:
            return
        self.tracker.update(session.track.progress_ms)

    def _active_line_changed(self, index: int) -> None:
        if self.session is not None:
            self.session.active_index = index
        self._listener.on_active_line_changed(index)

    # ---------------- errors ----------------

    def _expire(self) -> None:
        self._stop_poller()
        self.session = None
        self.tracker.reset()
        self._set_error(MSG_SESSION_EXPIRED)
        self._listener.on_track_changed(None)
        self._listener.on_lyrics_changed(None)
        self._listener.on_session_expired()

    def _stop_poller(self) -> None:
        poller, self._poller = self._poller, None
        if poller is not None:
            poller.cancel()

    def _set_error(self, message: Optional[str]) -> None:
        if message == self.error:
            return
        self.error = message
        self._listener.on_error(message)
