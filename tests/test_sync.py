import asyncio

import pytest

from lyrica.core.errors import FetchError, SessionExpiredError
from lyrica.core.events import SyncListener
from lyrica.core.models import LyricsPayload, PlaybackState, Session, TrackSnapshot
from lyrica.core.sync import (
    LYRICS_LOAD_FAILED,
    LYRICS_NOT_AVAILABLE,
    MSG_FETCH_FAILED,
    MSG_SESSION_EXPIRED,
    LyricsSync,
)

LRC = "[00:00.00]one\n[00:05.00]two\n[00:10.00]three"


def playing(name="Song A", artist="Artist", progress=0):
    return PlaybackState(
        is_playing=True,
        track=TrackSnapshot(name=name, artist=artist, album="Album", duration_ms=200000, progress_ms=progress),
    )


class FakePlayback:
    """Returns queued responses in order; the last one repeats."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def push(self, response):
        self.responses.append(response)

    async def current_playback(self, credential):
        self.calls.append(credential)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


class FakeLyrics:
    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.calls = []

    async def get_lyrics(self, track, artist):
        self.calls.append((track, artist))
        if self.error is not None:
            raise self.error
        return self.payload


class Recorder(SyncListener):
    def __init__(self):
        self.events = []

    def on_track_changed(self, track):
        self.events.append(("track", track.name if track else None))

    def on_lyrics_changed(self, lyrics):
        self.events.append(("lyrics", lyrics.raw_text if lyrics else None))

    def on_active_line_changed(self, index):
        self.events.append(("active", index))

    def on_error(self, message):
        self.events.append(("error", message))

    def on_session_expired(self):
        self.events.append(("expired",))

    def of(self, kind):
        return [e for e in self.events if e[0] == kind]


def make_sync(playback, lyrics, credential="tok"):
    listener = Recorder()
    sync = LyricsSync(playback, lyrics, listener, poll_interval_ms=10)
    # Drive ticks by hand instead of through the poller
    sync.session = Session(credential=credential)
    return sync, listener


async def poll(sync):
    await sync.poll_once()
    if sync.pending_lyrics is not None:
        await sync.pending_lyrics


@pytest.mark.asyncio
async def test_track_change_fetches_lyrics_once_and_tracks_position():
    playback = FakePlayback(playing(progress=1000))
    lyrics = FakeLyrics(LyricsPayload(LRC, synced=True))
    sync, listener = make_sync(playback, lyrics)

    await poll(sync)
    assert lyrics.calls == [("Song A", "Artist")]
    assert sync.lyrics.synced is True
    assert sync.active_index == 0

    # Progress-only changes never refetch
    playback.responses = [playing(progress=7000)]
    await poll(sync)
    playback.responses = [playing(progress=7500)]
    await poll(sync)
    assert lyrics.calls == [("Song A", "Artist")]
    assert sync.active_index == 1
    assert listener.of("active") == [("active", 0), ("active", 1)]


@pytest.mark.asyncio
async def test_new_track_refetches_and_resets_active_index():
    playback = FakePlayback(playing(progress=12000))
    lyrics = FakeLyrics(LyricsPayload(LRC, synced=True))
    sync, listener = make_sync(playback, lyrics)
    await poll(sync)
    assert sync.active_index == 2

    gate = asyncio.Event()

    async def slow_lyrics(track, artist):
        lyrics.calls.append((track, artist))
        await gate.wait()
        return LyricsPayload(LRC, synced=True)

    lyrics.get_lyrics = slow_lyrics
    playback.responses = [playing(name="Song B", progress=0)]
    await sync.poll_once()
    # While B's lyrics load the old document is gone and nothing is active
    assert sync.active_index == -1
    assert sync.lyrics is None
    gate.set()
    await sync.pending_lyrics
    assert lyrics.calls == [("Song A", "Artist"), ("Song B", "Artist")]
    assert sync.active_index == 0


@pytest.mark.asyncio
async def test_same_name_different_artist_is_a_new_track():
    playback = FakePlayback(playing(artist="One"))
    lyrics = FakeLyrics(LyricsPayload(LRC, synced=True))
    sync, _ = make_sync(playback, lyrics)
    await poll(sync)
    playback.responses = [playing(artist="Two")]
    await poll(sync)
    assert lyrics.calls == [("Song A", "One"), ("Song A", "Two")]


@pytest.mark.asyncio
async def test_not_playing_clears_state_without_lyrics_request():
    playback = FakePlayback(playing())
    lyrics = FakeLyrics(LyricsPayload(LRC, synced=True))
    sync, listener = make_sync(playback, lyrics)
    await poll(sync)

    playback.responses = [PlaybackState(is_playing=False)]
    await poll(sync)
    assert sync.track is None
    assert sync.lyrics is None
    assert sync.active_index == -1
    assert lyrics.calls == [("Song A", "Artist")]
    assert ("track", None) in listener.events

    # Coming back to the same track counts as a change
    playback.responses = [playing()]
    await poll(sync)
    assert len(lyrics.calls) == 2


@pytest.mark.asyncio
async def test_paused_track_is_treated_as_not_playing():
    paused = PlaybackState(is_playing=False, track=playing().track)
    sync, _ = make_sync(FakePlayback(paused), FakeLyrics())
    await poll(sync)
    assert sync.track is None


@pytest.mark.asyncio
async def test_session_expiry_clears_everything_and_stops():
    playback = FakePlayback(playing())
    lyrics = FakeLyrics(LyricsPayload(LRC, synced=True))
    sync, listener = make_sync(playback, lyrics)
    await poll(sync)

    playback.responses = [SessionExpiredError(401)]
    await poll(sync)
    assert sync.session is None
    assert sync.credential is None
    assert sync.track is None
    assert sync.lyrics is None
    assert sync.error == MSG_SESSION_EXPIRED
    assert listener.events[-1] == ("expired",)

    # Further ticks do nothing until a new credential arrives
    await sync.poll_once()
    assert playback.calls == ["tok", "tok"]


@pytest.mark.asyncio
async def test_session_expiry_halts_the_poller():
    playback = FakePlayback(SessionExpiredError(403))
    sync = LyricsSync(playback, FakeLyrics(), poll_interval_ms=5)
    sync.login("tok")
    assert sync.polling
    await asyncio.wait_for(sync.wait(), timeout=1)
    await asyncio.sleep(0.03)
    assert not sync.polling
    assert playback.calls == ["tok"]
    assert sync.error == MSG_SESSION_EXPIRED

    # A new credential restarts polling
    playback.responses = [PlaybackState(is_playing=False)]
    sync.login("fresh")
    await asyncio.sleep(0.02)
    assert "fresh" in playback.calls
    assert sync.polling
    await sync.aclose()
    assert not sync.polling


@pytest.mark.asyncio
async def test_login_replaces_previous_poller():
    playback = FakePlayback(PlaybackState(is_playing=False))
    sync = LyricsSync(playback, FakeLyrics(), poll_interval_ms=5)
    sync.login("first")
    first_poller = sync._poller
    sync.login("second")
    assert not first_poller.running
    await asyncio.sleep(0.03)
    assert set(playback.calls) == {"second"}
    await sync.aclose()


@pytest.mark.asyncio
async def test_transient_failure_keeps_state_and_sets_error():
    playback = FakePlayback(playing(progress=1000))
    lyrics = FakeLyrics(LyricsPayload(LRC, synced=True))
    sync, listener = make_sync(playback, lyrics)
    await poll(sync)

    playback.responses = [FetchError("HTTP 500", 500)]
    await poll(sync)
    assert sync.error == MSG_FETCH_FAILED
    assert sync.track is not None
    assert sync.lyrics is not None
    assert sync.credential == "tok"

    playback.responses = [playing(progress=2000)]
    await poll(sync)
    assert sync.error is None
    assert listener.of("error") == [("error", MSG_FETCH_FAILED), ("error", None)]


@pytest.mark.asyncio
async def test_missing_lyrics_fall_back_to_text():
    sync, listener = make_sync(FakePlayback(playing()), FakeLyrics(payload=None))
    await poll(sync)
    assert sync.lyrics.synced is False
    assert sync.lyrics.raw_text == LYRICS_NOT_AVAILABLE
    assert listener.of("lyrics")[-1] == ("lyrics", LYRICS_NOT_AVAILABLE)


@pytest.mark.asyncio
async def test_failed_lyrics_lookup_falls_back_to_text():
    sync, _ = make_sync(FakePlayback(playing()), FakeLyrics(error=FetchError("down")))
    await poll(sync)
    assert sync.lyrics.raw_text == LYRICS_LOAD_FAILED
    assert sync.error is None


@pytest.mark.asyncio
async def test_plain_lyrics_do_not_track_position():
    plain = LyricsPayload("just words\nmore words", synced=False)
    sync, listener = make_sync(FakePlayback(playing(progress=50000)), FakeLyrics(plain))
    await poll(sync)
    assert sync.lyrics.synced is False
    assert sync.lyrics.raw_text == "just words\nmore words"
    assert listener.of("active") == []


@pytest.mark.asyncio
async def test_stale_lyrics_response_is_dropped():
    gate = asyncio.Event()

    class GatedLyrics(FakeLyrics):
        async def get_lyrics(self, track, artist):
            self.calls.append((track, artist))
            if track == "Song A":
                await gate.wait()
                return LyricsPayload("[00:00.00]from A", synced=True)
            return LyricsPayload("[00:00.00]from B", synced=True)

    playback = FakePlayback(playing(name="Song A"))
    sync, _ = make_sync(playback, GatedLyrics())
    await sync.poll_once()
    task_a = sync.pending_lyrics

    playback.responses = [playing(name="Song B")]
    await poll(sync)
    assert sync.lyrics.lines[0].text == "from B"

    gate.set()
    await task_a
    assert sync.lyrics.lines[0].text == "from B"


@pytest.mark.asyncio
async def test_stale_playback_response_is_dropped():
    gate = asyncio.Event()

    class GatedPlayback(FakePlayback):
        async def current_playback(self, credential):
            self.calls.append(credential)
            await gate.wait()
            return playing()

    sync, _ = make_sync(GatedPlayback(), FakeLyrics())
    tick = asyncio.create_task(sync.poll_once())
    await asyncio.sleep(0)
    sync.session = Session(credential="other")
    gate.set()
    await tick
    assert sync.track is None
    assert sync.pending_lyrics is None


@pytest.mark.asyncio
async def test_logout_clears_state():
    sync, listener = make_sync(FakePlayback(playing()), FakeLyrics(LyricsPayload(LRC, synced=True)))
    await poll(sync)
    sync.logout()
    assert sync.session is None
    assert sync.active_index == -1
    assert listener.events[-2:] == [("track", None), ("lyrics", None)]


@pytest.mark.asyncio
async def test_tick_from_replaced_session_with_same_token_is_dropped():
    gate = asyncio.Event()

    class GatedPlayback(FakePlayback):
        async def current_playback(self, credential):
            self.calls.append(credential)
            await gate.wait()
            return playing(name="Old")

    sync, _ = make_sync(GatedPlayback(), FakeLyrics())
    tick = asyncio.create_task(sync.poll_once())
    await asyncio.sleep(0)
    sync.session = Session(credential="tok")
    gate.set()
    await tick
    assert sync.track is None
    assert sync.pending_lyrics is None


@pytest.mark.asyncio
async def test_aclose_cancels_every_outstanding_lyrics_lookup():
    started = []

    class HangingLyrics(FakeLyrics):
        async def get_lyrics(self, track, artist):
            started.append(track)
            await asyncio.Event().wait()

    playback = FakePlayback(playing(name="Song A"))
    sync, _ = make_sync(playback, HangingLyrics())
    await sync.poll_once()
    first = sync.pending_lyrics
    playback.responses = [playing(name="Song B")]
    await sync.poll_once()
    second = sync.pending_lyrics
    await asyncio.sleep(0)
    assert started == ["Song A", "Song B"]

    await sync.aclose()
    assert first.cancelled()
    assert second.cancelled()
    assert sync.pending_lyrics is None
