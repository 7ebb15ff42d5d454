import pytest

from lyrica.core.errors import FetchError, LyricaError, SessionExpiredError
from lyrica.plugins.lyrica_api import LyricaApiClient

from fakes import FakeResponse, FakeSession


def client(*responses):
    session = FakeSession(*responses)
    return LyricaApiClient("http://server.test/", session=session), session


@pytest.mark.asyncio
async def test_login_url():
    api, session = client(FakeResponse(200, {"url": "https://accounts.spotify.com/authorize?x=1"}))
    assert await api.login_url() == "https://accounts.spotify.com/authorize?x=1"
    assert session.requests[0][1] == "http://server.test/auth/login"


@pytest.mark.asyncio
async def test_login_url_failure():
    api, _ = client(FakeResponse(500, {"error": "Failed to generate auth URL"}))
    with pytest.raises(LyricaError):
        await api.login_url()


@pytest.mark.asyncio
async def test_current_playback_playing():
    track = {
        "name": "Song",
        "artist": "A, B",
        "album": "Album",
        "albumArt": None,
        "duration": 1000,
        "progress": 500,
    }
    api, session = client(FakeResponse(200, {"isPlaying": True, "track": track}))
    state = await api.current_playback("tok")
    assert state.is_playing
    assert state.track.key == ("Song", "A, B")
    assert state.track.progress_ms == 500
    assert session.requests[0][2]["params"] == {"access_token": "tok"}


@pytest.mark.asyncio
async def test_current_playback_idle():
    api, _ = client(FakeResponse(200, {"isPlaying": False}))
    state = await api.current_playback("tok")
    assert not state.is_playing
    assert state.track is None


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [401, 403])
async def test_current_playback_expired(status):
    api, _ = client(FakeResponse(status, {"error": "Token expired or invalid"}))
    with pytest.raises(SessionExpiredError) as exc:
        await api.current_playback("tok")
    assert exc.value.status == status


@pytest.mark.asyncio
async def test_current_playback_server_error():
    api, _ = client(FakeResponse(500, {"error": "Failed to fetch current track"}))
    with pytest.raises(FetchError):
        await api.current_playback("tok")


@pytest.mark.asyncio
async def test_lyrics_found_and_missing():
    api, _ = client(
        FakeResponse(200, {"lyrics": "[00:01.00]hi", "synced": True, "duration": 200}),
        FakeResponse(404, {"error": "Lyrics not found"}),
    )
    payload = await api.get_lyrics("Song", "Artist")
    assert payload.text == "[00:01.00]hi"
    assert payload.synced is True
    assert payload.duration == 200.0
    assert await api.get_lyrics("Other", "Artist") is None
