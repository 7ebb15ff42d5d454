from lyrica.core.events import SyncListener


def test_base_listener_hooks_are_noops():
    listener = SyncListener()
    assert listener.on_track_changed(None) is None
    assert listener.on_lyrics_changed(None) is None
    assert listener.on_active_line_changed(-1) is None
    assert listener.on_error("x") is None
    assert listener.on_session_expired() is None
