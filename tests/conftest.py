import pytest

from lyrica.core.config import reset_settings


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep every test away from real settings files, env and the keyring."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("LYRICA_SETTINGS_PATH", str(tmp_path / "settings.json"))
    monkeypatch.setenv("LYRICA_IGNORE_LOCAL_SETTINGS", "1")
    monkeypatch.setenv("LYRICA_DISABLE_KEYRING", "1")
    for env in (
        "SPOTIFY_CLIENT_ID",
        "SPOTIFY_CLIENT_SECRET",
        "SPOTIFY_REDIRECT_URI",
        "PORT",
        "NODE_ENV",
        "LYRICA_PRODUCTION",
        "LYRICA_SPOTIFY_CLIENT_ID",
        "LYRICA_SPOTIFY_CLIENT_SECRET",
    ):
        monkeypatch.delenv(env, raising=False)
    monkeypatch.setattr("lyrica.core.auth.USER_SECRETS_FILE", tmp_path / "user" / ".secrets.toml")
    monkeypatch.setattr("lyrica.core.auth.LOCAL_SECRETS_FILE", tmp_path / ".secrets.toml")
    reset_settings()
    yield
    reset_settings()
