"""
Configuration management using Dynaconf and Pydantic.

Settings are loaded from files (`settings.toml`, `.secrets.toml`), a `.env`
file and environment variables by Dynaconf, then validated into a typed
`LyricaSettings` object by Pydantic.

The plain `SPOTIFY_CLIENT_ID` / `SPOTIFY_CLIENT_SECRET` / `SPOTIFY_REDIRECT_URI`
/ `PORT` / `NODE_ENV` variables are honored as well, so an existing `.env`
from a deployment of the web client keeps working unchanged.

The `get_settings` function provides a singleton instance of the settings.
"""

import json
import os
from pathlib import Path
from typing import Optional

import toml
from dynaconf import Dynaconf
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from rich.console import Console

console = Console()

# Determine a user-scoped config directory (XDG-style)
USER_CONFIG_DIR = Path.home() / ".config" / "lyrica"
USER_SETTINGS_FILE = USER_CONFIG_DIR / "settings.toml"
USER_SECRETS_FILE = USER_CONFIG_DIR / ".secrets.toml"

# Project-local settings (CWD) to support isolated runs and tests
LOCAL_SETTINGS_FILE = Path("settings.toml")
LOCAL_SECRETS_FILE = Path(".secrets.toml")

settings_loader = Dynaconf(
    envvar_prefix="LYRICA",
    settings_files=[
        "settings.toml",
        ".secrets.toml",
        str(USER_SETTINGS_FILE),
        str(USER_SECRETS_FILE),
    ],
    environments=True,
    load_dotenv=True,
)

DEFAULT_PORT = 5000
DEV_CLIENT_URL = "http://localhost:5173"
DEFAULT_USER_AGENT = "lyrica/0.3 (+https://github.com/LennyMaxMine/Lyrica)"

# Fields written back by save_settings; secrets never are.
_PERSISTED_FIELDS = (
    "spotify_redirect_uri",
    "host",
    "port",
    "client_url",
    "static_dir",
    "poll_interval_ms",
    "lrclib_base_url",
    "playback_rate_limit",
)


class LyricaSettings(BaseModel):
    """A Pydantic model that defines and validates all application settings."""

    # Spotify application credentials (may also live in the keyring)
    spotify_client_id: Optional[str] = None
    spotify_client_secret: Optional[str] = None
    spotify_redirect_uri: str = f"http://localhost:{DEFAULT_PORT}/callback"

    # HTTP server
    host: str = "127.0.0.1"
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    production: bool = False
    client_url: Optional[str] = None
    static_dir: Optional[Path] = None

    # Sync loop and upstream services
    poll_interval_ms: int = Field(default=1000, ge=100)
    lrclib_base_url: str = "https://lrclib.net"
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: float = Field(default=15.0, gt=0)
    playback_rate_limit: int = Field(default=5, ge=1)

    model_config = ConfigDict(validate_assignment=True, extra="ignore")

    def resolved_client_url(self) -> str:
        """Where the OAuth callback sends the browser back to."""
        if self.client_url:
            return self.client_url.rstrip("/")
        if self.production:
            return f"http://localhost:{self.port}"
        return DEV_CLIENT_URL


_settings_instance: Optional[LyricaSettings] = None


def _env_overrides() -> dict:
    data: dict = {}
    for env, field in (
        ("SPOTIFY_CLIENT_ID", "spotify_client_id"),
        ("SPOTIFY_CLIENT_SECRET", "spotify_client_secret"),
        ("SPOTIFY_REDIRECT_URI", "spotify_redirect_uri"),
        ("PORT", "port"),
    ):
        v = os.getenv(env)
        if v:
            data[field] = v
    if os.getenv("NODE_ENV") == "production" or os.getenv("LYRICA_PRODUCTION") == "1":
        data["production"] = True
    return data


def get_settings() -> LyricaSettings:
    """Get the application settings as a singleton Pydantic model.

    Honors LYRICA_SETTINGS_PATH when set: a JSON file path used for persistence in tests.
    """
    global _settings_instance
    if _settings_instance is None:
        try:
            config_dict: dict = {}

            # 1) Special env path for tests or explicit override (JSON file)
            env_settings_path = os.getenv("LYRICA_SETTINGS_PATH")
            if env_settings_path:
                p = Path(env_settings_path)
                if p.exists():
                    try:
                        config_dict.update(json.loads(p.read_text(encoding="utf-8")) or {})
                    except json.JSONDecodeError:
                        # If malformed, ignore and continue with other layers
                        pass

            # 2) Dynaconf loader (project + user scope); keys come back upper-cased
            dc_dict = settings_loader.as_dict() or {}
            config_dict.update({str(k).lower(): v for k, v in dc_dict.items()})

            # 3) Optional project-local settings.toml overlay
            ignore_local = os.getenv("LYRICA_IGNORE_LOCAL_SETTINGS") == "1"
            if (not ignore_local) and LOCAL_SETTINGS_FILE.exists():
                try:
                    local_data = toml.loads(LOCAL_SETTINGS_FILE.read_text(encoding="utf-8")) or {}
                    if isinstance(local_data, dict):
                        config_dict.update(local_data)
                except toml.TomlDecodeError:
                    pass

            # 4) Explicit environment overrides
            config_dict.update(_env_overrides())

            _settings_instance = LyricaSettings(**config_dict)
        except ValidationError as e:
            console.print(f"[red]Configuration error:[/red]\n{e}")
            raise

    return _settings_instance


def save_settings(new_settings: LyricaSettings):
    """Save updated (non-secret) settings.

    If LYRICA_SETTINGS_PATH is set, persist as JSON to that file (used by tests).
    Otherwise write the project-local and user-level settings.toml files.
    """
    global _settings_instance
    data = {}
    for field in _PERSISTED_FIELDS:
        value = getattr(new_settings, field)
        if value is None:
            continue
        data[field] = str(value) if isinstance(value, Path) else value

    env_settings_path = os.getenv("LYRICA_SETTINGS_PATH")
    if env_settings_path:
        p = Path(env_settings_path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(data), encoding="utf-8")
    else:
        try:
            LOCAL_SETTINGS_FILE.write_text(toml.dumps(data), encoding="utf-8")
        except OSError:
            pass
        try:
            USER_CONFIG_DIR.mkdir(parents=True, exist_ok=True)
            USER_SETTINGS_FILE.write_text(toml.dumps(data), encoding="utf-8")
        except OSError:
            pass
        settings_loader.reload()

    _settings_instance = new_settings


def create_default_settings() -> LyricaSettings:
    """Create a default settings instance, useful for resets."""
    return LyricaSettings()


def reset_settings():
    """Reset in-memory settings (do not delete on-disk settings)."""
    global _settings_instance
    _settings_instance = None
