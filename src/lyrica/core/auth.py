"""
Stores Spotify application credentials using the system's keyring with fallbacks.

Only the app-level `client_id` / `client_secret` pair is kept here. User
access tokens live in the client session and are never persisted.

Primary store/retrieve is via `keyring` (macOS Keychain, Windows Credential Locker,
Secret Service, etc). Where keyring is unavailable or undesired:

- Opt-out via `LYRICA_DISABLE_KEYRING=1` to bypass keyring completely
- Environment variable overrides (e.g., `LYRICA_SPOTIFY_CLIENT_SECRET`)
- File fallback in `.secrets.toml` (user or project-local)

Keyring entries live under the "lyrica" service; keys use the format
`{service.lower()}_{key}`.
"""

import logging
import os
from pathlib import Path

import keyring
import keyring.errors
import toml
from rich.console import Console

from .config import LOCAL_SECRETS_FILE, USER_SECRETS_FILE

console = Console()
logger = logging.getLogger(__name__)

KEYRING_SERVICE = "lyrica"

SERVICE_KEYS = {
    "spotify": ["client_id", "client_secret"],
}

_ENV_OVERRIDES = {
    ("spotify", "client_id"): ["LYRICA_SPOTIFY_CLIENT_ID"],
    ("spotify", "client_secret"): ["LYRICA_SPOTIFY_CLIENT_SECRET"],
}

_SENSITIVE_KEYS = {"client_secret"}


def _keyring_disabled() -> bool:
    return os.getenv("LYRICA_DISABLE_KEYRING") == "1"


def _load_secrets() -> dict:
    """Load combined secrets from project-local and user-scoped .secrets.toml."""
    data: dict = {}
    for p in (LOCAL_SECRETS_FILE, USER_SECRETS_FILE):
        try:
            if Path(p).exists():
                d = toml.loads(Path(p).read_text(encoding="utf-8")) or {}
                if isinstance(d, dict):
                    data.update(d)
        except (OSError, toml.TomlDecodeError) as e:
            logger.debug("Ignoring unreadable secrets file %s: %s", p, e)
    return data


def _secrets_key(service: str, key: str) -> str:
    return f"{service.lower()}_{key}"


def _write_secrets_file(service: str, key: str, value: str) -> None:
    data = _load_secrets()
    data[_secrets_key(service, key)] = value
    USER_SECRETS_FILE.parent.mkdir(parents=True, exist_ok=True)
    USER_SECRETS_FILE.write_text(toml.dumps(data), encoding="utf-8")


def store_credentials(service: str, key: str, value: str) -> None:
    """Store a credential in the system keyring (or the secrets file).

    Args:
        service: The name of the service (e.g., 'spotify').
        key: The name of the credential to store (e.g., 'client_secret').
        value: The secret value to store.
    """
    if _keyring_disabled():
        _write_secrets_file(service, key, value)
        return

    try:
        keyring.set_password(KEYRING_SERVICE, _secrets_key(service, key), value)
    except keyring.errors.KeyringError as e:
        _write_secrets_file(service, key, value)
        if key in _SENSITIVE_KEYS:
            console.print(
                f"[yellow]Warning:[/yellow] Could not store {service}.{key} in keyring ({e}); "
                f"saved to {USER_SECRETS_FILE} instead."
            )


def get_credentials(service: str, key: str) -> str | None:
    """Retrieve a stored credential.

    Lookup order is keyring, then environment overrides, then `.secrets.toml`.

    Returns:
        The stored value, or None if not found anywhere.
    """
    if not _keyring_disabled():
        try:
            v = keyring.get_password(KEYRING_SERVICE, _secrets_key(service, key))
            if v:
                return v
        except keyring.errors.KeyringError as e:
            logger.debug("Keyring unavailable for %s.%s: %s", service, key, e)

    for env in _ENV_OVERRIDES.get((service.lower(), key), []):
        v = os.getenv(env)
        if v:
            return v

    v = _load_secrets().get(_secrets_key(service, key))
    return v or None


def clear_credentials(service: str) -> None:
    """Clear all stored credentials for a given service.

    Missing entries are not treated as an error.
    """
    service = service.lower()
    keys_to_delete = SERVICE_KEYS.get(service, [])

    if not keys_to_delete:
        console.print(
            f"[yellow]Warning: No keys defined for service '{service}'. Nothing to clear.[/yellow]"
        )
        return

    for key in keys_to_delete:
        full_key_name = _secrets_key(service, key)
        if _keyring_disabled():
            continue
        try:
            if keyring.get_password(KEYRING_SERVICE, full_key_name) is None:
                continue
            keyring.delete_password(KEYRING_SERVICE, full_key_name)
        except keyring.errors.PasswordDeleteError as e:
            console.print(f"[red]  - Failed to delete '{key}': {e}[/red]")
        except keyring.errors.KeyringError as e:
            console.print(f"[red]  - Keyring error while deleting '{key}': {e}[/red]")

    # User-scoped file fallback entries go too; project-local files are left alone
    if USER_SECRETS_FILE.exists():
        data = toml.loads(USER_SECRETS_FILE.read_text(encoding="utf-8")) or {}
        kept = {k: v for k, v in data.items() if not k.startswith(f"{service}_")}
        if kept != data:
            USER_SECRETS_FILE.write_text(toml.dumps(kept), encoding="utf-8")
