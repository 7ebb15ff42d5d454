# src/lyrica/core/errors.py
from typing import Optional


class LyricaError(Exception):
    """Base application error for Lyrica.

    Use this for predictable, user-facing error messages that should be
    caught by the CLI or the HTTP layer and displayed nicely.
    """

    pass


class AuthError(LyricaError):
    """The OAuth code exchange or token refresh was rejected."""

    pass


class SessionExpiredError(LyricaError):
    """The playback API refused the access token (HTTP 401/403)."""

    def __init__(self, status: int = 401, message: str = "Session expired") -> None:
        super().__init__(message)
        self.status = status


class FetchError(LyricaError):
    """A transient network or non-2xx failure; retried on the next cycle."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status
