"""
Defines the abstract base class for all service plugins.

A plugin wraps one upstream HTTP service (Spotify, LRCLIB, a Lyrica server)
behind an `aiohttp.ClientSession`. Plugins are async context managers:
entering authenticates and opens the HTTP session, leaving closes it. A
session passed in by the caller is shared and left open on exit.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import aiohttp

from ..core.config import LyricaSettings, get_settings


class BasePlugin(ABC):
    """An abstract base class that all service plugins must inherit from."""

    def __init__(
        self,
        settings: Optional[LyricaSettings] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.session = session
        self._owns_session = session is None

    @abstractmethod
    async def authenticate(self):
        """
        Prepare credentials for the service.

        Services without authentication implement this as a no-op.
        """
        pass

    async def open(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                headers={"User-Agent": self.settings.user_agent, "Accept": "application/json"},
                timeout=aiohttp.ClientTimeout(total=self.settings.request_timeout),
            )
            self._owns_session = True
        return self.session

    async def close(self) -> None:
        if self.session is not None and self._owns_session:
            await self.session.close()
            self.session = None

    def _require_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            raise RuntimeError(f"{type(self).__name__} must be used within an active session.")
        return self.session

    async def __aenter__(self):
        await self.authenticate()
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
