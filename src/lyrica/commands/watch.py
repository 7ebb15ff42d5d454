"""
`lyrica watch`: follow the current track and its lyrics in the terminal.

By default the sources are a running Lyrica server (`--server`), which is
exactly what a browser client talks to. `--direct` skips the server and
calls Spotify and LRCLIB from this process instead, which needs an access
token up front.
"""

import asyncio
import logging
import webbrowser
from contextlib import AsyncExitStack
from typing import Optional
from urllib.parse import parse_qs, urlparse

import typer
from rich.console import Console
from rich.live import Live
from rich.prompt import Prompt

from ..core.config import get_settings
from ..core.errors import LyricaError
from ..core.sync import MSG_AUTH_FAILED, LyricsSync
from ..plugins.lyrica_api import DEFAULT_SERVER_URL, LyricaApiClient
from ..plugins.lyrics import LrclibPlugin
from ..plugins.spotify import SpotifyPlugin
from ..ui.terminal import TerminalView

console = Console()
logger = logging.getLogger(__name__)


def token_from_input(text: str) -> Optional[str]:
    """Accept a bare token or the whole redirect URL from the OAuth callback.

    Returns None when the redirect carried `error=...` or no token.
    """
    text = (text or "").strip()
    if "access_token=" not in text and "error=" not in text:
        return text or None
    query = parse_qs(urlparse(text).query) if "?" in text else parse_qs(text)
    if "error" in query:
        return None
    tokens = query.get("access_token") or []
    return tokens[0] if tokens else None


async def _interactive_login(api: LyricaApiClient) -> Optional[str]:
    url = await api.login_url()
    console.print("Opening Spotify login in your browser...")
    console.print(f"If it does not open, visit: [blue]{url}[/blue]")
    webbrowser.open(url)
    answer = Prompt.ask("Paste the URL you were redirected to (or the access token)")
    return token_from_input(answer)


def watch(
    access_token: Optional[str] = typer.Option(
        None,
        "--access-token",
        envvar="LYRICA_ACCESS_TOKEN",
        help="Spotify access token. Without it, a browser login is started.",
    ),
    server: str = typer.Option(DEFAULT_SERVER_URL, "--server", help="Lyrica server base URL."),
    direct: bool = typer.Option(
        False, "--direct", help="Talk to Spotify and LRCLIB directly instead of a server."
    ),
    window: int = typer.Option(9, "--window", min=1, help="Number of lyric lines shown."),
):
    """Show the playing track with synced lyrics, updated every second."""
    settings = get_settings()
    view = TerminalView(window=window)

    async def _run() -> int:
        if direct:
            playback, lyrics_source = SpotifyPlugin(settings), LrclibPlugin(settings)
            plugins = [playback, lyrics_source]
        else:
            api = LyricaApiClient(server, settings)
            playback = lyrics_source = api
            plugins = [api]

        async with AsyncExitStack() as stack:
            for plugin in plugins:
                await stack.enter_async_context(plugin)

            sync = LyricsSync(
                playback, lyrics_source, view, poll_interval_ms=settings.poll_interval_ms
            )
            token = access_token
            if not token:
                if direct:
                    console.print("[red]--direct needs --access-token (or LYRICA_ACCESS_TOKEN).[/red]")
                    return 2
                try:
                    token = await _interactive_login(api)
                except LyricaError as e:
                    console.print(f"[red]{e}[/red]")
                    return 1
                if not token:
                    sync.report_auth_failure()
                    console.print(f"[red]{MSG_AUTH_FAILED}[/red]")
                    return 1

            sync.login(token)
            try:
                with Live(view, console=console, refresh_per_second=4):
                    await sync.wait()
            finally:
                await sync.aclose()

        if view.expired:
            console.print(f"[red]{sync.error}[/red]")
            return 1
        return 0

    try:
        rc = asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped.[/yellow]")
        rc = 0
    raise typer.Exit(rc)
