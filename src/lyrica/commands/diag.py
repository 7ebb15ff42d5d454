"""
Diagnostics commands for Lyrica (`lyrica diag`).

Quick checks that the upstream services are reachable and behave.
"""

import asyncio
import json
from typing import Optional

import requests
import typer
from rich.console import Console

from ..core.api_config import SPOTIFY_ACCOUNTS_URL
from ..core.config import get_settings
from ..core.errors import FetchError
from ..core.lrc import parse_lrc
from ..plugins.lyrics import LrclibPlugin

console = Console()
app = typer.Typer(no_args_is_help=True, help="Run diagnostics for upstream services.")


def _probe(url: str, timeout: float) -> dict:
    try:
        r = requests.get(url, timeout=timeout)
        # Any HTTP answer means the host is reachable
        return {"ok": r.status_code < 500, "status": r.status_code, "error": None}
    except requests.RequestException as e:
        return {"ok": False, "status": None, "error": str(e)}


@app.command("connectivity")
def diag_connectivity(
    server: Optional[str] = typer.Option(
        None, "--server", help="Also probe a running Lyrica server at this base URL."
    ),
    json_out: bool = typer.Option(False, "--json", help="Output machine-readable JSON"),
):
    """Check HTTP reachability of LRCLIB, Spotify accounts and (optionally) a server."""
    settings = get_settings()
    timeout = min(settings.request_timeout, 5.0)
    targets = {
        "lrclib": settings.lrclib_base_url.rstrip("/") + "/api/get",
        "spotify_accounts": SPOTIFY_ACCOUNTS_URL,
    }
    if server:
        targets["server"] = server.rstrip("/") + "/api"

    report = {name: _probe(url, timeout) for name, url in targets.items()}

    if json_out:
        typer.echo(json.dumps(report))
    else:
        for name, res in report.items():
            detail = f"HTTP {res['status']}" if res["status"] else res["error"]
            console.print(f"{name}: {'OK' if res['ok'] else 'FAIL'} ({detail})")
    if not all(res["ok"] for res in report.values()):
        raise typer.Exit(2)


@app.command("lyrics-status")
def diag_lyrics_status(
    track: str = typer.Option("Bohemian Rhapsody", "--track", help="Track title to probe"),
    artist: str = typer.Option("Queen", "--artist", help="Artist name to probe"),
    json_out: bool = typer.Option(False, "--json", help="Output machine-readable JSON"),
):
    """Look up a well-known track on LRCLIB and check that its LRC parses."""

    async def _run():
        async with LrclibPlugin() as plugin:
            return await plugin.get_lyrics(track, artist)

    report: dict[str, object] = {"track": track, "artist": artist, "found": False, "synced": False, "lines": 0}
    try:
        payload = asyncio.run(_run())
    except FetchError as e:
        if not json_out:
            console.print(f"[red]Lookup error:[/red] {e}")
        report["error"] = str(e)
        payload = None

    if payload is not None:
        lines = parse_lrc(payload.text) if payload.synced else None
        report.update(found=True, synced=payload.synced, lines=len(lines or ()))

    if json_out:
        typer.echo(json.dumps(report))
    elif payload is not None:
        console.print(
            f"Lyrics: OK - synced={'yes' if payload.synced else 'no'}, parsed lines={report['lines']}"
        )
    elif "error" not in report:
        console.print("Lyrics: not found")
    if not report["found"]:
        raise typer.Exit(2)
