"""`lyrica lyrics`: one-shot lyrics lookup and parse."""

import asyncio
import json
from typing import Optional

import typer
from rich.console import Console
from rich.text import Text

from ..core.errors import FetchError
from ..core.lrc import build_document
from ..core.sync import LYRICS_NOT_AVAILABLE
from ..core.tracker import find_active_index
from ..plugins.lyrics import LrclibPlugin

console = Console()


def _stamp(offset_ms: int) -> str:
    """Format an offset as an LRC tag, e.g. `[01:02.50]`."""
    minutes, rest = divmod(offset_ms, 60_000)
    seconds, ms = divmod(rest, 1000)
    return f"[{minutes:02d}:{seconds:02d}.{ms // 10:02d}]"


def lyrics(
    track: str = typer.Argument(..., help="Track title."),
    artist: str = typer.Argument(..., help="Artist name."),
    at: Optional[int] = typer.Option(
        None, "--at", min=0, help="Playback position in ms; marks the active line."
    ),
    json_out: bool = typer.Option(False, "--json", help="Output machine-readable JSON"),
):
    """Fetch lyrics from LRCLIB and print the parsed lines."""

    async def _run():
        async with LrclibPlugin() as plugin:
            return await plugin.get_lyrics(track, artist)

    try:
        payload = asyncio.run(_run())
    except FetchError as e:
        console.print(f"[red]Failed to load lyrics:[/red] {e}")
        raise typer.Exit(1)

    if payload is None:
        if json_out:
            typer.echo(json.dumps({"synced": False, "lines": [], "raw": None, "active": -1}))
        else:
            console.print(f"[yellow]{LYRICS_NOT_AVAILABLE}[/yellow]")
        raise typer.Exit(2)

    doc = build_document(payload.text, payload.synced)
    active = find_active_index(doc.lines, at) if (doc.synced and at is not None) else -1

    if json_out:
        typer.echo(
            json.dumps(
                {
                    "synced": doc.synced,
                    "lines": [{"offset": ln.offset_ms, "text": ln.text} for ln in doc.lines],
                    "raw": None if doc.synced else doc.raw_text,
                    "active": active,
                }
            )
        )
        return

    if not doc.synced:
        console.print(Text(doc.raw_text))
        return
    for i, line in enumerate(doc.lines):
        marker = ">" if i == active else " "
        style = "bold" if i == active else None
        console.print(Text(f"{marker} {_stamp(line.offset_ms)} {line.text}", style=style))
