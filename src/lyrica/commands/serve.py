"""`lyrica serve`: run the HTTP API (and, in production, the built client)."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from ..core.config import get_settings
from ..server.app import run_server

console = Console()


def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Interface to bind (default from settings)."),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to listen on (default 5000)."),
    production: Optional[bool] = typer.Option(
        None,
        "--production/--development",
        help="Production serves the static client and redirects OAuth back to this server.",
    ),
    static_dir: Optional[Path] = typer.Option(
        None, "--static-dir", help="Directory with the built client (index.html)."
    ),
):
    """Start the Lyrica API server."""
    settings = get_settings()
    updates = {}
    if host:
        updates["host"] = host
    if port:
        updates["port"] = port
    if production is not None:
        updates["production"] = production
    if static_dir:
        updates["static_dir"] = static_dir.expanduser().resolve()
    if updates:
        settings = settings.model_copy(update=updates)

    if settings.production and not settings.static_dir:
        console.print("[yellow]Production mode without --static-dir: only the API is served.[/yellow]")
    run_server(settings)
