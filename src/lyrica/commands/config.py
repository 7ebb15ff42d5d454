"""
Configuration commands for Lyrica (`lyrica config`).

This module handles user-facing configuration:
- Spotify application credentials (stored in the system keyring)
- Server and sync settings (port, redirect URI, client URL, poll interval)
- Viewing and clearing stored settings
"""

import json
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.prompt import Confirm, Prompt

from ..core.auth import clear_credentials, get_credentials, store_credentials
from ..core.config import get_settings, save_settings

console = Console()
app = typer.Typer(
    no_args_is_help=True,
    help="Manage Spotify credentials and server settings.",
)


def _credential_source(settings_value: Optional[str], key: str) -> Optional[str]:
    if settings_value:
        return "settings"
    if get_credentials("spotify", key):
        return "stored"
    return None


@app.command("spotify")
def config_spotify(
    client_id: Optional[str] = typer.Option(None, "--client-id", help="Spotify app client id."),
    client_secret: Optional[str] = typer.Option(
        None, "--client-secret", help="Spotify app client secret."
    ),
):
    """Store the Spotify app credentials used for the OAuth flow.

    Create an app at https://developer.spotify.com/dashboard and add the
    redirect URI shown by `lyrica config show` to it.
    """
    if not client_id:
        client_id = Prompt.ask("Spotify client id")
    if not client_secret:
        client_secret = Prompt.ask("Spotify client secret", password=True)
    if not client_id or not client_secret:
        raise typer.Exit("[red]Error:[/red] Both client id and client secret are required.")

    store_credentials("spotify", "client_id", client_id.strip())
    store_credentials("spotify", "client_secret", client_secret.strip())
    console.print("[green]✅ Spotify credentials saved.[/green]")


@app.command("set")
def config_set(
    port: Optional[int] = typer.Option(None, "--port", help="HTTP server port."),
    redirect_uri: Optional[str] = typer.Option(
        None, "--redirect-uri", help="OAuth redirect URI registered with Spotify."
    ),
    client_url: Optional[str] = typer.Option(
        None, "--client-url", help="Where /callback sends the browser after login."
    ),
    poll_interval: Optional[int] = typer.Option(
        None, "--poll-interval", help="Playback poll interval in milliseconds (>= 100)."
    ),
):
    """Update server and sync settings."""
    settings = get_settings()
    changed = False
    try:
        if port is not None:
            settings.port = port
            changed = True
        if redirect_uri:
            settings.spotify_redirect_uri = redirect_uri
            changed = True
        if client_url:
            settings.client_url = client_url
            changed = True
        if poll_interval is not None:
            settings.poll_interval_ms = poll_interval
            changed = True
    except ValidationError as e:
        console.print(f"[red]Invalid value:[/red] {e.errors()[0].get('msg')}")
        raise typer.Exit(1)

    if changed:
        save_settings(settings)
        console.print("[green]✅ Settings saved.[/green]")
    else:
        console.print("Nothing to change. See `lyrica config set --help`.")


@app.command("show")
def config_show(
    json_output: bool = typer.Option(
        False, "--json", help="Output configuration and credential status as JSON"
    ),
):
    """
    Display the current configuration and stored credential status.

    Secrets are never printed; only whether they are present.
    """
    settings = get_settings()
    id_source = _credential_source(settings.spotify_client_id, "client_id")
    secret_source = _credential_source(settings.spotify_client_secret, "client_secret")

    data = {
        "server": {
            "host": settings.host,
            "port": settings.port,
            "production": settings.production,
            "client_url": settings.resolved_client_url(),
            "static_dir": str(settings.static_dir) if settings.static_dir else None,
        },
        "spotify": {
            "redirect_uri": settings.spotify_redirect_uri,
            "client_id": bool(id_source),
            "client_id_source": id_source,
            "client_secret": bool(secret_source),
            "client_secret_source": secret_source,
        },
        "sync": {
            "poll_interval_ms": settings.poll_interval_ms,
            "lrclib_base_url": settings.lrclib_base_url,
            "playback_rate_limit": settings.playback_rate_limit,
        },
    }

    if json_output:
        typer.echo(json.dumps(data))
        return

    def _status(present: bool, source: Optional[str]) -> str:
        if not present:
            return "[yellow]Not Set[/yellow]"
        return "[green]Set[/green]" if source == "stored" else "[green]Set (settings)[/green]"

    console.print("[bold]Current Configuration[/bold]")
    console.print("\n[bold]Server:[/bold]")
    console.print(f"  Listen:      [blue]{settings.host}:{settings.port}[/blue]")
    console.print(f"  Mode:        {'production' if settings.production else 'development'}")
    console.print(f"  Client URL:  [blue]{data['server']['client_url']}[/blue]")
    if settings.static_dir:
        console.print(f"  Static dir:  [blue]{settings.static_dir}[/blue]")

    console.print("\n[bold]Spotify:[/bold]")
    console.print(f"  Redirect URI:  [blue]{settings.spotify_redirect_uri}[/blue]")
    console.print(f"  Client ID:     {_status(bool(id_source), id_source)}")
    console.print(f"  Client Secret: {_status(bool(secret_source), secret_source)}")

    console.print("\n[bold]Sync:[/bold]")
    console.print(f"  Poll interval: {settings.poll_interval_ms} ms")
    console.print(f"  LRCLIB:        [blue]{settings.lrclib_base_url}[/blue]")


@app.command("clear")
def config_clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
):
    """
    Delete the stored Spotify app credentials.
    """
    if yes or Confirm.ask(
        "[bold red]Delete the stored Spotify credentials?[/bold red]", default=False
    ):
        clear_credentials("spotify")
        console.print("[green]✅ Spotify credentials have been cleared.[/green]")
    else:
        console.print("Operation cancelled.")
