"""
Lyrica CLI - Main entry point using Typer.

This module configures the main Typer application, registers all commands
and command groups, and defines global options like --version and --verbose.
"""

import typer
from rich.console import Console
from rich.traceback import install

from .commands import config, diag, lyrics, serve, watch
from .core.logging_util import setup_logging

# Install a rich traceback handler for beautiful, readable exceptions
install(show_locals=False)

console = Console()

app = typer.Typer(
    name="lyrica",
    help="🎵 Lyrica - your Spotify track with time-synchronized lyrics.",
    epilog="Use `lyrica [COMMAND] --help` for more info on a specific command.",
    no_args_is_help=True,
    pretty_exceptions_enable=False,  # Disable Typer's default handler to use Rich's
)

app.add_typer(config.app, name="config", help="🔐 Manage Spotify credentials and server settings.")
app.add_typer(diag.app, name="diag", help="🩺 Diagnostics for upstream services.")

app.command("serve", help="🌐 Run the HTTP API server.")(serve.serve)
app.command("watch", help="🎤 Follow the current track and its lyrics in the terminal.")(watch.watch)
app.command("lyrics", help="📜 Look up and parse lyrics for one track.")(lyrics.lyrics)


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show the application version and exit.",
        is_eager=True,
    ),
    verbose: bool = typer.Option(None, "--verbose", help="Enable DEBUG-level logging."),
    quiet: bool = typer.Option(None, "--quiet", help="Reduce logging to warnings and errors."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON lines."),
):
    """
    Lyrica CLI - Spotify now-playing with synced lyrics.
    """
    if version:
        from . import __version__

        console.print(f"Lyrica v{__version__}")
        raise typer.Exit()

    # Configure logging once, early
    setup_logging(json_logs=json_logs, verbose=bool(verbose), quiet=bool(quiet))
    if verbose:
        console.print("[yellow]Verbose logging enabled.[/yellow]")


def cli():
    """Main entry point for the console script defined in pyproject.toml."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]👋 Operation cancelled by user.[/yellow]")
        raise typer.Exit()


if __name__ == "__main__":
    cli()
