"""
Terminal presentation adapter.

`TerminalView` listens to the sync core and keeps just enough state to
draw the current track and the lyrics window with rich. "Scrolling" is
the top of the visible window: new lyrics reset it to 0, and an active
line change centres the window on that line.
"""

from __future__ import annotations

from typing import List, Optional

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from ..core.events import SyncListener
from ..core.models import LyricsDocument, TrackSnapshot

PLACEHOLDER = "—"


def format_time(ms: int) -> str:
    seconds = max(0, int(ms)) // 1000
    return f"{seconds // 60}:{seconds % 60:02d}"


class TerminalView(SyncListener):
    def __init__(self, window: int = 9) -> None:
        self.window = max(1, window)
        self.track: Optional[TrackSnapshot] = None
        self.lyrics: Optional[LyricsDocument] = None
        self.active_index = -1
        self.scroll_top = 0
        self.error: Optional[str] = None
        self.expired = False

    # ---------------- listener hooks ----------------

    def on_track_changed(self, track):
        self.track = track

    def on_lyrics_changed(self, lyrics):
        self.lyrics = lyrics
        self.active_index = -1
        self.scroll_top = 0

    def on_active_line_changed(self, index):
        self.active_index = index
        if index >= 0 and self.lyrics is not None and index < len(self.lyrics.lines):
            self.scroll_to(index)

    def on_error(self, message):
        self.error = message

    def on_session_expired(self):
        self.expired = True

    # ---------------- scrolling ----------------

    def scroll_to(self, index: int) -> None:
        """Centre `index` in the visible window, clamped to the document."""
        total = len(self.lyrics.lines) if self.lyrics is not None else 0
        top = index - self.window // 2
        self.scroll_top = max(0, min(top, max(0, total - self.window)))

    def visible_lines(self) -> List[tuple]:
        """(index, text) pairs currently inside the window."""
        if self.lyrics is None or not self.lyrics.synced:
            return []
        lines = self.lyrics.lines[self.scroll_top : self.scroll_top + self.window]
        return [(self.scroll_top + i, line.text) for i, line in enumerate(lines)]

    # ---------------- rendering ----------------

    def _track_panel(self, track: TrackSnapshot) -> RenderableType:
        info = Table.grid(padding=(0, 1))
        info.add_column(style="bold")
        info.add_column()
        info.add_row("Track", track.name or PLACEHOLDER)
        info.add_row("Artist", track.artist or PLACEHOLDER)
        info.add_row("Album", track.album or PLACEHOLDER)
        info.add_row("Art", track.album_art_url or PLACEHOLDER)
        total = max(track.duration_ms, 1)
        bar = ProgressBar(total=total, completed=min(track.progress_ms, total), width=40)
        times = Text(f"{format_time(track.progress_ms)} / {format_time(track.duration_ms)}")
        return Panel(Group(info, bar, times), title="Now Playing", border_style="cyan")

    def _lyrics_body(self) -> RenderableType:
        if self.lyrics is None:
            return Text("Loading lyrics...", style="dim italic")
        if not self.lyrics.synced:
            return Text(self.lyrics.raw_text)
        out = Text()
        for index, text in self.visible_lines():
            if index == self.active_index:
                style = "bold white"
            elif index < self.active_index:
                style = "dim"
            else:
                style = "grey62"
            out.append(text + "\n", style=style)
        return out

    def render(self) -> RenderableType:
        parts: List[RenderableType] = []
        if self.error:
            parts.append(Text(self.error, style="bold red"))
        if self.track is None:
            parts.append(Text("No track playing", style="dim italic"))
        else:
            parts.append(self._track_panel(self.track))
            parts.append(Panel(self._lyrics_body(), title="Lyrics", border_style="magenta"))
        return Group(*parts)

    def __rich__(self) -> RenderableType:
        return self.render()
