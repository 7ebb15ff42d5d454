"""Value types shared by the sync core, the plugins and the HTTP layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class LyricLine:
    offset_ms: int
    text: str


@dataclass(frozen=True)
class LyricsDocument:
    """Lyrics for one track. Replaced wholesale whenever the track changes."""

    synced: bool
    lines: Tuple[LyricLine, ...] = ()
    raw_text: str = ""


@dataclass(frozen=True)
class TrackSnapshot:
    name: str
    artist: str
    album: str = ""
    album_art_url: Optional[str] = None
    duration_ms: int = 0
    progress_ms: int = 0

    @property
    def key(self) -> Tuple[str, str]:
        """Identity used to decide whether lyrics must be refetched."""
        return (self.name, self.artist)

    def to_api(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "artist": self.artist,
            "album": self.album,
            "albumArt": self.album_art_url,
            "duration": self.duration_ms,
            "progress": self.progress_ms,
        }

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "TrackSnapshot":
        return cls(
            name=data.get("name") or "",
            artist=data.get("artist") or "",
            album=data.get("album") or "",
            album_art_url=data.get("albumArt"),
            duration_ms=max(0, int(data.get("duration") or 0)),
            progress_ms=max(0, int(data.get("progress") or 0)),
        )


@dataclass(frozen=True)
class PlaybackState:
    is_playing: bool
    track: Optional[TrackSnapshot] = None

    def to_api(self) -> Dict[str, Any]:
        if self.track is None:
            return {"isPlaying": False}
        return {"isPlaying": self.is_playing, "track": self.track.to_api()}


@dataclass(frozen=True)
class LyricsPayload:
    """Raw lookup result: synced LRC text when available, else plain text."""

    text: str
    synced: bool
    duration: Optional[float] = None

    def to_api(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"lyrics": self.text, "synced": self.synced}
        if self.duration is not None:
            data["duration"] = self.duration
        return data


@dataclass
class Session:
    """State bound to one access token. Owned by `LyricsSync`."""

    credential: str
    track: Optional[TrackSnapshot] = None
    lyrics: Optional[LyricsDocument] = None
    active_index: int = -1
