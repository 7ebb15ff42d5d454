from __future__ import annotations

from bisect import bisect_right
from typing import Callable, Optional, Sequence

from .models import LyricLine


def find_active_index(lines: Sequence[LyricLine], progress_ms: int) -> int:
    """Index of the last line whose offset is <= progress_ms, or -1.

    Lines are assumed sorted by offset, which makes this a bisection.
    """
    offsets = [line.offset_ms for line in lines]
    return bisect_right(offsets, progress_ms) - 1


class PositionTracker:
    """Maps playback progress to the active line, reporting only changes."""

    def __init__(
        self,
        lines: Sequence[LyricLine] = (),
        on_change: Optional[Callable[[int], None]] = None,
    ) -> None:
        self._offsets = [line.offset_ms for line in lines]
        self._on_change = on_change
        self.index = -1

    def load(self, lines: Sequence[LyricLine]) -> None:
        """Switch to a new set of lines and reset to "no active line"."""
        self._offsets = [line.offset_ms for line in lines]
        self.reset()

    def reset(self) -> None:
        self.index = -1

    def update(self, progress_ms: int) -> bool:
        """Re-evaluate for `progress_ms`; returns True when the index moved."""
        new_index = bisect_right(self._offsets, progress_ms) - 1
        if new_index == self.index:
            return False
        self.index = new_index
        if self._on_change is not None:
            self._on_change(new_index)
        return True
