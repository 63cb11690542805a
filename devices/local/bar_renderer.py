# devices/local/bar_renderer.py
# Differential frequency-bar display: only cells whose bar height changed are written.
from __future__ import annotations

import logging
from typing import Optional, Protocol, Tuple

import numpy as np

from core.sliding_dft import SpectrumSnapshot
from core.state.render_state import RenderState
from devices.local.terminal import TerminalGeometryError

_LOG = logging.getLogger(__name__)

BAR_CHAR = "█"
BLANK_CHAR = " "

HOT = "hot"
MEDIUM = "medium"
QUIET = "quiet"
LABEL = "label"

# avgDb -> rows: level = rows * (avgDb + DB_FLOOR_OFFSET) / DB_SPAN
DB_FLOOR_OFFSET = 100.0
DB_SPAN = 256.0


class Terminal(Protocol):
    def size(self) -> Tuple[int, int]: ...
    def clear(self) -> None: ...
    def set_cursor_visible(self, visible: bool) -> None: ...
    def put_cell(self, x: int, y: int, char: str, color: Optional[str] = None) -> None: ...
    def put_text(self, x: int, y: int, text: str, color: Optional[str] = None) -> None: ...
    def flush(self) -> None: ...
    def discard(self) -> None: ...


def color_for(percent: int) -> str:
    if percent > 85:
        return HOT
    if percent > 30:
        return MEDIUM
    return QUIET


def bar_levels(decibels: np.ndarray, width: int, height: int, max_columns: int) -> np.ndarray:
    """
    Average decibels of consecutive bins per column and scale to rows.

    Column x covers bins [x*step, min((x+1)*step, N-1)); a column whose range
    is empty stays at 0. The last terminal column is never used.
    """
    n = decibels.size
    step = max(1, n // width)
    columns = max(0, min(width - 1, max_columns))
    levels = np.zeros(columns, dtype=np.int64)
    for x in range(columns):
        start = x * step
        end = min((x + 1) * step, n - 1)
        if end <= start:
            continue
        avg_db = float(decibels[start:end].mean())
        level = int(round(height * (avg_db + DB_FLOOR_OFFSET) / DB_SPAN))
        levels[x] = min(max(level, 0), height)
    return levels


class BarRenderer:
    """
    Turns a SpectrumSnapshot into terminal writes.

    The bottom row holds the axis labels and status line; bars use the rows
    above it, so bar height h fills rows [height - h, height).
    """

    def __init__(
        self,
        terminal: Terminal,
        sample_rate: int,
        state: Optional[RenderState] = None,
    ):
        self.terminal = terminal
        self.sample_rate = sample_rate
        self.state = state if state is not None else RenderState()

        self.frames_drawn = 0
        self.frames_dropped = 0
        self.last_min_level = 0
        self.last_max_level = 0
        self.last_cells_written = 0

    def render(self, snapshot: SpectrumSnapshot) -> bool:
        """Draw one frame. Returns False when the frame was dropped."""
        width, rows = self.terminal.size()
        height = rows - 1
        if width < 2 or height < 1:
            _LOG.debug("Terminal too small to draw (%dx%d)", width, rows)
            return self._drop()

        state = self.state
        if state.geometry_changed(width, height):
            _LOG.debug("Geometry %dx%d -> %dx%d, full clear", state.width, state.height, width, height)
            self.terminal.clear()
            self.terminal.set_cursor_visible(False)
            state.reset(width, height)

        levels = bar_levels(snapshot.decibels, width, height, state.max_columns)
        if levels.size:
            self.last_min_level = int(levels.min())
            self.last_max_level = int(levels.max())

        # Geometry may have moved while the levels were computed
        if self.terminal.size() != (width, rows):
            _LOG.debug("Terminal resized mid-frame, skipping")
            return self._drop()

        cells = 0
        try:
            for x, level in enumerate(levels):
                old = int(state.last_bar_height[x])
                new = int(level)
                if new != old:
                    cells += self._update_column(x, old, new, height)
                    state.last_bar_height[x] = new
            self._draw_labels(snapshot, width, height, levels.size, snapshot.window_size)
        except TerminalGeometryError as e:
            _LOG.debug("Dropping frame: %s", e)
            return self._drop()

        self.terminal.flush()
        self.frames_drawn += 1
        self.last_cells_written = cells
        _LOG.debug(
            "Frame %d: %d cells, bar levels %d..%d",
            self.frames_drawn, cells, self.last_min_level, self.last_max_level,
        )
        return True

    def _update_column(self, x: int, old: int, new: int, height: int) -> int:
        term = self.terminal
        if new > old:
            for y in range(old + 1, new + 1):
                term.put_cell(x, height - y, BAR_CHAR, color_for(y * 100 // height))
            return new - old
        for y in range(new + 1, old + 1):
            term.put_cell(x, height - y, BLANK_CHAR)
        return old - new

    def high_end_khz(self, columns: int, window_size: int, width: int) -> float:
        """Frequency at the upper edge of the last drawn column."""
        step = max(1, window_size // width)
        last_bin = min(columns * step, window_size - 1)
        return last_bin * self.sample_rate / window_size / 1000.0

    def _draw_labels(self, snapshot: SpectrumSnapshot, width: int, height: int,
                     columns: int, window_size: int) -> None:
        # The whole label row is rewritten each frame so a shorter status
        # never leaves characters of the previous one behind.
        row_len = width - 1
        row = [BLANK_CHAR] * row_len

        def place(x: int, text: str) -> None:
            x = max(0, x)
            text = text[: max(0, row_len - x)]
            row[x:x + len(text)] = text

        place(0, "0kHz")
        high = f"{self.high_end_khz(columns, window_size, width):.0f}kHz"
        place(row_len - len(high), high)

        status = (
            f" dc:{snapshot.dc_offset:+.4f}"
            f" min:{snapshot.min_db:.2f}dB - max:{snapshot.max_db:.2f}dB "
        )
        place((width - len(status)) // 2, status)

        self.terminal.put_text(0, height, "".join(row), LABEL)

    def _drop(self) -> bool:
        # Whatever is on screen is now unknown; force a clear next frame
        self.terminal.discard()
        self.state.reset(0, 0)
        self.frames_dropped += 1
        return False
