# devices/local/terminal.py
# ANSI character-grid output plus non-blocking key detection.
from __future__ import annotations

import logging
import os
import select
import shutil
import sys
from typing import Dict, List, Optional, TextIO, Tuple

_LOG = logging.getLogger(__name__)

ESC = "\033["
RESET = "\033[0m"

# Palette names used by the renderer -> ANSI foreground codes
PALETTE: Dict[str, str] = {
    "hot": "\033[91m",
    "medium": "\033[93m",
    "quiet": "\033[92m",
    "label": "\033[97m",
}


class TerminalGeometryError(IndexError):
    """A write addressed a cell outside the current grid."""


class AnsiTerminal:
    """
    Character grid on an ANSI terminal.

    Writes are buffered and sent with a single write() on flush(), so one
    frame costs one syscall. Coordinates are 0-based (column, row).
    """

    def __init__(self, out: Optional[TextIO] = None):
        self._out = out if out is not None else sys.stdout
        self._buf: List[str] = []
        self._width, self._height = self.size()

    def size(self) -> Tuple[int, int]:
        """Current (columns, rows); also becomes the bounds for writes."""
        geo = shutil.get_terminal_size(fallback=(80, 24))
        self._width, self._height = geo.columns, geo.lines
        return self._width, self._height

    def clear(self) -> None:
        self._buf.append(f"{RESET}{ESC}2J{ESC}H")

    def set_cursor_visible(self, visible: bool) -> None:
        self._buf.append(f"{ESC}?25h" if visible else f"{ESC}?25l")

    def put_cell(self, x: int, y: int, char: str, color: Optional[str] = None) -> None:
        self._check(x, y)
        self._buf.append(f"{ESC}{y + 1};{x + 1}H{PALETTE.get(color, '')}{char}")

    def put_text(self, x: int, y: int, text: str, color: Optional[str] = None) -> None:
        self._check(x, y)
        # Clip to the right edge instead of wrapping onto the next row
        text = text[: max(0, self._width - x)]
        self._buf.append(f"{ESC}{y + 1};{x + 1}H{PALETTE.get(color, '')}{text}")

    def reset_style(self) -> None:
        self._buf.append(RESET)

    def flush(self) -> None:
        if not self._buf:
            return
        data = "".join(self._buf)
        self._buf.clear()
        self._out.write(data)
        self._out.flush()

    def discard(self) -> None:
        """Drop buffered writes of an abandoned frame."""
        self._buf.clear()

    def restore(self) -> None:
        self.reset_style()
        self.set_cursor_visible(True)
        self._buf.append(f"{ESC}{self._height};1H\n")
        self.flush()

    def _check(self, x: int, y: int) -> None:
        if not (0 <= x < self._width and 0 <= y < self._height):
            raise TerminalGeometryError(
                f"cell ({x}, {y}) outside {self._width}x{self._height}"
            )


class KeyWatcher:
    """
    Puts stdin in cbreak mode so a single key press can be polled with
    select(). Does nothing when stdin is not a tty.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self._in = stream if stream is not None else sys.stdin
        self._old = None
        self._fd: Optional[int] = None

    def __enter__(self) -> "KeyWatcher":
        try:
            fd = self._in.fileno()
        except (AttributeError, OSError, ValueError):
            return self
        if not os.isatty(fd):
            return self

        import termios
        import tty

        self._fd = fd
        self._old = termios.tcgetattr(fd)
        tty.setcbreak(fd)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._fd is not None and self._old is not None:
            import termios

            termios.tcsetattr(self._fd, termios.TCSAFLUSH, self._old)
            self._fd = None
            self._old = None

    def key_pressed(self, timeout: float = 0.0) -> bool:
        if self._fd is None:
            return False
        rlist, _, _ = select.select([self._in], [], [], timeout)
        if not rlist:
            return False
        key = os.read(self._fd, 1)
        _LOG.debug("Key pressed: %r", key)
        return True
