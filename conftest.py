"""
Shared pytest fixtures for spectrograph tests.
"""
import pytest

from devices.local.terminal import TerminalGeometryError


class FakeTerminal:
    """Records writes instead of emitting escape codes."""

    def __init__(self, width=80, rows=25):
        self.sizes = []          # queued sizes returned before falling back to (width, rows)
        self.width = width
        self.rows = rows
        self.cells = []          # (x, y, char, color)
        self.texts = []          # (x, y, text, color)
        self.clears = 0
        self.cursor_visible = True
        self.flushes = 0
        self.discards = 0
        self.grid = {}
        self.screen_rows = {}    # y -> what the text writes left on that row

    def resize(self, width, rows):
        self.width, self.rows = width, rows

    def size(self):
        if self.sizes:
            return self.sizes.pop(0)
        return self.width, self.rows

    def clear(self):
        self.clears += 1
        self.grid.clear()
        self.screen_rows.clear()

    def set_cursor_visible(self, visible):
        self.cursor_visible = visible

    def put_cell(self, x, y, char, color=None):
        if not (0 <= x < self.width and 0 <= y < self.rows):
            raise TerminalGeometryError(f"({x}, {y})")
        self.cells.append((x, y, char, color))
        self.grid[(x, y)] = char

    def put_text(self, x, y, text, color=None):
        if not (0 <= x < self.width and 0 <= y < self.rows):
            raise TerminalGeometryError(f"({x}, {y})")
        self.texts.append((x, y, text, color))
        line = self.screen_rows.get(y, " " * self.width)
        line = line[:x] + text + line[x + len(text):]
        self.screen_rows[y] = line[: self.width]

    def flush(self):
        self.flushes += 1

    def discard(self):
        self.discards += 1

    def row_text(self, y):
        return self.screen_rows.get(y, " " * self.width)

    def reset_log(self):
        self.cells.clear()
        self.texts.clear()

    def column_height(self, x):
        """Number of filled cells in column x."""
        return sum(1 for (cx, _), ch in self.grid.items() if cx == x and ch == "█")


class FakeClock:
    def __init__(self, start=0.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def terminal():
    return FakeTerminal()


@pytest.fixture
def clock():
    return FakeClock(start=100.0)
