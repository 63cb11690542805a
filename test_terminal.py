"""
Tests for the ANSI terminal device.
"""
import io
import os

import pytest

from devices.local import terminal as terminal_mod
from devices.local.terminal import AnsiTerminal, KeyWatcher, TerminalGeometryError


@pytest.fixture
def term(monkeypatch):
    monkeypatch.setattr(
        terminal_mod.shutil, "get_terminal_size",
        lambda fallback=(80, 24): os.terminal_size((20, 10)),
    )
    out = io.StringIO()
    return AnsiTerminal(out=out), out


class TestAnsiTerminal:

    def test_size(self, term):
        t, _ = term
        assert t.size() == (20, 10)

    def test_writes_are_buffered_until_flush(self, term):
        t, out = term
        t.put_cell(0, 0, "█", "hot")
        assert out.getvalue() == ""
        t.flush()
        assert out.getvalue() == "\033[1;1H\033[91m█"

    def test_text_is_clipped_at_right_edge(self, term):
        t, out = term
        t.put_text(17, 9, "0123456", "label")
        t.flush()
        assert out.getvalue() == "\033[10;18H\033[97m012"

    def test_out_of_range_raises(self, term):
        t, _ = term
        with pytest.raises(TerminalGeometryError):
            t.put_cell(20, 0, "x")
        with pytest.raises(TerminalGeometryError):
            t.put_text(0, -1, "x")

    def test_cursor_and_clear(self, term):
        t, out = term
        t.clear()
        t.set_cursor_visible(False)
        t.flush()
        assert "\033[2J" in out.getvalue()
        assert out.getvalue().endswith("\033[?25l")

    def test_discard_drops_pending(self, term):
        t, out = term
        t.put_cell(1, 1, "x")
        t.discard()
        t.flush()
        assert out.getvalue() == ""

    def test_restore_shows_cursor(self, term):
        t, out = term
        t.restore()
        assert "\033[?25h" in out.getvalue()
        assert "\033[0m" in out.getvalue()


class TestKeyWatcher:

    def test_non_tty_never_reports_keys(self):
        with KeyWatcher(io.StringIO()) as keys:
            assert keys.key_pressed() is False
