from __future__ import annotations

import curses
from typing import List, Tuple

from hxedit.ui.window import safe_addstr


class FakeWindow:
    def __init__(self, height: int, width: int, fail: bool = False) -> None:
        self.size = (height, width)
        self.fail = fail
        self.writes: List[Tuple[int, int, str, int]] = []

    def getmaxyx(self) -> Tuple[int, int]:
        return self.size

    def addstr(self, y: int, x: int, text: str, attr: int = 0) -> None:
        if self.fail:
            raise curses.error("addwstr() returned ERR")
        self.writes.append((y, x, text, attr))


def test_safe_addstr_truncates_to_width() -> None:
    window = FakeWindow(5, 10)

    safe_addstr(window, 1, 6, "ABCDEFG", 3)

    assert window.writes == [(1, 6, "ABCD", 3)]


def test_safe_addstr_skips_offscreen_positions() -> None:
    window = FakeWindow(5, 10)

    safe_addstr(window, 5, 0, "x")
    safe_addstr(window, 0, 10, "x")

    assert window.writes == []


def test_safe_addstr_ignores_bottom_right_error() -> None:
    window = FakeWindow(5, 10, fail=True)

    safe_addstr(window, 4, 9, "x")
