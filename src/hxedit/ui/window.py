"""
Window management module for the hex editor UI.
"""

import curses
from typing import Dict, Final

from ..app.controller import EditController
from .hex_view import CellStyle, Highlight, HexView, Segment

MIN_HEIGHT: Final[int] = 3
MIN_WIDTH: Final[int] = 20

STYLE_PAIRS: Final[Dict[CellStyle, int]] = {
    CellStyle.HEADER: 2,
    CellStyle.ADDRESS: 3,
    CellStyle.ZERO: 4,
    CellStyle.HIGH: 5,
    CellStyle.PRINTABLE: 6,
    CellStyle.NORMAL: 7,
    CellStyle.TEXT: 8,
}
STATUS_PAIR: Final[int] = 1
CURSOR_PAIR: Final[int] = 9
SELECTION_PAIR: Final[int] = 10


def safe_addstr(window: 'curses.window', y: int, x: int, string: str, attr: int = 0) -> None:
    """Safely add a string to a window, truncating if necessary."""

    height, width = window.getmaxyx()
    if y >= height or x >= width:
        return

    available = width - x
    if available <= 0:
        return

    if len(string) > available:
        string = string[:available]

    try:
        window.addstr(y, x, string, attr)
    except curses.error:
        # Writing the bottom-right cell moves the cursor off screen.
        pass


class WindowManager:
    """Paints the hex view and status line for an edit controller."""

    def __init__(self, stdscr: 'curses.window') -> None:
        self.stdscr = stdscr
        self.height, self.width = stdscr.getmaxyx()

        if self.height < MIN_HEIGHT or self.width < MIN_WIDTH:
            raise ValueError(
                f"Terminal too small. Minimum size: {MIN_WIDTH}x{MIN_HEIGHT}, "
                f"Current size: {self.width}x{self.height}"
            )

        self._init_colors()

    def _init_colors(self) -> None:
        curses.start_color()
        try:
            curses.use_default_colors()
        except curses.error:
            pass

        curses.init_pair(STATUS_PAIR, curses.COLOR_BLACK, curses.COLOR_WHITE)  # Status bar
        curses.init_pair(2, curses.COLOR_YELLOW, -1)  # Header
        curses.init_pair(3, curses.COLOR_CYAN, -1)  # Addresses
        curses.init_pair(4, curses.COLOR_BLUE, -1)  # 0x00
        curses.init_pair(5, curses.COLOR_RED, -1)  # 0xFF
        curses.init_pair(6, curses.COLOR_GREEN, -1)  # Printable bytes
        curses.init_pair(7, curses.COLOR_WHITE, -1)  # Other bytes
        curses.init_pair(8, curses.COLOR_GREEN, -1)  # Text column
        curses.init_pair(CURSOR_PAIR, curses.COLOR_BLACK, curses.COLOR_YELLOW)  # Cursor
        curses.init_pair(SELECTION_PAIR, curses.COLOR_BLACK, curses.COLOR_CYAN)  # Selection

    @property
    def visible_rows(self) -> int:
        """Rows available for data, below the header and above the status line."""

        return max(1, self.height - 2)

    def resize(self) -> None:
        self.height, self.width = self.stdscr.getmaxyx()
        curses.resizeterm(self.height, self.width)

    def check_resize(self) -> None:
        if self.stdscr.getmaxyx() != (self.height, self.width):
            self.resize()

    def segment_attr(self, segment: Segment) -> int:
        if segment.highlight is Highlight.CURSOR:
            return curses.color_pair(CURSOR_PAIR) | curses.A_BOLD
        if segment.highlight is Highlight.SELECTION:
            return curses.color_pair(SELECTION_PAIR)

        return curses.color_pair(STYLE_PAIRS[segment.style])

    def refresh_all(self, controller: EditController) -> None:
        """Redraw the whole screen from the controller state."""

        controller.set_visible_rows(self.visible_rows)
        self.stdscr.erase()

        if self.height < MIN_HEIGHT or self.width < MIN_WIDTH:
            safe_addstr(self.stdscr, 0, 0, "Terminal too small")
            self.stdscr.noutrefresh()
            curses.doupdate()
            return

        view = HexView.from_controller(controller)
        safe_addstr(self.stdscr, 0, 0, view.header(), curses.color_pair(STYLE_PAIRS[CellStyle.HEADER]) | curses.A_BOLD)

        for row_index, segments in enumerate(view.rows(self.visible_rows)):
            if segments is None:
                break

            for segment in segments:
                safe_addstr(self.stdscr, row_index + 1, segment.x, segment.text, self.segment_attr(segment))

        self.draw_status(controller)
        self.stdscr.noutrefresh()
        curses.doupdate()

    def draw_status(self, controller: EditController) -> None:
        status = controller.status_line()
        line = status.ljust(self.width - 1)
        safe_addstr(self.stdscr, self.height - 1, 0, line, curses.color_pair(STATUS_PAIR))
