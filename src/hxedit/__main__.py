"""
Entry point for hxedit.
"""

import argparse
import curses
import logging
import os
import sys
from typing import List, Optional

from .app.actions import Action
from .app.controller import EditController
from .config import EditorConfig, load_config
from .core.buffer import ByteBuffer
from .core.encoding import CharEncoding
from .log import setup_logging
from .ui.input_handler import InputHandler, Key
from .ui.window import WindowManager
from .utils.clipboard import SystemClipboard

logger = logging.getLogger(__name__)

KEY_TIMEOUT_MS = 100
FOLLOW_KEY_TIMEOUT_MS = 25
BRACKETED_PASTE_ON = "\x1b[?2004h"
BRACKETED_PASTE_OFF = "\x1b[?2004l"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="hxedit - Terminal Hex Editor"
    )
    parser.add_argument(
        "file",
        nargs="?",
        type=str,
        help="File to open; data is read from stdin when it is piped"
    )
    parser.add_argument(
        "-b", "--bytes-per-row",
        type=int,
        help="Bytes shown per row (1-64)"
    )
    parser.add_argument(
        "-r", "--readonly",
        action="store_true",
        help="Open the buffer read-only"
    )
    parser.add_argument(
        "--encoding",
        type=str,
        help="Text column encoding (UTF-8, UTF-16LE, UTF-16BE, Shift_JIS, EUC-JP, Latin-1)"
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to a TOML config file"
    )
    return parser.parse_args(argv)


def apply_args(config: EditorConfig, args: argparse.Namespace) -> EditorConfig:
    """Let command line flags override the config file."""

    if args.bytes_per_row is not None:
        if not 1 <= args.bytes_per_row <= 64:
            raise ValueError("--bytes-per-row must be between 1 and 64")
        config.bytes_per_row = args.bytes_per_row
    if args.encoding:
        config.encoding = CharEncoding.from_name(args.encoding)

    return config


def load_initial_buffer(path: Optional[str], stdin_data: Optional[bytes], readonly: bool) -> ByteBuffer:
    """Build the starting buffer from piped data, an existing file, or a new path."""

    if stdin_data is not None:
        return ByteBuffer(stdin_data, readonly=readonly)

    if path is None:
        return ByteBuffer(readonly=readonly)

    if not os.path.exists(path):
        logger.info("Creating new file %s", path)
        return ByteBuffer(path=path, readonly=readonly)

    return ByteBuffer.open(path, readonly=readonly)


def read_piped_stdin() -> Optional[bytes]:
    """Read piped stdin and reattach the terminal so curses can use it."""

    if sys.stdin.isatty():
        return None

    data = sys.stdin.buffer.read()
    tty = os.open("/dev/tty", os.O_RDONLY)
    os.dup2(tty, sys.stdin.fileno())
    os.close(tty)

    return data


class EditorSession:
    """Owns the controller and the curses front end for one run."""

    def __init__(self, stdscr: 'curses.window', controller: EditController) -> None:
        self.stdscr = stdscr
        self.controller = controller
        self.window_manager = WindowManager(stdscr)
        self.input_handler = InputHandler(controller, self.read_follow_key)

    def read_key(self) -> Optional[Key]:
        try:
            return self.stdscr.get_wch()
        except curses.error:
            return None

    def read_follow_key(self) -> Optional[Key]:
        """Read the rest of an escape sequence without waiting a full tick."""

        self.stdscr.timeout(FOLLOW_KEY_TIMEOUT_MS)
        try:
            return self.read_key()
        finally:
            self.stdscr.timeout(KEY_TIMEOUT_MS)

    def step(self, key: Optional[Key]) -> None:
        if key is None:
            return

        action: Optional[Action] = self.input_handler.handle_key(key)
        if action is not None:
            self.controller.execute(action)

    def run(self) -> None:
        while not self.controller.should_quit:
            self.window_manager.check_resize()
            self.window_manager.refresh_all(self.controller)

            try:
                key = self.read_key()
            except KeyboardInterrupt:
                break

            self.step(key)

        logger.info("Quit")


def _write_terminal(sequence: str) -> None:
    sys.stdout.write(sequence)
    sys.stdout.flush()


def main_with_args(stdscr: 'curses.window', controller: EditController) -> None:
    """Set up the screen and run the editor loop."""

    curses.curs_set(0)
    stdscr.keypad(True)
    stdscr.timeout(KEY_TIMEOUT_MS)

    _write_terminal(BRACKETED_PASTE_ON)
    try:
        EditorSession(stdscr, controller).run()
    finally:
        _write_terminal(BRACKETED_PASTE_OFF)


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the application."""
    args = parse_args(argv)
    config = load_config(args.config)
    setup_logging(config)

    try:
        config = apply_args(config, args)
        stdin_data = read_piped_stdin()
        buffer = load_initial_buffer(args.file, stdin_data, args.readonly)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    controller = EditController(
        buffer,
        bytes_per_row=config.bytes_per_row,
        encoding=config.encoding,
        edit_mode=config.edit_mode,
        view_mode=config.view_mode,
        clipboard=SystemClipboard(use_system=config.clipboard, use_osc52=config.clipboard),
    )
    if stdin_data is None and args.file and not os.path.exists(args.file):
        controller.status_message = f"Created new file: {args.file}"

    os.environ.setdefault("ESCDELAY", str(FOLLOW_KEY_TIMEOUT_MS))
    try:
        curses.wrapper(main_with_args, controller)
    except Exception as e:
        logger.exception("Fatal error")
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
