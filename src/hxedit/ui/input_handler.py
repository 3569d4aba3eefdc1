"""
Input handler module translating curses keys into editor actions.

Keys arrive as returned by ``window.get_wch()``: ``str`` for characters
(control keys included) and ``int`` for function keys. Bindings follow
Emacs: a ``C-x`` prefix, and Meta sent as ESC followed by the key.
"""

import curses
import logging
from typing import Callable, Dict, Final, Optional, Union

from ..app.actions import Action, ActionKind
from ..app.controller import EditController
from ..app.modes import NormalMode

logger = logging.getLogger(__name__)

Key = Union[str, int]

ESC: Final[str] = '\x1b'
PASTE_START: Final[str] = '[200~'
PASTE_END: Final[str] = ESC + '[201~'
ENTER_KEYS: Final = ('\n', '\r', curses.KEY_ENTER)
BACKSPACE_KEYS: Final = ('\x7f', '\x08', curses.KEY_BACKSPACE)


def ctrl(char: str) -> str:
    """Return the control character for a letter, e.g. ctrl('f') == '\\x06'."""

    return chr(ord(char) & 0x1f)


class InputHandler:
    """Decodes keys into actions for an edit controller."""

    def __init__(self, controller: EditController, read_key: Callable[[], Optional[Key]]) -> None:
        self.controller = controller
        self.read_key = read_key
        self.ctrl_x_pending = False
        self.key_bindings: Dict[Key, ActionKind] = self._setup_bindings()
        self.meta_bindings: Dict[str, ActionKind] = self._setup_meta_bindings()
        self.ctrl_x_bindings: Dict[Key, ActionKind] = self._setup_ctrl_x_bindings()

    def _setup_bindings(self) -> Dict[Key, ActionKind]:
        """Set up the normal mode key bindings."""

        return {
            ctrl('f'): ActionKind.CURSOR_RIGHT,
            ctrl('b'): ActionKind.CURSOR_LEFT,
            ctrl('n'): ActionKind.CURSOR_DOWN,
            ctrl('p'): ActionKind.CURSOR_UP,
            ctrl('a'): ActionKind.CURSOR_HOME,
            ctrl('e'): ActionKind.CURSOR_END,
            ctrl('v'): ActionKind.PAGE_DOWN,
            curses.KEY_UP: ActionKind.CURSOR_UP,
            curses.KEY_DOWN: ActionKind.CURSOR_DOWN,
            curses.KEY_LEFT: ActionKind.CURSOR_LEFT,
            curses.KEY_RIGHT: ActionKind.CURSOR_RIGHT,
            curses.KEY_HOME: ActionKind.CURSOR_HOME,
            curses.KEY_END: ActionKind.CURSOR_END,
            curses.KEY_PPAGE: ActionKind.PAGE_UP,
            curses.KEY_NPAGE: ActionKind.PAGE_DOWN,

            curses.KEY_SR: ActionKind.SELECT_UP,  # Shift + Up
            curses.KEY_SF: ActionKind.SELECT_DOWN,  # Shift + Down
            curses.KEY_SLEFT: ActionKind.SELECT_LEFT,
            curses.KEY_SRIGHT: ActionKind.SELECT_RIGHT,
            '\x00': ActionKind.START_SELECTION,  # C-SPC

            '\t': ActionKind.TOGGLE_MODE,
            curses.KEY_IC: ActionKind.TOGGLE_EDIT_MODE,
            curses.KEY_F2: ActionKind.TOGGLE_ENCODING,

            ctrl('d'): ActionKind.DELETE,
            curses.KEY_DC: ActionKind.DELETE,
            ctrl('g'): ActionKind.CANCEL,

            ctrl('w'): ActionKind.CUT,
            ctrl('y'): ActionKind.PASTE,
            ctrl('u'): ActionKind.UNDO,
            '\x1f': ActionKind.REDO,  # C-/ and C-_

            ctrl('s'): ActionKind.START_SEARCH,
            ctrl('r'): ActionKind.START_SEARCH_BACK,
        }

    def _setup_meta_bindings(self) -> Dict[str, ActionKind]:
        return {
            'v': ActionKind.PAGE_UP,
            '<': ActionKind.GOTO_BEGINNING,
            '>': ActionKind.GOTO_END,
            'w': ActionKind.COPY,
            'W': ActionKind.COPY_HEX,
            '%': ActionKind.START_REPLACE,
            'g': ActionKind.START_GOTO,
            'x': ActionKind.EXECUTE_COMMAND,
        }

    def _setup_ctrl_x_bindings(self) -> Dict[Key, ActionKind]:
        return {
            ctrl('c'): ActionKind.QUIT,
            ctrl('s'): ActionKind.SAVE,
            ctrl('w'): ActionKind.SAVE_AS,
            ctrl('f'): ActionKind.OPEN_FILE,
            'k': ActionKind.KILL_BUFFER,
            'h': ActionKind.SELECT_ALL,
        }

    @property
    def normal_mode(self) -> bool:
        return isinstance(self.controller.mode, NormalMode)

    def handle_key(self, key: Key) -> Optional[Action]:
        """Translate one key (plus any keys it pulls in) into an action."""

        if key == curses.KEY_RESIZE:
            return None

        if self.ctrl_x_pending:
            self.ctrl_x_pending = False
            return Action(self.ctrl_x_bindings.get(key, ActionKind.CANCEL))

        if key == ESC:
            return self._handle_escape()

        if key in ENTER_KEYS:
            return Action(ActionKind.ENTER)
        if key in BACKSPACE_KEYS:
            return Action(ActionKind.BACKSPACE)

        if not self.normal_mode:
            return self._handle_elevated_key(key)

        if key == ctrl('x'):
            self.ctrl_x_pending = True
            self.controller.status_message = "C-x-"
            return None

        kind = self.key_bindings.get(key)
        if kind is not None:
            return Action(kind)

        return self._char_action(key)

    def _handle_elevated_key(self, key: Key) -> Optional[Action]:
        if key == ctrl('g'):
            return Action(ActionKind.CANCEL)
        if key == ctrl('s'):
            return Action(ActionKind.SEARCH_NEXT)
        if key == ctrl('r'):
            return Action(ActionKind.SEARCH_PREV)
        if key == curses.KEY_DC:
            return Action(ActionKind.DELETE)

        return self._char_action(key)

    def _char_action(self, key: Key) -> Optional[Action]:
        if isinstance(key, str) and len(key) == 1 and key.isprintable():
            return Action(ActionKind.CHAR, char=key)

        logger.debug("Unbound key %r", key)
        return None

    def _handle_escape(self) -> Optional[Action]:
        """Handle ESC: a lone ESC cancels, ESC + key is Meta, ESC [200~ starts a paste."""

        follow = self.read_key()
        if follow is None:
            return Action(ActionKind.CANCEL)

        if follow == '[':
            return self._read_bracketed_paste()

        if not self.normal_mode:
            return None

        if isinstance(follow, str):
            kind = self.meta_bindings.get(follow)
            if kind is not None:
                return Action(kind)

        logger.debug("Unbound meta key %r", follow)
        return None

    def _read_bracketed_paste(self) -> Optional[Action]:
        marker = '['
        while len(marker) < len(PASTE_START):
            key = self.read_key()
            if not isinstance(key, str):
                return None
            marker += key
            if not PASTE_START.startswith(marker):
                return None

        text = ''
        while not text.endswith(PASTE_END):
            key = self.read_key()
            if key is None:
                break
            if isinstance(key, str):
                text += key

        if text.endswith(PASTE_END):
            text = text[:-len(PASTE_END)]

        return Action(ActionKind.PASTE_TEXT, text=text.replace('\r', '\n'))
