"""
Logical actions understood by the edit controller.

Key decoding produces these; the controller never sees raw key codes.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class ActionKind(Enum):
    # Motion
    CURSOR_UP = auto()
    CURSOR_DOWN = auto()
    CURSOR_LEFT = auto()
    CURSOR_RIGHT = auto()
    CURSOR_HOME = auto()
    CURSOR_END = auto()
    PAGE_UP = auto()
    PAGE_DOWN = auto()
    GOTO_BEGINNING = auto()
    GOTO_END = auto()

    # Selection
    START_SELECTION = auto()
    CLEAR_SELECTION = auto()
    SELECT_UP = auto()
    SELECT_DOWN = auto()
    SELECT_LEFT = auto()
    SELECT_RIGHT = auto()
    SELECT_ALL = auto()

    # Input
    CHAR = auto()
    INPUT_HEX = auto()
    INPUT_ASCII = auto()
    PASTE_TEXT = auto()
    DELETE = auto()
    BACKSPACE = auto()
    ENTER = auto()
    CANCEL = auto()

    # Editing
    UNDO = auto()
    REDO = auto()
    COPY = auto()
    COPY_HEX = auto()
    CUT = auto()
    PASTE = auto()

    # View
    TOGGLE_MODE = auto()
    TOGGLE_EDIT_MODE = auto()
    TOGGLE_ENCODING = auto()
    SET_BYTES_PER_ROW = auto()

    # Modes
    START_SEARCH = auto()
    START_SEARCH_BACK = auto()
    SEARCH_NEXT = auto()
    SEARCH_PREV = auto()
    START_REPLACE = auto()
    START_GOTO = auto()
    OPEN_FILE = auto()
    SAVE = auto()
    SAVE_AS = auto()
    EXECUTE_COMMAND = auto()
    KILL_BUFFER = auto()
    QUIT = auto()


@dataclass(frozen=True)
class Action:
    """A logical action with its optional payload."""
    kind: ActionKind
    char: Optional[str] = None
    text: Optional[str] = None
    value: Optional[int] = None


def char_action(char: str) -> Action:
    return Action(ActionKind.CHAR, char=char)
