"""
Edit controller: cursor, selection and the modal editing state machine.

The controller receives logical actions and applies them to a ByteBuffer.
It owns no terminal state, so the whole editing behaviour can be driven
from tests with plain Action values.
"""

import logging
import math
import os
import struct
from typing import Callable, Dict, Final, List, Optional, Tuple

from ..core.buffer import ByteBuffer
from ..core.encoding import CharEncoding, encode_char
from ..core.filetype import detect_file_type
from ..errors import ClipboardError, EncodeError, HexEditError, ParseError
from ..utils.clipboard import Clipboard, HexFormat, SystemClipboard, format_hex
from ..utils.hex_utils import (
    format_offset,
    normalize_fullwidth,
    normalize_hex_char,
    parse_address,
    parse_byte,
    parse_number,
    text_to_bytes,
)
from ..utils.search import find_backward, find_forward, search_next, search_prev
from .actions import Action, ActionKind
from .modes import (
    ConfirmMode,
    EditMode,
    HexEntry,
    HexFirstNibble,
    HexIdle,
    Mode,
    NormalMode,
    PendingAction,
    PromptKind,
    PromptMode,
    ReplaceMode,
    ReplaceStage,
    SearchMode,
    ViewMode,
)

logger = logging.getLogger(__name__)

NEW_BUFFER_NAME: Final[str] = "[New]"
CONFIRM_PROMPT: Final[str] = "Save changes? (y)es (n)o (c)ancel"
READONLY_MESSAGE: Final[str] = "Buffer is read-only"
NO_SELECTION_MESSAGE: Final[str] = "No selection"
HELP_MESSAGE: Final[str] = (
    "Commands: fill(f) insert(i) goto(g) save(s) saveas(w) open(o) "
    "kill(k) encoding(e) quit(q) help(?)"
)
COMMAND_ARG_LABELS: Final[Dict[str, str]] = {
    "fill": "Fill with byte (hex): ",
    "insert": "Insert (count [byte]): ",
}

MUTATING_ACTIONS: Final = frozenset({
    ActionKind.INPUT_HEX,
    ActionKind.INPUT_ASCII,
    ActionKind.CHAR,
    ActionKind.PASTE,
    ActionKind.PASTE_TEXT,
    ActionKind.DELETE,
    ActionKind.BACKSPACE,
    ActionKind.CUT,
    ActionKind.UNDO,
    ActionKind.REDO,
    ActionKind.START_REPLACE,
})


def format_selection_info(data: bytes) -> str:
    """Describe a selected byte range and its numeric interpretations."""

    size = len(data)
    parts = [f"{size} bytes"]

    if size == 1:
        parts.append(f"u8:{data[0]} i8:{struct.unpack('b', data)[0]}")
    elif size == 2:
        parts.append(f"u16 LE:{struct.unpack('<H', data)[0]} BE:{struct.unpack('>H', data)[0]}")
        parts.append(f"i16 LE:{struct.unpack('<h', data)[0]} BE:{struct.unpack('>h', data)[0]}")
    elif size == 3:
        parts.append(f"u24 LE:{int.from_bytes(data, 'little')} BE:{int.from_bytes(data, 'big')}")
    elif size == 4:
        parts.append(f"u32 LE:{struct.unpack('<I', data)[0]} BE:{struct.unpack('>I', data)[0]}")
        f_le, f_be = struct.unpack('<f', data)[0], struct.unpack('>f', data)[0]
        if math.isfinite(f_le) or math.isfinite(f_be):
            parts.append(f"f32 LE:{f_le:.6f} BE:{f_be:.6f}")
    elif 5 <= size <= 7:
        parts.append(f"({format_hex(data)})")
    elif size == 8:
        parts.append(f"u64 LE:{struct.unpack('<Q', data)[0]} BE:{struct.unpack('>Q', data)[0]}")
        f_le, f_be = struct.unpack('<d', data)[0], struct.unpack('>d', data)[0]
        if math.isfinite(f_le) or math.isfinite(f_be):
            parts.append(f"f64 LE:{f_le:.6f} BE:{f_be:.6f}")

    return ' | '.join(parts)


class EditController:
    """Applies logical actions to a byte buffer."""

    def __init__(self, buffer: Optional[ByteBuffer] = None, bytes_per_row: int = 16,
                 encoding: CharEncoding = CharEncoding.UTF8,
                 edit_mode: EditMode = EditMode.OVERWRITE,
                 view_mode: ViewMode = ViewMode.HEX,
                 clipboard: Optional[Clipboard] = None) -> None:
        self.buffer = buffer if buffer is not None else ByteBuffer()
        self.bytes_per_row = bytes_per_row
        self.visible_rows = 1
        self.encoding = encoding
        self.edit_mode = edit_mode
        self.view_mode = view_mode
        self.clipboard = clipboard if clipboard is not None else SystemClipboard(use_system=False, use_osc52=False)

        self.cursor = 0
        self.offset = 0
        self.selection: Optional[Tuple[int, int]] = None
        self.selection_anchor: Optional[int] = None
        self.hex_entry: HexEntry = HexIdle()
        self.mode: Mode = NormalMode()
        self.last_search_query = ""
        self.status_message: Optional[str] = None
        self.should_quit = False
        self.file_type = detect_file_type(self.buffer.data, self.buffer.filename)

        self.normal_handlers: Dict[ActionKind, Callable[[Action], None]] = self._setup_handlers()

    def _setup_handlers(self) -> Dict[ActionKind, Callable[[Action], None]]:
        """Set up the normal mode action handlers."""

        return {
            ActionKind.CURSOR_UP: lambda a: self._move(self._cursor_up),
            ActionKind.CURSOR_DOWN: lambda a: self._move(self._cursor_down),
            ActionKind.CURSOR_LEFT: lambda a: self._move(self._cursor_left),
            ActionKind.CURSOR_RIGHT: lambda a: self._move(self._cursor_right),
            ActionKind.CURSOR_HOME: lambda a: self._move(self._cursor_home),
            ActionKind.CURSOR_END: lambda a: self._move(self._cursor_end),
            ActionKind.PAGE_UP: lambda a: self._move(self._page_up),
            ActionKind.PAGE_DOWN: lambda a: self._move(self._page_down),
            ActionKind.GOTO_BEGINNING: lambda a: self._move(self._goto_beginning),
            ActionKind.GOTO_END: lambda a: self._move(self._goto_end),

            ActionKind.START_SELECTION: lambda a: self.start_selection(),
            ActionKind.CLEAR_SELECTION: lambda a: self.clear_selection(),
            ActionKind.SELECT_UP: lambda a: self._select(self._cursor_up),
            ActionKind.SELECT_DOWN: lambda a: self._select(self._cursor_down),
            ActionKind.SELECT_LEFT: lambda a: self._select(self._cursor_left),
            ActionKind.SELECT_RIGHT: lambda a: self._select(self._cursor_right),
            ActionKind.SELECT_ALL: lambda a: self._select_all(),

            ActionKind.CHAR: self._handle_char,
            ActionKind.INPUT_HEX: lambda a: self.input_hex(a.char or ''),
            ActionKind.INPUT_ASCII: lambda a: self.input_ascii(a.char or ''),
            ActionKind.PASTE_TEXT: lambda a: self.paste_text(a.text or ''),
            ActionKind.DELETE: lambda a: self._delete_forward(),
            ActionKind.BACKSPACE: lambda a: self._delete_backward(),
            ActionKind.CANCEL: lambda a: self._cancel(),

            ActionKind.UNDO: lambda a: self._undo(),
            ActionKind.REDO: lambda a: self._redo(),
            ActionKind.COPY: lambda a: self._copy(),
            ActionKind.COPY_HEX: lambda a: self._copy_hex(),
            ActionKind.CUT: lambda a: self._cut(),
            ActionKind.PASTE: lambda a: self._paste(),

            ActionKind.TOGGLE_MODE: lambda a: self._toggle_view(),
            ActionKind.TOGGLE_EDIT_MODE: lambda a: self._toggle_edit_mode(),
            ActionKind.TOGGLE_ENCODING: lambda a: self._toggle_encoding(),
            ActionKind.SET_BYTES_PER_ROW: lambda a: self.set_bytes_per_row(a.value or 0),

            ActionKind.START_SEARCH: lambda a: self._enter_mode(SearchMode(anchor=self.cursor)),
            ActionKind.START_SEARCH_BACK: lambda a: self._enter_mode(SearchMode(anchor=self.cursor, backward=True)),
            ActionKind.SEARCH_NEXT: lambda a: self._repeat_search(backward=False),
            ActionKind.SEARCH_PREV: lambda a: self._repeat_search(backward=True),
            ActionKind.START_REPLACE: lambda a: self._enter_mode(ReplaceMode(anchor=self.cursor)),
            ActionKind.START_GOTO: lambda a: self._enter_mode(PromptMode(PromptKind.GOTO_ADDRESS)),
            ActionKind.OPEN_FILE: lambda a: self._enter_mode(PromptMode(PromptKind.OPEN_FILE)),
            ActionKind.SAVE_AS: lambda a: self._start_save_as(),
            ActionKind.SAVE: lambda a: self._save(),
            ActionKind.EXECUTE_COMMAND: lambda a: self._enter_mode(PromptMode(PromptKind.COMMAND)),
            ActionKind.KILL_BUFFER: lambda a: self._guard(PendingAction.KILL_BUFFER),
            ActionKind.QUIT: lambda a: self._guard(PendingAction.QUIT),
        }

    # Derived views of the current mode

    @property
    def search_active(self) -> bool:
        return isinstance(self.mode, SearchMode)

    @property
    def replace_state(self) -> Optional[ReplaceStage]:
        if isinstance(self.mode, ReplaceMode):
            return self.mode.stage

        return None

    @property
    def prompt_state(self) -> Optional[PromptKind]:
        if isinstance(self.mode, PromptMode):
            return self.mode.kind

        return None

    @property
    def confirm_state(self) -> Optional[PendingAction]:
        if isinstance(self.mode, ConfirmMode):
            return self.mode.pending

        return None

    # Dispatch

    def execute(self, action: Action) -> None:
        """Apply one logical action."""

        self.status_message = None

        if not self._is_hex_input(action):
            self.hex_entry = HexIdle()

        if isinstance(self.mode, SearchMode):
            self._handle_search(self.mode, action)
        elif isinstance(self.mode, ReplaceMode):
            self._handle_replace(self.mode, action)
        elif isinstance(self.mode, PromptMode):
            self._handle_prompt(self.mode, action)
        elif isinstance(self.mode, ConfirmMode):
            self._handle_confirm(self.mode, action)
        else:
            self._handle_normal(action)

    def _is_hex_input(self, action: Action) -> bool:
        if not isinstance(self.mode, NormalMode):
            return False
        if action.kind is ActionKind.INPUT_HEX:
            return True

        return action.kind is ActionKind.CHAR and self.view_mode is ViewMode.HEX

    def _enter_mode(self, mode: Mode) -> None:
        logger.debug("Mode %s -> %s", type(self.mode).__name__, type(mode).__name__)
        self.mode = mode

    def _exit_mode(self) -> None:
        self._enter_mode(NormalMode())

    def _handle_normal(self, action: Action) -> None:
        if action.kind in MUTATING_ACTIONS and self.buffer.readonly:
            self.status_message = READONLY_MESSAGE
            return

        handler = self.normal_handlers.get(action.kind)
        if handler is not None:
            handler(action)

    def _handle_char(self, action: Action) -> None:
        if not action.char:
            return

        if self.view_mode is ViewMode.HEX:
            self.input_hex(action.char)
            return

        self.input_ascii(action.char)

    # Cursor motion

    def set_visible_rows(self, rows: int) -> None:
        self.visible_rows = max(1, rows)
        self.ensure_cursor_visible()

    def set_bytes_per_row(self, value: int) -> None:
        if not 1 <= value <= 64:
            self.status_message = f"Invalid row width: {value}"
            return

        self.bytes_per_row = value
        self.offset = (self.offset // value) * value
        self.ensure_cursor_visible()

    def ensure_cursor_visible(self) -> None:
        """Scroll so that the cursor row lies within the visible rows."""

        cursor_row = self.cursor // self.bytes_per_row
        offset_row = self.offset // self.bytes_per_row
        rows = max(1, self.visible_rows)

        if cursor_row < offset_row:
            self.offset = cursor_row * self.bytes_per_row
        elif cursor_row >= offset_row + rows:
            self.offset = (cursor_row - rows + 1) * self.bytes_per_row

    def _move(self, motion: Callable[[], None]) -> None:
        motion()
        self.ensure_cursor_visible()
        self.update_selection()

    def _cursor_up(self) -> None:
        if self.cursor >= self.bytes_per_row:
            self.cursor -= self.bytes_per_row

    def _cursor_down(self) -> None:
        new_pos = self.cursor + self.bytes_per_row
        if new_pos < len(self.buffer):
            self.cursor = new_pos

    def _cursor_left(self) -> None:
        if self.cursor > 0:
            self.cursor -= 1

    def _cursor_right(self) -> None:
        if self.cursor < len(self.buffer):
            self.cursor += 1

    def _cursor_home(self) -> None:
        self.cursor = (self.cursor // self.bytes_per_row) * self.bytes_per_row

    def _cursor_end(self) -> None:
        row_start = (self.cursor // self.bytes_per_row) * self.bytes_per_row
        self.cursor = min(row_start + self.bytes_per_row, len(self.buffer))

    def _page_up(self) -> None:
        page_size = self.visible_rows * self.bytes_per_row
        self.cursor = max(0, self.cursor - page_size)
        self.offset = max(0, self.offset - page_size)

    def _page_down(self) -> None:
        page_size = self.visible_rows * self.bytes_per_row
        self.cursor = min(self.cursor + page_size, len(self.buffer))
        last_page = max(0, len(self.buffer) // self.bytes_per_row - self.visible_rows)
        self.offset = min(self.offset + page_size, last_page * self.bytes_per_row)

    def _goto_beginning(self) -> None:
        self.cursor = 0
        self.offset = 0

    def _goto_end(self) -> None:
        self.cursor = len(self.buffer)

    def _move_cursor_to(self, position: int) -> None:
        self.cursor = position
        self.ensure_cursor_visible()

    # Selection

    def start_selection(self) -> None:
        self.selection_anchor = self.cursor
        self.selection = (self.cursor, self.cursor)
        self.status_message = "Mark set"

    def clear_selection(self) -> None:
        self.selection_anchor = None
        self.selection = None

    def update_selection(self) -> None:
        """Extend the selection from the anchor to the cursor."""

        if self.selection_anchor is None:
            return

        self.selection = (min(self.selection_anchor, self.cursor), max(self.selection_anchor, self.cursor))

    def _select(self, motion: Callable[[], None]) -> None:
        if self.selection_anchor is None:
            self.selection_anchor = self.cursor

        self._move(motion)

    def _select_all(self) -> None:
        if not len(self.buffer):
            return

        self.selection_anchor = 0
        self.selection = (0, len(self.buffer) - 1)
        self.cursor = len(self.buffer) - 1
        self.ensure_cursor_visible()

    def _selected_range(self) -> Optional[Tuple[int, int]]:
        """Return the selection clipped to the buffer as a half-open range."""

        if self.selection is None:
            return None

        start, end = self.selection
        end = min(end + 1, len(self.buffer))
        if start >= end:
            return None

        return start, end

    # Byte entry

    def input_hex(self, char: str) -> None:
        """Enter one hex digit at the cursor."""

        digit_char = normalize_hex_char(char)
        if digit_char is None:
            return

        digit = int(digit_char, 16)

        if isinstance(self.hex_entry, HexFirstNibble):
            value = (self.hex_entry.digit << 4) | digit
            self.buffer.set(self.cursor, value)
            self.hex_entry = HexIdle()
            self._move(self._cursor_right)
            return

        at_eof = self.cursor >= len(self.buffer)
        if self.edit_mode is EditMode.INSERT:
            self.buffer.insert(self.cursor, digit << 4)
        elif at_eof:
            self.buffer.insert(self.cursor, digit << 4)
        else:
            low_nibble = (self.buffer.get(self.cursor) or 0) & 0x0F
            self.buffer.set(self.cursor, (digit << 4) | low_nibble)

        self.hex_entry = HexFirstNibble(digit)

    def input_ascii(self, char: str) -> None:
        """Encode one character in the active encoding and write it at the cursor."""

        try:
            data = encode_char(char, self.encoding)
        except EncodeError as e:
            logger.warning("%s", e)
            self.status_message = str(e)
            return

        if not data:
            return

        self._write_bytes(data)
        for _ in data:
            self._cursor_right()

        self.ensure_cursor_visible()

    def _write_bytes(self, data: bytes) -> None:
        """Write bytes at the cursor per edit mode without moving the cursor."""

        for i, value in enumerate(data):
            pos = self.cursor + i
            if self.edit_mode is EditMode.OVERWRITE and pos < len(self.buffer):
                self.buffer.set(pos, value)
            else:
                self.buffer.insert(pos, value)

    def _delete_range(self, start: int, end: int) -> None:
        for pos in reversed(range(start, end)):
            self.buffer.delete(pos)

    def _delete_forward(self) -> None:
        selected = self._selected_range()
        if selected is not None:
            self._delete_range(*selected)
            self.cursor = selected[0]
            self.clear_selection()
            self.ensure_cursor_visible()
            return

        if self.cursor < len(self.buffer):
            self.buffer.delete(self.cursor)

    def _delete_backward(self) -> None:
        if self._selected_range() is not None:
            self._delete_forward()
            return

        if self.cursor == 0:
            return

        self.cursor -= 1
        self.buffer.delete(self.cursor)
        self.ensure_cursor_visible()

    # Undo / redo

    def _clamp_cursor(self, position: int) -> int:
        return max(0, min(position, max(len(self.buffer) - 1, 0)))

    def _undo(self) -> None:
        position = self.buffer.undo()
        if position is None:
            self.status_message = "Nothing to undo"
            return

        self._move_cursor_to(self._clamp_cursor(position))
        self.status_message = "Undo"

    def _redo(self) -> None:
        position = self.buffer.redo()
        if position is None:
            self.status_message = "Nothing to redo"
            return

        self._move_cursor_to(self._clamp_cursor(position))
        self.status_message = "Redo"

    # Clipboard

    def _copy_to_clipboard(self, data: bytes) -> bool:
        try:
            self.clipboard.copy(format_hex(data, HexFormat.SPACED))
        except ClipboardError as e:
            logger.warning("Copy failed: %s", e)
            self.status_message = str(e)
            return False

        return True

    def _copy(self) -> None:
        selected = self._selected_range()
        if selected is None:
            self.status_message = NO_SELECTION_MESSAGE
            return

        data = self.buffer.get_range(*selected) or b''
        if self._copy_to_clipboard(data):
            self.status_message = f"Copied {len(data)} bytes"
            self.clear_selection()

    def _copy_hex(self) -> None:
        selected = self._selected_range()
        if selected is not None:
            data = self.buffer.get_range(*selected) or b''
        else:
            byte = self.buffer.get(self.cursor)
            if byte is None:
                return
            data = bytes([byte])

        if self._copy_to_clipboard(data):
            self.status_message = "Copied as HEX"
            self.clear_selection()

    def _cut(self) -> None:
        selected = self._selected_range()
        if selected is None:
            self.status_message = NO_SELECTION_MESSAGE
            return

        start, end = selected
        data = self.buffer.get_range(start, end) or b''
        if not self._copy_to_clipboard(data):
            return

        self._delete_range(start, end)
        self.cursor = start
        self.clear_selection()
        self.ensure_cursor_visible()
        self.status_message = f"Cut {len(data)} bytes"

    def _paste(self) -> None:
        try:
            text = self.clipboard.paste()
        except ClipboardError as e:
            self.status_message = str(e)
            return

        self.paste_text(text)

    def paste_text(self, text: str) -> None:
        """Write pasted text at the cursor, replacing any selection."""

        try:
            data = text_to_bytes(text, self.encoding)
        except EncodeError as e:
            self.status_message = str(e)
            return

        if not data:
            return

        selected = self._selected_range()
        if selected is not None:
            self._delete_range(*selected)
            self.cursor = selected[0]
            self.clear_selection()

        self._write_bytes(data)
        self.cursor += len(data)
        self.ensure_cursor_visible()
        self.status_message = f"Pasted {len(data)} bytes"

    # View toggles

    def _cancel(self) -> None:
        self.clear_selection()
        self.status_message = "Quit"

    def _toggle_view(self) -> None:
        self.view_mode = ViewMode.TEXT if self.view_mode is ViewMode.HEX else ViewMode.HEX

    def _toggle_edit_mode(self) -> None:
        self.edit_mode = EditMode.INSERT if self.edit_mode is EditMode.OVERWRITE else EditMode.OVERWRITE

    def _toggle_encoding(self) -> None:
        self.encoding = self.encoding.next()
        self.status_message = f"Encoding: {self.encoding.label}"

    # Search

    def _pattern_bytes(self, text: str) -> Optional[bytes]:
        """Resolve search or replace text to bytes, reporting encode failures."""

        try:
            return text_to_bytes(text, self.encoding)
        except EncodeError as e:
            self.status_message = str(e)
            return None

    def _find_and_report(self, query: str, backward: bool) -> bool:
        pattern = self._pattern_bytes(query)
        if not pattern:
            return False

        data = bytes(self.buffer.data)
        if backward:
            result = search_prev(data, pattern, self.cursor)
        else:
            result = search_next(data, pattern, self.cursor)

        logger.debug("Search %r backward=%s -> %s", query, backward, result)

        if result is None:
            self.status_message = "Not found"
            return False

        self._move_cursor_to(result.position)
        prefix = "Wrapped, found" if result.wrapped else "Found"
        self.status_message = f"{prefix} at {format_offset(result.position)}"
        return True

    def _repeat_search(self, backward: bool) -> None:
        if not self.last_search_query:
            self.status_message = "No previous search"
            return

        self._find_and_report(self.last_search_query, backward)

    def _incremental_search(self, mode: SearchMode) -> None:
        if not mode.query:
            mode.failing = False
            self._move_cursor_to(mode.anchor)
            return

        pattern = self._pattern_bytes(mode.query)
        if not pattern:
            mode.failing = True
            return

        data = bytes(self.buffer.data)
        if mode.backward:
            pos = find_backward(data, pattern, mode.anchor + len(pattern))
            if pos is None:
                pos = find_backward(data, pattern, len(data))
        else:
            pos = find_forward(data, pattern, mode.anchor)
            if pos is None:
                pos = find_forward(data, pattern, 0)

        mode.failing = pos is None
        if pos is not None:
            self._move_cursor_to(pos)

    def _handle_search(self, mode: SearchMode, action: Action) -> None:
        kind = action.kind

        if kind is ActionKind.CANCEL:
            self._move_cursor_to(mode.anchor)
            self._exit_mode()
            self.status_message = "Cancelled"
        elif kind is ActionKind.ENTER:
            self._exit_mode()
            if mode.query:
                self.last_search_query = mode.query
                self.status_message = f"I-search: {mode.query}"
            else:
                self.status_message = "Search cancelled"
        elif kind in (ActionKind.SEARCH_NEXT, ActionKind.SEARCH_PREV):
            if not mode.query:
                mode.query = self.last_search_query
            mode.backward = kind is ActionKind.SEARCH_PREV
            if mode.query:
                mode.failing = not self._find_and_report(mode.query, mode.backward)
        elif kind is ActionKind.BACKSPACE:
            mode.query = mode.query[:-1]
            self._incremental_search(mode)
        elif kind in (ActionKind.CHAR, ActionKind.PASTE_TEXT):
            mode.query += action.char or action.text or ''
            self._incremental_search(mode)

    # Query replace

    def _handle_replace(self, mode: ReplaceMode, action: Action) -> None:
        kind = action.kind

        if mode.stage is ReplaceStage.CONFIRMING:
            self._handle_replace_confirm(mode, action)
            return

        if kind is ActionKind.CANCEL:
            self._move_cursor_to(mode.anchor)
            self._exit_mode()
            self.status_message = "Cancelled"
            return

        editing_search = mode.stage is ReplaceStage.ENTERING_SEARCH
        text = mode.pattern_text if editing_search else mode.replacement_text

        if kind is ActionKind.ENTER:
            if editing_search:
                if not mode.pattern_text:
                    self._exit_mode()
                    self.status_message = "Empty search pattern"
                    return
                mode.stage = ReplaceStage.ENTERING_REPLACE
                return

            # Unencodable replacement text stays in the prompt with the error.
            if self._pattern_bytes(mode.replacement_text) is None:
                return

            mode.stage = ReplaceStage.CONFIRMING
            self._seek_replace_match(mode, self.cursor)
            return

        if kind is ActionKind.BACKSPACE:
            text = text[:-1]
        elif kind in (ActionKind.CHAR, ActionKind.PASTE_TEXT):
            text += action.char or action.text or ''
        else:
            return

        if editing_search:
            mode.pattern_text = text
        else:
            mode.replacement_text = text

    def _handle_replace_confirm(self, mode: ReplaceMode, action: Action) -> None:
        kind = action.kind
        key = normalize_fullwidth(action.char) if kind is ActionKind.CHAR and action.char else None

        if key in ('y', 'Y', ' '):
            self._replace_current(mode)
            self._seek_replace_match(mode, self.cursor)
        elif key in ('n', 'N') or kind is ActionKind.DELETE:
            self._seek_replace_match(mode, self.cursor + 1)
        elif key == '!':
            count = self._replace_all_remaining(mode)
            self._exit_mode()
            logger.info("Replaced %d occurrences", count)
            self.status_message = f"Replaced {count} occurrences"
        elif key in ('q', 'Q') or kind in (ActionKind.CANCEL, ActionKind.ENTER):
            self._exit_mode()
            self.status_message = "Query replace finished"
        else:
            self.status_message = self._replace_prompt()

    def _replace_prompt(self) -> str:
        return f"Replace? (y/n/!/q) at {format_offset(self.cursor)}"

    def _seek_replace_match(self, mode: ReplaceMode, start: int) -> None:
        pattern = self._pattern_bytes(mode.pattern_text)
        if not pattern:
            self._exit_mode()
            return

        pos = find_forward(bytes(self.buffer.data), pattern, start)
        if pos is None:
            self._exit_mode()
            self.status_message = "No more matches"
            return

        self._move_cursor_to(pos)
        self.status_message = self._replace_prompt()

    def _replace_current(self, mode: ReplaceMode) -> bool:
        """Replace the match under the cursor if it is still there."""

        pattern = self._pattern_bytes(mode.pattern_text)
        replacement = self._pattern_bytes(mode.replacement_text)
        if not pattern or replacement is None:
            return False

        if self.buffer.get_range(self.cursor, self.cursor + len(pattern)) != pattern:
            return False

        self._delete_range(self.cursor, self.cursor + len(pattern))
        for i, value in enumerate(replacement):
            self.buffer.insert(self.cursor + i, value)

        self.cursor += len(replacement)
        self.ensure_cursor_visible()
        return True

    def _replace_all_remaining(self, mode: ReplaceMode) -> int:
        pattern = self._pattern_bytes(mode.pattern_text)
        if not pattern:
            return 0

        count = 0
        while True:
            pos = find_forward(bytes(self.buffer.data), pattern, self.cursor)
            if pos is None:
                break

            self.cursor = pos
            if not self._replace_current(mode):
                break
            count += 1

        return count

    # Prompt

    def _handle_prompt(self, mode: PromptMode, action: Action) -> None:
        kind = action.kind

        if kind is ActionKind.CANCEL:
            self._exit_mode()
            self.status_message = "Cancelled"
        elif kind is ActionKind.ENTER:
            self._execute_prompt(mode)
        elif kind is ActionKind.BACKSPACE:
            mode.text = mode.text[:-1]
        elif kind in (ActionKind.CHAR, ActionKind.PASTE_TEXT):
            mode.text += action.char or action.text or ''

    def _execute_prompt(self, mode: PromptMode) -> None:
        text = mode.text

        if mode.kind is PromptKind.GOTO_ADDRESS:
            self._goto_address(text)
        elif mode.kind is PromptKind.OPEN_FILE:
            self._prompt_open(text)
        elif mode.kind is PromptKind.SAVE_AS:
            self._exit_mode()
            self._save_as(text)
        elif mode.kind is PromptKind.COMMAND:
            self._exit_mode()
            self._dispatch_command(text)
        else:
            self._execute_command_arg(mode, text)

    def _goto_address(self, text: str) -> None:
        try:
            address = parse_address(text)
        except ParseError as e:
            self.status_message = str(e)
            return

        if address > len(self.buffer):
            self.status_message = f"Address {address:X} exceeds file size {len(self.buffer):X}"
            return

        self._exit_mode()
        self._move_cursor_to(address)
        self.update_selection()
        self.status_message = f"Jumped to {format_offset(address)}"

    def _prompt_open(self, text: str) -> None:
        path = text.strip()
        if not path:
            self.status_message = "No file specified"
            return

        path = os.path.expanduser(path)
        if self.buffer.modified:
            self._enter_mode(ConfirmMode(PendingAction.OPEN_FILE, path))
            return

        self._exit_mode()
        self.open_file(path)

    def _start_save_as(self) -> None:
        self._enter_mode(PromptMode(PromptKind.SAVE_AS, text=self.buffer.path or ""))

    def _save(self) -> None:
        if not self.buffer.path:
            self._start_save_as()
            return

        try:
            self.buffer.save()
        except (OSError, HexEditError) as e:
            logger.error("Save failed: %s", e)
            self.status_message = f"Save failed: {e}"
            return

        self.status_message = "Saved"

    def _save_as(self, text: str) -> None:
        path = text.strip()
        if not path:
            self.status_message = "No file specified"
            return

        path = os.path.expanduser(path)
        try:
            self.buffer.save_as(path)
        except OSError as e:
            logger.error("Save to %s failed: %s", path, e)
            self.status_message = f"Failed to save: {e}"
            return

        self.file_type = detect_file_type(self.buffer.data, self.buffer.filename)
        self.status_message = f"Saved: {path}"

    def open_file(self, path: str) -> None:
        """Replace the buffer with the content of ``path``."""

        try:
            buffer = ByteBuffer.open(path, readonly=self.buffer.readonly)
        except OSError as e:
            logger.error("Open %s failed: %s", path, e)
            self.status_message = f"Failed to open: {e}"
            return

        self.load_buffer(buffer)
        self.status_message = f"Opened: {path}"

    def load_buffer(self, buffer: ByteBuffer) -> None:
        """Install a new buffer and reset the view state."""

        self.buffer = buffer
        self.cursor = 0
        self.offset = 0
        self.clear_selection()
        self.hex_entry = HexIdle()
        self.file_type = detect_file_type(buffer.data, buffer.filename)

    def _dispatch_command(self, text: str) -> None:
        name = text.strip().lower()

        if name in ("goto", "g"):
            self._enter_mode(PromptMode(PromptKind.GOTO_ADDRESS))
        elif name in ("save", "s"):
            self._save()
        elif name in ("saveas", "w"):
            self._start_save_as()
        elif name in ("open", "o"):
            self._enter_mode(PromptMode(PromptKind.OPEN_FILE))
        elif name in ("quit", "q"):
            self._guard(PendingAction.QUIT)
        elif name in ("kill", "k"):
            self._guard(PendingAction.KILL_BUFFER)
        elif name in ("encoding", "e"):
            self._toggle_encoding()
        elif name in ("fill", "f"):
            if self.buffer.readonly:
                self.status_message = READONLY_MESSAGE
            elif self.selection is None:
                self.status_message = NO_SELECTION_MESSAGE
            else:
                self._request_argument("fill")
        elif name in ("insert", "i"):
            if self.buffer.readonly:
                self.status_message = READONLY_MESSAGE
            else:
                self._request_argument("insert")
        elif name in ("help", "h", "?"):
            self.status_message = HELP_MESSAGE
        elif name:
            self.status_message = f"Unknown command: {name} (try 'help')"

    def _request_argument(self, command: str) -> None:
        self._enter_mode(PromptMode(PromptKind.COMMAND_ARG, command=command, label=COMMAND_ARG_LABELS[command]))

    def _execute_command_arg(self, mode: PromptMode, text: str) -> None:
        try:
            if mode.command == "fill":
                self._fill(text)
            else:
                self._insert_run(text)
        except ParseError as e:
            self.status_message = str(e)

    def _fill(self, text: str) -> None:
        value = parse_byte(text)
        selected = self._selected_range()
        self._exit_mode()
        if selected is None:
            self.status_message = NO_SELECTION_MESSAGE
            return

        start, end = selected
        for pos in range(start, end):
            self.buffer.set(pos, value)

        self.clear_selection()
        self.status_message = f"Filled {end - start} bytes with {value:02X}"

    def _insert_run(self, text: str) -> None:
        parts = text.split()
        if len(parts) not in (1, 2):
            raise ParseError("Usage: insert <count> [byte]", text)

        count = parse_number(parts[0])
        value = parse_byte(parts[1]) if len(parts) == 2 else 0
        if count == 0:
            self.status_message = "Count must be > 0"
            return

        self._exit_mode()
        for i in range(count):
            self.buffer.insert(self.cursor + i, value)

        self.status_message = f"Inserted {count} bytes of {value:02X}"

    # Confirm

    def _guard(self, pending: PendingAction) -> None:
        """Run ``pending`` now, or ask first when there are unsaved changes."""

        if self.buffer.modified:
            self._enter_mode(ConfirmMode(pending))
            return

        self._perform(pending, None)

    def _handle_confirm(self, mode: ConfirmMode, action: Action) -> None:
        key = normalize_fullwidth(action.char) if action.kind is ActionKind.CHAR and action.char else None

        if key in ('y', 'Y'):
            try:
                self.buffer.save()
            except (OSError, HexEditError) as e:
                logger.error("Save failed: %s", e)
                self._exit_mode()
                self.status_message = f"Save failed: {e}"
                return
            self._exit_mode()
            self._perform(mode.pending, mode.path)
        elif key in ('n', 'N'):
            self._exit_mode()
            self._perform(mode.pending, mode.path)
        elif key in ('c', 'C') or action.kind is ActionKind.CANCEL:
            self._exit_mode()
            self.status_message = "Cancelled"

    def _perform(self, pending: PendingAction, path: Optional[str]) -> None:
        if pending is PendingAction.QUIT:
            logger.info("Quit")
            self.should_quit = True
        elif pending is PendingAction.OPEN_FILE:
            if path:
                self.open_file(path)
        else:
            self._kill_buffer()

    def _kill_buffer(self) -> None:
        logger.info("Buffer killed")
        self.load_buffer(ByteBuffer(readonly=self.buffer.readonly))
        self.status_message = "Buffer killed"

    # Status line

    def selection_info(self) -> Optional[str]:
        selected = self._selected_range()
        if selected is None:
            return None

        return format_selection_info(self.buffer.get_range(*selected) or b'')

    def prompt_text(self) -> Optional[str]:
        """Return the input line of the active elevated mode, if any."""

        mode = self.mode
        if isinstance(mode, SearchMode):
            label = "I-search backward: " if mode.backward else "I-search: "
            if mode.failing:
                label = "Failing " + label
            return self._with_message(f"{label}{mode.query}_")
        if isinstance(mode, ReplaceMode):
            if mode.stage is ReplaceStage.ENTERING_SEARCH:
                return f"Query replace: {mode.pattern_text}_"
            if mode.stage is ReplaceStage.ENTERING_REPLACE:
                return self._with_message(f"Query replace {mode.pattern_text} with: {mode.replacement_text}_")
            return self._replace_prompt()
        if isinstance(mode, PromptMode):
            return self._with_message(f"{mode.label}{mode.text}_")
        if isinstance(mode, ConfirmMode):
            return CONFIRM_PROMPT

        return None

    def _with_message(self, line: str) -> str:
        if self.status_message:
            return f"{line}  [{self.status_message}]"

        return line

    def status_line(self) -> str:
        """Compose the single status line shown under the hex view."""

        prompt = self.prompt_text()
        if prompt is not None:
            return prompt

        name = (self.buffer.filename or NEW_BUFFER_NAME) + ("[+]" if self.buffer.modified else "")

        if self.status_message:
            return f" {name} | {self.status_message}"

        info = self.selection_info()
        if info is not None:
            return f" {name} | {info}"

        parts: List[str] = [
            f" {name}",
            f"{format_offset(self.cursor)}/{format_offset(len(self.buffer))}",
            f"{self.view_mode.value} {self.edit_mode.value}",
            self.encoding.label,
            self.file_type,
        ]
        if self.buffer.readonly:
            parts.append("[RO]")

        return " | ".join(parts)
