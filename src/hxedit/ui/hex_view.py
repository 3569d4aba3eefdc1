"""
Hex view projection.

Turns the buffer, cursor, selection and encoding into positioned, styled
text segments for each visible row. Nothing here touches curses, so the
layout can be checked in tests; the window module only paints segments.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Final, List, Optional, Tuple

from ..app.modes import ViewMode
from ..core.encoding import CharEncoding, decode_for_display
from ..utils.hex_utils import format_offset

ADDRESS_WIDTH: Final[int] = 8
ADDRESS_GAP: Final[int] = 2
HEX_CELL_WIDTH: Final[int] = 3
TEXT_GAP: Final[int] = 1
LOOKAHEAD: Final[int] = 4
EOF_HEX: Final[str] = "__"
EOF_TEXT: Final[str] = "_"


class CellStyle(Enum):
    HEADER = "header"
    ADDRESS = "address"
    ZERO = "zero"
    HIGH = "high"
    PRINTABLE = "printable"
    NORMAL = "normal"
    TEXT = "text"


class Highlight(Enum):
    CURSOR = "cursor"
    SELECTION = "selection"


@dataclass(frozen=True)
class Segment:
    """A run of text drawn at column ``x`` of a row."""
    x: int
    text: str
    style: CellStyle
    highlight: Optional[Highlight] = None


def byte_style(byte: int) -> CellStyle:
    if byte == 0x00:
        return CellStyle.ZERO
    if byte == 0xFF:
        return CellStyle.HIGH
    if 0x20 <= byte <= 0x7E:
        return CellStyle.PRINTABLE

    return CellStyle.NORMAL


class HexView:
    """Projects a window of the buffer onto rows of segments."""

    def __init__(self, data: bytes, offset: int = 0, cursor: int = 0,
                 selection: Optional[Tuple[int, int]] = None, bytes_per_row: int = 16,
                 encoding: CharEncoding = CharEncoding.UTF8, mode: ViewMode = ViewMode.HEX) -> None:
        self.data = data
        self.offset = offset
        self.cursor = cursor
        self.selection = selection
        self.bytes_per_row = bytes_per_row
        self.encoding = encoding
        self.mode = mode

    @classmethod
    def from_controller(cls, controller) -> 'HexView':
        return cls(
            bytes(controller.buffer.data),
            offset=controller.offset,
            cursor=controller.cursor,
            selection=controller.selection,
            bytes_per_row=controller.bytes_per_row,
            encoding=controller.encoding,
            mode=controller.view_mode,
        )

    @property
    def hex_x(self) -> int:
        return ADDRESS_WIDTH + ADDRESS_GAP

    @property
    def text_x(self) -> int:
        return self.hex_x + self.bytes_per_row * HEX_CELL_WIDTH + TEXT_GAP

    @property
    def width(self) -> int:
        return self.text_x + self.bytes_per_row

    def header(self) -> str:
        """Column header: 'Offset', the byte column indices, then the encoding name."""

        columns = ' '.join(f"{i:02X}" for i in range(self.bytes_per_row))
        return f"{'Offset':<{ADDRESS_WIDTH}}{' ' * ADDRESS_GAP}{columns}{' ' * (TEXT_GAP + 1)}{self.encoding.label}"

    def _selected(self, position: int) -> bool:
        if self.selection is None:
            return False

        start, end = self.selection
        return start <= position <= end

    def count_continuation_bytes(self, row_start: int) -> int:
        """
        Count bytes at ``row_start`` that belong to a character begun on the previous row.
        """

        if row_start == 0:
            return 0

        check_start = max(0, row_start - LOOKAHEAD)
        window = self.data[check_start:min(row_start + LOOKAHEAD, len(self.data))]
        if not window:
            return 0

        decoded = decode_for_display(window, self.encoding)

        # Only characters that begin before row_start can spill into it.
        pos = 0
        last_char_end = 0
        while pos < len(decoded) and check_start + pos < row_start:
            char = decoded[pos]
            if char is None:
                pos += 1
                continue

            last_char_end = check_start + pos + char.byte_len
            pos += char.byte_len

        return max(0, last_char_end - row_start)

    def render_row(self, row_index: int) -> Optional[List[Segment]]:
        """Return the segments for a visible row, or None past the end of data."""

        row_start = self.offset + row_index * self.bytes_per_row
        size = len(self.data)
        cursor_at_eof = self.cursor == size

        if row_start > size or (row_start >= size and not cursor_at_eof):
            return None

        row_end = min(row_start + self.bytes_per_row, size)
        segments = [Segment(0, format_offset(row_start, ADDRESS_WIDTH), CellStyle.ADDRESS)]
        segments.extend(self._hex_segments(row_start, row_end))
        segments.extend(self._text_segments(row_start, row_end))

        return segments

    def _hex_segments(self, row_start: int, row_end: int) -> List[Segment]:
        segments: List[Segment] = []
        hex_mode = self.mode is ViewMode.HEX

        for i in range(self.bytes_per_row):
            pos = row_start + i
            x = self.hex_x + i * HEX_CELL_WIDTH

            if pos < row_end:
                byte = self.data[pos]
                highlight = None
                if pos == self.cursor and hex_mode:
                    highlight = Highlight.CURSOR
                elif self._selected(pos):
                    highlight = Highlight.SELECTION
                segments.append(Segment(x, f"{byte:02X}", byte_style(byte), highlight))
            elif pos == len(self.data) == self.cursor and hex_mode:
                segments.append(Segment(x, EOF_HEX, CellStyle.NORMAL, Highlight.CURSOR))

        return segments

    def _text_segments(self, row_start: int, row_end: int) -> List[Segment]:
        segments: List[Segment] = []
        text_mode = self.mode is ViewMode.TEXT
        size = len(self.data)

        skip = min(self.count_continuation_bytes(row_start), self.bytes_per_row)
        decode_start = row_start + skip
        decode_end = min(row_end + LOOKAHEAD, size)
        decoded = decode_for_display(self.data[decode_start:decode_end], self.encoding) if decode_end > decode_start else []

        x = self.text_x + skip
        byte_idx = skip

        while byte_idx < self.bytes_per_row:
            pos = row_start + byte_idx

            if pos < row_end and byte_idx - skip < len(decoded):
                char = decoded[byte_idx - skip]
                if char is None:
                    x += 1
                    byte_idx += 1
                    continue

                highlight = None
                if text_mode and pos <= self.cursor < pos + char.byte_len:
                    highlight = Highlight.CURSOR
                elif self._selected(pos):
                    highlight = Highlight.SELECTION
                segments.append(Segment(x, char.display, CellStyle.TEXT, highlight))

                bytes_in_row = min(char.byte_len, self.bytes_per_row - byte_idx)
                if char.byte_len <= bytes_in_row:
                    advance = min(char.width, char.byte_len)
                else:
                    advance = char.width

                x += max(advance, bytes_in_row)
                byte_idx += bytes_in_row
                continue

            if pos == size == self.cursor and text_mode:
                segments.append(Segment(x, EOF_TEXT, CellStyle.TEXT, Highlight.CURSOR))

            x += 1
            byte_idx += 1

        return segments

    def rows(self, visible_rows: int) -> List[Optional[List[Segment]]]:
        return [self.render_row(i) for i in range(visible_rows)]


def segments_to_text(segments: List[Segment]) -> str:
    """Flatten segments into a plain string, assuming single-width glyphs."""

    line: List[str] = []
    for segment in segments:
        if len(line) < segment.x:
            line.extend(' ' * (segment.x - len(line)))
        for i, char in enumerate(segment.text):
            index = segment.x + i
            if index < len(line):
                line[index] = char
            else:
                line.append(char)

    return ''.join(line)
