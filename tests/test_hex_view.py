from __future__ import annotations

from hxedit.app.modes import ViewMode
from hxedit.core.encoding import CharEncoding
from hxedit.ui.hex_view import CellStyle, Highlight, HexView, Segment, byte_style, segments_to_text


def _text_cells(segments):
    return [(s.x, s.text) for s in segments if s.style is CellStyle.TEXT]


def test_header_lists_columns_and_encoding() -> None:
    view = HexView(b"", bytes_per_row=4, encoding=CharEncoding.SHIFT_JIS)

    assert view.header() == "Offset    00 01 02 03  Shift_JIS"


def test_row_layout() -> None:
    view = HexView(b"AB\x00\xff", bytes_per_row=4)

    row = view.render_row(0)

    assert row is not None
    assert segments_to_text(row) == "00000000  41 42 00 FF  AB.."
    assert view.text_x == 23


def test_byte_styles() -> None:
    assert byte_style(0x00) is CellStyle.ZERO
    assert byte_style(0xFF) is CellStyle.HIGH
    assert byte_style(0x41) is CellStyle.PRINTABLE
    assert byte_style(0x80) is CellStyle.NORMAL


def test_cursor_and_selection_highlights_in_hex_mode() -> None:
    view = HexView(b"ABCD", cursor=0, selection=(1, 2), bytes_per_row=4)

    row = view.render_row(0)
    hex_cells = [s for s in row if s.style is not CellStyle.ADDRESS and s.x < view.text_x]

    assert hex_cells[0] == Segment(10, "41", CellStyle.PRINTABLE, Highlight.CURSOR)
    assert hex_cells[1].highlight is Highlight.SELECTION
    assert hex_cells[2].highlight is Highlight.SELECTION
    assert hex_cells[3].highlight is None


def test_cursor_highlights_text_column_in_text_mode() -> None:
    view = HexView(b"AB", cursor=1, bytes_per_row=4, mode=ViewMode.TEXT)

    row = view.render_row(0)
    text = [s for s in row if s.style is CellStyle.TEXT]

    assert text[1] == Segment(24, "B", CellStyle.TEXT, Highlight.CURSOR)
    assert all(s.highlight is None for s in row if s.style is CellStyle.PRINTABLE)


def test_eof_cursor_cell() -> None:
    view = HexView(b"AB", cursor=2, bytes_per_row=4)

    row = view.render_row(0)

    assert Segment(16, "__", CellStyle.NORMAL, Highlight.CURSOR) in row
    assert view.render_row(1) is None


def test_eof_row_shown_only_for_cursor() -> None:
    data = b"ABCD"

    at_eof = HexView(data, cursor=4, bytes_per_row=4).render_row(1)
    assert at_eof is not None
    assert at_eof[0].text == "00000004"
    assert Segment(10, "__", CellStyle.NORMAL, Highlight.CURSOR) in at_eof

    assert HexView(data, cursor=0, bytes_per_row=4).render_row(1) is None


def test_eof_cursor_in_text_mode() -> None:
    view = HexView(b"A", cursor=1, bytes_per_row=4, mode=ViewMode.TEXT)

    row = view.render_row(0)

    assert Segment(24, "_", CellStyle.TEXT, Highlight.CURSOR) in row


def test_character_straddling_row_boundary() -> None:
    view = HexView(b"ab\xe3\x81\x82c", bytes_per_row=4)

    assert _text_cells(view.render_row(0)) == [(23, "a"), (24, "b"), (25, "あ")]
    assert view.count_continuation_bytes(4) == 1
    assert _text_cells(view.render_row(1)) == [(24, "c")]


def test_utf16_straddle_keeps_alignment() -> None:
    view = HexView(b"A\x00B\x00C\x00", bytes_per_row=3, encoding=CharEncoding.UTF16LE)

    assert _text_cells(view.render_row(0)) == [(20, "A"), (22, "B")]
    assert view.count_continuation_bytes(3) == 1
    assert _text_cells(view.render_row(1)) == [(21, "C")]


def test_wide_glyph_in_shift_jis() -> None:
    view = HexView(b"\x82\xa0A", bytes_per_row=4, encoding=CharEncoding.SHIFT_JIS)

    assert _text_cells(view.render_row(0)) == [(23, "あ"), (25, "A")]


def test_offset_scrolls_rows() -> None:
    view = HexView(bytes(range(32)), offset=16, bytes_per_row=16)

    rows = view.rows(3)

    assert rows[0][0].text == "00000010"
    assert rows[1] is None
    assert rows[2] is None


def test_from_controller(make_controller) -> None:
    controller = make_controller(b"\x01\x02", bytes_per_row=8)
    controller.cursor = 1

    view = HexView.from_controller(controller)

    assert view.data == b"\x01\x02"
    assert view.cursor == 1
    assert view.bytes_per_row == 8
    assert view.mode is ViewMode.HEX
