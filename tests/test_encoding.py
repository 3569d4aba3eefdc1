from __future__ import annotations

import pytest

from hxedit.core.encoding import CharEncoding, DecodedChar, decode_for_display, encode_char
from hxedit.errors import EncodeError


def test_encode_char_per_encoding() -> None:
    assert encode_char("A", CharEncoding.UTF8) == b"A"
    assert encode_char("あ", CharEncoding.UTF8) == b"\xe3\x81\x82"
    assert encode_char("A", CharEncoding.UTF16BE) == b"\x00A"
    assert encode_char("あ", CharEncoding.SHIFT_JIS) == b"\x82\xa0"
    assert encode_char("あ", CharEncoding.EUC_JP) == b"\xa4\xa2"


def test_encode_char_failure_names_char_and_encoding() -> None:
    with pytest.raises(EncodeError) as excinfo:
        encode_char("あ", CharEncoding.LATIN1)

    assert excinfo.value.char == "あ"
    assert str(excinfo.value) == "Cannot encode 'あ' in Latin-1"


def test_decode_marks_continuation_slots() -> None:
    decoded = decode_for_display(b"A\xe3\x81\x82B", CharEncoding.UTF8)

    assert decoded[0] == DecodedChar("A", 1, 1)
    assert decoded[1] == DecodedChar("あ", 3, 2)
    assert decoded[2] is None
    assert decoded[3] is None
    assert decoded[4] == DecodedChar("B", 1, 1)


def test_decode_placeholders_for_invalid_and_control_bytes() -> None:
    decoded = decode_for_display(b"\x00\xff\n", CharEncoding.UTF8)

    assert [d.display for d in decoded if d is not None] == [".", ".", "."]
    assert all(d is not None and d.byte_len == 1 for d in decoded)


def test_decode_utf16_pairs() -> None:
    decoded = decode_for_display(b"A\x00B\x00", CharEncoding.UTF16LE)

    assert decoded[0] == DecodedChar("A", 2, 1)
    assert decoded[1] is None
    assert decoded[2] == DecodedChar("B", 2, 1)


def test_truncated_sequence_shows_placeholder() -> None:
    decoded = decode_for_display(b"\xe3\x81", CharEncoding.UTF8)

    assert decoded[0] == DecodedChar(".", 1, 1)
    assert decoded[1] == DecodedChar(".", 1, 1)


def test_encoding_cycle_and_lookup() -> None:
    assert CharEncoding.UTF8.next() is CharEncoding.UTF16LE
    assert CharEncoding.LATIN1.next() is CharEncoding.UTF8
    assert CharEncoding.from_name("shift-jis") is CharEncoding.SHIFT_JIS
    assert CharEncoding.from_name("utf_16le") is CharEncoding.UTF16LE
    assert CharEncoding.from_name("latin1") is CharEncoding.LATIN1
    assert str(CharEncoding.EUC_JP) == "EUC-JP"

    with pytest.raises(ValueError):
        CharEncoding.from_name("ebcdic")
