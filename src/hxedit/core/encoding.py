"""
Character encodings for text entry and the text column of the hex view.

Each encoding knows how to turn a single typed character into bytes and how
to split a window of raw bytes into displayable characters. Display width is
measured with wcwidth so that wide CJK glyphs occupy two terminal cells.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from wcwidth import wcwidth

from ..errors import EncodeError

PLACEHOLDER = '.'


class CharEncoding(Enum):
    """Encodings selectable for the text column, in cycling order."""

    UTF8 = ("UTF-8", "utf-8", 4)
    UTF16LE = ("UTF-16LE", "utf-16-le", 4)
    UTF16BE = ("UTF-16BE", "utf-16-be", 4)
    SHIFT_JIS = ("Shift_JIS", "shift_jis", 2)
    EUC_JP = ("EUC-JP", "euc_jp", 3)
    LATIN1 = ("Latin-1", "latin-1", 1)

    def __init__(self, label: str, codec: str, max_len: int) -> None:
        self.label = label
        self.codec = codec
        self.max_len = max_len

    def next(self) -> 'CharEncoding':
        """Return the encoding after this one, wrapping around."""

        members = list(CharEncoding)
        return members[(members.index(self) + 1) % len(members)]

    @classmethod
    def from_name(cls, name: str) -> 'CharEncoding':
        """Look up an encoding by label or member name, ignoring case and separators."""

        wanted = name.replace('-', '').replace('_', '').lower()
        for member in cls:
            for candidate in (member.label, member.name):
                if candidate.replace('-', '').replace('_', '').lower() == wanted:
                    return member

        raise ValueError(f"Unknown encoding: {name}")

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class DecodedChar:
    """One character of the text column and the bytes it spans."""
    display: str
    byte_len: int
    width: int


def encode_char(char: str, encoding: CharEncoding) -> bytes:
    """Encode a single character, raising EncodeError when it has no representation."""

    try:
        return char.encode(encoding.codec)
    except UnicodeEncodeError:
        raise EncodeError(char, encoding.label) from None


def encode_text(text: str, encoding: CharEncoding) -> bytes:
    """Encode a whole string, reporting the first unrepresentable character."""

    return b''.join(encode_char(char, encoding) for char in text)


def _decode_one(data: bytes, start: int, encoding: CharEncoding) -> Optional[Tuple[str, int]]:
    """Try to decode exactly one character starting at ``start``."""

    for length in range(1, encoding.max_len + 1):
        chunk = data[start:start + length]
        if len(chunk) < length:
            break

        try:
            text = chunk.decode(encoding.codec)
        except UnicodeDecodeError:
            continue

        if len(text) == 1:
            return text, length

    return None


def decode_for_display(data: bytes, encoding: CharEncoding) -> List[Optional[DecodedChar]]:
    """
    Split ``data`` into displayable characters.

    The result has one slot per input byte. A slot holding a DecodedChar marks
    the first byte of a character; the following ``byte_len - 1`` slots are
    None. Undecodable bytes and non-printable characters show as '.'.
    """

    result: List[Optional[DecodedChar]] = [None] * len(data)
    pos = 0

    while pos < len(data):
        decoded = _decode_one(data, pos, encoding)
        if decoded is None:
            result[pos] = DecodedChar(PLACEHOLDER, 1, 1)
            pos += 1
            continue

        text, byte_len = decoded
        width = wcwidth(text)
        if width < 1 or not text.isprintable():
            result[pos] = DecodedChar(PLACEHOLDER, byte_len, 1)
        else:
            result[pos] = DecodedChar(text, byte_len, width)

        pos += byte_len

    return result
