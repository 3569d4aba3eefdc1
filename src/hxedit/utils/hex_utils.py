"""
Utility functions for interpreting user-entered text as bytes and numbers.

All text typed by the user (paste content, search queries, replacement
text, command arguments) passes through ``text_to_bytes``, so the same input
always resolves to the same bytes: an even-length run of hex digits is taken
as hex, anything else is encoded literally in the active encoding.
"""

import re
from typing import Optional

from ..core.encoding import CharEncoding, encode_text
from ..errors import ParseError

HEX_DIGITS = '0123456789ABCDEF'
SEPARATORS = ' \t\r\n,{}'

FULLWIDTH_START = 0xFF01
FULLWIDTH_END = 0xFF5E
FULLWIDTH_OFFSET = 0xFEE0
IDEOGRAPHIC_SPACE = '　'

_PREFIX_RE = re.compile(r'(?<![0-9A-Fa-f])0[xX]')


def normalize_fullwidth(char: str) -> str:
    """Map a full-width ASCII variant to its half-width form."""

    if char == IDEOGRAPHIC_SPACE:
        return ' '

    code = ord(char)
    if FULLWIDTH_START <= code <= FULLWIDTH_END:
        return chr(code - FULLWIDTH_OFFSET)

    return char


def normalize_fullwidth_text(text: str) -> str:
    return ''.join(normalize_fullwidth(char) for char in text)


def normalize_hex_char(char: str) -> Optional[str]:
    """Return the upper-case hex digit for ``char`` or None if it is not one."""

    if len(char) != 1:
        return None

    digit = normalize_fullwidth(char).upper()
    if digit in HEX_DIGITS:
        return digit

    return None


def normalize_hex_string(text: str) -> str:
    """
    Normalize a hex string for parsing.

    Full-width characters are folded to ASCII, ``0x`` prefixes and common
    separators (whitespace, commas, braces) are removed and the result is
    upper-cased, so "{0xDE, 0xAD}" and "de ad" both become "DEAD".
    """

    text = normalize_fullwidth_text(text)
    text = _PREFIX_RE.sub('', text)
    text = ''.join(char for char in text if char not in SEPARATORS)

    return text.upper()


def looks_like_hex(text: str) -> bool:
    """Check whether ``text`` is a non-empty, even-length run of hex digits."""

    clean = normalize_hex_string(text)
    if not clean or len(clean) % 2:
        return False

    return all(char in HEX_DIGITS for char in clean)


def hex_to_bytes(text: str) -> bytes:
    """
    Parse a hex string into bytes.

    Args:
        text (str): String of hex values (e.g. "FF 00 A5")

    Returns:
        bytes: Parsed bytes

    Raises:
        ParseError: if the text is not an even-length run of hex digits
    """

    if not looks_like_hex(text):
        raise ParseError(f"Invalid hex: {text}", text)

    return bytes.fromhex(normalize_hex_string(text))


def text_to_bytes(text: str, encoding: CharEncoding) -> bytes:
    """Resolve user text to bytes: hex when it looks like hex, otherwise encoded literally."""

    trimmed = text.strip()
    if looks_like_hex(trimmed):
        return hex_to_bytes(trimmed)

    return encode_text(text, encoding)


def parse_address(text: str) -> int:
    """
    Parse a goto address.

    Accepted forms are ``0x1F``, ``1Fh``, bare hex containing at least one
    letter (``1F``) and plain decimal (``31``).
    """

    clean = normalize_fullwidth_text(text).strip()
    if not clean:
        raise ParseError("No address", text)

    digits = clean
    base = 10

    if clean[:2] in ('0x', '0X'):
        digits = clean[2:]
        base = 16
    elif clean[-1] in 'hH':
        digits = clean[:-1]
        base = 16
    elif all(char.upper() in HEX_DIGITS for char in clean) and any(char.isalpha() for char in clean):
        base = 16

    if not digits or not all(char.upper() in HEX_DIGITS[:base] for char in digits):
        raise ParseError(f"Invalid address: {text}", text)

    return int(digits, base)


def parse_number(text: str) -> int:
    """Parse ``0x``-prefixed hex or plain decimal."""

    clean = normalize_fullwidth_text(text).strip()

    try:
        if clean[:2] in ('0x', '0X'):
            return int(clean[2:], 16)
        if clean.isdecimal():
            return int(clean)
    except ValueError:
        pass

    raise ParseError(f"Invalid number: {text}", text)


def parse_byte(text: str) -> int:
    """
    Parse a byte value.

    ``0x`` prefixed values and one or two bare hex digits are read as hex,
    anything else as decimal. The result must fit in 0..255.
    """

    clean = normalize_fullwidth_text(text).strip()

    value: Optional[int] = None
    if clean[:2] in ('0x', '0X'):
        body = clean[2:]
        if body and all(char.upper() in HEX_DIGITS for char in body):
            value = int(body, 16)
    elif clean and len(clean) <= 2 and all(char.upper() in HEX_DIGITS for char in clean):
        value = int(clean, 16)
    elif clean.isdecimal():
        value = int(clean)

    if value is None or value > 0xFF:
        raise ParseError(f"Invalid byte: {text}", text)

    return value


def format_offset(offset: int, width: int = 8) -> str:
    """
    Format a byte offset as a hex string.

    Args:
        offset (int): Byte offset to format
        width (int): Number of hex digits to use

    Returns:
        str: Formatted hex string
    """

    return f"{offset:0{width}X}"
