"""
Whole-array byte operations behind the hxtool command line.
"""

import math
import re
from dataclasses import dataclass
from typing import Final, List, Optional, Sequence, Tuple

from ..errors import ParseError
from .search import find_forward

HEX_PREFIX_RE: Final = re.compile(r'0[xX]')
DUMP_WIDTH: Final[int] = 16


def parse_hex_loose(text: str) -> bytes:
    """
    Parse hex digits out of arbitrary text.

    ``0x`` prefixes are dropped, then every non-hex character is ignored.

    Args:
        text (str): Text such as "DE AD", "0xDE,0xAD" or a hex dump line

    Returns:
        bytes: The decoded bytes

    Raises:
        ParseError: If the remaining digits have odd length
    """

    cleaned = ''.join(c for c in HEX_PREFIX_RE.sub('', text) if c in '0123456789abcdefABCDEF')
    if len(cleaned) % 2 != 0:
        raise ParseError("Hex string must have even length", text)

    return bytes.fromhex(cleaned)


def parse_offset(text: str) -> int:
    """Parse an offset given as 0x-prefixed hex or decimal."""

    value = text.strip()
    try:
        if value[:2] in ('0x', '0X'):
            return int(value[2:], 16)
        if value.isdecimal():
            return int(value)
    except ValueError:
        pass

    raise ParseError(f"Invalid offset: {text}", text)


def parse_range(text: str, size: int) -> Tuple[int, int]:
    """
    Parse "start:end" into a half-open range clamped to ``size``.

    Either side may be empty: ":10" starts at 0, "10:" runs to the end.
    """

    parts = text.split(':')
    if len(parts) != 2:
        raise ParseError("Range must be in format 'start:end'", text)

    start = parse_offset(parts[0]) if parts[0] else 0
    end = parse_offset(parts[1]) if parts[1] else size

    return start, min(end, size)


def replace_bytes(data: bytes, pattern: bytes, replacement: bytes,
                  replace_all: bool = False) -> Tuple[bytes, int]:
    """
    Replace the first (or every non-overlapping) occurrence of ``pattern``.

    Returns:
        Tuple[bytes, int]: The new data and the number of replacements made
    """

    if not pattern:
        return bytes(data), 0

    result = bytearray(data)
    count = 0
    pos: Optional[int] = 0

    while True:
        pos = find_forward(result, pattern, pos)
        if pos is None:
            break

        result[pos:pos + len(pattern)] = replacement
        pos += len(replacement)
        count += 1

        if not replace_all:
            break

    return bytes(result), count


def apply_patches(data: bytes, patches: Sequence[str]) -> bytes:
    """Apply "offset=hexvalue" patches in order; each must fit inside the data."""

    result = bytearray(data)
    for patch in patches:
        parts = patch.split('=')
        if len(parts) != 2:
            raise ParseError(f"Patch must be in format 'offset=hexvalue': {patch}", patch)

        offset = parse_offset(parts[0])
        value = parse_hex_loose(parts[1])

        if offset + len(value) > len(result):
            raise ParseError(
                f"Patch at {offset} with {len(value)} bytes exceeds file size {len(result)}",
                patch,
            )

        result[offset:offset + len(value)] = value

    return bytes(result)


@dataclass(frozen=True)
class ByteStats:
    size: int
    entropy: float
    nulls: int
    printable: int

    @property
    def null_ratio(self) -> float:
        return self.nulls / self.size if self.size else 0.0

    @property
    def printable_ratio(self) -> float:
        return self.printable / self.size if self.size else 0.0


def byte_stats(data: bytes) -> ByteStats:
    """Compute size, Shannon entropy (bits per byte) and null/printable counts."""

    freq = [0] * 256
    for byte in data:
        freq[byte] += 1

    size = len(data)
    entropy = 0.0
    for count in freq:
        if count:
            p = count / size
            entropy -= p * math.log2(p)

    return ByteStats(
        size=size,
        entropy=entropy,
        nulls=freq[0],
        printable=sum(freq[0x20:0x7F]),
    )


def hex_dump(data: bytes, base: int = 0) -> List[str]:
    """Format data as dump lines: 8-digit offset, then 16 bytes split after the eighth."""

    lines = []
    for i in range(0, len(data), DUMP_WIDTH):
        chunk = data[i:i + DUMP_WIDTH]
        cells = ''
        for j, byte in enumerate(chunk):
            cells += f"{byte:02X} "
            if j == 7:
                cells += ' '
        lines.append(f"{base + i:08X}  {cells}")

    return lines


def bin2hex(data: bytes, width: int = DUMP_WIDTH) -> str:
    """Format data as lines of ``width`` space-terminated hex bytes."""

    if width < 1:
        raise ParseError("Width must be at least 1")

    lines = []
    for i in range(0, len(data), width):
        lines.append(''.join(f"{byte:02X} " for byte in data[i:i + width]))

    return ''.join(line + '\n' for line in lines)


def hex2bin(text: str) -> bytes:
    return parse_hex_loose(text)
