"""
Byte pattern search with wraparound for the hex editor.
"""

from typing import List, Optional


class SearchResult:
    """Represents a search result with position and match information."""

    def __init__(self, position: int, length: int, wrapped: bool = False):
        self.position = position
        self.length = length
        self.wrapped = wrapped

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SearchResult):
            return NotImplemented

        return (self.position, self.length, self.wrapped) == (other.position, other.length, other.wrapped)

    def __repr__(self) -> str:
        return f"SearchResult(position={self.position}, length={self.length}, wrapped={self.wrapped})"


def find_forward(data: bytes, pattern: bytes, start: int) -> Optional[int]:
    """
    Find the first occurrence of ``pattern`` at or after ``start``.

    Returns None for an empty pattern or when the pattern cannot fit in the
    remaining data.
    """

    if not pattern or start < 0 or start + len(pattern) > len(data):
        return None

    pos = data.find(pattern, start)
    if pos < 0:
        return None

    return pos


def find_backward(data: bytes, pattern: bytes, end: int) -> Optional[int]:
    """
    Find the last occurrence of ``pattern`` lying entirely before ``end``.

    Returns None for an empty pattern, ``end == 0``, or when the pattern
    cannot fit before ``end``.
    """

    end = min(end, len(data))
    if not pattern or end <= 0 or len(pattern) > end:
        return None

    pos = data.rfind(pattern, 0, end)
    if pos < 0:
        return None

    return pos


def find_all(data: bytes, pattern: bytes) -> List[int]:
    """Return every match offset, overlapping matches included."""

    positions: List[int] = []
    pos = find_forward(data, pattern, 0)
    while pos is not None:
        positions.append(pos)
        pos = find_forward(data, pattern, pos + 1)

    return positions


def search_next(data: bytes, pattern: bytes, cursor: int) -> Optional[SearchResult]:
    """Search forward from just after ``cursor``, wrapping to the start once."""

    start = cursor + 1
    pos = find_forward(data, pattern, start)
    if pos is not None:
        return SearchResult(pos, len(pattern))

    pos = find_forward(data, pattern, 0)
    if pos is not None and pos < start:
        return SearchResult(pos, len(pattern), wrapped=True)

    return None


def search_prev(data: bytes, pattern: bytes, cursor: int) -> Optional[SearchResult]:
    """Search backward from ``cursor``, wrapping to the end once."""

    pos = find_backward(data, pattern, cursor)
    if pos is not None:
        return SearchResult(pos, len(pattern))

    pos = find_backward(data, pattern, len(data))
    if pos is not None and pos > cursor:
        return SearchResult(pos, len(pattern), wrapped=True)

    return None
