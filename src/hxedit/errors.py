"""
Exception types raised by the editor core.
"""

from typing import Optional


class HexEditError(Exception):
    """Base class for all editor errors."""


class OutOfBoundsError(HexEditError, IndexError):
    """A buffer position lies outside the legal range for the operation."""

    def __init__(self, position: int, length: int) -> None:
        super().__init__(f"Position {position:X} out of bounds (size {length:X})")
        self.position = position
        self.length = length


class ReadOnlyError(HexEditError):
    """A mutation was attempted on a read-only buffer."""

    def __init__(self) -> None:
        super().__init__("Buffer is read-only")


class NoPathError(HexEditError):
    """Save was requested for a buffer that has never been given a path."""

    def __init__(self) -> None:
        super().__init__("No file path set")


class EncodeError(HexEditError):
    """A character cannot be represented in the active encoding."""

    def __init__(self, char: str, encoding: str) -> None:
        super().__init__(f"Cannot encode '{char}' in {encoding}")
        self.char = char
        self.encoding = encoding


class ParseError(HexEditError, ValueError):
    """User-entered text could not be parsed as a number, address or byte."""

    def __init__(self, message: str, text: Optional[str] = None) -> None:
        super().__init__(message)
        self.text = text


class ClipboardError(HexEditError):
    """The system clipboard could not be read or written."""
