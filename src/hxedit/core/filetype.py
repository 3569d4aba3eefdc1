"""
File type detection for the status line and the info report, using Pygments.
"""

from typing import Final, Optional

from pygments.lexers import get_lexer_for_filename, guess_lexer
from pygments.util import ClassNotFound

SAMPLE_SIZE: Final[int] = 4096
BINARY_LABEL: Final[str] = "binary"
TEXT_LABEL: Final[str] = "text"
EMPTY_LABEL: Final[str] = "empty"


def is_binary(sample: bytes) -> bool:
    """Check if data is binary based on its null and printable byte ratios."""

    if not sample:
        return False

    null_count = sample.count(0)
    printable_count = sum(32 <= b <= 126 or b in (9, 10, 13) for b in sample)

    return (null_count > len(sample) * 0.1) or (printable_count < len(sample) * 0.8)


def detect_file_type(data: bytes, filename: Optional[str] = None) -> str:
    """
    Describe the content of a buffer in a few characters.

    Args:
        data: The buffer content (only the first few KiB are inspected)
        filename: Optional file name used for extension based lookup

    Returns:
        A lexer name such as 'Python', or 'binary', 'text' or 'empty'
    """

    if filename:
        try:
            return get_lexer_for_filename(filename).name
        except ClassNotFound:
            pass

    sample = bytes(data[:SAMPLE_SIZE])
    if not sample:
        return EMPTY_LABEL

    if is_binary(sample):
        return BINARY_LABEL

    try:
        lexer = guess_lexer(sample.decode('utf-8', errors='replace'))
    except ClassNotFound:
        return TEXT_LABEL

    if lexer.name == 'Text only':
        return TEXT_LABEL

    return lexer.name
