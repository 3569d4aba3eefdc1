"""
Core package for the byte buffer and character codec.

This package implements the ByteBuffer with its undo/redo log, the
encodings used to type and display text, and file type detection.
"""

from .buffer import ByteBuffer, Operation, OpKind
from .encoding import CharEncoding, decode_for_display, encode_char

__all__ = ['ByteBuffer', 'Operation', 'OpKind', 'CharEncoding', 'decode_for_display', 'encode_char']
