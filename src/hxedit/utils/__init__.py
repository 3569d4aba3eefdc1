"""
Utility package for pattern parsing, search and clipboard support.
"""

from .hex_utils import (
    looks_like_hex,
    hex_to_bytes,
    text_to_bytes,
    parse_address,
    format_offset
)
from .search import SearchResult, find_forward, find_backward, search_next, search_prev

__all__ = [
    'looks_like_hex',
    'hex_to_bytes',
    'text_to_bytes',
    'parse_address',
    'format_offset',
    'SearchResult',
    'find_forward',
    'find_backward',
    'search_next',
    'search_prev'
]
