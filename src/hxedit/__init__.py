"""
hxedit - Terminal hex editor.

The editing core (buffer, codec, pattern search) lives in ``core`` and
``utils``; ``app`` holds the modal controller and ``ui`` the curses front end.
"""

__version__ = "0.1.0"

__all__ = ['__version__']
