"""
UI package for the curses hex editor interface.

This package implements the HexView row projection, the WindowManager that
paints it and the InputHandler that turns keys into editor actions.
"""

from .hex_view import HexView
from .window import WindowManager
from .input_handler import InputHandler

__all__ = ['HexView', 'WindowManager', 'InputHandler']
