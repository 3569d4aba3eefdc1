"""
Application package holding the edit controller and its actions and modes.
"""

from .actions import Action, ActionKind
from .controller import EditController

__all__ = ['Action', 'ActionKind', 'EditController']
