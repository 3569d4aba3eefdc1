"""Pytest configuration making the hxedit package importable from src/."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, List, Optional

import pytest

_SRC = Path(__file__).resolve().parents[1] / "src"
_src_str = str(_SRC)
if _src_str not in sys.path:
    sys.path.insert(0, _src_str)

from hxedit.app.actions import Action, ActionKind  # noqa: E402
from hxedit.app.controller import EditController  # noqa: E402
from hxedit.core.buffer import ByteBuffer  # noqa: E402
from hxedit.errors import ClipboardError  # noqa: E402


class FakeClipboard:
    """In-memory clipboard recording every copy."""

    def __init__(self, content: Optional[str] = None, fail: bool = False) -> None:
        self.content = content
        self.fail = fail
        self.copies: List[str] = []

    def copy(self, text: str) -> None:
        if self.fail:
            raise ClipboardError("Clipboard unavailable")
        self.copies.append(text)
        self.content = text

    def paste(self) -> str:
        if not self.content:
            raise ClipboardError("Clipboard empty or unavailable")
        return self.content


@pytest.fixture
def clipboard() -> FakeClipboard:
    return FakeClipboard()


@pytest.fixture
def make_controller(clipboard: FakeClipboard) -> Callable[..., EditController]:
    def factory(data: bytes = b"", path: Optional[str] = None, readonly: bool = False,
                **kwargs) -> EditController:
        controller = EditController(ByteBuffer(data, path=path, readonly=readonly), clipboard=clipboard, **kwargs)
        controller.set_visible_rows(4)
        return controller

    return factory


def run(controller: EditController, *actions: Action) -> EditController:
    for action in actions:
        controller.execute(action)
    return controller


def act(kind: ActionKind, **payload) -> Action:
    return Action(kind, **payload)


def type_text(controller: EditController, text: str) -> None:
    for char in text:
        controller.execute(Action(ActionKind.CHAR, char=char))
