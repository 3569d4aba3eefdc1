"""
Editor mode values.

The controller holds exactly one mode at a time; search, query-replace,
prompt and confirm cannot overlap because each is a different variant.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class ViewMode(Enum):
    HEX = "HEX"
    TEXT = "ASC"


class EditMode(Enum):
    OVERWRITE = "OVR"
    INSERT = "INS"


@dataclass(frozen=True)
class HexIdle:
    pass


@dataclass(frozen=True)
class HexFirstNibble:
    digit: int


HexEntry = Union[HexIdle, HexFirstNibble]


class ReplaceStage(Enum):
    ENTERING_SEARCH = "search"
    ENTERING_REPLACE = "replace"
    CONFIRMING = "confirm"


class PromptKind(Enum):
    GOTO_ADDRESS = "Goto address: "
    OPEN_FILE = "Open file: "
    SAVE_AS = "Save as: "
    COMMAND = "M-x "
    COMMAND_ARG = ""


class PendingAction(Enum):
    QUIT = "quit"
    OPEN_FILE = "open"
    KILL_BUFFER = "kill"


@dataclass
class NormalMode:
    pass


@dataclass
class SearchMode:
    anchor: int
    query: str = ""
    backward: bool = False
    failing: bool = False


@dataclass
class ReplaceMode:
    anchor: int
    stage: ReplaceStage = ReplaceStage.ENTERING_SEARCH
    pattern_text: str = ""
    replacement_text: str = ""


@dataclass
class PromptMode:
    kind: PromptKind
    text: str = ""
    command: Optional[str] = None
    label: str = ""

    def __post_init__(self) -> None:
        if not self.label:
            self.label = self.kind.value


@dataclass
class ConfirmMode:
    pending: PendingAction
    path: Optional[str] = None


Mode = Union[NormalMode, SearchMode, ReplaceMode, PromptMode, ConfirmMode]
