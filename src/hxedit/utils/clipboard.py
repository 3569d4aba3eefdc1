"""
Clipboard support: hex formatting of byte ranges and the system clipboard.

Copies go to the system clipboard through pyperclip and, for terminals
reached over SSH, to the terminal clipboard through the OSC 52 escape.
"""

import base64
import logging
import sys
from enum import Enum
from typing import IO, Optional, Protocol

import pyperclip

from ..errors import ClipboardError

logger = logging.getLogger(__name__)

OSC52_PREFIX = "\x1b]52;c;"
OSC52_SUFFIX = "\x07"


class HexFormat(Enum):
    SPACED = "spaced"
    COMPACT = "compact"
    C_ARRAY = "c_array"
    ESCAPED = "escaped"


def format_hex(data: bytes, fmt: HexFormat = HexFormat.SPACED) -> str:
    """
    Format bytes as hex text.

    SPACED gives "DE AD", COMPACT "DEAD", C_ARRAY "0xDE, 0xAD" and
    ESCAPED "\\xDE\\xAD".
    """

    if fmt is HexFormat.COMPACT:
        return ''.join(f"{b:02X}" for b in data)
    if fmt is HexFormat.C_ARRAY:
        return ', '.join(f"0x{b:02X}" for b in data)
    if fmt is HexFormat.ESCAPED:
        return ''.join(f"\\x{b:02X}" for b in data)

    return ' '.join(f"{b:02X}" for b in data)


class Clipboard(Protocol):
    def copy(self, text: str) -> None: ...

    def paste(self) -> str: ...


def osc52_sequence(text: str) -> str:
    payload = base64.b64encode(text.encode('utf-8')).decode('ascii')
    return f"{OSC52_PREFIX}{payload}{OSC52_SUFFIX}"


class SystemClipboard:
    """Clipboard backed by pyperclip with an OSC 52 side channel."""

    def __init__(self, use_system: bool = True, use_osc52: bool = True,
                 stream: Optional[IO[str]] = None) -> None:
        self.use_system = use_system
        self.use_osc52 = use_osc52
        self.stream = stream
        self.last_copied: Optional[str] = None

    def copy(self, text: str) -> None:
        """Copy text to every available clipboard; raise if none accepted it."""

        copied = False
        self.last_copied = text

        if self.use_system:
            try:
                pyperclip.copy(text)
                copied = True
            except pyperclip.PyperclipException as e:
                logger.warning("System clipboard unavailable via pyperclip: %s", e)

        if self.use_osc52:
            copied = self._write_osc52(text) or copied

        if not copied and self.use_system:
            raise ClipboardError("Clipboard unavailable")

    def paste(self) -> str:
        """Return clipboard text, falling back to the last text copied here."""

        text = ''
        if self.use_system:
            try:
                text = pyperclip.paste()
            except pyperclip.PyperclipException as e:
                logger.warning("Could not read system clipboard: %s", e)

        if not text:
            text = self.last_copied or ''

        if not text:
            raise ClipboardError("Clipboard empty or unavailable")

        return text

    def _write_osc52(self, text: str) -> bool:
        stream = self.stream or sys.stdout
        try:
            stream.write(osc52_sequence(text))
            stream.flush()
        except (OSError, ValueError) as e:
            logger.warning("OSC 52 write failed: %s", e)
            return False

        return True
