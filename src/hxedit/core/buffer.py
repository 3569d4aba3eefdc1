"""
Buffer module holding the bytes being edited and their undo history.

Every mutation changes exactly one byte and records one Operation. Undo and
redo replay those records; the buffer never clamps positions itself, callers
are expected to stay in bounds or handle OutOfBoundsError.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from ..errors import NoPathError, OutOfBoundsError, ReadOnlyError

logger = logging.getLogger(__name__)


class OpKind(Enum):
    SET = "set"
    INSERT = "insert"
    DELETE = "delete"


@dataclass(frozen=True)
class Operation:
    """A single reversible byte change."""
    kind: OpKind
    position: int
    old: Optional[int] = None
    new: Optional[int] = None

    def inverse(self) -> 'Operation':
        """Return the operation that undoes this one."""

        if self.kind is OpKind.SET:
            return Operation(OpKind.SET, self.position, self.new, self.old)
        if self.kind is OpKind.INSERT:
            return Operation(OpKind.DELETE, self.position, self.new, None)

        return Operation(OpKind.INSERT, self.position, None, self.old)


def _check_value(value: int) -> None:
    if not 0 <= value <= 255:
        raise ValueError("Byte value must be between 0 and 255")


class ByteBuffer:
    """In-memory byte sequence with per-byte undo and redo."""

    def __init__(self, initial_data: bytes = b'', path: Optional[str] = None, readonly: bool = False) -> None:
        self.data = bytearray(initial_data)
        self.path = path
        self.readonly = readonly
        self.modified = False
        self.undo_log: List[Operation] = []
        self.redo_log: List[Operation] = []

    @classmethod
    def open(cls, path: str, readonly: bool = False) -> 'ByteBuffer':
        """Read a whole file into a new buffer."""

        with open(path, 'rb') as f:
            data = f.read()

        logger.info("Opened %s (%d bytes)", path, len(data))
        return cls(data, path=path, readonly=readonly)

    def __len__(self) -> int:
        return len(self.data)

    @property
    def filename(self) -> Optional[str]:
        if not self.path:
            return None

        return os.path.basename(self.path)

    @property
    def undo_depth(self) -> int:
        return len(self.undo_log)

    @property
    def redo_depth(self) -> int:
        return len(self.redo_log)

    @property
    def can_undo(self) -> bool:
        return bool(self.undo_log)

    @property
    def can_redo(self) -> bool:
        return bool(self.redo_log)

    def get(self, position: int) -> Optional[int]:
        """Return the byte at ``position`` or None past the end."""

        if not 0 <= position < len(self.data):
            return None

        return self.data[position]

    def get_range(self, start: int, end: int) -> Optional[bytes]:
        """Return bytes in ``[start, end)`` or None if the range is invalid."""

        if start < 0 or start > end or end > len(self.data):
            return None

        return bytes(self.data[start:end])

    def set(self, position: int, value: int) -> None:
        """Replace the byte at ``position``. Equal values record nothing."""

        self._check_writable()
        _check_value(value)
        if not 0 <= position < len(self.data):
            raise OutOfBoundsError(position, len(self.data))

        old_value = self.data[position]
        if old_value == value:
            return

        self._record(Operation(OpKind.SET, position, old_value, value))

    def insert(self, position: int, value: int) -> None:
        """Insert a byte before ``position``; ``position == len`` appends."""

        self._check_writable()
        _check_value(value)
        if not 0 <= position <= len(self.data):
            raise OutOfBoundsError(position, len(self.data))

        self._record(Operation(OpKind.INSERT, position, None, value))

    def delete(self, position: int) -> int:
        """Remove and return the byte at ``position``."""

        self._check_writable()
        if not 0 <= position < len(self.data):
            raise OutOfBoundsError(position, len(self.data))

        old_value = self.data[position]
        self._record(Operation(OpKind.DELETE, position, old_value, None))

        return old_value

    def undo(self) -> Optional[int]:
        """Undo the last operation and return the offset it touched."""

        if not self.undo_log:
            return None

        op = self.undo_log.pop()
        self._apply(op.inverse())
        self.redo_log.append(op)
        self.modified = bool(self.undo_log)

        if op.kind is OpKind.INSERT:
            return max(0, min(op.position - 1, len(self.data) - 1))

        return op.position

    def redo(self) -> Optional[int]:
        """Reapply the last undone operation and return the offset it touched."""

        if not self.redo_log:
            return None

        op = self.redo_log.pop()
        self._apply(op)
        self.undo_log.append(op)
        self.modified = True

        if op.kind is OpKind.DELETE:
            return max(0, min(op.position, len(self.data) - 1))

        return op.position

    def save(self) -> None:
        """Write the whole buffer to its path."""

        if not self.path:
            raise NoPathError()

        with open(self.path, 'wb') as f:
            f.write(bytes(self.data))

        self.modified = False
        logger.info("Saved %s (%d bytes)", self.path, len(self.data))

    def save_as(self, path: str) -> None:
        """Set a new path and save there."""

        self.path = path
        self.save()

    def _check_writable(self) -> None:
        if self.readonly:
            raise ReadOnlyError()

    def _record(self, op: Operation) -> None:
        self._apply(op)
        self.undo_log.append(op)
        self.redo_log.clear()
        self.modified = True

    def _apply(self, op: Operation) -> None:
        if op.kind is OpKind.SET:
            self.data[op.position] = op.new
        elif op.kind is OpKind.INSERT:
            self.data.insert(op.position, op.new)
        else:
            del self.data[op.position]
