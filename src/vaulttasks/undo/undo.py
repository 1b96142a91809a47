"""Bounded undo history of inverse operations.

Pushing onto a full stack evicts the oldest entry; it never refuses.
The stack also drives one visibility rule: a record whose
``(path, line)`` matches a live *toggle* entry counts as recently
toggled and stays visible in ``not done`` views.  Delete and priority
entries are ignored for that purpose because their line numbers may
already be stale.
"""
from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum, auto

from vaulttasks.model.nodes import Priority, TaskRecord
from vaulttasks.mutator.mutator import restore_line, set_priority, toggle

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 50


class OperationType(Enum):
    """Kind of operation an ``UndoEntry`` reverses."""

    TOGGLE = auto()
    DELETE = auto()
    PRIORITY_CHANGE = auto()


@dataclass(frozen=True, slots=True)
class UndoEntry:
    """Descriptor of the inverse of one write.

    Parameters
    ----------
    type:
        Which operation was performed.
    file_path:
        File the operation touched.
    line_number:
        1-based line the operation touched.
    deleted_line:
        For ``DELETE``: the removed physical line, line ending included.
    previous_priority:
        For ``PRIORITY_CHANGE``: the rank before the change.
    was_done:
        For ``TOGGLE``: the checkbox state before the toggle.
    timestamp:
        Wall-clock time the entry was created.
    """

    type: OperationType
    file_path: str
    line_number: int
    deleted_line: str = ""
    previous_priority: Priority = Priority.NORMAL
    was_done: bool = False
    timestamp: float = field(default_factory=time.time)

    @property
    def key(self) -> tuple[str, int]:
        return (self.file_path, self.line_number)


class UndoStack:
    """LIFO of ``UndoEntry`` objects with a fixed capacity."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._entries: deque[UndoEntry] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[UndoEntry]:
        return iter(self._entries)

    def push(self, entry: UndoEntry) -> None:
        """Add ``entry``, evicting the oldest one when full."""
        self._entries.append(entry)

    def pop(self) -> UndoEntry | None:
        """Remove and return the newest entry, or None when empty."""
        if not self._entries:
            return None
        return self._entries.pop()

    def peek(self) -> UndoEntry | None:
        return self._entries[-1] if self._entries else None

    def clear(self) -> None:
        """Forget every entry, which also ends all toggle visibility."""
        self._entries.clear()

    def is_recently_toggled(self, file_path: str, line_number: int) -> bool:
        """Return True if a live toggle entry matches ``(file_path, line_number)``."""
        return any(
            entry.type is OperationType.TOGGLE
            and entry.file_path == file_path
            and entry.line_number == line_number
            for entry in self._entries
        )

    def __contains__(self, key: object) -> bool:
        """Support ``(path, line) in stack`` as the recently-toggled test."""
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        return self.is_recently_toggled(key[0], key[1])


def _find(records: Iterable[TaskRecord], entry: UndoEntry) -> TaskRecord | None:
    for record in records:
        if record.key == entry.key:
            return record
    return None


def apply_undo(entry: UndoEntry, records: Iterable[TaskRecord]) -> str | None:
    """Perform the inverse described by ``entry``.

    ``records`` are the records of the latest refresh; toggle and priority
    entries act on the record at the entry's ``(path, line)``.  Returns the
    path that was written, or None when no matching record exists.

    Raises
    ------
    OSError
        If the file cannot be read or written.
    """
    if entry.type is OperationType.DELETE:
        restore_line(entry.file_path, entry.line_number, entry.deleted_line)
        return entry.file_path

    record = _find(records, entry)
    if record is None:
        logger.debug("Nothing to undo at %s:%d", entry.file_path, entry.line_number)
        return None
    if entry.type is OperationType.TOGGLE:
        toggle(record)
    else:
        set_priority(record, entry.previous_priority)
    return record.file_path
