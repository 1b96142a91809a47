"""Undo module: bounded history of inverse operations."""
from __future__ import annotations

from vaulttasks.undo.undo import (
    DEFAULT_CAPACITY,
    OperationType,
    UndoEntry,
    UndoStack,
    apply_undo,
)

__all__ = [
    "DEFAULT_CAPACITY",
    "OperationType",
    "UndoEntry",
    "UndoStack",
    "apply_undo",
]
