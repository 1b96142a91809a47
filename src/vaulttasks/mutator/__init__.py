"""Single-line task edits written back atomically to markdown files."""
from __future__ import annotations

from vaulttasks.mutator.mutator import (
    LineOutOfRangeError,
    create_tasks_file,
    cycle_priority_down,
    cycle_priority_up,
    delete,
    edit,
    insert_after,
    restore_line,
    set_priority,
    toggle,
    toggled_line,
)

__all__ = [
    "LineOutOfRangeError",
    "create_tasks_file",
    "cycle_priority_down",
    "cycle_priority_up",
    "delete",
    "edit",
    "insert_after",
    "restore_line",
    "set_priority",
    "toggle",
    "toggled_line",
]
