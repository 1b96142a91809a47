"""Mutator: write a single task edit back into its markdown file.

Every operation reads the whole file, edits the line list, writes the
result to ``<path>.tmp`` and renames it over the original with
``os.replace``.  Each individual write is therefore atomic, but there is
no cross-process locking: an external edit landing between our read and
our rename is overwritten (last writer wins).

The in-memory ``TaskRecord`` is only updated after the write succeeded.
Line numbers are trusted as given; a record whose line moved because of
an unrelated structural edit will silently rewrite the wrong line, so
callers re-extract before writing after any delete or insert.

Lines are split on ``\\n`` only, so a ``\\r`` belonging to a CRLF line
ending stays attached to its line and is carried over on rewrite.
"""
from __future__ import annotations

import logging
import os
import re
import shutil
from datetime import date
from pathlib import Path
from typing import Final

from vaulttasks.extractor.extractor import parse_line, split_checkbox
from vaulttasks.grammar.tokens import DONE_GLYPH, PRIORITY_GLYPHS
from vaulttasks.model.nodes import Priority, TaskRecord

logger = logging.getLogger(__name__)

_DONE_STAMP: Final[re.Pattern[str]] = re.compile(
    r"\s*" + re.escape(DONE_GLYPH) + r"\s*\d{4}-\d{2}-\d{2}"
)
_PRIORITY_GLYPH: Final[re.Pattern[str]] = re.compile(
    r"\s*[" + "".join(PRIORITY_GLYPHS.values()) + "]\ufe0f?"
)
NEW_TASK_PREFIX: Final[str] = "- [ ] "
STARTER_FILE_CONTENT: Final[str] = "# Tasks\n\n- [ ] \n"


class LineOutOfRangeError(IndexError):
    """Raised when a record's line number lies outside its file.

    Parameters
    ----------
    path:
        The file that was read.
    line_number:
        The 1-based line number that was requested.
    line_count:
        Number of physical lines the file currently has.
    """

    def __init__(self, path: str, line_number: int, line_count: int) -> None:
        super().__init__(
            f"{path}: line {line_number} is out of range (file has {line_count} line(s))"
        )
        self.path = path
        self.line_number = line_number
        self.line_count = line_count


# ---------------------------------------------------------------------------
# File I/O
# ---------------------------------------------------------------------------


def read_lines(path: str) -> list[str]:
    """Return the physical lines of ``path``, split on ``\\n`` only."""
    return Path(path).read_bytes().decode("utf-8").split("\n")


def write_lines(path: str, lines: list[str]) -> None:
    """Atomically replace ``path`` with ``lines`` joined by ``\\n``."""
    tmp = path + ".tmp"
    try:
        Path(tmp).write_bytes("\n".join(lines).encode("utf-8"))
        shutil.copymode(path, tmp)
        os.replace(tmp, path)
    except OSError:
        Path(tmp).unlink(missing_ok=True)
        raise


def _index_for(path: str, lines: list[str], line_number: int) -> int:
    if not 1 <= line_number <= len(lines):
        raise LineOutOfRangeError(path, line_number, len(lines))
    return line_number - 1


def _line_ending(line: str) -> str:
    return "\r" if line.endswith("\r") else ""


def replace_line(path: str, line_number: int, new_line: str) -> None:
    """Overwrite one physical line, keeping its original line ending."""
    lines = read_lines(path)
    idx = _index_for(path, lines, line_number)
    lines[idx] = new_line + _line_ending(lines[idx])
    write_lines(path, lines)


# ---------------------------------------------------------------------------
# Line rewriting (pure)
# ---------------------------------------------------------------------------


def strip_done_stamp(text: str) -> str:
    """Remove every ``✅ YYYY-MM-DD`` stamp together with its leading space."""
    return _DONE_STAMP.sub("", text)


def strip_priority(text: str) -> str:
    """Remove every priority glyph and trim the result."""
    return _PRIORITY_GLYPH.sub("", text).strip()


def toggled_line(raw_line: str, today: date | None = None) -> str:
    """Return ``raw_line`` with its checkbox flipped.

    Any existing done stamp is removed; when the result is done a fresh
    ``✅ <today>`` stamp is appended.
    """
    parts = split_checkbox(raw_line)
    if parts is None:
        raise ValueError(f"not a checkbox line: {raw_line!r}")
    content = strip_done_stamp(parts.content)
    if parts.done:
        return f"{parts.prefix}[ ]{content}"
    stamp = (today or date.today()).isoformat()
    return f"{parts.prefix}[x]{content} {DONE_GLYPH} {stamp}"


def rebuilt_line(raw_line: str, description: str, done: bool) -> str:
    """Return ``raw_line`` with a new description, keeping its prefix."""
    parts = split_checkbox(raw_line)
    if parts is None:
        raise ValueError(f"not a checkbox line: {raw_line!r}")
    checkbox = "[x]" if done else "[ ]"
    return f"{parts.prefix}{checkbox} {description}"


def _apply_line(record: TaskRecord, new_line: str) -> TaskRecord:
    parsed = parse_line(new_line, record.file_path, record.line_number)
    if parsed is None:
        raise ValueError(f"rewritten line is not a checkbox line: {new_line!r}")
    record.raw_line = parsed.raw_line
    record.done = parsed.done
    record.description = parsed.description
    record.due_date = parsed.due_date
    record.priority = parsed.priority
    record.modified = True
    return record


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def toggle(record: TaskRecord, today: date | None = None) -> TaskRecord:
    """Flip the record's checkbox on disk and in memory.

    Toggling twice restores ``done`` but not a previous done stamp: the
    stamp written by the first toggle is removed by the second.
    """
    new_line = toggled_line(record.raw_line, today)
    replace_line(record.file_path, record.line_number, new_line)
    logger.debug("Toggled %s:%d", record.file_path, record.line_number)
    return _apply_line(record, new_line)


def edit(record: TaskRecord, description: str) -> TaskRecord:
    """Replace the description (metadata tokens included) of a task line."""
    new_line = rebuilt_line(record.raw_line, description, record.done)
    replace_line(record.file_path, record.line_number, new_line)
    logger.debug("Edited %s:%d", record.file_path, record.line_number)
    return _apply_line(record, new_line)


def set_priority(record: TaskRecord, priority: int) -> TaskRecord:
    """Rewrite the record's priority glyph; ``priority`` is clamped into range."""
    rank = Priority.clamp(priority)
    description = strip_priority(record.description)
    glyph = PRIORITY_GLYPHS.get(int(rank))
    if glyph:
        description = f"{description} {glyph}" if description else glyph
    new_line = rebuilt_line(record.raw_line, description, record.done)
    replace_line(record.file_path, record.line_number, new_line)
    logger.debug("Set priority %s on %s:%d", rank.name, record.file_path, record.line_number)
    return _apply_line(record, new_line)


def cycle_priority_up(record: TaskRecord) -> TaskRecord:
    """Move one rank toward Highest (stays at Highest)."""
    return set_priority(record, record.priority - 1)


def cycle_priority_down(record: TaskRecord) -> TaskRecord:
    """Move one rank toward Lowest (stays at Lowest)."""
    return set_priority(record, record.priority + 1)


def delete(record: TaskRecord) -> str:
    """Remove the record's physical line and return it (line ending included).

    Every later record of the same file is stale afterwards.
    """
    lines = read_lines(record.file_path)
    idx = _index_for(record.file_path, lines, record.line_number)
    removed = lines.pop(idx)
    write_lines(record.file_path, lines)
    logger.debug("Deleted %s:%d", record.file_path, record.line_number)
    return removed


def insert_after(record: TaskRecord, description: str) -> TaskRecord:
    """Insert a new unchecked task line directly below ``record``.

    Returns a synthetic record for the new line, valid until the next
    structural edit of the file.
    """
    new_line = NEW_TASK_PREFIX + description
    created = parse_line(new_line, record.file_path, record.line_number + 1)
    if created is None:
        raise ValueError(f"new task line is not a checkbox line: {new_line!r}")
    lines = read_lines(record.file_path)
    idx = _index_for(record.file_path, lines, record.line_number)
    lines.insert(idx + 1, new_line + _line_ending(lines[idx]))
    write_lines(record.file_path, lines)
    logger.debug("Inserted task at %s:%d", record.file_path, created.line_number)
    return created


def restore_line(path: str, line_number: int, line: str) -> None:
    """Re-insert ``line`` so that it becomes line ``line_number`` again.

    Positions past the end append; positions before the start prepend.
    """
    lines = read_lines(path)
    insert_at = min(max(line_number - 1, 0), len(lines))
    lines.insert(insert_at, line)
    write_lines(path, lines)
    logger.debug("Restored line %s:%d", path, insert_at + 1)


def create_tasks_file(path: str | os.PathLike[str] = "tasks.md") -> Path:
    """Create a starter task file, refusing to overwrite an existing one.

    Raises
    ------
    FileExistsError
        If ``path`` already exists.
    """
    target = Path(path)
    with target.open("x", encoding="utf-8", newline="") as fh:
        fh.write(STARTER_FILE_CONTENT)
    return target
