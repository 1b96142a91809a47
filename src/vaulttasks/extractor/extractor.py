"""Extractor: markdown text -> ordered ``TaskRecord`` list.

A line is a task iff, after optional leading whitespace, it reads
``-``, optional whitespace, then ``[ ]``, ``[x]`` or ``[X]``.  Everything
after the checkbox (whitespace-trimmed) is the description.  Line numbers
are 1-based physical lines; non-task lines still count.

The checkbox grammar is recognized by ``split_checkbox``, a small
character scanner, rather than a single opaque pattern so that the
prefix (indentation plus list marker) can be reused verbatim by the
mutator when it rebuilds a line.

Metadata tokens read from the description:

* ``📅 YYYY-MM-DD``: the first well-formed occurrence gives the due
  date; an impossible calendar date yields no due date.
* the first priority glyph gives the priority rank; none means Normal.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path

from vaulttasks.grammar.tokens import DUE_GLYPH, GLYPH_PRIORITIES
from vaulttasks.model.nodes import Priority, TaskRecord

logger = logging.getLogger(__name__)

# Whitespace accepted around the list marker and checkbox.
_BLANKS = frozenset(" \t\f\r\v")
_CHECK_MARKS = frozenset(" xX")
_DATE_WIDTH = 10  # YYYY-MM-DD


@dataclass(frozen=True, slots=True)
class CheckboxLine:
    """A task line split into its three parts.

    Parameters
    ----------
    prefix:
        Indentation, the ``-`` marker and any whitespace before ``[``.
    mark:
        The character between the brackets: ``" "``, ``"x"`` or ``"X"``.
    content:
        Everything after ``]``, untrimmed.
    """

    prefix: str
    mark: str
    content: str

    @property
    def done(self) -> bool:
        return self.mark in ("x", "X")


def split_checkbox(line: str) -> CheckboxLine | None:
    """Split a task line into prefix / mark / content, or return None."""
    pos = 0
    end = len(line)
    while pos < end and line[pos] in _BLANKS:
        pos += 1
    if pos >= end or line[pos] != "-":
        return None
    pos += 1
    while pos < end and line[pos] in _BLANKS:
        pos += 1
    if end - pos < 3 or line[pos] != "[" or line[pos + 2] != "]":
        return None
    mark = line[pos + 1]
    if mark not in _CHECK_MARKS:
        return None
    return CheckboxLine(prefix=line[:pos], mark=mark, content=line[pos + 3 :])


def _is_iso_date_shape(text: str) -> bool:
    return (
        len(text) == _DATE_WIDTH
        and text[4] == "-"
        and text[7] == "-"
        and (text[:4] + text[5:7] + text[8:]).isascii()
        and (text[:4] + text[5:7] + text[8:]).isdigit()
    )


def parse_due_date(description: str) -> date | None:
    """Return the date of the first well-formed ``📅 YYYY-MM-DD`` token."""
    start = description.find(DUE_GLYPH)
    while start != -1:
        pos = start + len(DUE_GLYPH)
        while pos < len(description) and description[pos].isspace():
            pos += 1
        candidate = description[pos : pos + _DATE_WIDTH]
        if _is_iso_date_shape(candidate):
            try:
                return datetime.strptime(candidate, "%Y-%m-%d").date()
            except ValueError:
                return None
        start = description.find(DUE_GLYPH, start + len(DUE_GLYPH))
    return None


def parse_priority(description: str) -> Priority:
    """Return the rank of the first priority glyph, or ``Priority.NORMAL``."""
    for ch in description:
        rank = GLYPH_PRIORITIES.get(ch)
        if rank is not None:
            return Priority(rank)
    return Priority.NORMAL


def parse_line(line: str, file_path: str = "", line_number: int = 0) -> TaskRecord | None:
    """Build a ``TaskRecord`` from one physical line, or return None."""
    if line.endswith("\r"):
        line = line[:-1]
    parts = split_checkbox(line)
    if parts is None:
        return None
    description = parts.content.strip()
    return TaskRecord(
        file_path=file_path,
        line_number=line_number,
        raw_line=line,
        done=parts.done,
        description=description,
        due_date=parse_due_date(description),
        priority=parse_priority(description),
    )


def extract(data: bytes | str, path: str = "") -> list[TaskRecord]:
    """Extract every checkbox task from markdown text.

    Parameters
    ----------
    data:
        File contents.  ``bytes`` are decoded as strict UTF-8.
    path:
        Stored as ``file_path`` on every record.

    Returns
    -------
    list[TaskRecord]
        Records in file order.

    Raises
    ------
    UnicodeDecodeError
        If ``data`` is not valid UTF-8.
    """
    text = data.decode("utf-8") if isinstance(data, bytes) else data
    records: list[TaskRecord] = []
    for line_number, line in enumerate(text.split("\n"), start=1):
        record = parse_line(line, path, line_number)
        if record is not None:
            records.append(record)
    return records


def extract_file(path: str | os.PathLike[str]) -> list[TaskRecord]:
    """Read ``path`` and extract its tasks.  ``OSError`` propagates."""
    data = Path(path).read_bytes()
    return extract(data, os.fspath(path))


def scan_vault(root: str | os.PathLike[str]) -> list[str]:
    """Return every markdown file under ``root``, skipping hidden directories.

    The root itself is never skipped, even when its name starts with a dot.
    Results are in lexical walk order.  Unreadable directories are logged
    and skipped.
    """

    def _on_error(exc: OSError) -> None:
        logger.warning("Skipping unreadable directory %s: %s", exc.filename, exc)

    files: list[str] = []
    for dirpath, dirnames, filenames in os.walk(os.fspath(root), onerror=_on_error):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        for name in sorted(filenames):
            if name.lower().endswith(".md"):
                files.append(os.path.join(dirpath, name))
    return files
