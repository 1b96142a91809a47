"""Data model for vault-tasks.

``TaskRecord`` is the one mutable node: it describes a single checkbox
line and is updated in place by the mutator after a successful write.
Its identity is the ``(file_path, line_number)`` pair, which is only
valid until the next structural edit (delete or insert) of that file.

Query-side nodes (``DateFilter``, ``Query``) and result nodes
(``Group``, ``Section``) are frozen dataclasses so compiled queries and
evaluated views can be shared freely between the owner loop and
renderers.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum, IntEnum, auto


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Priority(IntEnum):
    """Six ordered priority ranks; a lower value sorts first."""

    HIGHEST = 1
    HIGH = 2
    MEDIUM = 3
    NORMAL = 4
    LOW = 5
    LOWEST = 6

    @classmethod
    def clamp(cls, value: int) -> "Priority":
        """Return the rank nearest to ``value`` inside the valid range."""
        return cls(min(max(int(value), cls.HIGHEST), cls.LOWEST))


class DateField(Enum):
    """Task date a filter refers to.  Only ``DUE`` is evaluated."""

    DUE = auto()
    SCHEDULED = auto()
    DONE = auto()


class DateOperator(Enum):
    """Comparison applied between a task date and the filter date(s)."""

    ON = auto()
    BEFORE = auto()
    AFTER = auto()


class GroupBy(Enum):
    """Grouping key for a section."""

    NONE = auto()
    FOLDER = auto()
    FILENAME = auto()


class SortBy(Enum):
    """Within-group ordering for a section."""

    NONE = auto()
    PRIORITY = auto()
    DUE = auto()


# ---------------------------------------------------------------------------
# Task records
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class TaskRecord:
    """One extracted checkbox line.

    Parameters
    ----------
    file_path:
        Path of the markdown file the line was read from.
    line_number:
        1-based physical line number.  Stale after any structural edit.
    raw_line:
        The line as written on disk (without line terminator).  Source of
        truth for every rewrite.
    done:
        ``True`` for ``[x]`` / ``[X]``.
    description:
        Trimmed text after the checkbox, metadata tokens included.
    due_date:
        Date from the first ``📅 YYYY-MM-DD`` token, if valid.
    priority:
        Rank from the first priority glyph; ``NORMAL`` when absent.
    modified:
        Set once this record has been written back by the mutator.
    """

    file_path: str
    line_number: int
    raw_line: str
    done: bool = False
    description: str = ""
    due_date: date | None = None
    priority: Priority = Priority.NORMAL
    modified: bool = False

    @property
    def key(self) -> tuple[str, int]:
        """Return the ``(file_path, line_number)`` identity pair."""
        return (self.file_path, self.line_number)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DateFilter:
    """A single date clause such as ``due before 2024-06-01``.

    Date values are kept exactly as written (``today``, ``2024-06-01``) and
    resolved at evaluation time.  A single value lives in ``date``; an
    ``or`` list of two or more values lives in ``dates`` and matches when
    any of them does.
    """

    field: DateField
    operator: DateOperator
    date: str = ""
    dates: tuple[str, ...] = ()

    @property
    def values(self) -> tuple[str, ...]:
        """Return every date value this filter compares against."""
        return self.dates if self.dates else (self.date,)


@dataclass(frozen=True, slots=True)
class Query:
    """A compiled query block.

    Parameters
    ----------
    name:
        Nearest preceding level-2 heading, or ``""``.
    not_done:
        Hide completed tasks (subject to the recently-toggled exemption).
    date_filters:
        Conjunctive list of date clauses.
    group_by:
        Grouping key for the resulting section.
    sort_by:
        Within-group ordering for the resulting section.
    """

    name: str = ""
    not_done: bool = False
    date_filters: tuple[DateFilter, ...] = ()
    group_by: GroupBy = GroupBy.NONE
    sort_by: SortBy = SortBy.NONE


# ---------------------------------------------------------------------------
# Evaluation results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Group:
    """An ordered run of tasks sharing a folder, a filename, or nothing."""

    name: str
    tasks: tuple[TaskRecord, ...] = ()


@dataclass(frozen=True, slots=True)
class Section:
    """The evaluated result of one query.

    ``tasks`` is always the concatenation of ``groups`` in order.
    """

    name: str
    query: Query
    groups: tuple[Group, ...] = ()
    tasks: tuple[TaskRecord, ...] = ()
