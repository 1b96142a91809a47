"""Evaluator: ``(records, Query) -> Section``.

The pipeline has three stages:

1. **Filter**: ``not done`` drops completed records unless they were
   recently toggled; every date clause must match.  A record without a
   due date fails any date clause.  Only the ``due`` field is evaluated:
   ``scheduled`` and ``done`` clauses are accepted by the compiler but
   always match.
2. **Group**: one unnamed group, or one group per folder (relative to the
   vault root, ``/`` for the root) or per base filename, in first-seen
   order.
3. **Sort**: stable sort inside each group by priority (highest first) or
   by due date (undated last).

Relative date words are resolved against ``today`` at evaluation time.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Callable, Container, Iterable, Sequence
from datetime import date, timedelta

from vaulttasks.model.nodes import (
    DateField,
    DateFilter,
    DateOperator,
    Group,
    GroupBy,
    Query,
    Section,
    SortBy,
    TaskRecord,
)

logger = logging.getLogger(__name__)

ROOT_FOLDER = "/"

_RELATIVE_OFFSETS: dict[str, int] = {
    "today": 0,
    "tomorrow": 1,
    "yesterday": -1,
}


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def resolve_date(value: str, today: date | None = None) -> date:
    """Turn ``today``/``tomorrow``/``yesterday`` or ``YYYY-MM-DD`` into a date.

    Anything unparseable resolves to today.
    """
    base = today or date.today()
    offset = _RELATIVE_OFFSETS.get(value)
    if offset is not None:
        return base + timedelta(days=offset)
    try:
        return date.fromisoformat(value)
    except ValueError:
        logger.debug("Unparseable date %r in query; using today", value)
        return base


def _compare(task_date: date, operator: DateOperator, target: date) -> bool:
    if operator is DateOperator.BEFORE:
        return task_date < target
    if operator is DateOperator.AFTER:
        return task_date > target
    return task_date == target


def match_date_filter(record: TaskRecord, date_filter: DateFilter, today: date | None = None) -> bool:
    """Return True if ``record`` satisfies one date clause.

    A value list (``on a or b``) matches when any value does.
    """
    if date_filter.field is not DateField.DUE:
        return True
    if record.due_date is None:
        return False
    return any(
        _compare(record.due_date, date_filter.operator, resolve_date(value, today))
        for value in date_filter.values
    )


def match_all(record: TaskRecord, filters: Iterable[DateFilter], today: date | None = None) -> bool:
    """Return True if ``record`` satisfies every date clause."""
    return all(match_date_filter(record, f, today) for f in filters)


# ---------------------------------------------------------------------------
# Pipeline stages
# ---------------------------------------------------------------------------


def filter_records(
    records: Iterable[TaskRecord],
    query: Query,
    recently_toggled: Container[tuple[str, int]] | None = None,
    today: date | None = None,
) -> list[TaskRecord]:
    """Apply the status and date clauses of ``query``, keeping input order.

    Parameters
    ----------
    records:
        Every extracted record.
    query:
        The compiled query.
    recently_toggled:
        ``(file_path, line_number)`` keys exempt from ``not done``.
    today:
        Reference day for relative dates; defaults to the current date.
    """
    exempt = recently_toggled if recently_toggled is not None else ()
    kept: list[TaskRecord] = []
    for record in records:
        if query.not_done and record.done and record.key not in exempt:
            continue
        if query.date_filters and not match_all(record, query.date_filters, today):
            continue
        kept.append(record)
    return kept


def relative_path(vault_root: str, file_path: str) -> str:
    """Return ``file_path`` relative to ``vault_root`` (unchanged on failure)."""
    if not vault_root:
        return file_path
    try:
        return os.path.relpath(file_path, vault_root)
    except ValueError:
        return file_path


def group_key(record: TaskRecord, group_by: GroupBy, vault_root: str) -> str:
    """Return the name of the group ``record`` falls into."""
    if group_by is GroupBy.FOLDER:
        folder = os.path.dirname(relative_path(vault_root, record.file_path))
        return folder if folder not in ("", ".") else ROOT_FOLDER
    if group_by is GroupBy.FILENAME:
        return os.path.basename(record.file_path)
    return ""


def _due_key(record: TaskRecord) -> tuple[bool, date]:
    return (record.due_date is None, record.due_date or date.min)


_SORT_KEYS: dict[SortBy, Callable[[TaskRecord], object]] = {
    SortBy.PRIORITY: lambda record: int(record.priority),
    SortBy.DUE: _due_key,
}


def sort_tasks(records: Sequence[TaskRecord], sort_by: SortBy) -> list[TaskRecord]:
    """Return a stably sorted copy of ``records``."""
    key = _SORT_KEYS.get(sort_by)
    if key is None:
        return list(records)
    return sorted(records, key=key)


def group_records(
    records: Sequence[TaskRecord],
    group_by: GroupBy,
    sort_by: SortBy,
    vault_root: str,
) -> list[Group]:
    """Split ``records`` into first-seen-ordered groups, each sorted."""
    if group_by is GroupBy.NONE:
        return [Group(name="", tasks=tuple(sort_tasks(records, sort_by)))]

    buckets: dict[str, list[TaskRecord]] = {}
    for record in records:
        buckets.setdefault(group_key(record, group_by, vault_root), []).append(record)
    return [Group(name=name, tasks=tuple(sort_tasks(members, sort_by))) for name, members in buckets.items()]


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def evaluate(
    records: Iterable[TaskRecord],
    query: Query,
    vault_root: str = "",
    recently_toggled: Container[tuple[str, int]] | None = None,
    today: date | None = None,
) -> Section:
    """Run the filter, group and sort pipeline for one query."""
    filtered = filter_records(records, query, recently_toggled, today)
    groups = group_records(filtered, query.group_by, query.sort_by, vault_root)
    tasks = tuple(task for group in groups for task in group.tasks)
    return Section(name=query.name, query=query, groups=tuple(groups), tasks=tasks)


def evaluate_all(
    records: Sequence[TaskRecord],
    queries: Iterable[Query],
    vault_root: str = "",
    recently_toggled: Container[tuple[str, int]] | None = None,
    today: date | None = None,
) -> list[Section]:
    """Evaluate every query independently over the same records."""
    return [evaluate(records, query, vault_root, recently_toggled, today) for query in queries]
