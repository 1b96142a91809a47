"""Query evaluation module: filter, group and sort extracted records."""
from __future__ import annotations

from vaulttasks.evaluator.evaluator import (
    evaluate,
    evaluate_all,
    filter_records,
    group_key,
    group_records,
    match_all,
    match_date_filter,
    relative_path,
    resolve_date,
    sort_tasks,
)

__all__ = [
    "evaluate",
    "evaluate_all",
    "filter_records",
    "group_key",
    "group_records",
    "match_all",
    "match_date_filter",
    "relative_path",
    "resolve_date",
    "sort_tasks",
]
