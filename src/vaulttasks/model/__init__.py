"""Task records, compiled queries and evaluated sections."""
from __future__ import annotations

from vaulttasks.model.nodes import (
    DateField,
    DateFilter,
    DateOperator,
    Group,
    GroupBy,
    Priority,
    Query,
    Section,
    SortBy,
    TaskRecord,
)

__all__ = [
    "DateField",
    "DateFilter",
    "DateOperator",
    "Group",
    "GroupBy",
    "Priority",
    "Query",
    "Section",
    "SortBy",
    "TaskRecord",
]
