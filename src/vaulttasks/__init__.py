"""vault-tasks: query, toggle and watch markdown checkbox tasks across a vault.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
::

    import vaulttasks

    records = vaulttasks.extract("- [ ] buy milk 📅 2099-01-01\\n", path="todo.md")
    queries = vaulttasks.compile_queries("not done\\ndue before 2100-01-01")
    sections = vaulttasks.evaluate(records, queries)

    vaulttasks.__version__
    '0.1.0'
"""
from __future__ import annotations

from typing import TYPE_CHECKING

__version__: str = "0.1.0"

if TYPE_CHECKING:
    from vaulttasks.config.config import SessionConfig
    from vaulttasks.model.nodes import Query, Section, TaskRecord
    from vaulttasks.session.session import TaskSession


def extract(data: bytes | str, path: str = "") -> list["TaskRecord"]:
    """Extract every checkbox task from markdown text.

    Parameters
    ----------
    data:
        File contents, as bytes (decoded as UTF-8) or text.
    path:
        File path recorded on each ``TaskRecord``.

    Returns
    -------
    list[TaskRecord]
        Tasks in file order, with 1-based physical line numbers.
    """
    from vaulttasks.extractor.extractor import extract as _extract

    return _extract(data, path)


def compile_queries(source: str, vault_root: str = "") -> list["Query"]:
    """Compile a query file path or an inline query string.

    Parameters
    ----------
    source:
        Path of a markdown file with ```tasks blocks (relative paths are
        looked up under ``vault_root``) or inline query text.
    vault_root:
        Directory used to resolve relative query paths.

    Raises
    ------
    vaulttasks.parser.QuerySourceError
        If ``source`` names a file without any ``tasks`` block.
    """
    from vaulttasks.parser.parser import resolve_queries

    return resolve_queries(source, vault_root)


def evaluate(
    records: list["TaskRecord"], queries: list["Query"], vault_root: str = ""
) -> list["Section"]:
    """Evaluate every query over ``records`` and return one section each."""
    from vaulttasks.evaluator.evaluator import evaluate_all

    return evaluate_all(records, queries, vault_root)


def open_session(config: "SessionConfig") -> "TaskSession":
    """Create a ``TaskSession`` and perform its first refresh."""
    from vaulttasks.session.session import TaskSession

    session = TaskSession(config)
    session.refresh()
    return session


__all__ = [
    "__version__",
    "compile_queries",
    "evaluate",
    "extract",
    "open_session",
]
