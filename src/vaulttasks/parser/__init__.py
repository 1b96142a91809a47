"""Query compiler module.

Exports the block scanner, the clause parser and the compile helpers.
"""
from __future__ import annotations

from vaulttasks.parser.errors import QuerySourceError
from vaulttasks.parser.parser import (
    QueryBlock,
    QueryParser,
    parse_blocks,
    parse_file,
    parse_inline,
    query_file_for,
    resolve_queries,
    scan_blocks,
)

__all__ = [
    "QueryBlock",
    "QueryParser",
    "QuerySourceError",
    "parse_blocks",
    "parse_file",
    "parse_inline",
    "query_file_for",
    "resolve_queries",
    "scan_blocks",
]
