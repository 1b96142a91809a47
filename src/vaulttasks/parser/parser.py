"""Query compiler: query text -> ``Query``.

Two stages:

1. ``scan_blocks`` walks a markdown document line by line, collecting
   the body of every fenced ```` ```tasks ```` block together with the
   nearest preceding level-2 heading.
2. ``QueryParser`` walks the tokens of one block (NEWLINE tokens are
   skipped transparently, so clauses may wrap lines) and recognizes:

   ``not done``
       hide completed tasks
   ``<due|scheduled|done> today|tomorrow|yesterday [or ...]``
   ``<due|scheduled|done> before X`` / ``after X`` / ``on X [or Y ...]``
       date clauses; conjunctive across clauses, disjunctive inside an
       ``or`` list
   ``group by function task.file.<folder|filename>`` / ``group by <key>``
       the function form is looked for first; the first match wins
   ``sort by <priority|due>``
       the first match wins

Anything else is ignored.  The language is a human convention, not a
strict grammar, so the parser never reports clause errors.
"""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Final

from vaulttasks.config.config import expand_path
from vaulttasks.grammar.tokens import (
    DATE_FIELDS,
    FENCE,
    QUERY_FENCE,
    RELATIVE_DATES,
    Token,
    TokenType,
)
from vaulttasks.lexer.lexer import tokenize
from vaulttasks.model.nodes import (
    DateField,
    DateFilter,
    DateOperator,
    GroupBy,
    Query,
    SortBy,
)
from vaulttasks.parser.errors import QuerySourceError

logger = logging.getLogger(__name__)

_LEADING_WORD: Final[re.Pattern[str]] = re.compile(r"[0-9A-Za-z_]+")
_FILE_FUNCTION_PREFIX: Final[str] = "task.file."

_FIELD_MAP: dict[TokenType, DateField] = {
    TokenType.DUE: DateField.DUE,
    TokenType.SCHEDULED: DateField.SCHEDULED,
    TokenType.DONE: DateField.DONE,
}
_GROUP_MAP: dict[str, GroupBy] = {
    "folder": GroupBy.FOLDER,
    "filename": GroupBy.FILENAME,
}
_SORT_MAP: dict[str, SortBy] = {
    "priority": SortBy.PRIORITY,
    "due": SortBy.DUE,
}


def _leading_word(text: str) -> str:
    match = _LEADING_WORD.match(text)
    return match.group(0) if match else ""


# ---------------------------------------------------------------------------
# Block scanning
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class QueryBlock:
    """Body of one fenced ``tasks`` block.

    Parameters
    ----------
    heading:
        Text of the nearest level-2 heading above the block, or ``""``.
    body:
        Lines between the fences, joined with ``\\n``.
    line:
        1-based line number of the opening fence.
    """

    heading: str
    body: str
    line: int


def _level2_heading(line: str) -> str | None:
    if not line.startswith("##") or len(line) < 3 or not line[2].isspace():
        return None
    name = line[2:].strip()
    return name or None


def scan_blocks(content: str) -> list[QueryBlock]:
    """Return every terminated ``tasks`` block in ``content``, in order.

    An opening fence is a line reading exactly ```` ```tasks ```` (outer
    whitespace ignored); the block ends at the next line starting with
    ```` ``` ````.  A block with no closing fence is ignored.
    """
    lines = content.split("\n")
    blocks: list[QueryBlock] = []
    heading = ""
    idx = 0
    while idx < len(lines):
        line = lines[idx].rstrip("\r")
        name = _level2_heading(line)
        if name is not None:
            heading = name
        elif line.strip() == QUERY_FENCE:
            end = idx + 1
            while end < len(lines) and not lines[end].lstrip().startswith(FENCE):
                end += 1
            if end >= len(lines):
                logger.debug("Ignoring unterminated tasks block at line %d", idx + 1)
                break
            body = "\n".join(part.rstrip("\r") for part in lines[idx + 1 : end])
            blocks.append(QueryBlock(heading=heading, body=body, line=idx + 1))
            idx = end
        idx += 1
    return blocks


# ---------------------------------------------------------------------------
# Clause parser
# ---------------------------------------------------------------------------


class QueryParser:
    """Clause recognizer over the tokens of one query block.

    Parameters
    ----------
    tokens:
        The flat token list produced by the lexer, ending in ``EOF``.
    """

    def __init__(self, tokens: list[Token]) -> None:
        self._tokens: list[Token] = [t for t in tokens if t.type is not TokenType.NEWLINE]

    # ------------------------------------------------------------------
    # Navigation helpers
    # ------------------------------------------------------------------

    def _at(self, idx: int) -> Token:
        """Return the token at ``idx``; positions past the end read as EOF."""
        if idx < len(self._tokens):
            return self._tokens[idx]
        return self._tokens[-1]

    def _is(self, idx: int, *types: TokenType) -> bool:
        return self._at(idx).type in types

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def parse(self) -> Query:
        """Recognize every supported clause and return the compiled query."""
        filters: list[DateFilter] = []
        idx = 0
        while not self._is(idx, TokenType.EOF):
            if self._is(idx, TokenType.NOT) and self._is(idx + 1, TokenType.DONE):
                idx += 1
                continue
            if self._at(idx).type in DATE_FIELDS:
                clause = self._date_clause(idx)
                if clause is not None:
                    date_filter, idx = clause
                    filters.append(date_filter)
                    continue
            idx += 1
        return Query(
            not_done=self._not_done(),
            date_filters=tuple(filters),
            group_by=self._group_by(),
            sort_by=self._sort_by(),
        )

    # ------------------------------------------------------------------
    # Clauses
    # ------------------------------------------------------------------

    def _date_clause(self, idx: int) -> tuple[DateFilter, int] | None:
        """Parse a date clause starting at the field token ``idx``.

        Returns the filter and the index just past the clause, or None
        when the field word is not followed by a recognizable operand.
        """
        date_field = _FIELD_MAP[self._at(idx).type]
        pos = idx + 1
        values: list[str] = []

        if self._at(pos).type in RELATIVE_DATES:
            operator = DateOperator.ON
            values.append(self._at(pos).value)
            pos += 1
            while self._is(pos, TokenType.OR) and self._at(pos + 1).type in RELATIVE_DATES:
                values.append(self._at(pos + 1).value)
                pos += 2
        elif self._is(pos, TokenType.BEFORE, TokenType.AFTER) and not self._is(pos + 1, TokenType.EOF):
            operator = DateOperator.BEFORE if self._is(pos, TokenType.BEFORE) else DateOperator.AFTER
            values.append(self._at(pos + 1).value)
            pos += 2
        elif self._is(pos, TokenType.ON) and not self._is(pos + 1, TokenType.EOF):
            operator = DateOperator.ON
            values.append(self._at(pos + 1).value)
            pos += 2
            while self._is(pos, TokenType.OR) and not self._is(pos + 1, TokenType.EOF):
                values.append(self._at(pos + 1).value)
                pos += 2
        else:
            return None

        if len(values) == 1:
            return DateFilter(field=date_field, operator=operator, date=values[0]), pos
        return DateFilter(field=date_field, operator=operator, dates=tuple(values)), pos

    def _not_done(self) -> bool:
        """True when ``not done`` appears anywhere, even inside another clause."""
        return any(
            self._is(idx, TokenType.NOT) and self._is(idx + 1, TokenType.DONE)
            for idx in range(len(self._tokens) - 1)
        )

    def _group_by(self) -> GroupBy:
        """Resolve the grouping clause.

        ``group by function task.file.<key>`` anywhere takes precedence
        over the plain ``group by <key>`` form.  Only the first match of
        a form counts; an unknown key means no grouping.
        """
        for idx in range(len(self._tokens) - 3):
            if (
                self._is(idx, TokenType.GROUP)
                and self._is(idx + 1, TokenType.BY)
                and self._is(idx + 2, TokenType.FUNCTION)
                and self._at(idx + 3).value.startswith(_FILE_FUNCTION_PREFIX)
            ):
                key = _leading_word(self._at(idx + 3).value[len(_FILE_FUNCTION_PREFIX) :])
                return _GROUP_MAP.get(key, GroupBy.NONE)
        for idx in range(len(self._tokens) - 2):
            if self._is(idx, TokenType.GROUP) and self._is(idx + 1, TokenType.BY):
                operand = self._at(idx + 2)
                if operand.type is TokenType.FUNCTION:
                    return GroupBy.NONE
                return _GROUP_MAP.get(_leading_word(operand.value), GroupBy.NONE)
        return GroupBy.NONE

    def _sort_by(self) -> SortBy:
        for idx in range(len(self._tokens) - 2):
            if self._is(idx, TokenType.SORT) and self._is(idx + 1, TokenType.BY):
                return _SORT_MAP.get(_leading_word(self._at(idx + 2).value), SortBy.NONE)
        return SortBy.NONE


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def parse_inline(text: str) -> Query:
    """Compile an inline query string (no heading, no fences)."""
    return QueryParser(tokenize(text)).parse()


def parse_blocks(content: str, source: str = "<string>") -> list[Query]:
    """Compile every fenced ``tasks`` block of a markdown document.

    Each query is named after the nearest level-2 heading above its block.

    Raises
    ------
    QuerySourceError
        If ``content`` holds no terminated ``tasks`` block.
    """
    blocks = scan_blocks(content)
    if not blocks:
        raise QuerySourceError(source)
    return [replace(parse_inline(block.body), name=block.heading) for block in blocks]


def parse_file(path: str | os.PathLike[str]) -> list[Query]:
    """Read a query file and compile its blocks.  ``OSError`` propagates."""
    content = Path(path).read_text(encoding="utf-8")
    return parse_blocks(content, source=os.fspath(path))


def query_file_for(source: str, vault_root: str = "") -> str | None:
    """Return the query file ``source`` names, or None for inline text.

    ``source`` is expanded (``~`` and environment variables); a relative
    path is looked up under ``vault_root``.
    """
    expanded = expand_path(source)
    if not expanded:
        return None
    if not os.path.isabs(expanded) and vault_root:
        expanded = os.path.join(vault_root, expanded)
    return os.path.normpath(expanded) if os.path.isfile(expanded) else None


def resolve_queries(source: str, vault_root: str = "") -> list[Query]:
    """Compile a query source that is either a file path or inline text.

    When ``source`` names an existing file (see ``query_file_for``) its
    blocks are compiled; otherwise ``source`` is compiled as an inline
    query.
    """
    path = query_file_for(source, vault_root)
    if path is not None:
        logger.debug("Query source %r resolved to file %s", source, path)
        return parse_file(path)
    return [parse_inline(source)]
