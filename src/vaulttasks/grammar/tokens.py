"""Token definitions for vault-tasks.

Two vocabularies live here:

* The query DSL vocabulary used by the query lexer.  Every keyword and
  literal kind is a member of ``TokenType`` and every scanned token is a
  ``Token`` dataclass carrying its type, raw text and source position.
* The on-disk task-line glyphs: the due/done date markers and the six
  priority ranks (Normal has no glyph).
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Final


class TokenType(Enum):
    """Exhaustive enumeration of query token types."""

    # -----------------------------------------------------------------
    # Keywords: status
    # -----------------------------------------------------------------
    NOT = auto()
    DONE = auto()

    # -----------------------------------------------------------------
    # Keywords: date fields
    # -----------------------------------------------------------------
    DUE = auto()
    SCHEDULED = auto()

    # -----------------------------------------------------------------
    # Keywords: date operators
    # -----------------------------------------------------------------
    BEFORE = auto()
    AFTER = auto()
    ON = auto()
    OR = auto()

    # -----------------------------------------------------------------
    # Keywords: relative dates
    # -----------------------------------------------------------------
    TODAY = auto()
    TOMORROW = auto()
    YESTERDAY = auto()

    # -----------------------------------------------------------------
    # Keywords: layout clauses
    # -----------------------------------------------------------------
    GROUP = auto()
    SORT = auto()
    BY = auto()
    FUNCTION = auto()

    # -----------------------------------------------------------------
    # Literals
    # -----------------------------------------------------------------
    DATE = auto()
    WORD = auto()

    # -----------------------------------------------------------------
    # Whitespace / structure
    # -----------------------------------------------------------------
    NEWLINE = auto()
    EOF = auto()


# Mapping from literal keyword text to its TokenType.
KEYWORDS: dict[str, TokenType] = {
    "not": TokenType.NOT,
    "done": TokenType.DONE,
    "due": TokenType.DUE,
    "scheduled": TokenType.SCHEDULED,
    "before": TokenType.BEFORE,
    "after": TokenType.AFTER,
    "on": TokenType.ON,
    "or": TokenType.OR,
    "today": TokenType.TODAY,
    "tomorrow": TokenType.TOMORROW,
    "yesterday": TokenType.YESTERDAY,
    "group": TokenType.GROUP,
    "sort": TokenType.SORT,
    "by": TokenType.BY,
    "function": TokenType.FUNCTION,
}

DATE_FIELDS: frozenset[TokenType] = frozenset(
    {TokenType.DUE, TokenType.SCHEDULED, TokenType.DONE}
)
RELATIVE_DATES: frozenset[TokenType] = frozenset(
    {TokenType.TODAY, TokenType.TOMORROW, TokenType.YESTERDAY}
)


@dataclass(frozen=True, slots=True)
class Token:
    """A single scanned query token with source-location metadata.

    Parameters
    ----------
    type:
        The ``TokenType`` variant for this token.
    value:
        The raw text as it appeared in the source.
    line:
        1-based line number in the query text.
    col:
        1-based column number of the first character of the token.
    offset:
        0-based character offset from the start of the query text.
    """

    type: TokenType
    value: str
    line: int
    col: int
    offset: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.col})"

    @property
    def is_keyword(self) -> bool:
        """Return True if this token is any keyword (not a literal or structure)."""
        return self.type not in {
            TokenType.DATE,
            TokenType.WORD,
            TokenType.NEWLINE,
            TokenType.EOF,
        }


# ---------------------------------------------------------------------------
# On-disk task-line glyphs
# ---------------------------------------------------------------------------

DUE_GLYPH: Final[str] = "📅"
DONE_GLYPH: Final[str] = "✅"
QUERY_FENCE: Final[str] = "```tasks"
FENCE: Final[str] = "```"

# Rank -> glyph, Highest (1) to Lowest (6).  Normal (4) has no glyph.
PRIORITY_GLYPHS: Final[dict[int, str]] = {
    1: "🔺",
    2: "⏫",
    3: "🔼",
    5: "🔽",
    6: "⏬",
}
GLYPH_PRIORITIES: Final[dict[str, int]] = {g: p for p, g in PRIORITY_GLYPHS.items()}
