"""Token vocabulary for the query DSL and the on-disk task-line glyphs."""
from __future__ import annotations

from vaulttasks.grammar.tokens import (
    DATE_FIELDS,
    DONE_GLYPH,
    DUE_GLYPH,
    FENCE,
    GLYPH_PRIORITIES,
    KEYWORDS,
    PRIORITY_GLYPHS,
    QUERY_FENCE,
    RELATIVE_DATES,
    Token,
    TokenType,
)

__all__ = [
    "DATE_FIELDS",
    "DONE_GLYPH",
    "DUE_GLYPH",
    "FENCE",
    "QUERY_FENCE",
    "GLYPH_PRIORITIES",
    "KEYWORDS",
    "PRIORITY_GLYPHS",
    "RELATIVE_DATES",
    "Token",
    "TokenType",
]
