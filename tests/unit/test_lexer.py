"""Unit tests for vaulttasks.lexer — tokenization of query text."""
from __future__ import annotations

from vaulttasks.grammar.tokens import TokenType
from vaulttasks.lexer.lexer import Lexer, tokenize


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def types_of(tokens: list) -> list[TokenType]:
    """Return just the token types, excluding EOF."""
    return [t.type for t in tokens if t.type != TokenType.EOF]


def non_structural_types(tokens: list) -> list[TokenType]:
    """Exclude NEWLINE and EOF tokens."""
    excluded = {TokenType.NEWLINE, TokenType.EOF}
    return [t.type for t in tokens if t.type not in excluded]


# ---------------------------------------------------------------------------
# Empty and whitespace-only inputs
# ---------------------------------------------------------------------------


class TestEmptyInputs:
    def test_empty_string_produces_only_eof(self) -> None:
        tokens = tokenize("")
        assert len(tokens) == 1
        assert tokens[0].type is TokenType.EOF

    def test_whitespace_only_produces_only_eof(self) -> None:
        assert types_of(tokenize("   \t  ")) == []

    def test_blank_lines_produce_newlines(self) -> None:
        assert types_of(tokenize("\n\n")) == [TokenType.NEWLINE, TokenType.NEWLINE]


# ---------------------------------------------------------------------------
# Keywords and literals
# ---------------------------------------------------------------------------


class TestClassification:
    def test_not_done(self) -> None:
        assert types_of(tokenize("not done")) == [TokenType.NOT, TokenType.DONE]

    def test_date_clause(self) -> None:
        tokens = tokenize("due before 2024-06-01")
        assert types_of(tokens) == [TokenType.DUE, TokenType.BEFORE, TokenType.DATE]
        assert tokens[2].value == "2024-06-01"

    def test_relative_dates_and_or(self) -> None:
        assert types_of(tokenize("today or tomorrow or yesterday")) == [
            TokenType.TODAY,
            TokenType.OR,
            TokenType.TOMORROW,
            TokenType.OR,
            TokenType.YESTERDAY,
        ]

    def test_layout_keywords(self) -> None:
        assert types_of(tokenize("group by function task.file.folder")) == [
            TokenType.GROUP,
            TokenType.BY,
            TokenType.FUNCTION,
            TokenType.WORD,
        ]

    def test_keywords_are_case_sensitive(self) -> None:
        assert types_of(tokenize("Not DONE")) == [TokenType.WORD, TokenType.WORD]

    def test_malformed_date_is_a_word(self) -> None:
        assert types_of(tokenize("2024-6-1 2024-06-0x")) == [TokenType.WORD, TokenType.WORD]

    def test_punctuation_never_fails(self) -> None:
        tokens = tokenize("due (before) @#$ !")
        assert non_structural_types(tokens) == [
            TokenType.DUE,
            TokenType.WORD,
            TokenType.WORD,
            TokenType.WORD,
        ]

    def test_is_keyword(self) -> None:
        keyword, word = tokenize("sort priority")[:2]
        assert keyword.is_keyword
        assert not word.is_keyword


# ---------------------------------------------------------------------------
# Positions
# ---------------------------------------------------------------------------


class TestPositions:
    def test_line_and_column_tracking(self) -> None:
        tokens = [t for t in tokenize("not done\n  due today") if t.type is not TokenType.NEWLINE]
        due = tokens[2]
        assert (due.line, due.col) == (2, 3)

    def test_offsets_point_into_source(self) -> None:
        source = "sort by due"
        for token in tokenize(source)[:-1]:
            assert source[token.offset : token.offset + len(token.value)] == token.value

    def test_eof_is_last(self) -> None:
        tokens = Lexer("group by folder\n").tokenize()
        assert tokens[-1].type is TokenType.EOF
        assert tokens[-2].type is TokenType.NEWLINE
