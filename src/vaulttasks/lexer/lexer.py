"""Query lexer: converts raw query text into a flat list of tokens.

The query language is a loose, line-oriented convention written by
humans inside fenced ``tasks`` blocks, so the lexer is deliberately
forgiving: it never fails.  Text is split into words on whitespace;
every word is classified as

* a keyword (exact, lower-case match against ``KEYWORDS``),
* a ``DATE`` when it has the ``YYYY-MM-DD`` shape,
* otherwise a ``WORD`` (this includes dotted paths such as
  ``task.file.folder`` and punctuation-laden text).

Newlines are emitted as ``NEWLINE`` tokens; the parser skips them, but
keeping them lets tooling report clause positions per line.
"""
from __future__ import annotations

from vaulttasks.grammar.tokens import KEYWORDS, Token, TokenType

_BLANKS = frozenset(" \t\r\f\v")


def _is_date_shape(word: str) -> bool:
    if len(word) != 10 or word[4] != "-" or word[7] != "-":
        return False
    digits = word[:4] + word[5:7] + word[8:]
    return digits.isascii() and digits.isdigit()


class Lexer:
    """Single-pass query lexer.

    Parameters
    ----------
    source:
        The complete query text to tokenize.
    """

    __slots__ = ("_source", "_pos", "_line", "_col", "_tokens")

    def __init__(self, source: str) -> None:
        self._source: str = source
        self._pos: int = 0
        self._line: int = 1
        self._col: int = 1
        self._tokens: list[Token] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def tokenize(self) -> list[Token]:
        """Scan the entire source and return the complete token list.

        The list always ends with an ``EOF`` token.
        """
        while self._pos < len(self._source):
            self._scan_one()
        self._tokens.append(Token(TokenType.EOF, "", self._line, self._col, self._pos))
        return self._tokens

    # ------------------------------------------------------------------
    # Internal scanner
    # ------------------------------------------------------------------

    def _current(self) -> str:
        return self._source[self._pos] if self._pos < len(self._source) else ""

    def _advance(self) -> str:
        """Consume and return the current character, updating line/col."""
        ch = self._source[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
            self._col = 1
        else:
            self._col += 1
        return ch

    def _scan_one(self) -> None:
        line, col, start = self._line, self._col, self._pos
        ch = self._current()

        if ch in _BLANKS:
            self._advance()
            return

        if ch == "\n":
            self._advance()
            self._tokens.append(Token(TokenType.NEWLINE, "\n", line, col, start))
            return

        buf: list[str] = []
        while self._pos < len(self._source):
            ch = self._current()
            if ch in _BLANKS or ch == "\n":
                break
            buf.append(self._advance())
        word = "".join(buf)

        if word in KEYWORDS:
            token_type = KEYWORDS[word]
        elif _is_date_shape(word):
            token_type = TokenType.DATE
        else:
            token_type = TokenType.WORD
        self._tokens.append(Token(token_type, word, line, col, start))


# ---------------------------------------------------------------------------
# Module-level convenience function
# ---------------------------------------------------------------------------


def tokenize(source: str) -> list[Token]:
    """Tokenize query text and return the complete token list.

    Example
    -------
    ::

        from vaulttasks.lexer import tokenize
        tokens = tokenize("not done\\ndue before 2024-06-01")
    """
    return Lexer(source).tokenize()
