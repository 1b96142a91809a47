"""Error types for the query compiler.

Query clauses themselves never fail to parse: unknown words are
ignored.  The only hard error is a query *source* that was expected to
hold fenced ``tasks`` blocks but holds none.
"""
from __future__ import annotations


class QuerySourceError(ValueError):
    """Raised when a query source contains no ``tasks`` block.

    Parameters
    ----------
    source:
        Human-readable name of the source (usually a file path).
    """

    def __init__(self, source: str) -> None:
        self.source = source
        super().__init__(f"no ```tasks block found in {source}")
