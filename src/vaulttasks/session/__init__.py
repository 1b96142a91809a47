"""Session module: UI intents over a live vault."""
from __future__ import annotations

from vaulttasks.session.session import DEFAULT_EDITOR, TaskSession, load_queries

__all__ = ["DEFAULT_EDITOR", "TaskSession", "load_queries"]
