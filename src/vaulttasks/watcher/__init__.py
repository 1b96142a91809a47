"""Live update module: watcher, debouncer and self-write suppression."""
from __future__ import annotations

from vaulttasks.watcher.watcher import (
    DebouncedRefresh,
    Debouncer,
    FileChange,
    SelfWriteSuppressor,
    Watcher,
    is_markdown,
    watch_directories,
)

__all__ = [
    "DebouncedRefresh",
    "Debouncer",
    "FileChange",
    "SelfWriteSuppressor",
    "Watcher",
    "is_markdown",
    "watch_directories",
]
