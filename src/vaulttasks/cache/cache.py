"""Per-file extraction cache gated on modification time.

``get`` hits only when a prior ``set`` exists for the path and the file's
current mtime has not advanced past the one recorded at ``set`` time.
Touching a file, even without changing its bytes, therefore forces the
next ``get`` to miss.  A stat failure is always a miss.

One lock guards the whole map.  The cache is called from the owning loop
and from the watcher thread (``invalidate`` only).
"""
from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass

from vaulttasks.model.nodes import TaskRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Records extracted from one file plus the mtime they were read at."""

    mtime_ns: int
    records: tuple[TaskRecord, ...]


class TaskCache:
    """Thread-safe ``path -> CacheEntry`` map."""

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._entries

    def get(self, path: str) -> list[TaskRecord] | None:
        """Return the cached records for ``path``, or None on a miss."""
        with self._lock:
            entry = self._entries.get(path)
            if entry is None:
                return None
            try:
                mtime_ns = os.stat(path).st_mtime_ns
            except OSError:
                logger.debug("Cache miss (stat failed): %s", path)
                return None
            if mtime_ns > entry.mtime_ns:
                logger.debug("Cache miss (modified): %s", path)
                return None
            logger.debug("Cache hit: %s", path)
            return list(entry.records)

    def set(self, path: str, records: list[TaskRecord]) -> None:
        """Store ``records`` under the file's current mtime.

        Nothing is stored when the file cannot be stat'ed.
        """
        with self._lock:
            try:
                mtime_ns = os.stat(path).st_mtime_ns
            except OSError:
                logger.debug("Not caching %s: stat failed", path)
                return
            self._entries[path] = CacheEntry(mtime_ns=mtime_ns, records=tuple(records))

    def invalidate(self, path: str) -> None:
        """Drop ``path`` from the cache unconditionally."""
        with self._lock:
            if self._entries.pop(path, None) is not None:
                logger.debug("Cache invalidated: %s", path)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()
