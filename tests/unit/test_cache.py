"""Unit tests for vaulttasks.cache — mtime-gated extraction cache."""
from __future__ import annotations

import logging
import os
from collections.abc import Callable

import pytest

from vaulttasks.cache import TaskCache
from vaulttasks.extractor import extract_file


def bump_mtime(path: str, seconds: int = 10) -> None:
    stat = os.stat(path)
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + seconds * 1_000_000_000))


class TestTaskCache:
    def test_miss_without_set(self, write_note: Callable[[str, str], str]) -> None:
        path = write_note("a.md", "- [ ] a\n")
        assert TaskCache().get(path) is None

    def test_hit_after_set(self, write_note: Callable[[str, str], str]) -> None:
        path = write_note("a.md", "- [ ] a\n")
        cache = TaskCache()
        records = extract_file(path)
        cache.set(path, records)
        assert cache.get(path) == records
        assert path in cache
        assert len(cache) == 1

    def test_touch_forces_miss(self, write_note: Callable[[str, str], str]) -> None:
        path = write_note("a.md", "- [ ] a\n")
        cache = TaskCache()
        cache.set(path, extract_file(path))
        bump_mtime(path)
        assert cache.get(path) is None

    def test_older_mtime_still_hits(self, write_note: Callable[[str, str], str]) -> None:
        path = write_note("a.md", "- [ ] a\n")
        cache = TaskCache()
        cache.set(path, extract_file(path))
        bump_mtime(path, seconds=-10)
        assert cache.get(path) is not None

    def test_invalidate(self, write_note: Callable[[str, str], str]) -> None:
        path = write_note("a.md", "- [ ] a\n")
        cache = TaskCache()
        cache.set(path, extract_file(path))
        cache.invalidate(path)
        assert cache.get(path) is None
        cache.invalidate(path)

    def test_deleted_file_misses(self, write_note: Callable[[str, str], str]) -> None:
        path = write_note("a.md", "- [ ] a\n")
        cache = TaskCache()
        cache.set(path, extract_file(path))
        os.remove(path)
        assert cache.get(path) is None

    def test_set_on_missing_file_stores_nothing(self, tmp_path) -> None:
        cache = TaskCache()
        cache.set(str(tmp_path / "gone.md"), [])
        assert len(cache) == 0

    def test_clear(self, write_note: Callable[[str, str], str]) -> None:
        cache = TaskCache()
        for name in ("a.md", "b.md"):
            path = write_note(name, "")
            cache.set(path, [])
        cache.clear()
        assert len(cache) == 0

    def test_logs_hits(self, write_note: Callable[[str, str], str], caplog: pytest.LogCaptureFixture) -> None:
        path = write_note("a.md", "- [ ] a\n")
        cache = TaskCache()
        cache.set(path, [])
        with caplog.at_level(logging.DEBUG, logger="vaulttasks.cache.cache"):
            cache.get(path)
        assert "Cache hit" in caplog.text
