"""Extraction cache module."""
from __future__ import annotations

from vaulttasks.cache.cache import CacheEntry, TaskCache

__all__ = ["CacheEntry", "TaskCache"]
