"""Live updates: directory watching, debouncing and self-write suppression.

``Watcher``
    Wraps a ``watchdog`` observer.  Every non-hidden directory under the
    vault root is scheduled (non-recursively) once, at construction;
    directories created later are not picked up.  ``next_event`` blocks
    until a markdown file is created, modified, deleted or moved, and
    returns None for good once the watcher is closed.

``Debouncer``
    ``trigger`` (re)arms a single timer.  Only the timer armed by the last
    trigger of a burst fires, and it posts exactly one ``DebouncedRefresh``
    onto a thread-safe queue owned by the foreground loop.

``SelfWriteSuppressor``
    Remembers paths we just wrote.  The first event for such a path
    inside the window is reported as self-inflicted and consumes the
    entry.
"""
from __future__ import annotations

import logging
import os
import queue
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIX = ".md"


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileChange:
    """A markdown file under the vault was created, written or removed."""

    path: str
    deleted: bool = False


@dataclass(frozen=True, slots=True)
class DebouncedRefresh:
    """The debounce window elapsed; the owner should refresh once."""


def is_markdown(path: str) -> bool:
    return path.lower().endswith(MARKDOWN_SUFFIX)


def watch_directories(root: str) -> list[str]:
    """Return ``root`` and every directory below it not starting with ``.``."""
    found: list[str] = []
    for dirpath, dirnames, _ in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        found.append(dirpath)
    return found


# ---------------------------------------------------------------------------
# Watcher
# ---------------------------------------------------------------------------


class _MarkdownEventHandler(FileSystemEventHandler):
    """Translates watchdog events into ``FileChange`` messages."""

    def __init__(self, sink: queue.Queue[FileChange | None]) -> None:
        super().__init__()
        self._sink = sink

    def _emit(self, raw_path: bytes | str, deleted: bool) -> None:
        path = os.fsdecode(raw_path)
        if is_markdown(path):
            self._sink.put(FileChange(path=path, deleted=deleted))

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        if event.event_type in (EVENT_TYPE_CREATED, EVENT_TYPE_MODIFIED):
            self._emit(event.src_path, deleted=False)
        elif event.event_type == EVENT_TYPE_DELETED:
            self._emit(event.src_path, deleted=True)
        elif event.event_type == EVENT_TYPE_MOVED:
            self._emit(event.src_path, deleted=True)
            self._emit(event.dest_path, deleted=False)


class Watcher:
    """Blocking source of markdown change events for one vault.

    Parameters
    ----------
    root:
        Vault root directory.

    Raises
    ------
    OSError
        If the platform watch cannot be set up (for example when watch
        handles are exhausted).
    """

    def __init__(self, root: str) -> None:
        self.root = root
        self._events: queue.Queue[FileChange | None] = queue.Queue()
        self._closed = False
        self._observer = Observer()
        handler = _MarkdownEventHandler(self._events)
        directories = watch_directories(root)
        for directory in directories:
            self._observer.schedule(handler, directory, recursive=False)
        self._observer.start()
        logger.debug("Watching %d director(ies) under %s", len(directories), root)

    def next_event(self, timeout: float | None = None) -> FileChange | None:
        """Block until the next markdown event.

        Returns None once the watcher is closed, or when ``timeout``
        elapses first.
        """
        if self._closed:
            return None
        try:
            event = self._events.get(timeout=timeout)
        except queue.Empty:
            return None
        if event is None:
            # Re-post so every blocked reader wakes up.
            self._events.put(None)
        return event

    def close(self) -> None:
        """Stop the observer; ``next_event`` returns None from now on."""
        if self._closed:
            return
        self._closed = True
        self._observer.stop()
        self._events.put(None)
        self._observer.join()
        logger.debug("Watcher for %s closed", self.root)

    def __enter__(self) -> "Watcher":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Debouncer
# ---------------------------------------------------------------------------


class Debouncer:
    """Coalesce bursts of triggers into one ``DebouncedRefresh``.

    Parameters
    ----------
    delay:
        Quiet period in seconds after the last trigger.
    channel:
        Queue the refresh signal is posted to.
    """

    def __init__(self, delay: float, channel: queue.Queue[object]) -> None:
        self.delay = delay
        self._channel = channel
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._generation = 0

    def trigger(self) -> None:
        """Start the timer, or restart it if one is pending."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            timer = threading.Timer(self.delay, self._fire, args=(self._generation,))
            timer.daemon = True
            self._timer = timer
            timer.start()

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._timer = None
        logger.debug("Debounce window elapsed; posting refresh")
        self._channel.put(DebouncedRefresh())


# ---------------------------------------------------------------------------
# Self-write suppression
# ---------------------------------------------------------------------------


class SelfWriteSuppressor:
    """Remember our own writes so their watch events can be ignored.

    Parameters
    ----------
    window:
        Seconds during which an event for a just-written path counts as ours.
    clock:
        Monotonic time source, replaceable in tests.
    """

    def __init__(self, window: float = 0.5, clock: Callable[[], float] = time.monotonic) -> None:
        self.window = window
        self._clock = clock
        self._lock = threading.Lock()
        self._writes: dict[str, float] = {}

    def record(self, path: str) -> None:
        """Note that ``path`` is being written by us."""
        with self._lock:
            self._writes[path] = self._clock()

    def discard(self, path: str) -> None:
        """Forget a recorded write that did not happen."""
        with self._lock:
            self._writes.pop(path, None)

    def should_suppress(self, path: str) -> bool:
        """Return True (once) if an event for ``path`` is our own write."""
        with self._lock:
            written_at = self._writes.pop(path, None)
        if written_at is None:
            return False
        return self._clock() - written_at < self.window
