"""Task session: the state and intents an interactive front end drives.

A ``TaskSession`` owns the cache, the undo stack, the compiled queries
and the records and sections of the latest refresh.  All intents run on
the owning thread.  The only other threads are the watcher reader,
which calls ``on_file_change`` (cache invalidation and debounce trigger,
both internally locked), and the debounce timer, which posts
``DebouncedRefresh`` onto ``signals``.  The owner drains that queue with
``process_signals``.

Every write is recorded with the self-write suppressor before it starts
and evicts the file from the cache once it is done.  Mutating intents push their undo entry before
writing and pop it again if the write fails.  Every intent refreshes
afterwards, so ``records`` and ``sections`` always reflect the files.
"""
from __future__ import annotations

import logging
import os
import queue
import shlex
import threading
from collections.abc import Callable
from typing import TypeVar

from vaulttasks.cache.cache import TaskCache
from vaulttasks.config.config import SessionConfig
from vaulttasks.evaluator.evaluator import evaluate_all
from vaulttasks.extractor.extractor import extract_file, scan_vault
from vaulttasks.model.nodes import Priority, Query, Section, TaskRecord
from vaulttasks.mutator import mutator
from vaulttasks.parser.errors import QuerySourceError
from vaulttasks.parser.parser import parse_file, parse_inline, query_file_for
from vaulttasks.undo.undo import OperationType, UndoEntry, UndoStack, apply_undo
from vaulttasks.watcher.watcher import (
    DebouncedRefresh,
    Debouncer,
    FileChange,
    SelfWriteSuppressor,
    Watcher,
)

logger = logging.getLogger(__name__)

DEFAULT_EDITOR = "vi"

_T = TypeVar("_T")


def load_queries(source: str, vault_root: str) -> list[Query]:
    """Compile the session's query source.

    An empty source yields one query showing every task.

    Raises
    ------
    QuerySourceError
        If ``source`` names a file without any ``tasks`` block.
    """
    if not source.strip():
        return [Query()]
    path = query_file_for(source, vault_root)
    if path is not None:
        return parse_file(path)
    return [parse_inline(source)]


class TaskSession:
    """Live view of a vault's tasks through a set of queries.

    Parameters
    ----------
    config:
        Resolved session settings.
    queries:
        Pre-compiled queries.  When omitted they are compiled from
        ``config.query_source``, which may raise ``QuerySourceError``.
    """

    def __init__(self, config: SessionConfig, queries: list[Query] | None = None) -> None:
        self.config = config
        self.cache: TaskCache | None = TaskCache() if config.use_cache else None
        self.undo_stack = UndoStack(config.undo_capacity)
        self.suppressor = SelfWriteSuppressor(config.suppress_seconds)
        self.signals: queue.Queue[object] = queue.Queue()
        self.debouncer = Debouncer(config.debounce_seconds, self.signals)
        self.query_file = query_file_for(config.query_source, config.vault_root)
        self.queries: list[Query] = (
            list(queries) if queries is not None else load_queries(config.query_source, config.vault_root)
        )
        self.records: list[TaskRecord] = []
        self.sections: list[Section] = []
        self.error: BaseException | None = None
        self._watcher: Watcher | None = None
        self._watch_thread: threading.Thread | None = None

    @property
    def vault_root(self) -> str:
        return self.config.vault_root

    @property
    def tasks(self) -> list[TaskRecord]:
        """Every visible task, in display order (a task may repeat)."""
        return [task for section in self.sections for group in section.groups for task in group.tasks]

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def _reload_queries(self) -> None:
        if self.query_file is None:
            return
        try:
            self.queries = parse_file(self.query_file)
        except (OSError, QuerySourceError) as exc:
            logger.warning("Keeping previous queries: %s", exc)
            self.error = exc

    def _load_records(self) -> list[TaskRecord]:
        records: list[TaskRecord] = []
        for path in scan_vault(self.vault_root):
            cached = self.cache.get(path) if self.cache is not None else None
            if cached is None:
                try:
                    cached = extract_file(path)
                except (OSError, UnicodeDecodeError) as exc:
                    logger.warning("Skipping %s: %s", path, exc)
                    continue
                if self.cache is not None:
                    self.cache.set(path, cached)
            records.extend(cached)
        return records

    def refresh(self) -> list[Section]:
        """Re-read the query file, re-scan the vault and re-evaluate."""
        self._reload_queries()
        self.records = self._load_records()
        self.sections = evaluate_all(self.records, self.queries, self.vault_root, self.undo_stack)
        logger.debug(
            "Refreshed %d record(s) into %d section(s)", len(self.records), len(self.sections)
        )
        return self.sections

    def hard_refresh(self) -> list[Section]:
        """Forget the undo history (ending toggle visibility) and refresh."""
        self.undo_stack.clear()
        return self.refresh()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _wrote(self, path: str) -> None:
        if self.cache is not None:
            self.cache.invalidate(path)

    def _write(self, path: str, operation: Callable[[], _T], entry: UndoEntry | None = None) -> _T:
        # Recorded first: the watcher thread may see the rename before operation() returns.
        self.suppressor.record(path)
        if entry is not None:
            self.undo_stack.push(entry)
        try:
            result = operation()
        except Exception:
            self.suppressor.discard(path)
            if entry is not None:
                self.undo_stack.pop()
            raise
        self._wrote(path)
        return result

    def toggle(self, record: TaskRecord) -> TaskRecord:
        """Flip a task's checkbox and keep it visible until undone."""
        entry = UndoEntry(
            OperationType.TOGGLE, record.file_path, record.line_number, was_done=record.done
        )
        self._write(record.file_path, lambda: mutator.toggle(record), entry)
        self.refresh()
        return record

    def edit(self, record: TaskRecord, description: str) -> TaskRecord:
        """Replace a task's description (metadata tokens included)."""
        self._write(record.file_path, lambda: mutator.edit(record, description))
        self.refresh()
        return record

    def delete(self, record: TaskRecord) -> str:
        """Remove a task's line; undo restores it at the same position."""
        removed = self._write(record.file_path, lambda: mutator.delete(record))
        self.undo_stack.push(
            UndoEntry(
                OperationType.DELETE, record.file_path, record.line_number, deleted_line=removed
            )
        )
        self.refresh()
        return removed

    def add(self, after: TaskRecord, description: str) -> TaskRecord:
        """Insert a new unchecked task directly below ``after``."""
        created = self._write(after.file_path, lambda: mutator.insert_after(after, description))
        self.refresh()
        return created

    def set_priority(self, record: TaskRecord, priority: int) -> TaskRecord:
        """Change a task's priority; an unchanged rank writes nothing."""
        rank = Priority.clamp(priority)
        if rank == record.priority:
            return record
        entry = UndoEntry(
            OperationType.PRIORITY_CHANGE,
            record.file_path,
            record.line_number,
            previous_priority=record.priority,
        )
        self._write(record.file_path, lambda: mutator.set_priority(record, rank), entry)
        self.refresh()
        return record

    def cycle_priority_up(self, record: TaskRecord) -> TaskRecord:
        return self.set_priority(record, record.priority - 1)

    def cycle_priority_down(self, record: TaskRecord) -> TaskRecord:
        return self.set_priority(record, record.priority + 1)

    def undo(self) -> UndoEntry | None:
        """Reverse the most recent operation; returns it, or None if empty."""
        entry = self.undo_stack.pop()
        if entry is None:
            return None
        self.suppressor.record(entry.file_path)
        try:
            path = apply_undo(entry, self.records)
        except Exception:
            self.suppressor.discard(entry.file_path)
            raise
        if path is None:
            self.suppressor.discard(entry.file_path)
        else:
            self._wrote(path)
        self.refresh()
        return entry

    # ------------------------------------------------------------------
    # External editor
    # ------------------------------------------------------------------

    def use_inline_editor(self) -> bool:
        """Edit in place unless configured otherwise or ``$EDITOR`` is set."""
        if self.config.editor_mode == "inline":
            return True
        if self.config.editor_mode == "external":
            return False
        return not os.environ.get("EDITOR")

    def editor_argv(self, record: TaskRecord) -> list[str]:
        """Return the command line that opens ``record`` in ``$EDITOR``."""
        editor = shlex.split(os.environ.get("EDITOR", "")) or [DEFAULT_EDITOR]
        return [*editor, f"+{record.line_number}", record.file_path]

    def editor_finished(self, error: BaseException | None = None) -> list[Section]:
        """Record the editor's outcome and pick up its changes."""
        self.error = error
        if error is not None:
            logger.warning("Editor exited with an error: %s", error)
        return self.refresh()

    # ------------------------------------------------------------------
    # Live updates
    # ------------------------------------------------------------------

    def on_file_change(self, event: FileChange) -> None:
        """Handle one watch event; runs on the watcher thread."""
        if self.suppressor.should_suppress(event.path):
            logger.debug("Ignoring our own write to %s", event.path)
            return
        if self.cache is not None:
            self.cache.invalidate(event.path)
        self.debouncer.trigger()

    def _watch_loop(self, watcher: Watcher) -> None:
        while True:
            event = watcher.next_event()
            if event is None:
                return
            self.on_file_change(event)

    def start_watching(self) -> bool:
        """Start live updates; returns False when watching is unavailable."""
        if self._watcher is not None:
            return True
        try:
            watcher = Watcher(self.vault_root)
        except OSError as exc:
            logger.warning("Live updates disabled: %s", exc)
            return False
        self._watcher = watcher
        self._watch_thread = threading.Thread(
            target=self._watch_loop, args=(watcher,), name="vault-tasks-watcher", daemon=True
        )
        self._watch_thread.start()
        return True

    def process_signals(self, timeout: float | None = None) -> bool:
        """Wait for pending signals and refresh once if any asked for it.

        Returns True when a refresh happened.
        """
        try:
            signal = self.signals.get(timeout=timeout)
        except queue.Empty:
            return False
        pending = [signal]
        while True:
            try:
                pending.append(self.signals.get_nowait())
            except queue.Empty:
                break
        if any(isinstance(item, DebouncedRefresh) for item in pending):
            self.refresh()
            return True
        return False

    def close(self) -> None:
        """Stop watching; safe to call more than once."""
        if self._watcher is not None:
            self._watcher.close()
            self._watcher = None
        if self._watch_thread is not None:
            self._watch_thread.join(timeout=1.0)
            self._watch_thread = None

    def __enter__(self) -> "TaskSession":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
