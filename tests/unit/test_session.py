"""Unit tests for vaulttasks.session — intents over a live vault."""
from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import date
from pathlib import Path

import pytest

from vaulttasks.config import SessionConfig
from vaulttasks.model.nodes import Priority, Query
from vaulttasks.mutator import mutator as mutator_module
from vaulttasks.parser import QuerySourceError
from vaulttasks.session import TaskSession, load_queries
from vaulttasks.undo import OperationType
from vaulttasks.watcher import FileChange

MILK = "- [ ] buy milk 📅 2099-01-01\n"
MILK_QUERY = "not done\ndue before 2100-01-01"


def make_session(vault: Path, query: str = "", **overrides: object) -> TaskSession:
    config = SessionConfig(vault_root=str(vault), query_source=query, debounce_seconds=0.05, **overrides)
    session = TaskSession(config)
    session.refresh()
    return session


def read(path: str) -> str:
    return Path(path).read_bytes().decode("utf-8")


def descriptions(session: TaskSession) -> list[str]:
    return [t.description for t in session.tasks]


# ---------------------------------------------------------------------------
# Query loading
# ---------------------------------------------------------------------------


class TestLoadQueries:
    def test_empty_source_shows_everything(self, vault: Path) -> None:
        assert load_queries("  ", str(vault)) == [Query()]

    def test_inline_source(self, vault: Path) -> None:
        assert load_queries("not done", str(vault)) == [Query(not_done=True)]

    def test_file_source(self, vault: Path, write_note: Callable[[str, str], str]) -> None:
        write_note("q.md", "## A\n```tasks\n```\n## B\n```tasks\nnot done\n```\n")
        assert [q.name for q in load_queries("q.md", str(vault))] == ["A", "B"]

    def test_file_without_block_fails_construction(
        self, vault: Path, write_note: Callable[[str, str], str]
    ) -> None:
        path = write_note("q.md", "# nothing\n")
        with pytest.raises(QuerySourceError):
            TaskSession(SessionConfig(vault_root=str(vault), query_source=path))


# ---------------------------------------------------------------------------
# Refresh
# ---------------------------------------------------------------------------


class TestRefresh:
    def test_sections_follow_queries(self, vault: Path, write_note: Callable[[str, str], str]) -> None:
        write_note("todo.md", MILK + "- [x] eggs\n")
        session = make_session(vault, MILK_QUERY)
        assert len(session.records) == 2
        assert descriptions(session) == ["buy milk 📅 2099-01-01"]

    def test_invalid_utf8_file_is_skipped(
        self,
        vault: Path,
        write_note: Callable[[str, str], str],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        write_note("good.md", "- [ ] fine\n")
        (vault / "bad.md").write_bytes(b"- [ ] \xff\xfe\n")
        with caplog.at_level(logging.WARNING):
            session = make_session(vault)
        assert descriptions(session) == ["fine"]
        assert "Skipping" in caplog.text

    def test_without_cache(self, vault: Path, write_note: Callable[[str, str], str]) -> None:
        write_note("todo.md", MILK)
        session = make_session(vault, use_cache=False)
        assert session.cache is None
        assert len(session.tasks) == 1

    def test_query_file_is_reloaded(self, vault: Path, write_note: Callable[[str, str], str]) -> None:
        write_note("todo.md", MILK)
        query_path = write_note("q.md", "```tasks\nnot done\n```\n")
        session = make_session(vault, query_path)
        assert len(session.sections) == 1
        write_note("q.md", "## One\n```tasks\n```\n## Two\n```tasks\n```\n")
        session.refresh()
        assert [s.name for s in session.sections] == ["One", "Two"]

    def test_broken_query_file_keeps_old_queries(
        self, vault: Path, write_note: Callable[[str, str], str]
    ) -> None:
        query_path = write_note("q.md", "```tasks\nnot done\n```\n")
        session = make_session(vault, query_path)
        write_note("q.md", "no blocks any more\n")
        session.refresh()
        assert session.queries == [Query(not_done=True)]
        assert isinstance(session.error, QuerySourceError)


# ---------------------------------------------------------------------------
# Intents
# ---------------------------------------------------------------------------


class TestToggle:
    def test_toggled_task_stays_until_hard_refresh(
        self, vault: Path, write_note: Callable[[str, str], str]
    ) -> None:
        path = write_note("todo.md", MILK)
        session = make_session(vault, MILK_QUERY)
        session.toggle(session.tasks[0])
        stamp = date.today().isoformat()
        assert read(path) == f"- [x] buy milk 📅 2099-01-01 ✅ {stamp}\n"
        assert len(session.tasks) == 1
        assert session.tasks[0].done is True
        session.hard_refresh()
        assert session.tasks == []
        assert len(session.undo_stack) == 0

    def test_undo_toggle(self, vault: Path, write_note: Callable[[str, str], str]) -> None:
        path = write_note("todo.md", MILK)
        session = make_session(vault, MILK_QUERY)
        session.toggle(session.tasks[0])
        undone = session.undo()
        assert undone is not None
        assert undone.type is OperationType.TOGGLE
        assert read(path) == MILK
        assert descriptions(session) == ["buy milk 📅 2099-01-01"]

    def test_failed_write_pops_undo_entry(
        self,
        vault: Path,
        write_note: Callable[[str, str], str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        write_note("todo.md", MILK)
        session = make_session(vault)

        def fail(record: object, today: object = None) -> None:
            raise OSError("read-only file system")

        monkeypatch.setattr(mutator_module, "toggle", fail)
        with pytest.raises(OSError):
            session.toggle(session.tasks[0])
        assert len(session.undo_stack) == 0


class TestDelete:
    def test_delete_and_undo_restore_exactly(
        self, vault: Path, write_note: Callable[[str, str], str]
    ) -> None:
        original = "# Shopping\r\n" + "- [ ] milk\r\n- [ ] eggs\r\n"
        path = write_note("todo.md", original)
        session = make_session(vault)
        removed = session.delete(session.tasks[0])
        assert removed == "- [ ] milk\r"
        assert descriptions(session) == ["eggs"]
        session.undo()
        assert read(path) == original
        assert descriptions(session) == ["milk", "eggs"]


class TestEditAndAdd:
    def test_edit_has_no_undo(self, vault: Path, write_note: Callable[[str, str], str]) -> None:
        path = write_note("todo.md", "- [ ] old\n")
        session = make_session(vault)
        session.edit(session.tasks[0], "new ⏫")
        assert read(path) == "- [ ] new ⏫\n"
        assert session.tasks[0].priority is Priority.HIGH
        assert len(session.undo_stack) == 0

    def test_add_below(self, vault: Path, write_note: Callable[[str, str], str]) -> None:
        path = write_note("todo.md", "- [ ] first\n- [ ] last\n")
        session = make_session(vault)
        created = session.add(session.tasks[0], "middle")
        assert created.line_number == 2
        assert read(path) == "- [ ] first\n- [ ] middle\n- [ ] last\n"
        assert descriptions(session) == ["first", "middle", "last"]


class TestPriority:
    def test_unchanged_priority_writes_nothing(
        self, vault: Path, write_note: Callable[[str, str], str]
    ) -> None:
        path = write_note("todo.md", "- [ ] task ⏫\n")
        session = make_session(vault)
        before = Path(path).stat().st_mtime_ns
        session.set_priority(session.tasks[0], Priority.HIGH)
        assert len(session.undo_stack) == 0
        assert Path(path).stat().st_mtime_ns == before

    def test_cycle_and_undo(self, vault: Path, write_note: Callable[[str, str], str]) -> None:
        path = write_note("todo.md", "- [ ] task\n")
        session = make_session(vault)
        session.cycle_priority_up(session.tasks[0])
        assert read(path) == "- [ ] task 🔼\n"
        entry = session.undo_stack.peek()
        assert entry is not None
        assert entry.previous_priority is Priority.NORMAL
        session.undo()
        assert read(path) == "- [ ] task\n"

    def test_undo_on_empty_stack(self, vault: Path) -> None:
        assert make_session(vault).undo() is None


# ---------------------------------------------------------------------------
# Editor
# ---------------------------------------------------------------------------


class TestEditor:
    def test_argv_uses_editor_words(
        self, vault: Path, write_note: Callable[[str, str], str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = write_note("todo.md", "\n- [ ] task\n")
        session = make_session(vault)
        monkeypatch.setenv("EDITOR", "code --wait")
        assert session.editor_argv(session.tasks[0]) == ["code", "--wait", "+2", path]

    def test_argv_default(
        self, vault: Path, write_note: Callable[[str, str], str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = write_note("todo.md", "- [ ] task\n")
        session = make_session(vault)
        monkeypatch.delenv("EDITOR", raising=False)
        assert session.editor_argv(session.tasks[0]) == ["vi", "+1", path]

    @pytest.mark.parametrize(
        ("mode", "editor", "inline"),
        [
            ("inline", "vim", True),
            ("external", "", False),
            ("", "vim", False),
            ("", "", True),
        ],
    )
    def test_inline_choice(
        self, vault: Path, monkeypatch: pytest.MonkeyPatch, mode: str, editor: str, inline: bool
    ) -> None:
        monkeypatch.setenv("EDITOR", editor)
        session = make_session(vault, editor_mode=mode)
        assert session.use_inline_editor() is inline

    def test_editor_finished_refreshes(
        self, vault: Path, write_note: Callable[[str, str], str]
    ) -> None:
        session = make_session(vault)
        write_note("todo.md", "- [ ] written in editor\n")
        failure = RuntimeError("exit status 1")
        session.editor_finished(failure)
        assert session.error is failure
        assert descriptions(session) == ["written in editor"]


# ---------------------------------------------------------------------------
# Live updates
# ---------------------------------------------------------------------------


class TestLiveUpdates:
    def test_external_change_refreshes_once(
        self, vault: Path, write_note: Callable[[str, str], str]
    ) -> None:
        session = make_session(vault)
        path = write_note("todo.md", "- [ ] from outside\n")
        for _ in range(5):
            session.on_file_change(FileChange(path))
        assert session.process_signals(timeout=2) is True
        assert descriptions(session) == ["from outside"]
        assert session.process_signals(timeout=0.2) is False

    def test_own_write_is_suppressed(self, vault: Path, write_note: Callable[[str, str], str]) -> None:
        path = write_note("todo.md", "- [ ] task\n")
        session = make_session(vault)
        session.toggle(session.tasks[0])
        session.on_file_change(FileChange(path))
        assert session.process_signals(timeout=0.3) is False

    def test_write_is_recorded_before_it_happens(
        self,
        vault: Path,
        write_note: Callable[[str, str], str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        path = write_note("todo.md", "- [ ] task\n")
        session = make_session(vault)
        seen: list[bool] = []
        real_toggle = mutator_module.toggle

        def toggle_and_notify(record: object, today: object = None) -> object:
            result = real_toggle(record, today)  # type: ignore[arg-type]
            seen.append(session.suppressor.should_suppress(path))
            return result

        monkeypatch.setattr(mutator_module, "toggle", toggle_and_notify)
        session.toggle(session.tasks[0])
        assert seen == [True]
        session.on_file_change(FileChange(path))
        assert session.process_signals(timeout=2) is True

    def test_failed_write_does_not_hide_outside_edit(
        self,
        vault: Path,
        write_note: Callable[[str, str], str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        path = write_note("todo.md", "- [ ] task\n")
        session = make_session(vault)

        def fail(record: object, today: object = None) -> None:
            raise OSError("read-only file system")

        monkeypatch.setattr(mutator_module, "toggle", fail)
        with pytest.raises(OSError):
            session.toggle(session.tasks[0])
        assert session.suppressor.should_suppress(path) is False

    def test_change_evicts_cache(self, vault: Path, write_note: Callable[[str, str], str]) -> None:
        path = write_note("todo.md", "- [ ] task\n")
        session = make_session(vault)
        assert session.cache is not None and path in session.cache
        session.on_file_change(FileChange(path))
        assert path not in session.cache

    def test_start_and_close(self, vault: Path) -> None:
        with make_session(vault) as session:
            assert session.start_watching() is True
            assert session.start_watching() is True
        assert session._watcher is None

    def test_watch_failure_is_not_fatal(
        self,
        vault: Path,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        def broken(root: str) -> None:
            raise OSError("inotify watch limit reached")

        monkeypatch.setattr("vaulttasks.session.session.Watcher", broken)
        session = make_session(vault)
        with caplog.at_level(logging.WARNING):
            assert session.start_watching() is False
        assert "Live updates disabled" in caplog.text

    def test_real_edit_reaches_session(
        self, vault: Path, write_note: Callable[[str, str], str]
    ) -> None:
        with make_session(vault) as session:
            session.start_watching()
            write_note("todo.md", "- [ ] watched\n")
            deadline = time.monotonic() + 5
            while time.monotonic() < deadline and not session.tasks:
                session.process_signals(timeout=0.5)
            assert descriptions(session) == ["watched"]
