"""Test that the quickstart API in the package docstring works."""
from __future__ import annotations

from pathlib import Path


def test_quickstart_functions_are_callable() -> None:
    import vaulttasks

    assert callable(vaulttasks.extract)
    assert callable(vaulttasks.compile_queries)
    assert callable(vaulttasks.evaluate)
    assert callable(vaulttasks.open_session)


def test_quickstart_version(expected_version: str) -> None:
    import vaulttasks

    assert vaulttasks.__version__ == expected_version


def test_quickstart_pipeline() -> None:
    import vaulttasks

    records = vaulttasks.extract("- [ ] buy milk 📅 2099-01-01\n- [x] eggs\n", path="todo.md")
    queries = vaulttasks.compile_queries("not done\ndue before 2100-01-01")
    (section,) = vaulttasks.evaluate(records, queries)
    assert [t.description for t in section.tasks] == ["buy milk 📅 2099-01-01"]


def test_quickstart_session(vault: Path) -> None:
    import vaulttasks
    from vaulttasks.config import SessionConfig

    (vault / "todo.md").write_text("- [ ] call mum\n", encoding="utf-8")
    with vaulttasks.open_session(SessionConfig(vault_root=str(vault))) as session:
        assert [t.description for t in session.tasks] == ["call mum"]
