"""Shared test fixtures for vault-tasks.

Fixtures defined here are available to all tests in the suite without
needing an explicit import. Add project-wide fixtures here; keep
domain-specific fixtures close to the tests that use them.
"""
from __future__ import annotations

from collections.abc import Callable
from datetime import date
from pathlib import Path

import pytest

FIXED_TODAY = date(2024, 6, 15)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the config lookup at an empty directory for every test."""
    xdg = tmp_path / "xdg"
    xdg.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg))
    return xdg


@pytest.fixture()
def package_name() -> str:
    """Return the importable package name for assertions."""
    return "vaulttasks"


@pytest.fixture()
def expected_version() -> str:
    """Return the current expected version string.

    Update this fixture when cutting a release so that the version
    test immediately catches stale ``__version__`` values.
    """
    return "0.1.0"


@pytest.fixture()
def today() -> date:
    return FIXED_TODAY


@pytest.fixture()
def vault(tmp_path: Path) -> Path:
    """Return an empty vault directory."""
    root = tmp_path / "vault"
    root.mkdir()
    return root


@pytest.fixture()
def write_note(vault: Path) -> Callable[[str, str], str]:
    """Return a helper writing ``content`` to ``vault/relpath`` verbatim."""

    def _write(relpath: str, content: str) -> str:
        path = vault / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8", newline="")
        return str(path)

    return _write
