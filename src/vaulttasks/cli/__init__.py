"""Command-line interface for vault-tasks."""
from __future__ import annotations

from vaulttasks.cli.main import cli

__all__ = ["cli"]
