"""Checkbox task extraction from markdown files.

Exports ``extract`` / ``extract_file`` and the vault walker ``scan_vault``.
"""
from __future__ import annotations

from vaulttasks.extractor.extractor import (
    CheckboxLine,
    extract,
    extract_file,
    parse_due_date,
    parse_line,
    parse_priority,
    scan_vault,
    split_checkbox,
)

__all__ = [
    "CheckboxLine",
    "extract",
    "extract_file",
    "parse_due_date",
    "parse_line",
    "parse_priority",
    "scan_vault",
    "split_checkbox",
]
