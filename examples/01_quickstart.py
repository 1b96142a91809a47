#!/usr/bin/env python3
"""Example: Quickstart — vault-tasks

Minimal working example: extract tasks from markdown, compile a query,
evaluate it, then toggle a task through a session and undo the toggle.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install vault-tasks
"""
from __future__ import annotations

import tempfile
from pathlib import Path

import vaulttasks
from vaulttasks.config import SessionConfig

NOTE = """# Shopping

- [ ] buy milk 📅 2099-01-01 ⏫
- [x] eggs
- [ ] bread 🔽
"""

QUERY = """## Open, most urgent first
```tasks
not done
sort by priority
```
"""


def main() -> None:
    print(f"vault-tasks version: {vaulttasks.__version__}")

    # Step 1: Extract tasks from markdown text
    records = vaulttasks.extract(NOTE, path="shopping.md")
    print(f"Extracted {len(records)} tasks")
    for record in records:
        state = "x" if record.done else " "
        print(f"  line {record.line_number}: [{state}] {record.description} ({record.priority.name})")

    # Step 2: Compile an inline query and evaluate it
    queries = vaulttasks.compile_queries("not done\ndue before 2100-01-01")
    (section,) = vaulttasks.evaluate(records, queries)
    print(f"Due before 2100: {[t.description for t in section.tasks]}")

    # Step 3: Work on a real vault through a session
    with tempfile.TemporaryDirectory() as tmp:
        vault = Path(tmp)
        (vault / "shopping.md").write_text(NOTE, encoding="utf-8")
        (vault / "dashboard.md").write_text(QUERY, encoding="utf-8")

        config = SessionConfig(vault_root=str(vault), query_source="dashboard.md")
        with vaulttasks.open_session(config) as session:
            for section in session.sections:
                print(f"\n## {section.name} ({len(section.tasks)})")
                for task in section.tasks:
                    print(f"  [ ] {task.description}")

            milk = session.tasks[0]
            session.toggle(milk)
            print(f"\nAfter toggle: {(vault / 'shopping.md').read_text(encoding='utf-8').splitlines()[2]}")

            session.undo()
            print(f"After undo:   {(vault / 'shopping.md').read_text(encoding='utf-8').splitlines()[2]}")


if __name__ == "__main__":
    main()
