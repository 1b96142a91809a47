"""Rich rendering of evaluated sections.

The theme is an explicit value chosen by the caller; nothing here is
module-level mutable state.  Task text is appended to ``rich.text.Text``
objects rather than printed as markup, so ``[ ]``/``[x]`` and any
brackets in descriptions are shown literally.
"""
from __future__ import annotations

from typing import IO

from rich.console import Console
from rich.text import Text
from rich.theme import Theme

from vaulttasks.evaluator.evaluator import relative_path
from vaulttasks.model.nodes import GroupBy, Priority, Section, TaskRecord

DEFAULT_THEME = "dracula"
NO_TASKS_MESSAGE = "No tasks found matching any query."
EMPTY_SECTION_MESSAGE = "(no matching tasks)"

_BASE_STYLES: dict[str, str] = {
    "vt.summary": "bold",
    "vt.section": "bold magenta",
    "vt.group": "bold cyan",
    "vt.open": "default",
    "vt.done": "dim strike",
    "vt.location": "dim",
    "vt.empty": "dim italic",
    "vt.priority.high": "bold red",
    "vt.priority.low": "blue",
}

_OVERRIDES: dict[str, dict[str, str]] = {
    "dracula": {
        "vt.section": "bold #ff79c6",
        "vt.group": "bold #8be9fd",
        "vt.location": "#6272a4",
        "vt.priority.high": "bold #ff5555",
        "vt.priority.low": "#bd93f9",
    },
    "dark": {},
    "light": {
        "vt.section": "bold dark_magenta",
        "vt.group": "bold dark_cyan",
        "vt.location": "grey42",
        "vt.priority.low": "dark_blue",
    },
    "notty": {name: "none" for name in _BASE_STYLES},
}

THEMES: dict[str, Theme] = {
    name: Theme({**_BASE_STYLES, **overrides}) for name, overrides in _OVERRIDES.items()
}


def get_theme(name: str = "") -> Theme:
    """Return the named theme; an empty name selects the default.

    Raises
    ------
    KeyError
        If ``name`` is not a known theme.
    """
    key = name or DEFAULT_THEME
    if key not in THEMES:
        raise KeyError(f"unknown theme {key!r}; choose from {', '.join(sorted(THEMES))}")
    return THEMES[key]


def make_console(theme: str = "", file: IO[str] | None = None) -> Console:
    return Console(theme=get_theme(theme), file=file, highlight=False, soft_wrap=True)


def _priority_style(priority: Priority) -> str:
    if priority < Priority.NORMAL:
        return "vt.priority.high"
    if priority > Priority.NORMAL:
        return "vt.priority.low"
    return ""


def task_line(task: TaskRecord, vault_root: str) -> Text:
    """Render ``[ ] description (relpath:line)`` for one task."""
    text = Text()
    if task.done:
        text.append("[x] ", style="vt.done")
        text.append(task.description, style="vt.done")
    else:
        text.append("[ ] ", style="vt.open")
        text.append(task.description, style=_priority_style(task.priority) or "vt.open")
    location = f"{relative_path(vault_root, task.file_path)}:{task.line_number}"
    text.append(f" ({location})", style="vt.location")
    return text


def render_sections(console: Console, sections: list[Section], vault_root: str) -> int:
    """Print every section and return the total number of listed tasks."""
    total = sum(len(section.tasks) for section in sections)
    if total == 0:
        console.print(NO_TASKS_MESSAGE)
        return 0

    console.print(Text(f"Found {total} task(s):", style="vt.summary"))
    console.print()
    for section in sections:
        if section.name:
            console.print(Text(f"## {section.name} ({len(section.tasks)})", style="vt.section"))
        if not section.tasks:
            console.print(Text(EMPTY_SECTION_MESSAGE, style="vt.empty"))
            console.print()
            continue
        for group in section.groups:
            if section.query.group_by is not GroupBy.NONE and group.name:
                console.print(Text(f"### {group.name}", style="vt.group"))
            for task in group.tasks:
                console.print(task_line(task, vault_root))
        console.print()
    return total
