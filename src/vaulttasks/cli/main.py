"""CLI entry point for vault-tasks.

Invoked as::

    vault-tasks [--verbose] COMMAND [ARGS]...

or, during development::

    python -m vaulttasks.cli.main

Commands
--------
list        List the tasks matching a query source
watch       List, then re-list whenever the vault changes
toggle      Toggle one checkbox line in a file
init        Create a starter tasks.md in the current directory
version     Show version information
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.rule import Rule
from rich.table import Table

from vaulttasks.cli.render import THEMES, make_console, render_sections
from vaulttasks.config.config import ProfileError, build_session_config, config_path, load_config
from vaulttasks.model.nodes import Query
from vaulttasks.parser.errors import QuerySourceError
from vaulttasks.session.session import TaskSession

console = Console()
err_console = Console(stderr=True)

_WATCH_POLL_SECONDS = 0.5


def _open_session(query: str, vault: str, profile: str, theme: str) -> tuple[TaskSession, Console]:
    """Resolve configuration and build a session, exiting on error."""
    try:
        config = load_config()
        session_config = build_session_config(
            config, profile_name=profile, vault=vault, query=query, theme=theme
        )
    except ProfileError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        if exc.field == "vault" and not vault and not profile:
            err_console.print(
                f"Pass --vault or define a default_profile in {config_path()}"
            )
        sys.exit(1)
    except (OSError, yaml.YAMLError) as exc:
        err_console.print(f"[red]Error loading config:[/red] {exc}")
        sys.exit(1)

    try:
        out = make_console(session_config.theme)
    except KeyError as exc:
        err_console.print(f"[red]Error:[/red] {exc.args[0]}")
        sys.exit(1)

    try:
        session = TaskSession(session_config)
    except QuerySourceError as exc:
        err_console.print(f"[yellow]Warning:[/yellow] {exc}; showing all open tasks")
        session = TaskSession(session_config, queries=[Query(not_done=True)])
    except OSError as exc:
        err_console.print(f"[red]Error reading query:[/red] {exc}")
        sys.exit(1)
    return session, out


def _source_options(func):  # type: ignore[no-untyped-def]
    """Attach the options shared by ``list`` and ``watch``."""
    func = click.option("--theme", default="", help=f"Color theme ({', '.join(sorted(THEMES))})")(func)
    func = click.option("--profile", default="", help="Profile name from the config file")(func)
    func = click.option("--vault", default="", help="Path to the vault directory")(func)
    func = click.argument("query", required=False, default="")(func)
    return func


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="vault-tasks")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Markdown checkbox tasks across a vault: query, list, toggle and watch."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=err_console, show_path=False)],
        )


# ---------------------------------------------------------------------------
# version command
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from vaulttasks import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]vault-tasks[/bold]", f"v{__version__}")
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    table.add_row("Platform", sys.platform)
    table.add_row("Config", str(config_path()))
    console.print(table)


# ---------------------------------------------------------------------------
# list command
# ---------------------------------------------------------------------------


@cli.command(name="list")
@_source_options
def list_command(query: str, vault: str, profile: str, theme: str) -> None:
    """List the tasks matching QUERY.

    QUERY is a markdown file with ```tasks blocks or an inline query such
    as "not done". Without it the profile's query is used; without that,
    every task is listed.

    Examples:

    \b
        vault-tasks list --vault ~/notes "not done"
        vault-tasks list queries/today.md --vault ~/notes
        vault-tasks list --profile work
    """
    session, out = _open_session(query, vault, profile, theme)
    with session:
        sections = session.refresh()
        render_sections(out, sections, session.vault_root)


# ---------------------------------------------------------------------------
# watch command
# ---------------------------------------------------------------------------


@cli.command(name="watch")
@_source_options
def watch_command(query: str, vault: str, profile: str, theme: str) -> None:
    """List the tasks matching QUERY and re-list on every vault change.

    Stop with Ctrl-C.
    """
    session, out = _open_session(query, vault, profile, theme)
    with session:
        render_sections(out, session.refresh(), session.vault_root)
        if not session.start_watching():
            err_console.print("[yellow]Warning:[/yellow] live updates are unavailable")
            return
        try:
            while True:
                if session.process_signals(timeout=_WATCH_POLL_SECONDS):
                    out.print(Rule())
                    render_sections(out, session.sections, session.vault_root)
        except KeyboardInterrupt:
            pass


# ---------------------------------------------------------------------------
# toggle command
# ---------------------------------------------------------------------------


@cli.command(name="toggle")
@click.argument("file", type=click.Path(exists=False))
@click.argument("line", type=int)
def toggle_command(file: str, line: int) -> None:
    """Toggle the checkbox on LINE of FILE.

    A completed task gets a done date; reopening it removes the date.
    """
    from vaulttasks.extractor import extract_file
    from vaulttasks.mutator import toggle

    try:
        records = extract_file(file)
    except FileNotFoundError:
        err_console.print(f"[red]Error:[/red] File not found: {file}")
        sys.exit(1)
    except (OSError, UnicodeDecodeError) as exc:
        err_console.print(f"[red]Error:[/red] Cannot read {file}: {exc}")
        sys.exit(1)

    record = next((r for r in records if r.line_number == line), None)
    if record is None:
        err_console.print(f"[red]Error:[/red] {file}:{line} is not a task line")
        sys.exit(1)

    try:
        toggle(record)
    except OSError as exc:
        err_console.print(f"[red]Error:[/red] Cannot write {file}: {exc}")
        sys.exit(1)
    state = "[green]done[/green]" if record.done else "[yellow]open[/yellow]"
    console.print(f"{state} {file}:{line}")


# ---------------------------------------------------------------------------
# init command
# ---------------------------------------------------------------------------


@cli.command(name="init")
@click.argument("path", required=False, default="tasks.md", type=click.Path(exists=False))
def init_command(path: str) -> None:
    """Create a starter task file (default: tasks.md in the current directory)."""
    from vaulttasks.mutator import create_tasks_file

    try:
        created = create_tasks_file(path)
    except FileExistsError:
        err_console.print(f"[red]Error:[/red] {path} already exists")
        sys.exit(1)
    except OSError as exc:
        err_console.print(f"[red]Error:[/red] Cannot create {path}: {exc}")
        sys.exit(1)
    console.print(f"[green]Created[/green] {Path(created).resolve()}")


if __name__ == "__main__":
    cli()
