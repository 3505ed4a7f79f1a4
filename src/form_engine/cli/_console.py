"""Rich consoles and renderers for schema problems, form state and payloads."""

import json as json_mod
from typing import Iterable, Sequence

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from form_engine.schemas.violations import Violation

# Status, problems and logs go to stderr; --json data goes to stdout
console = Console(stderr=True)
stdout_console = Console()


def print_ok(msg: str) -> None:
    console.print(f"[green]✓[/green] {escape(msg)}")


def print_err(msg: str) -> None:
    console.print(f"[red]✗[/red] {escape(msg)}")


def print_problems(problems: Iterable[str]) -> None:
    """One indented line per schema problem or violation message."""
    for problem in problems:
        console.print(f"  - {problem}", markup=False, highlight=False)


def output_result(data: dict, *, ctx: typer.Context, title: str = "") -> None:
    """Print a payload or form state as JSON (stdout) or a panel (stderr)."""
    if ctx.obj.get("json"):
        stdout_console.print_json(data=data)
        return
    formatted = json_mod.dumps(data, indent=2, ensure_ascii=False, default=str)
    console.print(Panel(formatted, title=title or None, border_style="blue"))


def output_table(rows: list[dict], *, ctx: typer.Context, title: str = "") -> None:
    """Print schema rows as a JSON array or a table keyed by the first row."""
    if ctx.obj.get("json"):
        stdout_console.print_json(data=rows)
        return

    if not rows:
        console.print("[dim]No block schemas[/dim]")
        return

    table = Table(title=title)
    for col in rows[0]:
        table.add_column(col)
    for row in rows:
        table.add_row(*[escape(str(value)) for value in row.values()])
    console.print(table)


def output_violations(violations: Sequence[Violation]) -> None:
    """Table of compile violations: code, canonical parameter, message."""
    table = Table(show_header=True, header_style="bold red")
    table.add_column("code")
    table.add_column("parameter")
    table.add_column("message")
    for violation in violations:
        table.add_row(violation.code.value, escape(violation.canonical_id or "-"), escape(violation.message))
    console.print(table)
