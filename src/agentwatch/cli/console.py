"""Rich console helpers shared by the agentwatch commands."""

from __future__ import annotations

import json
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

console = Console()

# (header, style) or (header, add_column kwargs)
ColumnSpec = tuple[str, str | dict[str, Any]]


def _say(style: str, msg: str) -> None:
    console.print(f"[{style}]{msg}[/{style}]")


def error(msg: str) -> None:
    _say("red", msg)


def warning(msg: str) -> None:
    _say("yellow", msg)


def success(msg: str) -> None:
    _say("green", msg)


def dim(msg: str) -> None:
    _say("dim", msg)


def print_json(data: Any) -> None:
    """Print machine-readable JSON without Rich markup or wrapping."""
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


def create_table(title: str, columns: list[ColumnSpec]) -> Table:
    table = Table(title=title)
    for header, spec in columns:
        options = spec if isinstance(spec, dict) else {"style": spec}
        table.add_column(header, **options)
    return table


def confirm_or_cancel(prompt: str, force: bool) -> bool:
    """True when forced or confirmed; prints "Cancelled" otherwise."""
    if force or typer.confirm(prompt):
        return True
    dim("Cancelled")
    return False
