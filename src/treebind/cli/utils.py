"""
CLI utility helpers - output formatting and error reporting.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from treebind.core.errors import TreebindError

console = Console()
err_console = Console(stderr=True)


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert dataclass / pydantic model / dict to plain dict."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}


def output_items(items: list, *, as_json: bool = False, title: str = "") -> None:
    """Render a list of dataclasses as a Rich table or as JSON."""
    if as_json:
        console.print_json(json.dumps([_to_dict(i) for i in items], default=str))
        return
    if not items:
        console.print("[dim]No items.[/dim]")
        return
    _print_table(items, title=title)


def fail(error: TreebindError) -> None:
    """Print a treebind error and exit non-zero."""
    err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {error}")
    raise typer.Exit(code=1)


def _print_table(items: list, *, title: str = "") -> None:
    first = _to_dict(items[0])
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in first:
        table.add_column(col, overflow="fold")
    for item in items:
        d = _to_dict(item)
        table.add_row(*(_cell(v) for v in d.values()))
    console.print(table)


def _cell(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(str(v) for v in value) or "-"
    return str(value)
