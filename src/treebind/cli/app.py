"""
Root Typer application for the treebind CLI.

Commands inspect a document the way the engine sees it, which is the
quickest way to write and debug a rule set.
"""

from __future__ import annotations

from pathlib import Path

import typer
from typer import Typer

from treebind.cli.utils import fail, output_items
from treebind.core.errors import TreebindError
from treebind.logging import configure_logging

app = Typer(
    name="treebind",
    help="treebind - rule-driven XML to object binding.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from treebind import __version__

        typer.echo(f"treebind {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="DEBUG | INFO | WARNING | ERROR (default: TREEBIND_LOG_LEVEL or WARNING).",
    ),
) -> None:
    """treebind CLI - inspect documents and try out patterns."""
    configure_logging(level=log_level)


# ── treebind paths ───────────────────────────────────────────────────────


@app.command("paths")
def paths_cmd(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="XML document."),
    json_out: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """List every distinct element path with its occurrence count.

    Example:
        treebind paths web.xml
    """
    from treebind.survey import collect_paths

    try:
        items = collect_paths(file)
    except TreebindError as e:
        fail(e)
    output_items(items, as_json=json_out, title=f"Paths in {file.name}")


# ── treebind match ───────────────────────────────────────────────────────


@app.command("match")
def match_cmd(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="XML document."),
    patterns: list[str] = typer.Option(..., "--pattern", "-p", help="Pattern to test (repeatable)."),
    json_out: bool = typer.Option(False, "--json", "-j", help="Output as JSON."),
) -> None:
    """Show which patterns match each element path, in dispatch order.

    Example:
        treebind match web.xml -p "servlet/*" -p "/web-app/servlet/servlet-name"
    """
    from treebind.survey import match_paths

    try:
        items = match_paths(file, patterns)
    except TreebindError as e:
        fail(e)
    output_items(items, as_json=json_out, title=f"Matches in {file.name}")
