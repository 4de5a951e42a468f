"""
CLI utility helpers - output formatting and logging setup.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from seqrun.core.errors import SeqrunError
from seqrun.core.logging import configure_logging
from seqrun.core.settings import SeqrunSettings, get_settings

console = Console()
err_console = Console(stderr=True)


def setup(verbose: bool = False) -> SeqrunSettings:
    """Load settings and configure logging for a command invocation."""
    try:
        settings = get_settings()
    except SeqrunError as exc:
        fail(exc)
    configure_logging(
        level="DEBUG" if verbose else settings.log_level,
        json_format=settings.log_json,
    )
    return settings


def fail(error: SeqrunError | str, code: int = 1):
    """Print an error and exit with *code*."""
    if isinstance(error, SeqrunError):
        err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {error.message}")
    else:
        err_console.print(f"[bold red]Error[/bold red]: {error}")
    raise typer.Exit(code=code)


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert dataclass / dict / object with to_dict to plain dict."""
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def print_table(rows: list[dict[str, Any]], *, title: str = "") -> None:
    """Render a list of dicts as a Rich table."""
    if not rows:
        console.print("[dim]No items.[/dim]")
        return
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in rows[0]:
        table.add_column(str(col), overflow="fold")
    for row in rows:
        table.add_row(*(str(v) for v in row.values()))
    console.print(table)


def print_dict(data: Any, *, title: str = "") -> None:
    """Render a single mapping as key-value pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in _to_dict(data).items():
        console.print(f"  [cyan]{k}[/cyan]: {v}")
