"""
CLI utility helpers — output formatting and data access setup.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from fieldstore.core.access import DataAccess, get_data_access
from fieldstore.core.adapters import EmbeddedAdapter
from fieldstore.core.config import get_settings
from fieldstore.core.errors import DataAccessError

console = Console()
err_console = Console(stderr=True)


# ── Data access helper ───────────────────────────────────────────────────


def make_access(database: str | None = None) -> DataAccess:
    """
    Data access for a CLI command.

    ``--database`` forces an embedded store at that path; otherwise the
    backend is selected from the environment as in the application.
    """
    if database:
        return DataAccess(EmbeddedAdapter(database, timeout=get_settings().embedded_busy_timeout))
    return get_data_access()


@contextmanager
def handle_errors() -> Iterator[None]:
    """Turn data access errors into a red message and exit code 1."""
    try:
        yield
    except DataAccessError as e:
        err_console.print(f"[red]{e.__class__.__name__}:[/red] {e.message}")
        raise typer.Exit(code=1) from e


# ── Output helpers ───────────────────────────────────────────────────────


def output_result(data: dict[str, Any], *, as_json: bool = False, title: str = "") -> None:
    """Print a flat mapping as JSON or as a two-column rich table."""
    if as_json:
        typer.echo(json.dumps(data, indent=2, default=str))
        return
    table = Table(title=title or None, show_header=False)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in data.items():
        table.add_row(str(key), str(value))
    console.print(table)


def run_command(func: Callable[[], dict[str, Any]], *, as_json: bool, title: str) -> None:
    with handle_errors():
        result = func()
    output_result(result, as_json=as_json, title=title)
