"""
CLI: ``fieldstore db`` — schema bootstrap commands.
"""

from __future__ import annotations

import typer

from fieldstore.cli.utils import make_access, run_command
from fieldstore.core.config import get_settings
from fieldstore.core.schema import create_tables, schema_ddl

app = typer.Typer(no_args_is_help=True)


@app.command()
def init(
    database: str | None = typer.Option(None, "--database", "-d", help="Embedded database path"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Create the sequence counter and project tables (idempotent)."""

    def _init() -> dict:
        access = make_access(database)
        tables = create_tables(access.adapter, sequence_table=get_settings().sequence_table)
        return {"backend": access.backend_kind.value, "tables": ", ".join(tables)}

    run_command(_init, as_json=json_out, title="Database Init")


@app.command()
def schema(
    dialect: str = typer.Option("sqlite", "--dialect", help="sqlite or postgresql"),
) -> None:
    """Print the DDL for one dialect."""
    try:
        ddl = schema_ddl(dialect, sequence_table=get_settings().sequence_table)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--dialect") from e
    typer.echo(ddl)
