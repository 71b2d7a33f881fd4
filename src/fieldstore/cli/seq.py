"""
CLI: ``fieldstore seq`` — sequence allocation commands.
"""

from __future__ import annotations

import typer

from fieldstore.cli.utils import make_access, run_command
from fieldstore.core.config import get_settings
from fieldstore.core.sequences import ProjectNumberAllocator

app = typer.Typer(no_args_is_help=True)


@app.command("next")
def next_value(
    sequence_name: str = typer.Argument(..., help="Sequence name, e.g. project"),
    partition_key: int = typer.Argument(..., help="Partition, e.g. the year"),
    database: str | None = typer.Option(None, "--database", "-d", help="Embedded database path"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Allocate the next value of a sequence."""

    def _next() -> dict:
        access = make_access(database)
        value = access.next_sequence_value(sequence_name, partition_key)
        return {"sequence": sequence_name, "partition": partition_key, "value": value}

    run_command(_next, as_json=json_out, title="Sequence")


@app.command()
def peek(
    sequence_name: str = typer.Argument(...),
    partition_key: int = typer.Argument(...),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show the value the next allocation would return, without allocating."""

    def _peek() -> dict:
        access = make_access(database)
        value = access.sequences.peek(sequence_name, partition_key)
        return {"sequence": sequence_name, "partition": partition_key, "next": value}

    run_command(_peek, as_json=json_out, title="Sequence")


@app.command("project-number")
def project_number(
    scope: str | None = typer.Option(None, "--scope", help="Per-tenant scope, e.g. a tenant id"),
    year: int | None = typer.Option(None, "--year", help="Defaults to the current year"),
    prefix: str | None = typer.Option(None, "--prefix", help="Defaults to FIELDSTORE_PROJECT_NUMBER_PREFIX"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Mint the next project number (PREFIX-YYYY-NNNN)."""

    def _mint() -> dict:
        access = make_access(database)
        minter = ProjectNumberAllocator(
            access.sequences, prefix=prefix or get_settings().project_number_prefix
        )
        return {"projectNumber": minter.next_project_number(scope=scope, year=year)}

    run_command(_mint, as_json=json_out, title="Project Number")
