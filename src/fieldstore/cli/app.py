"""
Root Typer application for the fieldstore CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from fieldstore.cli.utils import output_result
from fieldstore.core.config import get_settings, select_backend, validate_hosted_configuration
from fieldstore.core.logging import configure_logging

app = Typer(
    name="fieldstore",
    help="fieldstore — data access layer for the field-testing application.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from fieldstore import __version__

        typer.echo(f"fieldstore {__version__}")
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
) -> None:
    """fieldstore CLI — inspect the backend, bootstrap tables, allocate sequences."""
    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.json_logs)


@app.command()
def info(
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show which backend the current environment selects."""
    settings = get_settings()
    config = select_backend(settings)
    check = validate_hosted_configuration(settings.hosted_url, settings.credential_value)
    data = dict(config.describe())
    data["force_embedded"] = settings.force_embedded
    if check.is_present and not check.is_valid:
        data["hosted_problems"] = "; ".join(check.problems)
    output_result(data, as_json=json_out, title="Backend")


# ── Sub-command registration ─────────────────────────────────────────────

from fieldstore.cli.db import app as db_app  # noqa: E402
from fieldstore.cli.seq import app as seq_app  # noqa: E402

app.add_typer(db_app, name="db", help="Schema bootstrap.")
app.add_typer(seq_app, name="seq", help="Sequence allocation.")


if __name__ == "__main__":
    app()
