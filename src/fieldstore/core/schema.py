"""
Table definitions the data access layer relies on.

Two tables are defined here, each rendered for either dialect:

- ``sequence_counters``: one row per (sequence_name, partition_key) holding
  the next value to hand out. The unique constraint is what makes lazy
  counter creation race-safe.
- ``projects``: the main consumer of the sequence allocator. Its
  structured columns (``customer_emails``, ``soil_specs``,
  ``concrete_specs``, ``drawings``) are JSON text on SQLite and JSONB on
  PostgreSQL.

``create_tables()`` is idempotent (CREATE ... IF NOT EXISTS). This is
bootstrap DDL, not a migration framework: changing a table means changing
the deployed database yourself.

Tags:
    schema, ddl, bootstrap, database
"""

from __future__ import annotations

from fieldstore.core.adapters import BackendAdapter
from fieldstore.core.adapters.statements import check_identifier
from fieldstore.core.dialect import Dialect, get_dialect
from fieldstore.core.sequences import DEFAULT_SEQUENCE_TABLE

# =============================================================================
# TABLE NAMES
# =============================================================================

TABLES = {
    "sequence_counters": DEFAULT_SEQUENCE_TABLE,
    "projects": "projects",
}

PROJECT_STRUCTURED_COLUMNS = ("customer_emails", "soil_specs", "concrete_specs", "drawings")


# =============================================================================
# DDL
# =============================================================================


def sequence_counters_ddl(dialect: Dialect, table: str = DEFAULT_SEQUENCE_TABLE) -> str:
    check_identifier(table, "table")
    return f"""
        CREATE TABLE IF NOT EXISTS {table} (
            id {dialect.auto_increment()},
            sequence_name TEXT NOT NULL,
            partition_key INTEGER NOT NULL,
            next_value INTEGER NOT NULL CHECK (next_value >= 1),
            updated_at {dialect.timestamp_type()} {dialect.timestamp_default_now()},
            UNIQUE (sequence_name, partition_key)
        );
    """


def projects_ddl(dialect: Dialect) -> str:
    json_type = dialect.json_type()
    return f"""
        CREATE TABLE IF NOT EXISTS projects (
            id {dialect.auto_increment()},
            tenant_id INTEGER,
            project_number TEXT NOT NULL UNIQUE,
            project_name TEXT NOT NULL,
            project_spec TEXT,
            customer_emails {json_type},
            soil_specs {json_type},
            concrete_specs {json_type},
            drawings {json_type},
            created_at {dialect.timestamp_type()} {dialect.timestamp_default_now()},
            updated_at {dialect.timestamp_type()} {dialect.timestamp_default_now()}
        );
        CREATE INDEX IF NOT EXISTS idx_projects_tenant ON projects (tenant_id);
    """


def schema_ddl(dialect: Dialect | str, *, sequence_table: str = DEFAULT_SEQUENCE_TABLE) -> str:
    """All DDL for one dialect as a single script."""
    if isinstance(dialect, str):
        dialect = get_dialect(dialect)
    return "\n".join(
        [sequence_counters_ddl(dialect, sequence_table), projects_ddl(dialect)]
    )


def create_tables(adapter: BackendAdapter, *, sequence_table: str = DEFAULT_SEQUENCE_TABLE) -> list[str]:
    """
    Create all tables on ``adapter``'s backend.

    Safe to call multiple times. Returns the table names.
    """
    adapter.execute_ddl(schema_ddl(adapter.dialect, sequence_table=sequence_table))
    return [sequence_table, TABLES["projects"]]


__all__ = [
    "TABLES",
    "PROJECT_STRUCTURED_COLUMNS",
    "sequence_counters_ddl",
    "projects_ddl",
    "schema_ddl",
    "create_tables",
]
