"""SQL dialect abstraction for the two supported backends.

Statement builders ask a ``Dialect`` for every backend-specific fragment
(placeholders, identifier quoting, timestamps, DDL column types) instead of
hard-coding SQLite or PostgreSQL syntax.

Architecture::

    statements.select(dialect, "projects", {"tenant_id": 4})
                              │
                              ▼
    ┌──────────────────────┐      ┌──────────────────────────┐
    │ SQLiteDialect        │      │ PostgreSQLDialect        │
    │ ?  "col"             │      │ %s  "col"                │
    │ datetime('now')      │      │ NOW()                    │
    │ TEXT (JSON)          │      │ JSONB                    │
    │ no RETURNING         │      │ RETURNING *              │
    └──────────────────────┘      └──────────────────────────┘

Examples:
    >>> from fieldstore.core.dialect import get_dialect
    >>> d = get_dialect("sqlite")
    >>> d.placeholders(3)
    '?, ?, ?'
    >>> d.quote("order")
    '"order"'

Tags:
    dialect, sql, abstraction, portability, database
"""

from __future__ import annotations

import re
from typing import Protocol, runtime_checkable

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def is_valid_identifier(name: str) -> bool:
    """True if ``name`` can be used as a table or column name."""
    return isinstance(name, str) and IDENTIFIER_PATTERN.match(name) is not None


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a SQL fragment valid for the target database.
    """

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    @property
    def supports_returning(self) -> bool:
        """Whether INSERT/UPDATE/DELETE can return rows with ``RETURNING *``."""
        ...

    # -- Placeholder generation --------------------------------------------

    def placeholder(self, index: int) -> str:
        """Single positional placeholder (0-based index)."""
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated placeholder list."""
        ...

    # -- Identifiers -------------------------------------------------------

    def quote(self, identifier: str) -> str:
        """Quote an already-validated identifier."""
        ...

    # -- Timestamps --------------------------------------------------------

    def now(self) -> str:
        """SQL expression for current UTC timestamp."""
        ...

    # -- DDL ---------------------------------------------------------------

    def auto_increment(self) -> str:
        """Column definition for an auto-incrementing integer primary key."""
        ...

    def timestamp_type(self) -> str:
        ...

    def timestamp_default_now(self) -> str:
        ...

    def json_type(self) -> str:
        """Column type for structured (nested) values."""
        ...

    def is_json_type(self, declared: str) -> bool:
        """Whether a declared column type holds structured values."""
        ...

    # -- Introspection -----------------------------------------------------

    def table_exists_query(self) -> str:
        """Query returning one row if the table named by the parameter exists."""
        ...

    def table_columns_query(self) -> str:
        """Query returning ``name`` and ``type`` of every column of a table."""
        ...


class SQLiteDialect:
    """SQLite dialect: ``?`` placeholders, ``datetime('now')``, JSON as text."""

    @property
    def name(self) -> str:
        return "sqlite"

    @property
    def supports_returning(self) -> bool:
        # Available from SQLite 3.35 only; the embedded adapter reads back by rowid
        return False

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" for _ in range(count))

    def quote(self, identifier: str) -> str:
        return f'"{identifier}"'

    def now(self) -> str:
        return "datetime('now')"

    def auto_increment(self) -> str:
        return "INTEGER PRIMARY KEY AUTOINCREMENT"

    def timestamp_type(self) -> str:
        return "TEXT"

    def timestamp_default_now(self) -> str:
        return "DEFAULT (datetime('now'))"

    def json_type(self) -> str:
        # Declared type must contain JSON: the embedded codec decodes by it
        return "JSON"

    def is_json_type(self, declared: str) -> bool:
        return "JSON" in (declared or "").upper()

    def table_exists_query(self) -> str:
        return "SELECT name FROM sqlite_master WHERE type='table' AND name = ?"

    def table_columns_query(self) -> str:
        return "SELECT name, type FROM pragma_table_info(?)"


class PostgreSQLDialect:
    """PostgreSQL dialect: ``%s`` placeholders (psycopg2), ``NOW()``, JSONB."""

    @property
    def name(self) -> str:
        return "postgresql"

    @property
    def supports_returning(self) -> bool:
        return True

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "%s"

    def placeholders(self, count: int) -> str:
        return ", ".join("%s" for _ in range(count))

    def quote(self, identifier: str) -> str:
        return f'"{identifier}"'

    def now(self) -> str:
        return "NOW()"

    def auto_increment(self) -> str:
        return "BIGSERIAL PRIMARY KEY"

    def timestamp_type(self) -> str:
        return "TIMESTAMPTZ"

    def timestamp_default_now(self) -> str:
        return "DEFAULT NOW()"

    def json_type(self) -> str:
        return "JSONB"

    def is_json_type(self, declared: str) -> bool:
        return (declared or "").lower() in ("json", "jsonb")

    def table_exists_query(self) -> str:
        return (
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = 'public' AND table_name = %s"
        )

    def table_columns_query(self) -> str:
        return (
            "SELECT column_name AS name, data_type AS type FROM information_schema.columns "
            "WHERE table_schema = 'public' AND table_name = %s"
        )


# =========================================================================
# Registry / Factory
# =========================================================================

# Pre-instantiated singletons (dialects are stateless)
_DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "postgresql": PostgreSQLDialect(),
    "postgres": PostgreSQLDialect(),  # alias
}


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by database type name.

    Raises:
        ValueError: If ``db_type`` is not recognised.
    """
    key = db_type.lower() if isinstance(db_type, str) else db_type.value
    if key not in _DIALECTS:
        raise ValueError(
            f"Unknown dialect '{db_type}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'postgres'})}"
        )
    return _DIALECTS[key]


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "IDENTIFIER_PATTERN",
    "is_valid_identifier",
    "get_dialect",
]
