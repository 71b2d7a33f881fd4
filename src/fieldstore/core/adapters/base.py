"""Backend adapter base class.

Manifesto:
    Both backends expose the same five storage operations with the same
    observable behaviour. The abstract base class fixes that contract so the
    data access facade never depends on a specific driver.

    Everything here speaks storage naming (snake_case) and storage values.
    Name translation and structured value coercion happen one level up.

Features:
    - Abstract ``insert()``, ``update()``, ``delete()`` and ``_query()``
    - Concrete ``get_one()`` / ``get_many()`` / ``table_exists()`` built on ``_query()``
    - Cached column introspection (``column_types()``)
    - Lazy lifecycle: the first operation connects
    - Context-manager protocol for connection lifecycle

Tags:
    database, abstract-base, adapter-pattern

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from fieldstore.core.dialect import Dialect, get_dialect

from . import statements
from .types import BackendConfig, BackendKind, OrderBy

StorageRecord = dict[str, Any]


class BackendAdapter(ABC):
    """
    Abstract base class for backend adapters.

    Operations:
        get_one(table, filters) -> StorageRecord | None
        get_many(table, filters, order_by, limit) -> list[StorageRecord]
        insert(table, record) -> StorageRecord
        update(table, patch, filters) -> list[StorageRecord]
        delete(table, filters) -> int

    Adapters are safe to share between threads. Every operation uses its
    own connection for its whole duration.
    """

    def __init__(self, config: BackendConfig):
        self._config = config
        self._connected = False
        self._dialect: Dialect = get_dialect(config.kind.dialect_name)
        self._column_cache: dict[str, dict[str, str]] = {}

    @property
    def dialect(self) -> Dialect:
        """SQL dialect for this adapter's backend."""
        return self._dialect

    @property
    def kind(self) -> BackendKind:
        return self._config.kind

    @property
    def config(self) -> BackendConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        """Whether adapter is connected."""
        return self._connected

    @abstractmethod
    def connect(self) -> None:
        """Prepare the backend for use (open pool, create file)."""
        ...

    @abstractmethod
    def disconnect(self) -> None:
        """Release backend resources."""
        ...

    @abstractmethod
    def _query(
        self, sql: str, params: tuple = (), *, table: str | None = None, operation: str = "query"
    ) -> list[StorageRecord]:
        """Run a read statement and return rows as dicts."""
        ...

    @abstractmethod
    def insert(self, table: str, record: Mapping[str, Any]) -> StorageRecord:
        """Insert one row and return it as stored, including its ``id``."""
        ...

    @abstractmethod
    def update(
        self, table: str, patch: Mapping[str, Any], filters: Mapping[str, Any]
    ) -> list[StorageRecord]:
        """Apply ``patch`` to every matching row and return the updated rows."""
        ...

    @abstractmethod
    def delete(self, table: str, filters: Mapping[str, Any]) -> int:
        """Delete every matching row and return how many were deleted."""
        ...

    @abstractmethod
    def structured_columns(self, table: str) -> frozenset[str]:
        """Columns whose values the adapter stores as encoded documents."""
        ...

    @abstractmethod
    def execute_ddl(self, sql: str) -> None:
        """Execute one or more DDL statements."""
        ...

    def get_many(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        order_by: Sequence[OrderBy] | None = None,
        limit: int | None = None,
    ) -> list[StorageRecord]:
        """All rows matching ``filters``; re-executed on every call."""
        stmt = statements.select(self._dialect, table, filters, order_by=order_by, limit=limit)
        self._check_columns(
            table, [*(filters or {}), *(term.column for term in order_by or ())], "get_many"
        )
        return self._query(stmt.sql, stmt.params, table=table, operation="get_many")

    def get_one(self, table: str, filters: Mapping[str, Any] | None = None) -> StorageRecord | None:
        """First matching row, or None."""
        stmt = statements.select(self._dialect, table, filters, limit=1)
        self._check_columns(table, filters or {}, "get_one")
        rows = self._query(stmt.sql, stmt.params, table=table, operation="get_one")
        return rows[0] if rows else None

    def table_exists(self, table: str) -> bool:
        statements.check_identifier(table, "table")
        rows = self._query(self._dialect.table_exists_query(), (table,), operation="table_exists")
        return bool(rows)

    def column_types(self, table: str) -> dict[str, str]:
        """Declared type of every column of ``table``; empty if the table does not exist.

        Cached per table until ``execute_ddl()`` or ``disconnect()``.
        """
        cached = self._column_cache.get(table)
        if cached is not None:
            return cached
        statements.check_identifier(table, "table")
        rows = self._query(
            self._dialect.table_columns_query(), (table,), table=table, operation="table_info"
        )
        columns = {row["name"]: row["type"] or "" for row in rows}
        if columns:
            self._column_cache[table] = columns
        return columns

    def _check_columns(self, table: str, columns: Iterable[str], operation: str) -> None:
        """Reject unknown column names before a statement runs (no-op by default)."""

    def __enter__(self) -> BackendAdapter:
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.disconnect()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._config!r})"


__all__ = [
    "BackendAdapter",
    "StorageRecord",
]
