"""Embedded (SQLite file) backend adapter."""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from fieldstore.core.errors import (
    BackendUnavailable,
    ConfigError,
    ConfigurationMissingTable,
    ConstraintViolation,
    DataAccessError,
    ErrorContext,
    QueryError,
)

from . import statements
from .base import BackendAdapter, StorageRecord
from .types import BackendConfig, BackendKind

# OperationalError messages that mean "try again later", not "bad statement"
_UNAVAILABLE_MARKERS = ("database is locked", "busy", "unable to open", "disk i/o")


class EmbeddedAdapter(BackendAdapter):
    """
    SQLite file adapter.

    Uses the built-in sqlite3 module. Each operation opens its own short-lived
    connection, so one adapter can be shared by any number of threads. Writes
    run inside ``BEGIN IMMEDIATE`` and read their rows back by ``rowid`` in
    the same transaction; the journal runs in WAL mode so readers never block
    the writer.

    ``:memory:`` is not accepted: every connection would see its own empty
    database.
    """

    def __init__(
        self,
        path: str = "data/fieldstore.db",
        *,
        timeout: float = 30.0,
        config: BackendConfig | None = None,
    ):
        config = config or BackendConfig(
            kind=BackendKind.EMBEDDED,
            embedded_path=path,
            busy_timeout=timeout,
        )
        if config.embedded_path == ":memory:":
            raise ConfigError("The embedded store needs a file path, not ':memory:'")
        super().__init__(config)
        self._path = config.embedded_path
        self._timeout = config.busy_timeout
        self._uri = self._path.startswith("file:")
        self._connect_lock = threading.Lock()

    @property
    def path(self) -> str:
        return self._path

    def connect(self) -> None:
        """Create the database file if needed and switch it to WAL mode."""
        with self._connect_lock:
            if self._connected:
                return
            if not self._uri:
                try:
                    Path(self._path).parent.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    raise BackendUnavailable(
                        f"Cannot create the directory for SQLite database {self._path!r}: {e}",
                        context=self._context(None, "connect"),
                        cause=e,
                    ) from e
            with self._session(operation="connect") as conn:
                conn.execute("PRAGMA journal_mode = WAL")
            self._connected = True

    def disconnect(self) -> None:
        """Forget cached table metadata; no connection outlives an operation."""
        self._column_cache.clear()
        self._connected = False

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self._path,
            timeout=self._timeout,
            isolation_level=None,
            check_same_thread=False,
            uri=self._uri,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _session(self, table: str | None = None, operation: str = "query") -> Iterator[sqlite3.Connection]:
        """One connection for one operation; driver errors are translated."""
        if not self._connected and operation != "connect":
            self.connect()
        try:
            conn = self._open()
        except sqlite3.Error as e:
            raise BackendUnavailable(
                f"Failed to open SQLite database {self._path!r}: {e}",
                context=self._context(table, operation),
                cause=e,
            ) from e
        try:
            yield conn
        except sqlite3.Error as e:
            raise self._translate(e, table, operation) from e
        finally:
            conn.close()

    @contextmanager
    def _write(self, table: str, operation: str) -> Iterator[sqlite3.Connection]:
        with self._session(table, operation) as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    def _context(self, table: str | None, operation: str) -> ErrorContext:
        return ErrorContext(table=table, operation=operation, backend=BackendKind.EMBEDDED.value)

    def _translate(self, exc: sqlite3.Error, table: str | None, operation: str) -> DataAccessError:
        message = str(exc)
        lowered = message.lower()
        context = self._context(table, operation)
        if isinstance(exc, sqlite3.IntegrityError):
            return ConstraintViolation(message, context=context, cause=exc)
        if "no such table" in lowered:
            missing = table or lowered.split("no such table:", 1)[-1].strip()
            return ConfigurationMissingTable(missing, context=context, cause=exc)
        if isinstance(exc, sqlite3.OperationalError) and any(m in lowered for m in _UNAVAILABLE_MARKERS):
            return BackendUnavailable(message, context=context, cause=exc)
        return QueryError(message, context=context, cause=exc)

    # -- Operations ----------------------------------------------------------

    def _query(
        self, sql: str, params: tuple = (), *, table: str | None = None, operation: str = "query"
    ) -> list[StorageRecord]:
        with self._session(table, operation) as conn:
            return [dict(row) for row in conn.execute(sql, params).fetchall()]

    def _fetch_rowids(self, conn: sqlite3.Connection, table: str, rowids: list[int]) -> list[StorageRecord]:
        stmt = statements.select_rowids(self._dialect, table, rowids)
        return [dict(row) for row in conn.execute(stmt.sql, stmt.params).fetchall()]

    def insert(self, table: str, record: Mapping[str, Any]) -> StorageRecord:
        stmt = statements.insert(self._dialect, table, record)
        self._check_columns(table, record, "insert")
        with self._write(table, "insert") as conn:
            cursor = conn.execute(stmt.sql, stmt.params)
            return self._fetch_rowids(conn, table, [cursor.lastrowid])[0]

    def update(
        self, table: str, patch: Mapping[str, Any], filters: Mapping[str, Any]
    ) -> list[StorageRecord]:
        statements.require_filters(filters, "update")
        if not patch:
            return self.get_many(table, filters)
        stmt = statements.update(self._dialect, table, patch, filters)
        matching = statements.select(self._dialect, table, filters, columns="rowid")
        self._check_columns(table, [*patch, *filters], "update")
        with self._write(table, "update") as conn:
            rowids = [row[0] for row in conn.execute(matching.sql, matching.params).fetchall()]
            if not rowids:
                return []
            conn.execute(stmt.sql, stmt.params)
            return self._fetch_rowids(conn, table, rowids)

    def delete(self, table: str, filters: Mapping[str, Any]) -> int:
        stmt = statements.delete(self._dialect, table, filters)
        self._check_columns(table, filters, "delete")
        with self._write(table, "delete") as conn:
            return conn.execute(stmt.sql, stmt.params).rowcount

    def structured_columns(self, table: str) -> frozenset[str]:
        """Columns whose declared type contains ``JSON``."""
        return frozenset(
            name for name, declared in self.column_types(table).items()
            if self._dialect.is_json_type(declared)
        )

    def _check_columns(self, table: str, columns: Iterable[str], operation: str) -> None:
        # SQLite reads a double-quoted unknown column as a string literal, so
        # unknown names must be caught here. A missing table is left to the
        # statement itself (ConfigurationMissingTable).
        known = self.column_types(table)
        if not known:
            return
        for column in columns:
            if column not in known:
                raise QueryError(
                    f"no such column: {column}",
                    context=self._context(table, operation),
                )

    def execute_ddl(self, sql: str) -> None:
        with self._session(operation="execute_ddl") as conn:
            conn.executescript(sql)
        self._column_cache.clear()


__all__ = [
    "EmbeddedAdapter",
]
