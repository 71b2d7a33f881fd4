"""Hosted (PostgreSQL) backend adapter."""

from __future__ import annotations

import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
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

# SQLSTATE codes
_UNDEFINED_TABLE = "42P01"
_INTEGRITY_CLASS = "23"
_CONNECTION_CLASS = "08"


def _driver() -> Any:
    try:
        import psycopg2
        import psycopg2.extras
        import psycopg2.pool
    except ImportError:
        raise ConfigError(
            "psycopg2 is required for the hosted backend. "
            "Install with: pip install 'fieldstore[hosted]'"
        ) from None
    return psycopg2


class HostedAdapter(BackendAdapter):
    """
    PostgreSQL adapter.

    Uses a psycopg2 ``ThreadedConnectionPool``. Every operation borrows one
    pooled connection, runs a single statement (with ``RETURNING *`` for
    writes), commits or rolls back, and returns the connection. Nested
    values are bound as JSON documents; json/jsonb columns come back already
    decoded.

    The pool is created on first use, so an unreachable server or a wrong
    credential surfaces as ``BackendUnavailable`` from the first operation,
    not at startup.
    """

    def __init__(
        self,
        url: str | None = None,
        credential: str | None = None,
        *,
        pool_size: int = 5,
        connect_timeout: int = 10,
        config: BackendConfig | None = None,
    ):
        config = config or BackendConfig(
            kind=BackendKind.HOSTED,
            hosted_url=url,
            hosted_credential=credential,
            pool_size=pool_size,
            connect_timeout=connect_timeout,
        )
        if not config.hosted_url:
            raise ConfigError("The hosted backend needs a connection URL")
        super().__init__(config)
        self._pool: Any = None
        self._connect_lock = threading.Lock()

    def connect(self) -> None:
        """Create the connection pool."""
        psycopg2 = _driver()
        options: dict[str, Any] = {"connect_timeout": self._config.connect_timeout}
        if self._config.hosted_credential:
            options["password"] = self._config.hosted_credential
        try:
            self._pool = psycopg2.pool.ThreadedConnectionPool(
                minconn=1,
                maxconn=self._config.pool_size,
                dsn=self._config.hosted_url,
                **options,
            )
            self._connected = True
        except psycopg2.Error as e:
            raise BackendUnavailable(
                f"Failed to connect to PostgreSQL at {self._config.redacted_url()}: {e}",
                context=self._context(None, "connect"),
                cause=e,
            ) from e

    def disconnect(self) -> None:
        """Close PostgreSQL connection pool."""
        self._column_cache.clear()
        if self._pool:
            self._pool.closeall()
            self._pool = None
            self._connected = False

    def _context(self, table: str | None, operation: str) -> ErrorContext:
        return ErrorContext(table=table, operation=operation, backend=BackendKind.HOSTED.value)

    def _translate(self, exc: Exception, table: str | None, operation: str) -> DataAccessError:
        psycopg2 = _driver()
        message = str(exc).strip()
        pgcode = getattr(exc, "pgcode", None) or ""
        context = self._context(table, operation)
        if pgcode.startswith(_INTEGRITY_CLASS) or isinstance(exc, psycopg2.IntegrityError):
            return ConstraintViolation(message, context=context, cause=exc)
        if pgcode == _UNDEFINED_TABLE:
            return ConfigurationMissingTable(table or "?", context=context, cause=exc)
        if pgcode.startswith(_CONNECTION_CLASS) or isinstance(
            exc, (psycopg2.OperationalError, psycopg2.InterfaceError, psycopg2.pool.PoolError)
        ):
            return BackendUnavailable(message, context=context, cause=exc)
        return QueryError(message, context=context, cause=exc)

    def _bind(self, params: tuple) -> tuple:
        psycopg2 = _driver()
        return tuple(
            psycopg2.extras.Json(list(value) if isinstance(value, tuple) else value)
            if isinstance(value, (Mapping, list, tuple))
            else value
            for value in params
        )

    @contextmanager
    def _cursor(self, table: str | None, operation: str) -> Iterator[Any]:
        """Borrow a pooled connection for one statement and commit it."""
        psycopg2 = _driver()
        if self._pool is None:
            with self._connect_lock:
                if self._pool is None:
                    self.connect()
        pool = self._pool
        try:
            conn = pool.getconn()
        except psycopg2.Error as e:
            raise self._translate(e, table, operation) from e
        try:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cursor:
                yield cursor
            conn.commit()
        except psycopg2.Error as e:
            if not conn.closed:
                conn.rollback()
            raise self._translate(e, table, operation) from e
        except BaseException:
            if not conn.closed:
                conn.rollback()
            raise
        finally:
            pool.putconn(conn, close=bool(conn.closed))

    # -- Operations ----------------------------------------------------------

    def _query(
        self, sql: str, params: tuple = (), *, table: str | None = None, operation: str = "query"
    ) -> list[StorageRecord]:
        with self._cursor(table, operation) as cursor:
            cursor.execute(sql, self._bind(params))
            return [dict(row) for row in cursor.fetchall()]

    def insert(self, table: str, record: Mapping[str, Any]) -> StorageRecord:
        stmt = statements.insert(self._dialect, table, record, returning=True)
        with self._cursor(table, "insert") as cursor:
            cursor.execute(stmt.sql, self._bind(stmt.params))
            return dict(cursor.fetchone())

    def update(
        self, table: str, patch: Mapping[str, Any], filters: Mapping[str, Any]
    ) -> list[StorageRecord]:
        statements.require_filters(filters, "update")
        if not patch:
            return self.get_many(table, filters)
        stmt = statements.update(self._dialect, table, patch, filters, returning=True)
        with self._cursor(table, "update") as cursor:
            cursor.execute(stmt.sql, self._bind(stmt.params))
            return [dict(row) for row in cursor.fetchall()]

    def delete(self, table: str, filters: Mapping[str, Any]) -> int:
        stmt = statements.delete(self._dialect, table, filters)
        with self._cursor(table, "delete") as cursor:
            cursor.execute(stmt.sql, self._bind(stmt.params))
            return cursor.rowcount

    def structured_columns(self, table: str) -> frozenset[str]:
        """Always empty: psycopg2 decodes json/jsonb columns itself."""
        return frozenset()

    def execute_ddl(self, sql: str) -> None:
        with self._cursor(None, "execute_ddl") as cursor:
            cursor.execute(sql)
        self._column_cache.clear()


__all__ = [
    "HostedAdapter",
]
