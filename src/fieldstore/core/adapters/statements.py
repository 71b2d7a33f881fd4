"""
Parameterised SQL statement builders shared by both adapters.

All names reaching this module are already in storage naming. Every table
and column name is validated against ``[A-Za-z_][A-Za-z0-9_]*`` and quoted;
values always travel as bound parameters.

Filters are equality-only: ``{"tenant_id": 4, "deleted_at": None}`` becomes
``"tenant_id" = ? AND "deleted_at" IS NULL``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from fieldstore.core.adapters.types import OrderBy
from fieldstore.core.dialect import Dialect, is_valid_identifier
from fieldstore.core.errors import InvalidFilterError


@dataclass(frozen=True)
class Statement:
    sql: str
    params: tuple[Any, ...] = ()


def check_identifier(name: str, kind: str = "field") -> str:
    """Return ``name`` unchanged or raise InvalidFilterError."""
    if not is_valid_identifier(name):
        raise InvalidFilterError(f"Invalid {kind} name: {name!r}")
    return name


def where_clause(dialect: Dialect, filters: Mapping[str, Any] | None) -> tuple[str, list[Any]]:
    if not filters:
        return "", []
    terms: list[str] = []
    params: list[Any] = []
    for index, (column, value) in enumerate(filters.items()):
        quoted = dialect.quote(check_identifier(column))
        if value is None:
            terms.append(f"{quoted} IS NULL")
        else:
            terms.append(f"{quoted} = {dialect.placeholder(index)}")
            params.append(value)
    return " WHERE " + " AND ".join(terms), params


def order_clause(dialect: Dialect, order_by: Sequence[OrderBy] | None) -> str:
    if not order_by:
        return ""
    terms = [
        f"{dialect.quote(check_identifier(term.column))} {'DESC' if term.descending else 'ASC'}"
        for term in order_by
    ]
    return " ORDER BY " + ", ".join(terms)


def require_filters(filters: Mapping[str, Any] | None, operation: str) -> None:
    if not filters:
        raise InvalidFilterError(f"Refusing to {operation} without a filter")


def select(
    dialect: Dialect,
    table: str,
    filters: Mapping[str, Any] | None = None,
    *,
    order_by: Sequence[OrderBy] | None = None,
    limit: int | None = None,
    columns: str = "*",
) -> Statement:
    """SELECT matching rows."""
    where, params = where_clause(dialect, filters)
    sql = f"SELECT {columns} FROM {dialect.quote(check_identifier(table, 'table'))}{where}"
    sql += order_clause(dialect, order_by)
    if limit is not None:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
            raise InvalidFilterError(f"Limit must be a non-negative integer, got {limit!r}")
        sql += f" LIMIT {dialect.placeholder(len(params))}"
        params.append(limit)
    return Statement(sql, tuple(params))


def insert(
    dialect: Dialect,
    table: str,
    record: Mapping[str, Any],
    *,
    returning: bool = False,
) -> Statement:
    """INSERT one row; empty records use the column defaults."""
    quoted_table = dialect.quote(check_identifier(table, "table"))
    if record:
        columns = ", ".join(dialect.quote(check_identifier(c)) for c in record)
        sql = (
            f"INSERT INTO {quoted_table} ({columns}) "
            f"VALUES ({dialect.placeholders(len(record))})"
        )
    else:
        sql = f"INSERT INTO {quoted_table} DEFAULT VALUES"
    if returning:
        sql += " RETURNING *"
    return Statement(sql, tuple(record.values()))


def update(
    dialect: Dialect,
    table: str,
    patch: Mapping[str, Any],
    filters: Mapping[str, Any],
    *,
    returning: bool = False,
) -> Statement:
    """UPDATE rows matching ``filters``; an empty filter is rejected."""
    require_filters(filters, "update")
    if not patch:
        raise InvalidFilterError("Update requires at least one field")
    assignments = ", ".join(
        f"{dialect.quote(check_identifier(column))} = {dialect.placeholder(i)}"
        for i, column in enumerate(patch)
    )
    where, params = where_clause(dialect, filters)
    sql = f"UPDATE {dialect.quote(check_identifier(table, 'table'))} SET {assignments}{where}"
    if returning:
        sql += " RETURNING *"
    return Statement(sql, tuple(patch.values()) + tuple(params))


def delete(
    dialect: Dialect,
    table: str,
    filters: Mapping[str, Any],
    *,
    returning: bool = False,
) -> Statement:
    """DELETE rows matching ``filters``; an empty filter is rejected."""
    require_filters(filters, "delete")
    where, params = where_clause(dialect, filters)
    sql = f"DELETE FROM {dialect.quote(check_identifier(table, 'table'))}{where}"
    if returning:
        sql += " RETURNING *"
    return Statement(sql, tuple(params))


def select_rowids(dialect: Dialect, table: str, rowids: Iterable[int]) -> Statement:
    """SELECT rows by SQLite ``rowid``."""
    ids = tuple(rowids)
    sql = (
        f"SELECT * FROM {dialect.quote(check_identifier(table, 'table'))} "
        f"WHERE rowid IN ({dialect.placeholders(len(ids))}) ORDER BY rowid"
    )
    return Statement(sql, ids)


__all__ = [
    "Statement",
    "check_identifier",
    "require_filters",
    "where_clause",
    "order_clause",
    "select",
    "insert",
    "update",
    "delete",
    "select_rowids",
]
