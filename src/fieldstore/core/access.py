"""
The data access facade: the only storage entry point application code uses.

``DataAccess`` speaks the application convention (camelCase keys, nested
values) and hides which backend is active. Each call:

1. translates filter keys one by one (single-key path),
2. translates record keys recursively and encodes structured values,
3. delegates to the selected adapter,
4. decodes structured columns and translates keys back.

Manifesto:
    - **One contract:** identical observable behaviour on both backends
    - **Absence is not an error:** ``get`` returns None, ``list`` returns []
    - **No silent defaults:** malformed stored JSON raises CorruptValueError

Examples:
    >>> access = get_data_access()
    >>> project = access.create("projects", {
    ...     "projectNumber": "02-2026-0001",
    ...     "soilSpecs": {"maxDensity": 118.2},
    ... })
    >>> access.get("projects", {"projectNumber": "02-2026-0001"})["soilSpecs"]
    {'maxDensity': 118.2}

Tags:
    data-access, facade, naming, coercion
"""

from __future__ import annotations

import threading
from collections.abc import Mapping, Sequence
from typing import Any

from fieldstore.core.adapters import BackendAdapter, BackendKind, OrderBy
from fieldstore.core.backoff import LinearBackoff, RetryStrategy
from fieldstore.core.coercion import StructuredValueCodec, codec_for
from fieldstore.core.config import get_backend_selector, get_settings
from fieldstore.core.errors import InvalidFilterError, InvalidValueError, NotFoundError
from fieldstore.core.naming import keys_to_logical, keys_to_storage, to_storage_key
from fieldstore.core.sequences import DEFAULT_SEQUENCE_TABLE, SequenceAllocator

LogicalRecord = dict[str, Any]
FilterSpec = Mapping[str, Any]
OrderSpec = str | Sequence[str]

_DIRECTIONS = {"asc": False, "desc": True}
_NESTED = (Mapping, list, tuple)


def parse_order_by(order_by: OrderSpec | None) -> list[OrderBy] | None:
    """Parse ``"field"``, ``"field desc"`` or a list of those into storage terms."""
    if order_by is None:
        return None
    terms = [order_by] if isinstance(order_by, str) else list(order_by)
    parsed: list[OrderBy] = []
    for term in terms:
        parts = term.split() if isinstance(term, str) else []
        if len(parts) not in (1, 2) or (len(parts) == 2 and parts[1].lower() not in _DIRECTIONS):
            raise InvalidFilterError(f"Invalid order term {term!r}; expected 'field' or 'field asc|desc'")
        descending = len(parts) == 2 and _DIRECTIONS[parts[1].lower()]
        parsed.append(OrderBy(to_storage_key(parts[0]), descending=descending))
    return parsed


class DataAccess:
    """
    Public CRUD contract over the selected backend.

    Operations:
        get(table, filters)                  -> LogicalRecord | None
        require(table, filters)              -> LogicalRecord (NotFoundError if absent)
        list(table, filters, order_by, limit) -> list[LogicalRecord]
        create(table, record)                -> LogicalRecord
        modify(table, patch, filters)        -> list[LogicalRecord]
        remove(table, filters)               -> int
        next_sequence_value(name, partition) -> int

    Table names are passed through unchanged; field names are translated.
    """

    def __init__(
        self,
        adapter: BackendAdapter,
        codec: StructuredValueCodec | None = None,
        *,
        sequence_table: str = DEFAULT_SEQUENCE_TABLE,
        sequence_backoff: RetryStrategy | None = None,
    ):
        self._adapter = adapter
        self._codec = codec or codec_for(adapter.kind)
        self._sequences = SequenceAllocator(self, table=sequence_table, backoff=sequence_backoff)

    @property
    def adapter(self) -> BackendAdapter:
        return self._adapter

    @property
    def backend_kind(self) -> BackendKind:
        return self._adapter.kind

    @property
    def is_hosted(self) -> bool:
        return self._adapter.kind is BackendKind.HOSTED

    @property
    def is_embedded(self) -> bool:
        return self._adapter.kind is BackendKind.EMBEDDED

    @property
    def sequences(self) -> SequenceAllocator:
        return self._sequences

    # -- Translation ---------------------------------------------------------

    def _storage_filters(self, filters: FilterSpec | None) -> dict[str, Any]:
        if filters is None:
            return {}
        if not isinstance(filters, Mapping):
            raise InvalidFilterError(f"Filters must be a mapping, got {type(filters).__name__}")
        translated = {to_storage_key(field): value for field, value in filters.items()}
        return self._codec.encode_record(translated)

    def _storage_record(self, table: str, record: Mapping[str, Any]) -> dict[str, Any]:
        if not isinstance(record, Mapping):
            raise TypeError(f"Record must be a mapping, got {type(record).__name__}")
        translated = keys_to_storage(record)
        self._check_structured_values(table, translated)
        return self._codec.encode_record(translated)

    def _check_structured_values(self, table: str, record: Mapping[str, Any]) -> None:
        """Nested values may only go to JSON columns."""
        nested = [column for column, value in record.items() if isinstance(value, _NESTED)]
        if not nested:
            return
        columns = self._adapter.column_types(table)
        for column in nested:
            declared = columns.get(column)
            if declared is not None and not self._adapter.dialect.is_json_type(declared):
                raise InvalidValueError(
                    f"Column {column!r} of table {table!r} is {declared or 'untyped'}, "
                    "not JSON; it cannot store a nested value",
                    table=table,
                    column=column,
                )

    def _logical_record(self, table: str, row: Mapping[str, Any]) -> LogicalRecord:
        structured = self._adapter.structured_columns(table)
        return keys_to_logical(self._codec.decode_record(row, structured, table))

    # -- Operations ----------------------------------------------------------

    def get(self, table: str, filters: FilterSpec | None = None) -> LogicalRecord | None:
        """First record matching ``filters``, or None."""
        row = self._adapter.get_one(table, self._storage_filters(filters))
        if row is None:
            return None
        return self._logical_record(table, row)

    def require(self, table: str, filters: FilterSpec | None = None) -> LogicalRecord:
        """Like ``get`` but a missing record raises NotFoundError."""
        record = self.get(table, filters)
        if record is None:
            raise NotFoundError(f"No record in {table!r} matches {dict(filters or {})!r}").with_context(
                table=table, operation="require"
            )
        return record

    def list(
        self,
        table: str,
        filters: FilterSpec | None = None,
        *,
        order_by: OrderSpec | None = None,
        limit: int | None = None,
    ) -> list[LogicalRecord]:
        """All matching records; [] when nothing matches."""
        rows = self._adapter.get_many(
            table, self._storage_filters(filters), order_by=parse_order_by(order_by), limit=limit
        )
        return [self._logical_record(table, row) for row in rows]

    def create(self, table: str, record: Mapping[str, Any]) -> LogicalRecord:
        """Insert one record and return it as stored, including its ``id``."""
        row = self._adapter.insert(table, self._storage_record(table, record))
        return self._logical_record(table, row)

    def modify(
        self, table: str, patch: Mapping[str, Any], filters: FilterSpec
    ) -> list[LogicalRecord]:
        """Apply ``patch`` to every matching record; [] when nothing matched."""
        rows = self._adapter.update(table, self._storage_record(table, patch), self._storage_filters(filters))
        return [self._logical_record(table, row) for row in rows]

    def remove(self, table: str, filters: FilterSpec) -> int:
        """Delete every matching record and return how many were deleted."""
        return self._adapter.delete(table, self._storage_filters(filters))

    def next_sequence_value(self, sequence_name: str, partition_key: Any) -> int:
        """Allocate the next value of a sequence within one partition."""
        return self._sequences.next_value(sequence_name, partition_key)

    def __repr__(self) -> str:
        return f"DataAccess({self._adapter!r})"


_access: DataAccess | None = None
_access_lock = threading.Lock()


def get_data_access() -> DataAccess:
    """The process-wide facade over the selected backend."""
    global _access
    selector = get_backend_selector()
    access = _access
    if access is None or access.adapter is not selector.adapter:
        with _access_lock:
            access = _access
            if access is None or access.adapter is not selector.adapter:
                settings = get_settings()
                access = DataAccess(
                    selector.adapter,
                    sequence_table=settings.sequence_table,
                    sequence_backoff=LinearBackoff(
                        max_attempts=settings.sequence_max_attempts,
                        base_delay=settings.sequence_backoff_seconds,
                        increment=settings.sequence_backoff_seconds,
                    ),
                )
                _access = access
    return access


__all__ = [
    "LogicalRecord",
    "FilterSpec",
    "DataAccess",
    "parse_order_by",
    "get_data_access",
]
