"""
Structured value coercion per backend.

The hosted backend stores nested records and lists natively (PostgreSQL
``json``/``jsonb``); the embedded backend stores them as JSON text in
columns whose declared type contains ``JSON``. A codec hides the
difference so that a nested value written through the data access layer
reads back as the same nested value on either backend.

Decoding is strict: text in a structured column that is not valid JSON
raises ``CorruptValueError`` naming the table and column. No default value
is substituted.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any, Protocol, runtime_checkable

from fieldstore.core.adapters.types import BackendKind
from fieldstore.core.errors import CorruptValueError


@runtime_checkable
class StructuredValueCodec(Protocol):
    """Encode records for a backend and decode rows coming back from it."""

    def encode_record(self, record: Mapping[str, Any]) -> dict[str, Any]:
        ...

    def decode_record(
        self,
        row: Mapping[str, Any],
        structured_columns: Iterable[str],
        table: str | None = None,
    ) -> dict[str, Any]:
        ...


class JsonTextCodec:
    """Codec for the embedded backend: nested values travel as JSON text."""

    def encode_value(self, value: Any) -> Any:
        if isinstance(value, (Mapping, list, tuple)):
            return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        return value

    def encode_record(self, record: Mapping[str, Any]) -> dict[str, Any]:
        return {key: self.encode_value(value) for key, value in record.items()}

    def decode_record(
        self,
        row: Mapping[str, Any],
        structured_columns: Iterable[str],
        table: str | None = None,
    ) -> dict[str, Any]:
        decoded = dict(row)
        for column in structured_columns:
            value = decoded.get(column)
            if not isinstance(value, (str, bytes)):
                continue
            try:
                decoded[column] = json.loads(value)
            except json.JSONDecodeError as e:
                raise CorruptValueError(
                    f"Column {column!r} of table {table!r} holds malformed JSON: {e.msg}",
                    table=table,
                    column=column,
                    cause=e,
                ) from e
        return decoded


class NativeDocumentCodec:
    """Codec for the hosted backend: the driver handles JSON documents."""

    def encode_record(self, record: Mapping[str, Any]) -> dict[str, Any]:
        return dict(record)

    def decode_record(
        self,
        row: Mapping[str, Any],
        structured_columns: Iterable[str],
        table: str | None = None,
    ) -> dict[str, Any]:
        return dict(row)


def codec_for(kind: BackendKind) -> StructuredValueCodec:
    """Return the codec matching a backend kind."""
    if kind == BackendKind.HOSTED:
        return NativeDocumentCodec()
    return JsonTextCodec()


__all__ = [
    "StructuredValueCodec",
    "JsonTextCodec",
    "NativeDocumentCodec",
    "codec_for",
]
