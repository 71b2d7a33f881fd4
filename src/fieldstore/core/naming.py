"""
Field name translation between the application and storage conventions.

Application code speaks camelCase (``soilSpecs``); both backends store
snake_case (``soil_specs``). Two separate paths exist and must not be
confused:

- **Single key:** ``to_storage_key`` / ``to_logical_key``. Used for filter
  keys and order-by fields.
- **Bulk:** ``keys_to_storage`` / ``keys_to_logical``. Used for whole
  records; converts keys at every depth of nested mappings and lists.

Passing a bare string to a bulk converter raises ``TypeError`` instead of
returning it unchanged, so a filter key can never reach a query untranslated.

Examples:
    >>> to_storage_key("maxDensity")
    'max_density'
    >>> to_logical_key("max_density")
    'maxDensity'
    >>> keys_to_storage({"soilSpecs": {"maxDensity": 118.2}})
    {'soil_specs': {'max_density': 118.2}}

Tags:
    naming, camel-case, snake-case, translation
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

_UPPER = re.compile(r"[A-Z]")
_UNDERSCORE_LOWER = re.compile(r"_([a-z])")


def to_storage_key(key: str) -> str:
    """Convert one camelCase key to snake_case."""
    if not isinstance(key, str):
        raise TypeError(f"Field name must be a string, got {type(key).__name__}")
    return _UPPER.sub(lambda m: "_" + m.group(0).lower(), key)


def to_logical_key(key: str) -> str:
    """Convert one snake_case key to camelCase."""
    if not isinstance(key, str):
        raise TypeError(f"Field name must be a string, got {type(key).__name__}")
    return _UNDERSCORE_LOWER.sub(lambda m: m.group(1).upper(), key)


def _convert(value: Any, convert_key) -> Any:
    if isinstance(value, Mapping):
        return {convert_key(k): _convert(v, convert_key) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_convert(item, convert_key) for item in value]
    return value


def _convert_container(obj: Any, convert_key) -> Any:
    if isinstance(obj, (str, bytes)) or not isinstance(obj, (Mapping, list, tuple)):
        raise TypeError(
            f"Expected a mapping or list of mappings, got {type(obj).__name__}; "
            "use the single-key converter for individual field names"
        )
    return _convert(obj, convert_key)


def keys_to_storage(obj: Mapping[str, Any] | list[Any]) -> Any:
    """Recursively convert every key in ``obj`` to snake_case."""
    return _convert_container(obj, to_storage_key)


def keys_to_logical(obj: Mapping[str, Any] | list[Any]) -> Any:
    """Recursively convert every key in ``obj`` to camelCase."""
    return _convert_container(obj, to_logical_key)


__all__ = [
    "to_storage_key",
    "to_logical_key",
    "keys_to_storage",
    "keys_to_logical",
]
