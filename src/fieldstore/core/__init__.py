"""fieldstore core -- data access primitives.

Manifesto:
    The field-testing application stores projects, tasks and test results
    either in a local SQLite file (single-machine installs, development) or
    in a hosted PostgreSQL database. Route handlers must not care which.
    ``fieldstore.core`` gives them one CRUD contract and one race-safe
    counter, and keeps backend differences (naming, JSON storage, errors)
    below that line.

Architecture::

    Layer 1 -- Types & Errors
        errors.py          Structured error taxonomy (DataAccessError ...)
        logging.py         structlog configuration
        naming.py          camelCase <-> snake_case key translation
        backoff.py         Jittered retry delays

    Layer 2 -- Backends
        dialect.py         SQL dialect abstraction (SQLite, PostgreSQL)
        adapters/          EmbeddedAdapter (sqlite3), HostedAdapter (psycopg2)
        coercion.py        Structured value codecs per backend
        schema.py          Bootstrap DDL + create_tables()

    Layer 3 -- Configuration
        config/settings.py FieldStoreSettings (pydantic-settings)
        config/selector.py One-time backend selection

    Layer 4 -- Public contract
        access.py          DataAccess facade + get_data_access()
        sequences.py       SequenceAllocator + project numbers

Tags:
    data-access, sqlite, postgresql, sequences

Doc-Types:
    package-overview, architecture-map, module-index
"""

from fieldstore.core.access import DataAccess, get_data_access
from fieldstore.core.adapters import BackendConfig, BackendKind, EmbeddedAdapter, HostedAdapter
from fieldstore.core.errors import (
    BackendUnavailable,
    ConfigError,
    ConfigurationMissingTable,
    ConstraintViolation,
    CorruptValueError,
    DataAccessError,
    InvalidFilterError,
    InvalidValueError,
    NotFoundError,
    QueryError,
    SequenceContention,
)
from fieldstore.core.sequences import ProjectNumberAllocator, SequenceAllocator, format_project_number

__all__ = [
    "DataAccess",
    "get_data_access",
    "BackendConfig",
    "BackendKind",
    "EmbeddedAdapter",
    "HostedAdapter",
    "SequenceAllocator",
    "ProjectNumberAllocator",
    "format_project_number",
    "DataAccessError",
    "NotFoundError",
    "ConstraintViolation",
    "CorruptValueError",
    "InvalidValueError",
    "InvalidFilterError",
    "BackendUnavailable",
    "QueryError",
    "ConfigError",
    "ConfigurationMissingTable",
    "SequenceContention",
]
