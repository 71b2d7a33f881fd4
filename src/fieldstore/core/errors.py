"""
Structured error types for the fieldstore data access layer.

Every failure that crosses the data access boundary is one of the types
below. Backend-native driver exceptions (``sqlite3.Error``,
``psycopg2.Error``) never escape an adapter; they are translated and chained
as ``__cause__`` so the original traceback survives.

Manifesto:
    - **Typed Error Hierarchy:** One error type per failure a caller can act on
    - **Explicit Retry Semantics:** Each error knows if it's retryable
    - **Rich Context:** Errors carry table, operation and backend metadata
    - **Error Chaining:** Driver exceptions are preserved as the cause

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                      DataAccessError                             │
        │  (category, retryable, context, cause)                          │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  NotFoundError         ConstraintViolation   CorruptValueError  │
        │  (NOT_FOUND)           (VALIDATION)          (DATA)             │
        │                                                                  │
        │  BackendUnavailable    SequenceContention    QueryError         │
        │  (DATABASE, retry)     (CONCURRENCY, retry)  (DATABASE)         │
        │                                                                  │
        │  ConfigError           ConfigurationMissingTable                │
        │  (CONFIG)              InvalidFilterError (VALIDATION)          │
        │                        InvalidValueError (VALIDATION)           │
        └─────────────────────────────────────────────────────────────────┘

Propagation:
    The layer itself never logs or swallows these errors. The only retry
    loop lives in the sequence allocator, and it retries only its own
    compare-and-swap race; everything else propagates to the caller.

Examples:
    >>> err = ConstraintViolation("duplicate key").with_context(table="projects")
    >>> err.context.table
    'projects'
    >>> is_retryable(BackendUnavailable("connection refused"))
    True

Tags:
    error-handling, exception-hierarchy, retry-logic, data-access

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    DATABASE = "DATABASE"  # Connection, pool, driver failures
    CONCURRENCY = "CONCURRENCY"  # Lost optimistic races
    VALIDATION = "VALIDATION"  # Constraint violations, bad filters
    DATA = "DATA"  # Stored values that cannot be decoded
    NOT_FOUND = "NOT_FOUND"
    CONFIG = "CONFIG"  # Missing tables, missing drivers, bad settings
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to a DataAccessError.

    Only non-None fields are serialised by ``to_dict()``. Anything that does
    not fit a named field goes into ``metadata``.

    Attributes:
        table: Storage table the operation targeted
        operation: Adapter operation name (``get_one``, ``insert`` ...)
        backend: ``embedded`` or ``hosted``
        column: Storage column involved, if any
        sequence_name: Sequence being allocated
        partition_key: Partition of that sequence
        metadata: Free-form extra fields
    """

    table: str | None = None
    operation: str | None = None
    backend: str | None = None
    column: str | None = None
    sequence_name: str | None = None
    partition_key: Any = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["table", "operation", "backend", "column", "sequence_name", "partition_key"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class DataAccessError(Exception):
    """
    Base exception for all data access errors.

    Subclasses set ``default_category`` and ``default_retryable``; callers can
    override either per instance. ``retryable`` is a hint for callers: apart
    from the sequence allocator, this layer never retries anything itself.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> DataAccessError:
        """
        Add context to this error (fluent API).

        Usage:
            raise QueryError("bad statement").with_context(
                table="projects", operation="get_many"
            )
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# RECORD ERRORS
# =============================================================================


class NotFoundError(DataAccessError):
    """
    A record that must exist does not.

    ``DataAccess.get`` returns ``None`` for a missing record; only
    ``DataAccess.require`` raises this.
    """

    default_category = ErrorCategory.NOT_FOUND
    default_retryable = False


class ConstraintViolation(DataAccessError):
    """Unique, foreign-key, not-null or check constraint rejected a write."""

    default_category = ErrorCategory.VALIDATION
    default_retryable = False


class CorruptValueError(DataAccessError):
    """
    A stored structured value could not be decoded.

    Raised when the embedded backend holds text in a JSON column that is not
    valid JSON. The value is never replaced with a default.
    """

    default_category = ErrorCategory.DATA
    default_retryable = False

    def __init__(self, message: str, *, table: str | None = None, column: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.table = table
        self.column = column
        self.context.table = self.context.table or table
        self.context.column = self.context.column or column


class InvalidValueError(DataAccessError):
    """
    A nested record or list was written to a column that cannot hold one.

    Only JSON columns store structured values; anything else would read
    back as text on one backend and fail on the other.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(self, message: str, *, table: str | None = None, column: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.table = table
        self.column = column
        self.context.table = self.context.table or table
        self.context.column = self.context.column or column


class InvalidFilterError(DataAccessError):
    """
    A filter or field name cannot be used.

    Covers field names that do not translate to a valid storage identifier
    and update/delete calls with an empty filter.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False


# =============================================================================
# BACKEND ERRORS
# =============================================================================


class BackendUnavailable(DataAccessError):
    """The backend could not be reached: connection refused, locked, pool exhausted."""

    default_category = ErrorCategory.DATABASE
    default_retryable = True


class QueryError(DataAccessError):
    """Any other backend error while executing a statement."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(DataAccessError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class ConfigurationMissingTable(ConfigError):
    """A required table does not exist in the selected backend."""

    def __init__(self, table: str, message: str | None = None, **kwargs: Any):
        self.table = table
        super().__init__(
            message
            or (
                f"Table {table!r} does not exist in the selected backend. "
                "Run 'fieldstore db init' for the embedded store, or apply "
                "'fieldstore db schema --dialect postgresql' to the hosted database."
            ),
            **kwargs,
        )
        self.context.table = table


# =============================================================================
# SEQUENCE ERRORS
# =============================================================================


class SequenceContention(DataAccessError):
    """
    The allocator lost every compare-and-swap race within its retry budget.

    Retryable: the caller may try the whole operation again later.
    """

    default_category = ErrorCategory.CONCURRENCY
    default_retryable = True

    def __init__(
        self,
        sequence_name: str,
        partition_key: Any,
        attempts: int,
        message: str | None = None,
        **kwargs: Any,
    ):
        self.sequence_name = sequence_name
        self.partition_key = partition_key
        self.attempts = attempts
        super().__init__(
            message
            or f"Could not allocate next value of {sequence_name!r}/{partition_key!r} "
            f"after {attempts} attempts",
            **kwargs,
        )
        self.context.sequence_name = sequence_name
        self.context.partition_key = partition_key
        self.context.metadata["attempts"] = attempts


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, DataAccessError):
        return error.retryable
    return False


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, DataAccessError):
        return error.category
    return ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "ErrorContext",
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
    "is_retryable",
    "categorize_error",
]
