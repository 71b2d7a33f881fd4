"""
Race-safe monotonic sequence allocation.

Each ``(sequence_name, partition_key)`` pair owns one counter row holding
the next value to hand out. Allocation is optimistic: no lock is held
between reading the counter and advancing it. The counter is advanced by
a conditional update that only matches while ``next_value`` still equals
the value that was read; losing that race means reading again.

Algorithm::

    read counter
      ├─ absent  → insert {next_value: 2}  → return 1
      │            └─ unique violation (someone else inserted) → read again ↓
      └─ present (v) → update next_value = v + 1 WHERE next_value = v
                         ├─ 1 row  → return v
                         └─ 0 rows → backoff, retry from the top
    attempts exhausted → SequenceContention

Correctness relies only on the backend's single-row conditional update and
its unique constraint on ``(sequence_name, partition_key)``. Values are never
cached; every call reads the stored counter.

Project numbers build on this: ``PREFIX-YYYY-NNNN`` with the calendar year
as partition and an optional per-tenant scope.

Examples:
    >>> allocator = SequenceAllocator(access)
    >>> allocator.next_value("project", 2026)
    1
    >>> ProjectNumberAllocator(allocator).next_project_number(year=2026)
    '02-2026-0002'
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from fieldstore.core.backoff import LinearBackoff, RetryStrategy
from fieldstore.core.errors import ConstraintViolation, InvalidFilterError, SequenceContention
from fieldstore.core.logging import get_logger

if TYPE_CHECKING:
    from fieldstore.core.access import DataAccess

logger = get_logger(__name__)

DEFAULT_SEQUENCE_TABLE = "sequence_counters"
DEFAULT_PROJECT_PREFIX = "02"
PROJECT_SEQUENCE = "project"


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class SequenceAllocator:
    """
    Allocates strictly increasing integers per ``(sequence_name, partition_key)``.

    Two concurrent calls for the same pair never return the same value, and
    the first call for a new pair returns 1. Gaps are possible only if a
    caller discards a value it was given.

    Args:
        access: Data access facade the counters are stored through
        table: Counter table name
        backoff: Delay and attempt budget between lost races
        sleep: Injected for tests
        clock: Source of ``updatedAt`` timestamps
    """

    def __init__(
        self,
        access: DataAccess,
        *,
        table: str = DEFAULT_SEQUENCE_TABLE,
        backoff: RetryStrategy | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._access = access
        self._table = table
        self._backoff = backoff or LinearBackoff()
        self._sleep = sleep
        self._clock = clock

    @property
    def table(self) -> str:
        return self._table

    def next_value(self, sequence_name: str, partition_key: Any) -> int:
        """Return the next value of the sequence within one partition."""
        if not isinstance(sequence_name, str) or not sequence_name:
            raise InvalidFilterError(f"Sequence name must be a non-empty string, got {sequence_name!r}")
        if partition_key is None:
            raise InvalidFilterError("Sequence partition key must not be None")

        key = {"sequenceName": sequence_name, "partitionKey": partition_key}
        attempts = 0
        while True:
            attempts += 1
            value = self._attempt(key)
            if value is not None:
                return value
            if not self._backoff.should_retry(attempts):
                raise SequenceContention(sequence_name, partition_key, attempts)
            delay = self._backoff.next_delay(attempts - 1)
            logger.debug(
                "sequence_cas_conflict",
                sequence_name=sequence_name,
                partition_key=partition_key,
                attempt=attempts,
                delay=round(delay, 4),
            )
            self._sleep(delay)

    def peek(self, sequence_name: str, partition_key: Any) -> int:
        """The value the next call would return if nobody else allocates first."""
        counter = self._access.get(
            self._table, {"sequenceName": sequence_name, "partitionKey": partition_key}
        )
        return 1 if counter is None else int(counter["nextValue"])

    def _attempt(self, key: dict[str, Any]) -> int | None:
        """One read-then-advance round; None means the race was lost."""
        counter = self._access.get(self._table, key)
        if counter is None:
            try:
                self._access.create(self._table, {**key, "nextValue": 2, "updatedAt": self._clock()})
                return 1
            except ConstraintViolation:
                counter = self._access.get(self._table, key)
                if counter is None:
                    # Not a lost insert race: some other constraint rejected the row
                    raise
                logger.debug(
                    "sequence_insert_race",
                    sequence_name=key["sequenceName"],
                    partition_key=key["partitionKey"],
                )

        current = int(counter["nextValue"])
        updated = self._access.modify(
            self._table,
            {"nextValue": current + 1, "updatedAt": self._clock()},
            {**key, "nextValue": current},
        )
        return current if updated else None


def format_project_number(prefix: str, year: int, sequence: int) -> str:
    """``PREFIX-YYYY-NNNN``; the sequence is zero-padded to at least 4 digits."""
    return f"{prefix}-{year}-{sequence:04d}"


def project_sequence_name(scope: Any = None) -> str:
    """Sequence name for project numbers, optionally scoped (e.g. per tenant)."""
    return PROJECT_SEQUENCE if scope is None else f"{PROJECT_SEQUENCE}:{scope}"


class ProjectNumberAllocator:
    """Mints project numbers such as ``02-2026-0007``, one sequence per year."""

    def __init__(
        self,
        allocator: SequenceAllocator,
        *,
        prefix: str = DEFAULT_PROJECT_PREFIX,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._allocator = allocator
        self._prefix = prefix
        self._clock = clock

    def next_project_number(self, scope: Any = None, year: int | None = None) -> str:
        if year is None:
            year = self._clock().year
        sequence = self._allocator.next_value(project_sequence_name(scope), year)
        return format_project_number(self._prefix, year, sequence)


__all__ = [
    "DEFAULT_SEQUENCE_TABLE",
    "DEFAULT_PROJECT_PREFIX",
    "SequenceAllocator",
    "ProjectNumberAllocator",
    "format_project_number",
    "project_sequence_name",
]
