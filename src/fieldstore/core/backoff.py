"""Backoff strategies for optimistic retry loops.

Used by the sequence allocator between lost compare-and-swap attempts.
Jitter spreads competing writers apart so they do not retry in lockstep.

Example:
    >>> from fieldstore.core.backoff import LinearBackoff
    >>>
    >>> strategy = LinearBackoff(max_attempts=20, base_delay=0.05, increment=0.05)
    >>> for attempt in range(3):
    ...     delay = strategy.next_delay(attempt)
    ...     print(f"Attempt {attempt}: wait {delay:.3f}s")
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass


class RetryStrategy(ABC):
    """Abstract base for retry strategies."""

    max_attempts: int

    @abstractmethod
    def next_delay(self, attempt: int) -> float:
        """Calculate delay before next retry attempt.

        Args:
            attempt: Zero-based attempt number (0 = first retry)

        Returns:
            Delay in seconds before next attempt
        """
        ...

    def should_retry(self, attempts_made: int) -> bool:
        """True while fewer than ``max_attempts`` attempts have been made."""
        return attempts_made < self.max_attempts


@dataclass
class LinearBackoff(RetryStrategy):
    """Linear backoff with optional jitter.

    Delay = min(base_delay + increment * attempt, max_delay) +/- jitter

    Attributes:
        max_attempts: Total attempts allowed, including the first
        base_delay: Delay before the first retry, in seconds
        increment: Added per further retry
        max_delay: Cap before jitter
        jitter: Add randomness to prevent thundering herd
        jitter_range: Range of jitter as fraction of delay (0.0-1.0)
    """

    max_attempts: int = 20
    base_delay: float = 0.05
    increment: float = 0.05
    max_delay: float = 2.0
    jitter: bool = True
    jitter_range: float = 0.5

    def next_delay(self, attempt: int) -> float:
        """Calculate linear backoff delay."""
        delay = min(self.base_delay + (self.increment * attempt), self.max_delay)
        if self.jitter:
            jitter_amount = delay * self.jitter_range
            delay += random.uniform(-jitter_amount, jitter_amount)
            delay = max(0.0, delay)
        return delay


@dataclass
class ConstantBackoff(RetryStrategy):
    """Constant delay between retries."""

    max_attempts: int = 20
    delay: float = 0.0

    def next_delay(self, attempt: int) -> float:
        """Return constant delay."""
        return self.delay


__all__ = [
    "RetryStrategy",
    "LinearBackoff",
    "ConstantBackoff",
]
