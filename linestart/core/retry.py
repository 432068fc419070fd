"""
Retry and backoff policies.

Used by change-feed workers to back off after failed batches and by
services that resolve compare-and-set conflicts by re-reading.
"""

import random
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from ..domain.shared.exceptions import ConcurrentModification
from .observability import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class RetryStrategy(Enum):
    """Available retry strategies."""

    FIXED_DELAY = "fixed_delay"
    EXPONENTIAL_BACKOFF = "exponential_backoff"
    LINEAR_BACKOFF = "linear_backoff"


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 3
    strategy: RetryStrategy = RetryStrategy.EXPONENTIAL_BACKOFF
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 30.0
    exponential_base: float = 2.0
    jitter: bool = True
    jitter_max_seconds: float = 0.25

    def delay_for(self, attempt: int) -> float:
        """Delay before the given attempt (1-based count of failures so far)."""
        if attempt < 1:
            return 0.0

        if self.strategy == RetryStrategy.FIXED_DELAY:
            delay = self.base_delay_seconds
        elif self.strategy == RetryStrategy.LINEAR_BACKOFF:
            delay = self.base_delay_seconds * attempt
        else:
            delay = self.base_delay_seconds * (self.exponential_base ** (attempt - 1))

        delay = min(delay, self.max_delay_seconds)
        if self.jitter:
            delay += random.uniform(0, self.jitter_max_seconds)
        return delay


def retry_on_conflict(
    operation: Callable[[], T], *, max_attempts: int, operation_name: str
) -> T:
    """
    Run an operation that re-reads its state on every call, repeating it
    while the compare-and-set write loses the race.

    Raises the last ConcurrentModification once attempts are exhausted.
    """
    for attempt in range(1, max_attempts + 1):
        try:
            return operation()
        except ConcurrentModification:
            if attempt == max_attempts:
                logger.warning(
                    "conflict_retries_exhausted",
                    operation=operation_name,
                    attempts=attempt,
                )
                raise
            logger.info("conflict_retry", operation=operation_name, attempt=attempt)
    raise AssertionError("unreachable")
