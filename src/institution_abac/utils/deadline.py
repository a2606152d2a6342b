"""Cooperative evaluation deadline.

A single Deadline covers every store and resolver call made by one
evaluation. Calls are checked after they return, so work that overran its
budget stops at the next step. The caller's wait is capped separately by
PolicyEngine, which stops waiting on the worker thread at the same budget.
"""

from __future__ import annotations

import time
from typing import Callable

from institution_abac.exceptions import EvaluationTimeoutError

__all__ = ["Deadline"]


class Deadline:
    """Deadline measured on a monotonic clock.

    Args:
        seconds: Budget from construction time.
        clock: Monotonic clock, injectable for tests.
    """

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._seconds = seconds
        self._expires_at = clock() + seconds

    @property
    def remaining(self) -> float:
        """Seconds left (negative once expired)."""
        return self._expires_at - self._clock()

    def expired(self) -> bool:
        return self.remaining < 0

    def check(self, stage: str) -> None:
        """Raise if the deadline has passed.

        Args:
            stage: What just finished, for the error message.

        Raises:
            EvaluationTimeoutError: If the budget is exhausted.
        """
        if self.expired():
            raise EvaluationTimeoutError(
                f"Evaluation exceeded its {self._seconds:g}s deadline after {stage}"
            )
