"""Soft wall-clock budget for one traversal run.

The budget is cooperative: the engine asks ``expired()`` between batch
rounds and never interrupts a round in flight. It is set below the hard
execution limit of whatever invokes the job so that the checkpoint write
always fits inside the invocation.
"""

import time
from typing import Callable, Optional


class TimeBudgetGovernor:
    """Tracks elapsed time against a soft deadline"""

    def __init__(
        self,
        budget_seconds: float = 24.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.budget_seconds = budget_seconds
        self._clock = clock
        self._started: Optional[float] = None

    def start(self) -> "TimeBudgetGovernor":
        self._started = self._clock()
        return self

    def elapsed(self) -> float:
        if self._started is None:
            return 0.0
        return self._clock() - self._started

    def remaining(self) -> float:
        return max(0.0, self.budget_seconds - self.elapsed())

    def expired(self) -> bool:
        """True once strictly more than the budget has elapsed"""
        return self.elapsed() > self.budget_seconds
