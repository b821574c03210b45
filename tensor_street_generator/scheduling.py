"""
Budgeted stepping of incremental work (streamline layers, polygon shrinking).
"""

import time
from typing import Callable, Optional, Protocol, Sequence


class Steppable(Protocol):
    def update(self) -> bool:
        """Do one unit of work; True while more work remains."""


class WorkDriver:
    """
    Runs units of work from several steppables until a time or iteration
    budget is spent, so a caller can interleave generation with its own loop.
    """

    def __init__(
        self,
        steppables: Sequence[Steppable],
        budget_seconds: Optional[float] = 0.03,
        max_units: Optional[int] = None,
        clock: Callable[[], float] = time.perf_counter
    ):
        """
        Args:
            steppables: Objects with an update() -> bool method
            budget_seconds: Time budget per step() call (None for no limit)
            max_units: Max update() calls per step() call (None for no limit)
            clock: Time source
        """
        if budget_seconds is not None and budget_seconds <= 0:
            raise ValueError(f"budget_seconds must be positive, got {budget_seconds}")
        if max_units is not None and max_units < 1:
            raise ValueError(f"max_units must be >= 1, got {max_units}")

        self.steppables = list(steppables)
        self.budget_seconds = budget_seconds
        self.max_units = max_units
        self.clock = clock
        self.units_done = 0

    def step(self) -> bool:
        """
        Work until the budget is spent or every steppable is idle.

        Returns:
            True if more work remains
        """
        start = self.clock()
        units = 0
        while True:
            more = False
            for steppable in self.steppables:
                if steppable.update():
                    more = True
                units += 1
                self.units_done += 1

            if not more:
                return False
            if self.max_units is not None and units >= self.max_units:
                return True
            if self.budget_seconds is not None and self.clock() - start >= self.budget_seconds:
                return True

    def run(self) -> int:
        """Drive all steppables to completion; returns the number of update() calls."""
        while self.step():
            pass
        return self.units_done
