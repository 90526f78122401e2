"""Pausable set clock shown to the player while a set is being played."""

from __future__ import annotations

import time
from typing import Callable, Optional


class SetClock:
    """
    Seconds spent on the current cycle.

    Starts from the time banked by earlier sessions; mistakes are shown as a
    fixed penalty on top of the running time.
    """

    def __init__(
        self,
        initial: float = 0.0,
        *,
        penalty_per_mistake: float = 3.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.initial = initial
        self.penalty_per_mistake = penalty_per_mistake
        self._clock = clock
        self._accumulated = 0.0
        self._started_at: Optional[float] = None

    @property
    def running(self) -> bool:
        return self._started_at is not None

    def resume(self) -> None:
        if self._started_at is None:
            self._started_at = self._clock()

    start = resume

    def pause(self) -> None:
        if self._started_at is not None:
            self._accumulated += self._clock() - self._started_at
            self._started_at = None

    @property
    def elapsed(self) -> float:
        running = self._clock() - self._started_at if self._started_at is not None else 0.0
        return self.initial + self._accumulated + running

    def display(self, mistakes: int) -> float:
        return self.elapsed + self.penalty_per_mistake * mistakes
