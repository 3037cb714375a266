"""Cooperative time budget shared by the long-running scan stages."""

from __future__ import annotations

import time
from typing import Callable, Optional


class Deadline:
    """Best-effort time budget measured on a monotonic clock.

    Stages poll :meth:`expired` between units of work and stop starting new
    work once it returns True; anything already produced stays valid.
    """

    def __init__(
        self,
        seconds: Optional[float] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._limit = None if seconds is None else clock() + max(seconds, 0.0)
        self.tripped = False

    @classmethod
    def never(cls) -> "Deadline":
        return cls(None)

    def expired(self) -> bool:
        if self._limit is None:
            return False
        if self._clock() >= self._limit:
            self.tripped = True
        return self.tripped

    def remaining(self) -> Optional[float]:
        if self._limit is None:
            return None
        return max(self._limit - self._clock(), 0.0)


__all__ = ["Deadline"]
