"""Deadline tracking for a single scrape cycle."""

from __future__ import annotations

import time
from typing import Callable


class Deadline:
    """A monotonic point in time after which remote calls must not start.

    One instance governs one scrape; it is never shared between scrapes.
    """

    def __init__(self, timeout: float | None, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._expires_at = None if timeout is None else clock() + max(timeout, 0.0)

    @classmethod
    def never(cls) -> "Deadline":
        return cls(None)

    def remaining(self) -> float | None:
        """Seconds left before expiry, ``None`` for an unbounded deadline."""

        if self._expires_at is None:
            return None
        return max(self._expires_at - self._clock(), 0.0)

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0.0


__all__ = ["Deadline"]
