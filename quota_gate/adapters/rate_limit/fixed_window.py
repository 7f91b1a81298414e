"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: each key's window is guarded by its own lock, so unrelated
  keys never contend.
- Two bursts straddling a window boundary can admit up to
  ``2 * max_requests`` requests in a short span. That is inherent to the
  algorithm.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Callable

from quota_gate.adapters.rate_limit.base import (
    AbstractRateLimiter,
    require_positive_int,
    require_positive_number,
)
from quota_gate.adapters.rate_limit.key_state import InMemoryKeyStateStore, KeyStateStore


@dataclass
class WindowState:
    window_start: float
    count: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


class FixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting admitted requests per key inside a fixed window.

    The window for a key opens on its first request and is replaced by a new
    one by the first request observed at or after ``window_start +
    window_seconds``.
    """

    def __init__(
        self,
        *,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        store: KeyStateStore[WindowState] | None = None,
    ) -> None:
        """Initialize the fixed-window limiter.

        Args:
            max_requests: Maximum number of admitted requests per window.
            window_seconds: Size of the window in seconds.
            clock: Time source returning seconds.
            store: Per-key state storage (defaults to an unbounded in-memory store).

        Raises:
            ValueError: If max_requests or window_seconds are not positive.
        """
        self._max_requests = require_positive_int("max_requests", max_requests)
        self._window_seconds = require_positive_number("window_seconds", window_seconds)
        self._clock = clock
        self._store: KeyStateStore[WindowState] = (
            store if store is not None else InMemoryKeyStateStore()
        )

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    def admit(self, key: str) -> bool:
        now = self._clock()
        state = self._store.get_or_create(key, lambda: WindowState(window_start=now))

        # Boundary check and increment must be one step, otherwise two callers
        # can both pass the check and push count past max_requests.
        with state.lock:
            if now - state.window_start >= self._window_seconds:
                state.window_start = now
                state.count = 0

            if state.count < self._max_requests:
                state.count += 1
                return True

            return False
