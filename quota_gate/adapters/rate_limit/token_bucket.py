"""In-memory token-bucket rate limiter.

Each key owns a bucket that starts full, loses one token per admitted
request and regains ``refill_rate`` tokens per second up to ``capacity``.

Notes:
- Tokens are whole units. The refill clock only advances when at least one
  whole token accrues, so fractional progress carries over to the next call
  instead of being truncated away.
- A clock that stands still (or steps backwards) simply yields no refill.
"""

from __future__ import annotations

import math
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
class BucketState:
    tokens: int
    last_refill: float
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


class TokenBucketRateLimiter(AbstractRateLimiter):
    """Rate limiter allowing bursts up to ``capacity`` with a steady refill."""

    def __init__(
        self,
        *,
        capacity: int,
        refill_rate: float,
        clock: Callable[[], float] = time.monotonic,
        store: KeyStateStore[BucketState] | None = None,
    ) -> None:
        """Initialize the token-bucket limiter.

        Args:
            capacity: Maximum tokens a bucket can hold.
            refill_rate: Tokens added per second.
            clock: Time source returning seconds.
            store: Per-key state storage (defaults to an unbounded in-memory store).

        Raises:
            ValueError: If capacity or refill_rate are not positive.
        """
        self._capacity = require_positive_int("capacity", capacity)
        self._refill_rate = require_positive_number("refill_rate", refill_rate)
        self._clock = clock
        self._store: KeyStateStore[BucketState] = (
            store if store is not None else InMemoryKeyStateStore()
        )

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def refill_rate(self) -> float:
        return self._refill_rate

    def _refill_locked(self, bucket: BucketState, now: float) -> None:
        elapsed = now - bucket.last_refill
        if elapsed <= 0:
            return

        # Capped at capacity so huge rates or gaps cannot overflow to inf.
        tokens_to_add = math.floor(min(elapsed * self._refill_rate, self._capacity))
        if tokens_to_add > 0:
            bucket.tokens = min(self._capacity, bucket.tokens + tokens_to_add)
            bucket.last_refill = now

    def admit(self, key: str) -> bool:
        now = self._clock()
        bucket = self._store.get_or_create(
            key, lambda: BucketState(tokens=self._capacity, last_refill=now)
        )

        with bucket.lock:
            self._refill_locked(bucket, now)

            if bucket.tokens > 0:
                bucket.tokens -= 1
                return True

            return False
