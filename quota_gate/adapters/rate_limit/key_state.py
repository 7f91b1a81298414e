"""Per-key state storage for rate limiters.

A store maps a client key to that key's mutable accounting record. Records
are created lazily on first use and the first record installed for a key is
the one every caller sees.

Notes:
- The store only guards its own key-set. Each record carries its own lock,
  so callers serialize on the record, never on the store.
- ``InMemoryKeyStateStore`` never evicts. ``BoundedKeyStateStore`` trades
  exactness for bounded memory: an evicted key starts over with a fresh
  record on its next request.
"""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from quota_gate.adapters.rate_limit.base import require_positive_int, require_positive_number

RecordT = TypeVar("RecordT")


class KeyStateStore(ABC, Generic[RecordT]):
    """Interface for per-key record storage."""

    @abstractmethod
    def get_or_create(self, key: str, factory: Callable[[], RecordT]) -> RecordT:
        """Return the record for ``key``, creating it with ``factory`` if absent.

        Concurrent callers racing on the same unseen key must all receive the
        same record instance.

        Args:
            key: Client key.
            factory: Zero-argument callable building a fresh record.

        Returns:
            The record installed for ``key``.
        """
        raise NotImplementedError

    @abstractmethod
    def __len__(self) -> int:
        raise NotImplementedError


class InMemoryKeyStateStore(KeyStateStore[RecordT]):
    """Unbounded, process-local store (one record per key, forever).

    Lookups of known keys are a plain dict read. Only the insert-if-absent
    path takes the store lock, and only for the duration of the insert.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, RecordT] = {}

    def get_or_create(self, key: str, factory: Callable[[], RecordT]) -> RecordT:
        record = self._records.get(key)
        if record is not None:
            return record

        with self._lock:
            record = self._records.get(key)
            if record is None:
                record = factory()
                self._records[key] = record
            return record

    def __len__(self) -> int:
        return len(self._records)


@dataclass
class _Entry(Generic[RecordT]):
    record: RecordT
    last_access: float


class BoundedKeyStateStore(KeyStateStore[RecordT]):
    """Store with LRU eviction and an optional idle TTL.

    Attributes:
        max_keys: Maximum number of tracked keys (None for unlimited).
        idle_ttl_seconds: Keys untouched for this long are dropped
            (None to disable).
    """

    def __init__(
        self,
        *,
        max_keys: int | None = None,
        idle_ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the bounded store.

        Raises:
            ValueError: If a bound is given but is not positive.
        """
        if max_keys is not None:
            require_positive_int("max_keys", max_keys)
        if idle_ttl_seconds is not None:
            idle_ttl_seconds = require_positive_number("idle_ttl_seconds", idle_ttl_seconds)

        self._max_keys = max_keys
        self._idle_ttl = idle_ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: OrderedDict[str, _Entry[RecordT]] = OrderedDict()
        self._evictions = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"BoundedKeyStateStore(max_keys={self._max_keys}, "
            f"idle_ttl_seconds={self._idle_ttl}, size={len(self._entries)}, "
            f"evictions={self._evictions})"
        )

    def get_or_create(self, key: str, factory: Callable[[], RecordT]) -> RecordT:
        now = self._clock()

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._is_expired(entry, now):
                self._evict_single(key)
                entry = None

            if entry is None:
                entry = _Entry(record=factory(), last_access=now)
                self._entries[key] = entry
                self._evict_expired_locked(now)
                self._evict_if_over_capacity_locked()
            else:
                entry.last_access = now

            self._entries.move_to_end(key)  # mark as recently used
            return entry.record

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def evictions(self) -> int:
        return self._evictions

    def _evict_single(self, key: str) -> None:
        if self._entries.pop(key, None) is not None:
            self._evictions += 1

    def _evict_expired_locked(self, now: float) -> None:
        if self._idle_ttl is None:
            return

        # Entries are kept in access order, so the stale ones sit at the front.
        while self._entries:
            oldest_key, oldest = next(iter(self._entries.items()))
            if not self._is_expired(oldest, now):
                break
            self._evict_single(oldest_key)

    def _evict_if_over_capacity_locked(self) -> None:
        if self._max_keys is None:
            return

        while len(self._entries) > self._max_keys:
            # popitem(last=False) removes the least recently used entry
            self._entries.popitem(last=False)
            self._evictions += 1

    def _is_expired(self, entry: _Entry[RecordT], now: float) -> bool:
        return self._idle_ttl is not None and now - entry.last_access >= self._idle_ttl
