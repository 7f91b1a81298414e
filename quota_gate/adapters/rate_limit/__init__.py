"""Rate limiting adapters.

Callers depend on ``AbstractRateLimiter.admit`` only. Concrete counters
(fixed window, token bucket) keep their per-key state in a ``KeyStateStore``
so the storage policy (unbounded, LRU/TTL bounded) can change without
touching the algorithms.
"""

from quota_gate.adapters.rate_limit.base import AbstractRateLimiter
from quota_gate.adapters.rate_limit.factory import create_rate_limiter
from quota_gate.adapters.rate_limit.fixed_window import FixedWindowRateLimiter
from quota_gate.adapters.rate_limit.key_state import (
    BoundedKeyStateStore,
    InMemoryKeyStateStore,
    KeyStateStore,
)
from quota_gate.adapters.rate_limit.token_bucket import TokenBucketRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "BoundedKeyStateStore",
    "FixedWindowRateLimiter",
    "InMemoryKeyStateStore",
    "KeyStateStore",
    "TokenBucketRateLimiter",
    "create_rate_limiter",
]
