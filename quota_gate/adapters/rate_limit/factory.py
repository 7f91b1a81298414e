"""Factory for the configured rate limiting strategy."""

from __future__ import annotations

from quota_gate.adapters.rate_limit.base import AbstractRateLimiter
from quota_gate.adapters.rate_limit.fixed_window import FixedWindowRateLimiter
from quota_gate.adapters.rate_limit.key_state import (
    BoundedKeyStateStore,
    InMemoryKeyStateStore,
    KeyStateStore,
)
from quota_gate.adapters.rate_limit.token_bucket import TokenBucketRateLimiter
from quota_gate.core.config import RateLimitSettings, settings
from quota_gate.core.errors import ValidationAppError

SUPPORTED_STRATEGIES = ("fixed_window", "token_bucket")


def _build_store(config: RateLimitSettings) -> KeyStateStore:
    if config.max_keys is None and config.key_idle_ttl_seconds is None:
        return InMemoryKeyStateStore()
    return BoundedKeyStateStore(
        max_keys=config.max_keys,
        idle_ttl_seconds=config.key_idle_ttl_seconds,
    )


def create_rate_limiter(config: RateLimitSettings | None = None) -> AbstractRateLimiter:
    """Instantiate the rate limiter selected by configuration.

    Every call returns a new limiter with its own, empty per-key state.

    Args:
        config: Rate limit settings; defaults to the global settings.

    Returns:
        AbstractRateLimiter: Configured limiter instance.

    Raises:
        ValidationAppError: If the strategy name is not supported.
    """
    cfg = config if config is not None else settings.rate_limit
    strategy = str(cfg.strategy).lower()

    if strategy == "fixed_window":
        return FixedWindowRateLimiter(
            max_requests=cfg.max_requests,
            window_seconds=cfg.window_seconds,
            store=_build_store(cfg),
        )

    if strategy == "token_bucket":
        return TokenBucketRateLimiter(
            capacity=cfg.capacity,
            refill_rate=cfg.refill_rate,
            store=_build_store(cfg),
        )

    raise ValidationAppError(
        code="rate_limit_unknown_strategy",
        message=(
            f"Unknown rate limit strategy: '{strategy}'. "
            f"Supported strategies: {', '.join(SUPPORTED_STRATEGIES)}"
        ),
        details={"field": "strategy", "allowed_values": list(SUPPORTED_STRATEGIES)},
    )
