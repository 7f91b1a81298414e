"""Tests for building the configured rate limiter."""

import pytest

from quota_gate.adapters.rate_limit import (
    AbstractRateLimiter,
    BoundedKeyStateStore,
    FixedWindowRateLimiter,
    InMemoryKeyStateStore,
    TokenBucketRateLimiter,
    create_rate_limiter,
)
from quota_gate.core.config import RateLimitSettings
from quota_gate.core.errors import ValidationAppError


def test_builds_fixed_window_from_settings() -> None:
    limiter = create_rate_limiter(
        RateLimitSettings(strategy="fixed_window", max_requests=7, window_seconds=30)
    )

    assert isinstance(limiter, FixedWindowRateLimiter)
    assert limiter.max_requests == 7
    assert limiter.window_seconds == 30.0
    assert isinstance(limiter._store, InMemoryKeyStateStore)


def test_builds_token_bucket_from_settings() -> None:
    limiter = create_rate_limiter(
        RateLimitSettings(strategy="token_bucket", capacity=3, refill_rate=0.5)
    )

    assert isinstance(limiter, TokenBucketRateLimiter)
    assert limiter.capacity == 3
    assert limiter.refill_rate == 0.5


def test_bounded_store_when_eviction_configured() -> None:
    limiter = create_rate_limiter(
        RateLimitSettings(strategy="token_bucket", max_keys=100, key_idle_ttl_seconds=600)
    )

    assert isinstance(limiter._store, BoundedKeyStateStore)


def test_each_call_returns_independent_limiter() -> None:
    config = RateLimitSettings(strategy="fixed_window", max_requests=1, window_seconds=60)
    first = create_rate_limiter(config)
    second = create_rate_limiter(config)

    assert first is not second
    assert first.admit("user") is True
    assert first.admit("user") is False
    assert second.admit("user") is True


def test_unknown_strategy_raises_validation_error() -> None:
    config = RateLimitSettings.model_construct(strategy="sliding_log")

    with pytest.raises(ValidationAppError) as exc_info:
        create_rate_limiter(config)

    assert exc_info.value.code == "rate_limit_unknown_strategy"
    assert "sliding_log" in exc_info.value.message


def test_custom_strategy_satisfies_capability() -> None:
    class AlwaysDeny(AbstractRateLimiter):
        def admit(self, key: str) -> bool:
            return False

    assert AlwaysDeny().admit("anyone") is False

    with pytest.raises(TypeError):
        AbstractRateLimiter()  # type: ignore[abstract]
