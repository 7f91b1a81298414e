"""Tests for rate limit and logging settings."""

import pytest
from pydantic import ValidationError

from quota_gate.core.config import LogSettings, RateLimitSettings


def test_defaults_match_classic_quotas() -> None:
    cfg = RateLimitSettings()

    assert cfg.strategy == "fixed_window"
    assert cfg.max_requests == 5
    assert cfg.window_seconds == 10.0
    assert cfg.capacity == 5
    assert cfg.refill_rate == 1.0
    assert cfg.max_keys is None


def test_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RATE_LIMIT_STRATEGY", "token_bucket")
    monkeypatch.setenv("RATE_LIMIT_CAPACITY", "20")
    monkeypatch.setenv("RATE_LIMIT_REFILL_RATE", "2.5")

    cfg = RateLimitSettings()

    assert cfg.strategy == "token_bucket"
    assert cfg.capacity == 20
    assert cfg.refill_rate == 2.5


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_requests": 0},
        {"window_seconds": 0},
        {"capacity": -1},
        {"refill_rate": 0},
        {"max_keys": 0},
        {"strategy": "leaky_bucket"},
        {"window_seconds": float("inf")},
        {"refill_rate": float("inf")},
        {"refill_rate": float("nan")},
        {"key_idle_ttl_seconds": float("inf")},
    ],
)
def test_rejects_invalid_values(kwargs: dict) -> None:
    with pytest.raises(ValidationError):
        RateLimitSettings(**kwargs)


def test_log_settings_reject_unknown_format() -> None:
    with pytest.raises(ValidationError):
        LogSettings(format="xml")


def test_infinite_refill_rate_from_environment_fails_at_load(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RATE_LIMIT_STRATEGY", "token_bucket")
    monkeypatch.setenv("RATE_LIMIT_REFILL_RATE", "inf")

    with pytest.raises(ValidationError):
        RateLimitSettings()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"strategy": "fixed_window", "window_seconds": 60, "key_idle_ttl_seconds": 30},
        {"strategy": "token_bucket", "capacity": 10, "refill_rate": 0.5, "key_idle_ttl_seconds": 15},
    ],
)
def test_idle_ttl_shorter_than_quota_state_is_rejected(kwargs: dict) -> None:
    with pytest.raises(ValidationError, match="key_idle_ttl_seconds"):
        RateLimitSettings(**kwargs)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"strategy": "fixed_window", "window_seconds": 60, "key_idle_ttl_seconds": 60},
        {"strategy": "token_bucket", "capacity": 10, "refill_rate": 0.5, "key_idle_ttl_seconds": 20},
        {"strategy": "fixed_window", "window_seconds": 60},
    ],
)
def test_idle_ttl_covering_quota_state_is_accepted(kwargs: dict) -> None:
    assert RateLimitSettings(**kwargs).key_idle_ttl_seconds == kwargs.get("key_idle_ttl_seconds")
