"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front.
if _env_file and os.getenv("TESTING") != "true":
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


StrategyName = Literal["fixed_window", "token_bucket"]


class RateLimitSettings(BaseSettings):
    """Admission control configuration.

    One rule applies to every key handled by the configured strategy.
    ``max_requests``/``window_seconds`` drive the fixed window,
    ``capacity``/``refill_rate`` drive the token bucket.
    """

    enabled: bool = Field(
        True,
        description="Enable admission control on gated routes",
    )
    strategy: StrategyName = Field(
        "fixed_window",
        description="Algorithm backing admission decisions",
    )
    max_requests: int = Field(
        5,
        description="Maximum admitted requests per window (per key)",
        ge=1,
    )
    window_seconds: float = Field(
        10.0,
        description="Fixed window size in seconds",
        gt=0,
        allow_inf_nan=False,
    )
    capacity: int = Field(
        5,
        description="Token bucket capacity (maximum burst per key)",
        ge=1,
    )
    refill_rate: float = Field(
        1.0,
        description="Tokens added to each bucket per second",
        gt=0,
        allow_inf_nan=False,
    )
    max_keys: int | None = Field(
        None,
        description="Bound on tracked keys; least recently used keys are evicted",
        ge=1,
    )
    key_idle_ttl_seconds: float | None = Field(
        None,
        description=(
            "Drop per-key state after this many idle seconds; must cover a full "
            "window (fixed_window) or a full refill (token_bucket)"
        ),
        gt=0,
        allow_inf_nan=False,
    )

    @model_validator(mode="after")
    def check_idle_ttl_covers_quota(self) -> "RateLimitSettings":
        # An evicted key restarts with a full quota, so it must not be dropped
        # while its window is open or its bucket is still refilling.
        if self.key_idle_ttl_seconds is None:
            return self

        if self.strategy == "fixed_window":
            minimum = self.window_seconds
        else:
            minimum = self.capacity / self.refill_rate

        if self.key_idle_ttl_seconds < minimum:
            raise ValueError(
                f"key_idle_ttl_seconds must be >= {minimum:g} for the {self.strategy} strategy"
            )
        return self

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: Literal["json", "plain"] = Field("json", description="Log line format")
    output: Literal["stdout", "file"] = Field("stdout", description="Log destination")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated log files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header carrying the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


def _build_rate_limit_settings() -> RateLimitSettings:
    return RateLimitSettings()


def _build_log_settings() -> LogSettings:
    return LogSettings()


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if a setting is invalid.
    """

    app_env: str = APP_ENV
    rate_limit: RateLimitSettings = Field(default_factory=_build_rate_limit_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Nested settings are created via default_factory so env loading works.
settings = Settings()
