"""Logging setup for admission decisions.

Decision logs carry flat ``extra`` fields (``key_hash``, ``strategy``,
``reason``) plus the request id of the HTTP request being gated. Raw client
identifiers are hashed by the service before logging; ``ClientKeyRedactor``
masks any that slip through in a field of their own.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import LogRecord
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable

from quota_gate.core.config import LogSettings, settings

REDACTED = "[REDACTED]"

# Fields that hold client identifiers or credentials
CLIENT_KEY_FIELDS: frozenset[str] = frozenset(
    {
        "key",
        "client_key",
        "client_id",
        "x-client-id",
        "api_key",
        "x-api-key",
        "authorization",
        "cookie",
    }
)

# Everything a bare LogRecord carries; anything else arrived through ``extra``.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def set_request_id(request_id: str | None) -> None:
    _request_id_var.set(request_id)


def get_request_id() -> str | None:
    return _request_id_var.get()


def clear_request_id() -> None:
    _request_id_var.set(None)


def _mask(name: str, value: Any, fields: frozenset[str]) -> Any:
    if name.lower() in fields:
        return REDACTED
    if isinstance(value, dict):
        return {k: _mask(k, v, fields) for k, v in value.items()}
    return value


def record_extras(record: LogRecord) -> dict[str, Any]:
    """Return the fields passed to the logger through ``extra``."""

    return {
        name: value
        for name, value in record.__dict__.items()
        if name not in _RESERVED_ATTRS and not name.startswith("_")
    }


class ClientKeyRedactor(logging.Filter):
    """Stamp the current request id and mask client identifiers in place."""

    def __init__(self, fields: Iterable[str] | None = None) -> None:
        super().__init__()
        self.fields = frozenset(f.lower() for f in fields) if fields else CLIENT_KEY_FIELDS

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()

        for name, value in record_extras(record).items():
            setattr(record, name, _mask(name, value, self.fields))
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, event, extras."""

    def format(self, record: LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
        }
        payload.update(
            (name, value) for name, value in record_extras(record).items() if value is not None
        )

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def _build_handler(log_settings: LogSettings) -> logging.Handler:
    if log_settings.output == "stdout":
        return logging.StreamHandler(sys.stdout)

    file_path = Path(log_settings.file_path or "logs/quota_gate.log")
    file_path.parent.mkdir(parents=True, exist_ok=True)
    if not log_settings.max_bytes:
        return logging.FileHandler(file_path, encoding="utf-8")
    return RotatingFileHandler(
        file_path,
        maxBytes=log_settings.max_bytes,
        backupCount=log_settings.backup_count,
        encoding="utf-8",
    )


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Install a single redacting handler on the root logger.

    Args:
        log_settings: Optional log settings; defaults to global settings if omitted.
    """

    cfg = log_settings or settings.log

    handler = _build_handler(cfg)
    handler.addFilter(ClientKeyRedactor())
    if cfg.format == "plain":
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    else:
        handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, cfg.level.upper(), logging.INFO))

    # Avoid double logging from uvicorn if it gets re-configured
    logging.getLogger("uvicorn").propagate = False
    logging.getLogger("uvicorn.access").propagate = False
