"""Rate limiting dependency for FastAPI routes.

This module wires the admission service into the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on a dependency function only.
- Swap-friendly: the algorithm is picked from settings by the factory.
- Per-client quota: keyed by X-Client-ID, falling back to the client IP.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Header, HTTPException, Request, status

from quota_gate.adapters.rate_limit.factory import create_rate_limiter
from quota_gate.core.config import settings
from quota_gate.services.admission_service import AdmissionService

logger = logging.getLogger(__name__)


_service: AdmissionService | None = None
_service_config: str | None = None


def get_admission_service() -> AdmissionService:
    """Return the application's admission service.

    The instance is cached in-module to preserve per-key state across
    requests. If the rate limit configuration changes (primarily in tests),
    the service is rebuilt with a fresh limiter.

    Returns:
        AdmissionService: Service bound to the configured strategy.
    """

    global _service, _service_config

    config = settings.rate_limit.model_dump_json()

    if _service is None or _service_config != config:
        _service = AdmissionService(create_rate_limiter(settings.rate_limit))
        _service_config = config
        logger.info(
            "rate_limit.configured",
            extra={"strategy": settings.rate_limit.strategy},
        )

    return _service


def build_client_key(request: Request, x_client_id: str | None) -> str:
    """Build the limiter key for the current request.

    Args:
        request: FastAPI request.
        x_client_id: Value of the X-Client-ID header.

    Returns:
        str: Namespaced limiter key.
    """

    if x_client_id is not None:
        return f"client:{x_client_id}"

    client_host = request.client.host if request.client else "unknown"
    return f"ip:{client_host}"


async def enforce_rate_limit(
    request: Request,
    x_client_id: Annotated[str | None, Header(alias="X-Client-ID")] = None,
) -> None:
    """FastAPI dependency enforcing admission control.

    Raises:
        HTTPException: 429 Too Many Requests when the client is over quota.
    """

    if not settings.rate_limit.enabled:
        return

    service = get_admission_service()
    key = build_client_key(request, x_client_id)

    if service.handle_request(key):
        return

    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Rate limit exceeded. Try again later.",
    )
