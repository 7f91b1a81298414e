from __future__ import annotations

from fastapi import APIRouter

from quota_gate.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Health check endpoint (never rate limited).

    Returns:
        dict: ``status`` plus the active admission strategy, so operators can
            see which algorithm a deployment runs.
    """

    return {
        "status": "ok",
        "rate_limit": {
            "enabled": settings.rate_limit.enabled,
            "strategy": settings.rate_limit.strategy,
        },
    }
