from __future__ import annotations

from fastapi import APIRouter, Depends

from quota_gate.core.rate_limit import enforce_rate_limit

router = APIRouter(tags=["Ping"], dependencies=[Depends(enforce_rate_limit)])


@router.get("/ping")
def ping() -> dict:
    """Rate-limited liveness probe.

    Returns:
        dict: ``{"status": "pong"}`` when the caller is within quota.
    """

    return {"status": "pong"}
