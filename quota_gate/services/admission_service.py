"""Admission service: the request-handling front of the rate limiter.

The service forwards each decision to whichever strategy it was constructed
with and reports the outcome to the logs. It holds no accounting state of its
own, so it is cheap to construct per application and pass where needed.
"""

from __future__ import annotations

import hashlib
import logging

from quota_gate.adapters.rate_limit.base import AbstractRateLimiter

logger = logging.getLogger(__name__)


def hash_client_key(key: str) -> str:
    """Hash a client key for logging without exposing it."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


class AdmissionService:
    """Front object that gates requests through a rate limiting strategy.

    Attributes:
        strategy: Limiter deciding admissions (fixed at construction).
    """

    def __init__(self, strategy: AbstractRateLimiter) -> None:
        self._strategy = strategy

    @property
    def strategy(self) -> AbstractRateLimiter:
        return self._strategy

    def handle_request(self, key: str) -> bool:
        """Decide on one request for ``key`` and log the outcome.

        Args:
            key: Client identifier.

        Returns:
            True if the request was admitted.
        """

        allowed = self._strategy.admit(key)
        extra = {
            "key_hash": hash_client_key(key),
            "strategy": type(self._strategy).__name__,
        }

        if allowed:
            logger.info("rate_limit.allowed", extra=extra)
        else:
            logger.warning("rate_limit.rejected", extra={**extra, "reason": "rate limit exceeded"})
        return allowed
