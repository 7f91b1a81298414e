"""Rate limiter interface.

The API should depend on this abstraction (not the concrete implementation)
so algorithms can be swapped at configuration time without changing callers.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod


class AbstractRateLimiter(ABC):
    """Admission capability shared by every rate limiting algorithm."""

    @abstractmethod
    def admit(self, key: str) -> bool:
        """Decide whether the current request for ``key`` may proceed.

        Args:
            key: Client identifier (API key, user id, IP). Any string is a
                valid key, including the empty string.

        Returns:
            True when the request is admitted, False when it is over quota.
        """
        raise NotImplementedError


def require_positive_int(name: str, value: int) -> int:
    """Validate an integer quota parameter.

    Raises:
        ValueError: If value is not an int >= 1.
    """
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{name} must be an integer >= 1")
    return value


def require_positive_number(name: str, value: float) -> float:
    """Validate a positive, finite duration or rate.

    Raises:
        ValueError: If value is not a number > 0.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be a number > 0")
    if not value > 0 or math.isinf(value):
        raise ValueError(f"{name} must be a number > 0")
    return float(value)
