"""Traffic simulation for the rate limiting strategies.

Submits a stream of requests for a single client to a small worker pool,
pausing between submissions, and prints each admission decision.

Usage:
    python -m quota_gate.demo
    python -m quota_gate.demo --strategy token_bucket --requests 20
"""

from __future__ import annotations

import argparse
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Sequence

from quota_gate.adapters.rate_limit import (
    AbstractRateLimiter,
    FixedWindowRateLimiter,
    TokenBucketRateLimiter,
)
from quota_gate.core.config import LogSettings
from quota_gate.core.logging import configure_logging
from quota_gate.services.admission_service import AdmissionService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Scenario:
    title: str
    client_id: str
    workers: int
    pause_seconds: float
    build: Callable[[], AbstractRateLimiter]


SCENARIOS: dict[str, Scenario] = {
    "fixed_window": Scenario(
        title="Fixed Window",
        client_id="user123",
        workers=3,
        pause_seconds=0.5,
        build=lambda: FixedWindowRateLimiter(max_requests=5, window_seconds=10),
    ),
    "token_bucket": Scenario(
        title="Token Bucket",
        client_id="user456",
        workers=2,
        pause_seconds=0.3,
        build=lambda: TokenBucketRateLimiter(capacity=5, refill_rate=1),
    ),
}


def run_simulation(
    service: AdmissionService,
    client_id: str,
    *,
    requests: int = 10,
    workers: int = 1,
    pause_seconds: float = 0.0,
    sleep: Callable[[float], None] | None = None,
) -> list[bool]:
    """Fire ``requests`` requests for ``client_id`` through a worker pool.

    Args:
        sleep: Pause function (defaults to ``time.sleep``).

    Returns:
        Decisions in submission order.
    """

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = []
        for _ in range(requests):
            futures.append(executor.submit(service.handle_request, client_id))
            if pause_seconds:
                (sleep or time.sleep)(pause_seconds)
        return [future.result() for future in futures]


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--strategy",
        choices=[*SCENARIOS, "all"],
        default="all",
        help="Scenario to run (default: all)",
    )
    parser.add_argument("--requests", type=int, default=10, help="Requests per scenario")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level for admission decision logs",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging(LogSettings(level=args.log_level, format="plain"))

    names = list(SCENARIOS) if args.strategy == "all" else [args.strategy]
    for index, name in enumerate(names):
        scenario = SCENARIOS[name]
        if index:
            print()
        print(f"=== {scenario.title} Demo ===")

        decisions = run_simulation(
            AdmissionService(scenario.build()),
            scenario.client_id,
            requests=args.requests,
            workers=scenario.workers,
            pause_seconds=scenario.pause_seconds,
        )
        for decision in decisions:
            if decision:
                print(f"Request from user {scenario.client_id} is allowed")
            else:
                print(f"Request from user {scenario.client_id} is rejected: Rate limit exceeded")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
