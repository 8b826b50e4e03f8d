"""Load Balancer — picks one member of a pool under a switchable policy.

Invariants:
    - Candidates are reduced to online members BEFORE the policy runs
    - Empty input or no online member → NoAvailableInstanceError
      (distinct from ServiceNotFoundError: the service exists, nothing is healthy)
    - The round-robin cursor belongs to this instance and resets to 0 on set_strategy()
    - Cursor read-and-increment is atomic (guarded by the balancer's own lock)

Design Decisions:
    - Status lookup injected (default: candidate.current_status()) so pools can
      overlay their own probe results on instance status
    - Picking rules live in core/select_instance.py; this class owns state only
"""

import logging
import random
import threading
from collections.abc import Callable, Sequence
from typing import TypeVar

from mcp_gateway.core.domain_types import LoadBalancingStrategy, ServiceStatus
from mcp_gateway.core.errors import NoAvailableInstanceError
from mcp_gateway.core.select_instance import (
    pick_least_connections, pick_random, pick_round_robin,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _handle_status(candidate) -> ServiceStatus:
    return candidate.current_status()


class LoadBalancer:
    """Selects among redundant handles of one logical service."""

    def __init__(
        self,
        strategy: LoadBalancingStrategy = LoadBalancingStrategy.ROUND_ROBIN,
        rng: random.Random | None = None,
    ):
        self._strategy = LoadBalancingStrategy(strategy)
        self._round_robin_index = 0
        self._rng = rng or random.Random()
        self._lock = threading.Lock()

    @property
    def strategy(self) -> LoadBalancingStrategy:
        return self._strategy

    @property
    def round_robin_index(self) -> int:
        return self._round_robin_index

    def set_strategy(self, strategy: LoadBalancingStrategy | str) -> None:
        with self._lock:
            self._strategy = LoadBalancingStrategy(strategy)
            self._round_robin_index = 0
        logger.info(f"Load balancing strategy set to: {self._strategy.value}")

    def select(
        self,
        candidates: Sequence[T],
        status_of: Callable[[T], ServiceStatus] = _handle_status,
    ) -> T:
        if not candidates:
            raise NoAvailableInstanceError("No service instances configured")
        online = [c for c in candidates if status_of(c).online]
        if not online:
            raise NoAvailableInstanceError("No online service instance available")

        with self._lock:
            strategy = self._strategy
            if strategy == LoadBalancingStrategy.ROUND_ROBIN:
                chosen = pick_round_robin(online, self._round_robin_index)
                self._round_robin_index += 1
                return chosen
        if strategy == LoadBalancingStrategy.RANDOM:
            return pick_random(online, self._rng)
        return pick_least_connections(
            online, lambda c: status_of(c).load.active_requests,
        )
