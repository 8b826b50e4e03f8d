"""Service Pool — one logical service backed by several redundant instances.

Invariants:
    - A pool is itself a ServiceHandle: the registry sees one name, one status
    - Every execute() goes through the LoadBalancer over the pool's instances
    - An instance counts as online only if its own status is online AND its last
      probe succeeded
    - Pool is online while at least one instance is online; load is summed
    - probe_health() probes every instance (settle-all); a raising instance is unhealthy

Design Decisions:
    - Per-instance probe results kept here, not in the registry: the registry's
      cached status stays one-per-name
"""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import replace
from typing import Any

from mcp_gateway.core.domain_types import (
    ServiceDescriptor, ServiceLoad, ServiceStatus, utc_now,
)
from mcp_gateway.core.handle_protocols import ServiceHandle
from mcp_gateway.services.load_balancer import LoadBalancer

logger = logging.getLogger(__name__)


class PooledService:
    """ServiceHandle that load-balances across redundant instances."""

    def __init__(
        self,
        descriptor: ServiceDescriptor,
        instances: Sequence[ServiceHandle],
        balancer: LoadBalancer,
    ):
        if not instances:
            raise ValueError("a pool needs at least one instance")
        self.descriptor = descriptor
        self._instances = list(instances)
        self._balancer = balancer
        self._probe_ok: dict[int, bool] = {id(i): True for i in self._instances}

    @property
    def instances(self) -> list[ServiceHandle]:
        return list(self._instances)

    @property
    def balancer(self) -> LoadBalancer:
        return self._balancer

    def instance_status(self, instance: ServiceHandle) -> ServiceStatus:
        status = instance.current_status()
        if not self._probe_ok.get(id(instance), False):
            return replace(status, online=False)
        return status

    async def execute(self, operation: str, params: dict[str, Any]) -> Any:
        instance = self._balancer.select(self._instances, self.instance_status)
        return await instance.execute(operation, params)

    def current_status(self) -> ServiceStatus:
        statuses = [self.instance_status(i) for i in self._instances]
        online = any(s.online for s in statuses)
        return ServiceStatus(
            online=online,
            last_update=max((s.last_update for s in statuses), default=utc_now()),
            error=None if online else "no healthy instance",
            load=ServiceLoad(
                active_requests=sum(s.load.active_requests for s in statuses),
                total_requests=sum(s.load.total_requests for s in statuses),
            ),
        )

    async def probe_health(self) -> bool:
        results = await asyncio.gather(
            *(i.probe_health() for i in self._instances),
            return_exceptions=True,
        )
        for index, (instance, result) in enumerate(zip(self._instances, results)):
            if isinstance(result, BaseException):
                logger.warning(
                    f"Instance {index} of '{self.descriptor.name}' probe raised: {result}",
                    extra={"service_name": self.descriptor.name},
                )
            self._probe_ok[id(instance)] = (
                not isinstance(result, BaseException) and bool(result)
            )
        return any(self._probe_ok.values())
