"""Fake service handles for registry, pool and dispatcher tests.

Invariants:
    - FakeHandle satisfies the ServiceHandle protocol structurally (no base class)
"""

import asyncio
from typing import Any

from mcp_gateway.core.domain_types import ServiceDescriptor, ServiceLoad, ServiceStatus


class FakeHandle:
    """Handle whose execute/probe outcomes are set per test."""

    def __init__(
        self,
        name: str = "svc",
        operations: tuple[str, ...] = ("echo",),
        result: Any = None,
        error: Exception | None = None,
        healthy: bool = True,
        probe_error: Exception | None = None,
        online: bool = True,
        active_requests: int = 0,
    ):
        self.descriptor = ServiceDescriptor(
            name=name, version="1.0.0", description=f"fake {name}", operations=operations,
        )
        self.result = result
        self.error = error
        self.healthy = healthy
        self.probe_error = probe_error
        self.online = online
        self.active_requests = active_requests
        self.calls: list[tuple[str, dict]] = []
        self.probes = 0
        self.gate: asyncio.Event | None = None

    async def execute(self, operation: str, params: dict[str, Any]) -> Any:
        self.calls.append((operation, params))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.result if self.result is not None else {"echo": params}

    def current_status(self) -> ServiceStatus:
        return ServiceStatus(
            online=self.online,
            load=ServiceLoad(active_requests=self.active_requests),
        )

    async def probe_health(self) -> bool:
        self.probes += 1
        if self.probe_error is not None:
            raise self.probe_error
        return self.healthy
