"""Boundary Protocols — the capability contract every backend handle satisfies.

Invariants:
    - Core NEVER constructs a handle — implementations are supplied at registration
    - A handle exposes exactly three capabilities: execute, current_status, probe_health
    - The descriptor is owned by the handle; the registry only keeps a reference

Design Decisions:
    - Protocol over ABC: structural subtyping, any object with the right shape registers
      (ADR: no inheritance hierarchy required from backends)
    - Async execute/probe_health: implementations do IO; current_status is a cheap sync read
"""

from typing import Any, Protocol

from mcp_gateway.core.domain_types import ServiceDescriptor, ServiceStatus


class ServiceHandle(Protocol):
    """Structural contract for a registered backend service."""
    descriptor: ServiceDescriptor

    async def execute(self, operation: str, params: dict[str, Any]) -> Any: ...

    def current_status(self) -> ServiceStatus: ...

    async def probe_health(self) -> bool: ...
