"""Backend Base — shared bookkeeping for in-process service handles.

Invariants:
    - Every operation → handler mapping is visible in the subclass's _operations dict
    - Unknown operations raise UnknownOperationError (counted as a request, like any other)
    - active_requests returns to its previous value on every exit path
    - probe_health() never raises — a failing self-check reports False

Design Decisions:
    - Explicit dict over getattr: adding an operation requires editing one mapping
      (ADR: ExMA no convention-over-config)
    - Backend-local counters are informational; the registry keeps its own authoritative
      counters around execute_tool
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from mcp_gateway.core.domain_types import (
    ServiceDescriptor, ServiceLoad, ServiceStatus, utc_now,
)
from mcp_gateway.core.errors import UnknownOperationError

logger = logging.getLogger(__name__)

OperationHandler = Callable[[dict[str, Any]], Awaitable[Any]]


class BaseBackend:
    """In-process handle satisfying the ServiceHandle protocol."""

    def __init__(self, descriptor: ServiceDescriptor):
        self.descriptor = descriptor
        self._operations: dict[str, OperationHandler] = {}
        self._active_requests = 0
        self._total_requests = 0
        self._last_update = utc_now()

    async def execute(self, operation: str, params: dict[str, Any]) -> Any:
        self._active_requests += 1
        self._total_requests += 1
        try:
            handler = self._operations.get(operation)
            if handler is None:
                raise UnknownOperationError(self.descriptor.name, operation)
            logger.debug(
                f"Executing {self.descriptor.name}.{operation}",
                extra={"service_name": self.descriptor.name, "operation_name": operation},
            )
            return await handler(params or {})
        finally:
            self._active_requests -= 1
            self._last_update = utc_now()

    def current_status(self) -> ServiceStatus:
        return ServiceStatus(
            online=True,
            last_update=self._last_update,
            load=ServiceLoad(
                active_requests=self._active_requests,
                total_requests=self._total_requests,
            ),
        )

    async def probe_health(self) -> bool:
        try:
            await self.self_check()
            return True
        except Exception as e:
            logger.error(
                f"Self-check failed for '{self.descriptor.name}': {e}",
                extra={"service_name": self.descriptor.name},
            )
            return False

    async def self_check(self) -> None:
        """Override with a cheap representative computation."""
