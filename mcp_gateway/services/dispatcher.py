"""Dispatcher — one request/response cycle from (service, operation, params) to envelope.

Invariants:
    - Checks run in fixed order: names present → service known → cached status online
      → execute through ServiceRegistry.execute_tool (so counters and status update)
    - Never raises to the caller: every outcome is a DispatchResult with an envelope
    - Every envelope carries meta.requestId (generated when the caller sent none)
    - A pool with no healthy member maps to NO_AVAILABLE_INSTANCE; any other backend
      failure maps to EXECUTION_ERROR
    - Stack traces appear in error details only when debug is on

Design Decisions:
    - Single seam for failure → taxonomy mapping (ADR: transport stays thin)
    - Offline check duplicated before execute_tool: the dispatcher answers from cached
      status without touching the handle; execute_tool re-checks for races
"""

import logging
import time
import traceback
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from mcp_gateway.core.errors import (
    ErrorContext, ExecutionError, GatewayError, InvalidRequestError,
    NoAvailableInstanceError, ServiceNotFoundError, ServiceOfflineError,
)
from mcp_gateway.core.format_envelope import build_success_envelope, elapsed_ms
from mcp_gateway.services.service_registry import ServiceRegistry

logger = logging.getLogger(__name__)

# Errors that already belong to the caller-visible taxonomy
_PASSTHROUGH = (
    InvalidRequestError, ServiceNotFoundError,
    ServiceOfflineError, NoAvailableInstanceError,
)


@dataclass(frozen=True)
class DispatchResult:
    status_code: int
    body: dict

    @property
    def success(self) -> bool:
        return bool(self.body.get("success"))


class Dispatcher:
    """Composes registry lookups, status checks and execution into one call."""

    def __init__(self, registry: ServiceRegistry, debug: bool = False):
        self._registry = registry
        self._debug = debug

    async def dispatch(
        self,
        service_name: str,
        operation_name: str,
        params: dict[str, Any] | None = None,
        *,
        request_id: str | None = None,
        caller: str | None = None,
    ) -> DispatchResult:
        context = ErrorContext(
            request_id=request_id or str(uuid4()),
            service_name=service_name or None,
            operation_name=operation_name or None,
        )
        log_extra = {
            "request_id": context.request_id,
            "service_name": service_name,
            "operation_name": operation_name,
            "caller": caller,
        }
        started = time.perf_counter()
        try:
            self._precheck(service_name, operation_name)
            result = await self._registry.execute_tool(
                service_name, operation_name, params or {},
            )
        except _PASSTHROUGH as e:
            return self._fail(e, context, log_extra)
        except Exception as e:
            context.execution_time_ms = elapsed_ms(started, time.perf_counter())
            error = ExecutionError(
                str(e) or type(e).__name__,
                details=self._debug_details(e),
            )
            logger.error(
                f"Execution failed ({service_name}.{operation_name}): {e}",
                exc_info=True,
                extra={**log_extra, "error_code": error.code},
            )
            return self._fail(error, context, log_extra, log=False)

        execution_time_ms = elapsed_ms(started, time.perf_counter())
        logger.info(
            f"Executed {service_name}.{operation_name}",
            extra={**log_extra, "execution_time_ms": execution_time_ms},
        )
        return DispatchResult(200, build_success_envelope(
            result,
            request_id=context.request_id,
            execution_time_ms=execution_time_ms,
            service_name=service_name,
            operation_name=operation_name,
            timestamp=context.timestamp,
        ))

    def _precheck(self, service_name: str, operation_name: str) -> None:
        if not service_name or not operation_name:
            raise InvalidRequestError(
                "Service name and operation name are required",
            )
        if not self._registry.has(service_name):
            raise ServiceNotFoundError(service_name, self._registry.list_names())
        status = self._registry.status_of(service_name)
        if status is None or not status.online:
            raise ServiceOfflineError(
                service_name, status.error if status else None,
            )

    def _fail(
        self, error: GatewayError, context: ErrorContext,
        log_extra: dict, log: bool = True,
    ) -> DispatchResult:
        error.context = context
        if log:
            logger.warning(
                f"Dispatch rejected: {error.message}",
                extra={**log_extra, "error_code": error.code},
            )
        return DispatchResult(error.http_status, error.to_response())

    def _debug_details(self, exc: Exception) -> dict | None:
        if not self._debug:
            return None
        return {
            "type": type(exc).__name__,
            "stack": traceback.format_exception(type(exc), exc, exc.__traceback__),
        }
