"""Gateway Routes — introspection, balancer control and tool execution under /api/mcp.

Invariants:
    - Every route passes the rate limiter, then the API key check
    - POST /{server}/{tool} always answers with the Dispatcher's envelope and the
      HTTP status of its error kind (400/404/503/503/500), 200 on success
    - Operations the descriptor does not list, and ill-shaped params of known
      operations, are rejected before dispatch (VALIDATION_ERROR 400)
    - Introspection reads cached status only; it never probes a backend

Design Decisions:
    - Static paths declared before the /{server}/{tool} pattern
    - Registry, balancer and dispatcher injected from app.state via Depends()
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from mcp_gateway.api.dependencies import (
    enforce_rate_limit, get_balancer, get_dispatcher, get_registry, require_api_key,
)
from mcp_gateway.core.errors import ErrorContext, RequestValidationFailed, ServiceNotFoundError
from mcp_gateway.core.format_envelope import build_data_envelope
from mcp_gateway.infrastructure.observability import get_request_id
from mcp_gateway.schemas.gateway import LoadBalancerUpdate
from mcp_gateway.schemas.operation_params import validate_operation_params
from mcp_gateway.services.dispatcher import Dispatcher
from mcp_gateway.services.load_balancer import LoadBalancer
from mcp_gateway.services.service_registry import ServiceRegistry

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/mcp",
    tags=["gateway"],
    dependencies=[Depends(enforce_rate_limit), Depends(require_api_key)],
)


@router.get("/status")
async def gateway_status(registry: ServiceRegistry = Depends(get_registry)):
    """All cached statuses plus aggregate stats."""
    return build_data_envelope({
        "services": registry.all_statuses(),
        "stats": registry.stats(),
        "healthCheckRunning": registry.health_check_running,
    })


@router.get("/servers")
async def list_servers(registry: ServiceRegistry = Depends(get_registry)):
    return build_data_envelope({
        "servers": registry.list_names(),
        "available": registry.list_available(),
    })


@router.get("/servers/{name}/tools")
async def list_tools(name: str, registry: ServiceRegistry = Depends(get_registry)):
    """Operations, version and description of one service."""
    return build_data_envelope(registry.describe(name).to_dict())


@router.get("/servers/{name}/status")
async def server_status(name: str, registry: ServiceRegistry = Depends(get_registry)):
    status = registry.status_of(name)
    if status is None:
        raise ServiceNotFoundError(name, registry.list_names())
    return build_data_envelope({"name": name, "status": status.to_dict()})


@router.get("/load-balancer")
async def get_load_balancer(balancer: LoadBalancer = Depends(get_balancer)):
    return build_data_envelope(_balancer_state(balancer))


@router.put("/load-balancer")
async def update_load_balancer(
    body: LoadBalancerUpdate,
    balancer: LoadBalancer = Depends(get_balancer),
    caller: str = Depends(require_api_key),
):
    """Switch the shared policy. Resets the round-robin cursor."""
    balancer.set_strategy(body.strategy)
    logger.info(
        f"Load balancer strategy changed to {body.strategy.value}",
        extra={"caller": caller},
    )
    return build_data_envelope(_balancer_state(balancer))


@router.post("/{server}/{tool}")
async def execute_tool(
    server: str,
    tool: str,
    request: Request,
    params: dict[str, Any] | None = Body(None),
    caller: str = Depends(require_api_key),
    registry: ServiceRegistry = Depends(get_registry),
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    """Dispatch one operation; the body is the params object."""
    request_id = get_request_id(request)
    if registry.has(server):
        try:
            validate_operation_params(
                registry.describe(server), tool, params or {},
            )
        except RequestValidationFailed as e:
            e.context = ErrorContext(
                request_id=request_id, service_name=server, operation_name=tool,
            )
            raise
    result = await dispatcher.dispatch(
        server, tool, params, request_id=request_id, caller=caller,
    )
    return JSONResponse(status_code=result.status_code, content=result.body)


def _balancer_state(balancer: LoadBalancer) -> dict:
    return {
        "strategy": balancer.strategy.value,
        "roundRobinIndex": balancer.round_robin_index,
    }
