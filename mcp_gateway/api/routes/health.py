"""Liveness & Info — unauthenticated endpoints for orchestration and discovery.

Invariants:
    - GET /health always returns 200 if the process is up (liveness)
    - GET /api lists every public endpoint; no auth, no rate limit

Design Decisions:
    - Liveness does not consult backend status: a degraded backend must not get
      the gateway restarted (ADR: production readiness)
"""

import logging
import time

from fastapi import APIRouter, Request, status

from mcp_gateway.config import APP_NAME, APP_VERSION
from mcp_gateway.core.domain_types import utc_now
from mcp_gateway.core.format_envelope import build_data_envelope

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])

ENDPOINTS = {
    "health": "GET /health",
    "info": "GET /api",
    "status": "GET /api/mcp/status",
    "servers": "GET /api/mcp/servers",
    "tools": "GET /api/mcp/servers/{name}/tools",
    "serverStatus": "GET /api/mcp/servers/{name}/status",
    "loadBalancer": "GET|PUT /api/mcp/load-balancer",
    "execute": "POST /api/mcp/{server}/{tool}",
}


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(request: Request):
    """Basic liveness probe. Returns 200 if the process is up."""
    started = getattr(request.app.state, "started_at", None)
    uptime = round(time.monotonic() - started, 3) if started is not None else 0.0
    return build_data_envelope({
        "status": "healthy",
        "timestamp": utc_now().isoformat(),
        "uptime": uptime,
        "version": APP_VERSION,
    })


@router.get("/api")
async def api_info():
    """Gateway info and endpoint map."""
    return build_data_envelope({
        "name": APP_NAME,
        "version": APP_VERSION,
        "description": "Dispatch gateway for pluggable tool services",
        "endpoints": ENDPOINTS,
    })
