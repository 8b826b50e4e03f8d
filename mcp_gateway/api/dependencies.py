"""API Dependencies — FastAPI Depends() providers for shared state, auth and quotas.

Invariants:
    - Registry, balancer, dispatcher and rate limiter are read from app.state
      (one instance per app, created in main.create_app)
    - Auth is skipped only when neither api_key nor api_secret is configured
    - Every configured credential must match its header exactly
    - Rate limiting keys on the client host; unknown clients share one bucket

Design Decisions:
    - Dependencies over global middleware: /health and /api stay open without
      path allow-lists (ADR: explicit per-router protection)
    - hmac.compare_digest for credential comparison: constant-time
"""

import hmac
import logging

from fastapi import Depends, Header, Request

from mcp_gateway.config import Settings, get_settings
from mcp_gateway.core.errors import AuthenticationError
from mcp_gateway.infrastructure.rate_limit import FixedWindowRateLimiter
from mcp_gateway.services.dispatcher import Dispatcher
from mcp_gateway.services.load_balancer import LoadBalancer
from mcp_gateway.services.service_registry import ServiceRegistry

logger = logging.getLogger(__name__)

_ANONYMOUS = "anonymous"


def get_registry(request: Request) -> ServiceRegistry:
    return request.app.state.registry


def get_balancer(request: Request) -> LoadBalancer:
    return request.app.state.balancer


def get_dispatcher(request: Request) -> Dispatcher:
    return request.app.state.dispatcher


def get_app_settings(request: Request) -> Settings:
    """Settings the app was created with (falls back to the process-wide ones)."""
    return getattr(request.app.state, "settings", None) or get_settings()


def require_api_key(
    settings: Settings = Depends(get_app_settings),
    x_api_key: str | None = Header(None),
    x_api_secret: str | None = Header(None),
) -> str:
    """Validate x-api-key / x-api-secret. Returns a caller id for logging."""
    if not settings.auth_enabled:
        return f"user_{x_api_key or _ANONYMOUS}"
    if settings.api_key and not _matches(x_api_key, settings.api_key):
        logger.warning("Rejected request: invalid API key")
        raise AuthenticationError("INVALID_API_KEY")
    if settings.api_secret and not _matches(x_api_secret, settings.api_secret):
        logger.warning("Rejected request: invalid API secret")
        raise AuthenticationError("INVALID_API_SECRET")
    return f"user_{x_api_key or _ANONYMOUS}"


def enforce_rate_limit(request: Request) -> int:
    """Count this request against the client's window. Returns remaining quota."""
    limiter: FixedWindowRateLimiter = request.app.state.rate_limiter
    client = request.client.host if request.client else "unknown"
    return limiter.hit(client)


def _matches(given: str | None, expected: str) -> bool:
    if given is None:
        return False
    return hmac.compare_digest(given.encode(), expected.encode())
