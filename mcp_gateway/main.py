"""MCP Gateway API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery — ExMA anti-pattern)
    - Global error handlers map GatewayError → failure envelopes
    - CORS configured from settings (not hardcoded)
    - Registry, balancer, dispatcher and rate limiter live on app.state, one set per app
    - Health probing starts in the lifespan and is stopped on shutdown

Design Decisions:
    - create_app() factory: tests build isolated apps with their own settings and
      registry (ADR: no module-level singletons)
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
      (ADR: FastAPI 0.128)
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mcp_gateway.api.error_handlers import register_error_handlers
from mcp_gateway.api.routes import gateway, health
from mcp_gateway.config import APP_NAME, APP_VERSION, Settings, get_settings
from mcp_gateway.infrastructure.observability import (
    request_context_middleware, setup_logging,
)
from mcp_gateway.infrastructure.rate_limit import FixedWindowRateLimiter
from mcp_gateway.services.bootstrap import register_builtin_services
from mcp_gateway.services.dispatcher import Dispatcher
from mcp_gateway.services.load_balancer import LoadBalancer
from mcp_gateway.services.service_registry import ServiceRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings: Settings = app.state.settings
    setup_logging(settings.log_level, settings.log_format)
    if not settings.auth_enabled:
        logger.warning("No API key or secret configured, authentication disabled")
    app.state.started_at = time.monotonic()
    registry: ServiceRegistry = app.state.registry
    await registry.start_health_check(settings.health_check_interval_seconds)
    logger.info(f"{APP_NAME} started ({settings.environment})")
    yield
    await registry.stop_health_check()
    logger.info(f"{APP_NAME} shutting down")


def create_app(
    settings: Settings | None = None,
    registry: ServiceRegistry | None = None,
) -> FastAPI:
    """Build the app. A given registry is used as-is (no built-ins registered)."""
    settings = settings or get_settings()
    app = FastAPI(title=APP_NAME, version=APP_VERSION, lifespan=lifespan)

    balancer = LoadBalancer(settings.load_balancing_strategy)
    if registry is None:
        registry = ServiceRegistry()
        register_builtin_services(registry, settings, balancer)
    app.state.settings = settings
    app.state.registry = registry
    app.state.balancer = balancer
    app.state.dispatcher = Dispatcher(registry, debug=settings.debug)
    app.state.rate_limiter = FixedWindowRateLimiter(
        settings.rate_limit_window_ms, settings.rate_limit_max_requests,
    )
    app.state.started_at = time.monotonic()

    app.middleware("http")(request_context_middleware)
    # CORS — configured from settings, not hardcoded
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes — explicit registration (ExMA: no convention-over-config)
    app.include_router(health.router)
    app.include_router(gateway.router)

    register_error_handlers(app)
    return app


app = create_app()
