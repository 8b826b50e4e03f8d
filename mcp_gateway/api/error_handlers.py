"""Error Handlers — global exception handlers for the gateway API.

Invariants:
    - GatewayError → failure envelope with its own code and http_status
    - RequestValidationError → VALIDATION_ERROR 400 with field-level details
    - Unknown route → NOT_FOUND 404 listing the public endpoints
    - Exception (catch-all) → INTERNAL_ERROR 500, never leaks internal details
    - Every response carries meta.requestId (the request's x-request-id)

Design Decisions:
    - Four-layer handler: domain (GatewayError), validation (Pydantic), routing
      (Starlette HTTPException), catch-all (Exception)
    - Extracted from main.py (ADR: ExMA import fan-out < 10)
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from mcp_gateway.api.routes.health import ENDPOINTS
from mcp_gateway.core.errors import (
    ErrorCategory, ErrorContext, ErrorSeverity, GatewayError, RateLimitExceededError,
)
from mcp_gateway.infrastructure.observability import get_request_id

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_gateway_error_handler(app)
    _register_validation_error_handler(app)
    _register_http_error_handler(app)
    _register_generic_error_handler(app)


def _register_gateway_error_handler(app: FastAPI) -> None:
    """Register gateway domain/transport error handler."""

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError):
        """Handle all gateway errors raised outside the Dispatcher."""
        if exc.context.request_id is None:
            exc.context.request_id = get_request_id(request)
        log = logger.error if exc.http_status >= 500 else logger.warning
        log(
            f"GatewayError: {exc.message}",
            extra={
                "error_code": exc.code,
                "path": request.url.path,
                "request_id": exc.context.request_id,
            },
        )
        headers = None
        if isinstance(exc, RateLimitExceededError):
            headers = {"Retry-After": str(max(1, exc.retry_after_ms // 1000))}
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(), headers=headers,
        )


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_envelope(
                request, "VALIDATION_ERROR", "Invalid request data",
                ErrorCategory.VALIDATION, status.HTTP_400_BAD_REQUEST,
                details=_validation_details(exc),
            ),
        )


def _register_http_error_handler(app: FastAPI) -> None:
    """Register routing-level HTTP error handler (404, 405, ...)."""

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            content = _envelope(
                request, "NOT_FOUND",
                f"Endpoint {request.method} {request.url.path} does not exist",
                ErrorCategory.RESOURCE_NOT_FOUND, exc.status_code,
                details={"availableEndpoints": ENDPOINTS},
            )
        else:
            content = _envelope(
                request, "HTTP_ERROR", str(exc.detail),
                ErrorCategory.VALIDATION, exc.status_code,
            )
        return JSONResponse(
            status_code=exc.status_code, content=content,
            headers=getattr(exc, "headers", None),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_envelope(
                request, "INTERNAL_ERROR", "An unexpected error occurred",
                ErrorCategory.INTERNAL, status.HTTP_500_INTERNAL_SERVER_ERROR,
                severity=ErrorSeverity.CRITICAL,
            ),
        )


def _envelope(
    request: Request,
    code: str,
    message: str,
    category: ErrorCategory,
    http_status: int,
    details: Any = None,
    severity: ErrorSeverity = ErrorSeverity.ERROR,
) -> dict:
    """Failure envelope for errors that never became a GatewayError."""
    return GatewayError(
        message, code, category, severity,
        ErrorContext(request_id=get_request_id(request)),
        http_status, details,
    ).to_response()


def _validation_details(exc: RequestValidationError) -> list[dict]:
    return [
        {
            "field": ".".join(str(loc) for loc in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
