"""Error Hierarchy — typed, categorized exceptions for every gateway failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Caller errors (400-level) are not retried; availability errors (503) may be retried later
    - to_response() produces the failure envelope: {success, error, meta}
    - ProbeFailure never reaches a caller — it only updates cached status

Design Decisions:
    - Single hierarchy with GatewayError base: FastAPI global handler catches all (ADR: uniform error shape)
    - ErrorContext as dataclass: request correlation travels with the error, not the logger
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone

from mcp_gateway.core.domain_types import ErrorCode


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    RESOURCE_NOT_FOUND = "resource_not_found"
    UNAVAILABLE = "unavailable"
    EXECUTION = "execution"
    RATE_LIMIT = "rate_limit"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Request correlation attached to an error."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    request_id: str | None = None
    service_name: str | None = None
    operation_name: str | None = None
    execution_time_ms: float | None = None


class GatewayError(Exception):
    """Base exception for all gateway errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
        details: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status
        self.details = details

    def to_response(self) -> dict:
        """Convert to the standard failure envelope."""
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            error["details"] = self.details
        meta: dict[str, Any] = {
            "requestId": self.context.request_id or "unknown",
            "timestamp": self.context.timestamp.isoformat(),
        }
        if self.context.service_name is not None:
            meta["serviceName"] = self.context.service_name
        if self.context.operation_name is not None:
            meta["operationName"] = self.context.operation_name
        if self.context.execution_time_ms is not None:
            meta["executionTimeMs"] = self.context.execution_time_ms
        return {"success": False, "error": error, "meta": meta}


# ─── Caller-visible dispatch errors ─────────────────────────────

class InvalidRequestError(GatewayError):
    """Service or operation name missing."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, ErrorCode.INVALID_REQUEST.value, ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class ServiceNotFoundError(GatewayError):
    """Requested service name is not registered."""
    def __init__(
        self, service_name: str, available: list[str],
        context: ErrorContext | None = None,
    ):
        listed = ", ".join(available) if available else "none"
        super().__init__(
            f"Service '{service_name}' not found. Available services: {listed}",
            ErrorCode.SERVICE_NOT_FOUND.value, ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
            details={"availableServices": list(available)},
        )
        self.service_name = service_name
        self.available = list(available)


class ServiceOfflineError(GatewayError):
    """Service is registered but its cached status is offline."""
    def __init__(
        self, service_name: str, cached_error: str | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Service '{service_name}' is currently unavailable",
            ErrorCode.SERVICE_OFFLINE.value, ErrorCategory.UNAVAILABLE,
            ErrorSeverity.WARNING, context, 503,
            details=cached_error,
        )
        self.service_name = service_name
        self.cached_error = cached_error


class NoAvailableInstanceError(GatewayError):
    """Pool exists but none of its instances is online."""
    def __init__(self, message: str = "No online instance available", context: ErrorContext | None = None):
        super().__init__(
            message, ErrorCode.NO_AVAILABLE_INSTANCE.value, ErrorCategory.UNAVAILABLE,
            ErrorSeverity.WARNING, context, 503,
        )


class ExecutionError(GatewayError):
    """Backend execution raised."""
    def __init__(
        self, message: str, context: ErrorContext | None = None,
        details: Any = None,
    ):
        super().__init__(
            message, ErrorCode.EXECUTION_ERROR.value, ErrorCategory.EXECUTION,
            ErrorSeverity.ERROR, context, 500, details=details,
        )


class UnknownOperationError(GatewayError):
    """Backend does not implement the requested operation."""
    def __init__(self, service_name: str, operation_name: str):
        super().__init__(
            f"Operation '{operation_name}' does not exist in service '{service_name}'",
            "UNKNOWN_OPERATION", ErrorCategory.EXECUTION,
            ErrorSeverity.ERROR, None, 500,
        )


class ProbeFailure(GatewayError):
    """Health probe raised. Internal only — never surfaced to callers."""
    def __init__(self, service_name: str, reason: str):
        super().__init__(
            f"Health probe for '{service_name}' failed: {reason}",
            "PROBE_FAILURE", ErrorCategory.INTERNAL,
            ErrorSeverity.WARNING, ErrorContext(service_name=service_name), 500,
        )
        self.reason = reason


# ─── Transport-boundary errors ──────────────────────────────────

class RequestValidationFailed(GatewayError):
    """Operation params failed schema validation."""
    def __init__(self, errors: list[dict], context: ErrorContext | None = None):
        super().__init__(
            "Request parameter validation failed",
            "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400, details=errors,
        )


class AuthenticationError(GatewayError):
    """API key or secret missing or wrong."""
    def __init__(self, code: str = "INVALID_API_KEY", context: ErrorContext | None = None):
        credential = "API secret" if code == "INVALID_API_SECRET" else "API key"
        super().__init__(
            f"{credential} is invalid or missing",
            code, ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class RateLimitExceededError(GatewayError):
    """Client exceeded the request quota for the current window."""
    def __init__(self, retry_after_ms: int, context: ErrorContext | None = None):
        super().__init__(
            "Too many requests, please retry later",
            "RATE_LIMIT_EXCEEDED", ErrorCategory.RATE_LIMIT,
            ErrorSeverity.WARNING, context, 429,
            details={"retryAfterMs": retry_after_ms},
        )
        self.retry_after_ms = retry_after_ms
