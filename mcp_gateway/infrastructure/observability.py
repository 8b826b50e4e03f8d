"""Structured Logging — JSON formatter, setup, and per-request access logging.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (request_id, service_name, operation_name, error_code, ...) surfaced when present
    - JSON format in production, human-readable in development
    - Every HTTP response carries an x-request-id header (incoming one echoed, else generated)

Design Decisions:
    - JSONFormatter over third-party libs: zero dependencies, full control
    - setup_logging runs in the lifespan and is idempotent (replaces its own handler)
    - Request id stored on request.state so routes and error handlers share it
"""

import logging
import json
import time
from datetime import datetime, timezone
from uuid import uuid4

from fastapi import Request

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "x-request-id"
_HANDLER_MARK = "_mcp_gateway_handler"

_EXTRA_KEYS = (
    "request_id", "service_name", "operation_name", "error_code",
    "execution_time_ms", "status_code", "method", "path", "client", "caller",
)


class JSONFormatter(logging.Formatter):
    """One JSON object per line; known extras lifted to top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update({
            key: record.__dict__[key]
            for key in _EXTRA_KEYS
            if record.__dict__.get(key) is not None
        })
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Install the gateway's root handler, replacing one installed earlier."""
    for existing in [h for h in logging.root.handlers if getattr(h, _HANDLER_MARK, False)]:
        logging.root.removeHandler(existing)
    handler = logging.StreamHandler()
    setattr(handler, _HANDLER_MARK, True)
    handler.setFormatter(
        JSONFormatter() if fmt == "json"
        else logging.Formatter("%(asctime)s %(levelname)-8s [%(name)s] %(message)s")
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))


def get_request_id(request: Request) -> str:
    """Request id assigned by request_context_middleware (header value as fallback)."""
    request_id = getattr(request.state, "request_id", None)
    return request_id or request.headers.get(REQUEST_ID_HEADER) or "unknown"


async def request_context_middleware(request: Request, call_next):
    """Assign/propagate x-request-id and log one access line per request."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
    request.state.request_id = request_id
    started = time.perf_counter()
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    logger.info(
        f"{request.method} {request.url.path} {response.status_code}",
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "execution_time_ms": round((time.perf_counter() - started) * 1000, 3),
            "client": request.client.host if request.client else None,
        },
    )
    return response
