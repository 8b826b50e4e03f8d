"""Envelope Formatting — pure builders for the uniform success response.

Invariants:
    - Success envelope always carries success, data and the full meta block
    - Meta keys are camelCase (wire contract): requestId, timestamp, executionTimeMs,
      serviceName, operationName
    - Failure envelopes are produced by GatewayError.to_response() (core/errors.py)
"""

from datetime import datetime
from typing import Any

from mcp_gateway.core.domain_types import utc_now


def build_success_envelope(
    data: Any,
    *,
    request_id: str,
    execution_time_ms: float,
    service_name: str,
    operation_name: str,
    timestamp: datetime | None = None,
) -> dict:
    return {
        "success": True,
        "data": data,
        "meta": {
            "requestId": request_id,
            "timestamp": (timestamp or utc_now()).isoformat(),
            "executionTimeMs": execution_time_ms,
            "serviceName": service_name,
            "operationName": operation_name,
        },
    }


def build_data_envelope(data: Any) -> dict:
    """Envelope for introspection endpoints (no dispatch meta)."""
    return {"success": True, "data": data}


def elapsed_ms(started: float, finished: float) -> float:
    """perf_counter delta in milliseconds, rounded to microseconds."""
    return round((finished - started) * 1000, 3)
