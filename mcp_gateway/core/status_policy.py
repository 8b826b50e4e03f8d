"""Status Policy — every transition of a cached ServiceStatus, as pure functions.

Invariants:
    - Functions never mutate their input; they return a new frozen ServiceStatus
    - Any single execution failure marks the service offline (fail-fast degradation)
    - A probe result is the only way back online after a failure
    - active_requests never goes below 0; total_requests never decreases
    - last_update refreshed by probes and by execution outcomes

Design Decisions:
    - One module owns the execution↔health coupling so the fail-fast policy can be
      made configurable later without touching the dispatch path (ADR: single seam)
    - Counter transitions live here too: the registry applies them under its lock
"""

from dataclasses import replace
from datetime import datetime

from mcp_gateway.core.domain_types import ServiceLoad, ServiceStatus, utc_now

PROBE_FAILED_MESSAGE = "health check failed"


def begin_request(status: ServiceStatus) -> ServiceStatus:
    """Count one more in-flight request."""
    load = ServiceLoad(
        active_requests=status.load.active_requests + 1,
        total_requests=status.load.total_requests + 1,
    )
    return replace(status, load=load)


def end_request(status: ServiceStatus) -> ServiceStatus:
    """Release one in-flight request slot."""
    load = replace(
        status.load, active_requests=max(0, status.load.active_requests - 1),
    )
    return replace(status, load=load)


def record_success(
    status: ServiceStatus, response_time_ms: float,
    now: datetime | None = None,
) -> ServiceStatus:
    """Execution returned — keep online, store latency."""
    return replace(
        status, response_time_ms=response_time_ms, last_update=now or utc_now(),
    )


def record_failure(
    status: ServiceStatus, message: str, now: datetime | None = None,
) -> ServiceStatus:
    """Execution raised — the whole service goes offline until the next healthy probe."""
    return replace(
        status, online=False, error=message or "execution failed",
        last_update=now or utc_now(),
    )


def record_probe(
    status: ServiceStatus, healthy: bool, now: datetime | None = None,
) -> ServiceStatus:
    """Probe returned a verdict."""
    return replace(
        status,
        online=healthy,
        error=None if healthy else PROBE_FAILED_MESSAGE,
        last_update=now or utc_now(),
    )


def record_probe_error(
    status: ServiceStatus, message: str, now: datetime | None = None,
) -> ServiceStatus:
    """Probe itself raised."""
    return replace(
        status, online=False, error=message or PROBE_FAILED_MESSAGE,
        last_update=now or utc_now(),
    )
