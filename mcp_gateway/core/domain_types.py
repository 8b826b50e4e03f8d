"""Domain Types — descriptors, statuses and policy enums shared by every layer.

Invariants:
    - ServiceDescriptor and ServiceStatus are frozen — transitions build new values
    - ServiceLoad counters are never negative
    - All timestamps are timezone-aware UTC
    - All valid policies encoded as Enums — no raw string matching

Design Decisions:
    - Frozen dataclasses over pydantic models: core stays free of validation IO (ADR: pure core)
    - str Enums: serialize to JSON without custom encoders
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LoadBalancingStrategy(str, Enum):
    """Instance selection policies for a pool."""
    ROUND_ROBIN = "round_robin"
    RANDOM = "random"
    LEAST_CONNECTIONS = "least_connections"


class ErrorCode(str, Enum):
    """Caller-visible dispatch failure codes."""
    INVALID_REQUEST = "INVALID_REQUEST"
    SERVICE_NOT_FOUND = "SERVICE_NOT_FOUND"
    SERVICE_OFFLINE = "SERVICE_OFFLINE"
    NO_AVAILABLE_INSTANCE = "NO_AVAILABLE_INSTANCE"
    EXECUTION_ERROR = "EXECUTION_ERROR"


@dataclass(frozen=True)
class ServiceDescriptor:
    """Identity of one registered service. Owned by the registrant."""
    name: str
    version: str
    description: str
    operations: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "operations": list(self.operations),
        }


@dataclass(frozen=True)
class ServiceLoad:
    active_requests: int = 0
    total_requests: int = 0


@dataclass(frozen=True)
class ServiceStatus:
    """Cached belief about one service's health, load and latency."""
    online: bool = True
    last_update: datetime = field(default_factory=utc_now)
    response_time_ms: float | None = None
    error: str | None = None
    load: ServiceLoad = field(default_factory=ServiceLoad)

    def to_dict(self) -> dict:
        return {
            "online": self.online,
            "lastUpdate": self.last_update.isoformat(),
            "responseTimeMs": self.response_time_ms,
            "error": self.error,
            "load": {
                "activeRequests": self.load.active_requests,
                "totalRequests": self.load.total_requests,
            },
        }
