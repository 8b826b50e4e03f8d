"""Bootstrap — explicit registration of the built-in services.

Invariants:
    - Every built-in service is registered here by name (no auto-discovery)
    - bazi_instances == 1 → one BaziBackend; > 1 → a PooledService of that many
      instances behind the shared LoadBalancer, registered under the same name
    - Resulting registry stats are logged once
"""

import logging

from mcp_gateway.backends.bazi import BAZI_DESCRIPTOR, BaziBackend
from mcp_gateway.config import Settings
from mcp_gateway.core.handle_protocols import ServiceHandle
from mcp_gateway.services.load_balancer import LoadBalancer
from mcp_gateway.services.service_pool import PooledService
from mcp_gateway.services.service_registry import ServiceRegistry

logger = logging.getLogger(__name__)


def register_builtin_services(
    registry: ServiceRegistry, settings: Settings, balancer: LoadBalancer,
) -> None:
    registry.register(BAZI_DESCRIPTOR.name, _build_bazi(settings, balancer))
    logger.info(f"Built-in services registered: {registry.stats()}")


def _build_bazi(settings: Settings, balancer: LoadBalancer) -> ServiceHandle:
    if settings.bazi_instances <= 1:
        return BaziBackend()
    logger.info(
        f"Pooling {settings.bazi_instances} bazi instances "
        f"({balancer.strategy.value})",
        extra={"service_name": BAZI_DESCRIPTOR.name},
    )
    return PooledService(
        BAZI_DESCRIPTOR,
        [BaziBackend() for _ in range(settings.bazi_instances)],
        balancer,
    )
