"""Registry Stats — pure aggregation over a registry snapshot.

Invariants:
    - offline_services == total_services - online_services
    - total_operations sums operation counts across descriptors
    - Never raises — an empty snapshot yields all zeros
"""

from mcp_gateway.core.domain_types import ServiceDescriptor, ServiceStatus


def compute_registry_stats(
    descriptors: dict[str, ServiceDescriptor],
    statuses: dict[str, ServiceStatus],
) -> dict:
    """Compute aggregate counts. Pure, no IO."""
    total = len(descriptors)
    online = sum(1 for name in descriptors if _is_online(statuses.get(name)))
    return {
        "totalServices": total,
        "onlineServices": online,
        "offlineServices": total - online,
        "totalOperations": sum(len(d.operations) for d in descriptors.values()),
    }


def _is_online(status: ServiceStatus | None) -> bool:
    return status is not None and status.online
