"""Gateway Schemas — request bodies for the gateway's management endpoints.

Invariants:
    - strategy must be one of LoadBalancingStrategy's values
"""

from pydantic import BaseModel

from mcp_gateway.core.domain_types import LoadBalancingStrategy


class LoadBalancerUpdate(BaseModel):
    """Switch the shared balancer policy."""
    strategy: LoadBalancingStrategy
