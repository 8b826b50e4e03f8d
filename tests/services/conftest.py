"""Service test fixtures — a fresh registry per test.

Invariants:
    - Every test gets its own ServiceRegistry (no shared state between tests)
"""

import pytest

from mcp_gateway.services.service_registry import ServiceRegistry


@pytest.fixture
def registry():
    return ServiceRegistry()
