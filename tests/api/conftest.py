"""API test fixtures — isolated apps per test, driven through httpx ASGITransport.

Invariants:
    - Each test builds its own app (own registry, balancer and rate limiter)
    - Lifespan is not run: no background probe loop during route tests
"""

import pytest

from mcp_gateway.main import create_app
from tests.api.app_factory import make_client, make_settings


@pytest.fixture
def app():
    return create_app(make_settings())


@pytest.fixture
async def client(app):
    async with make_client(app) as ac:
        yield ac
