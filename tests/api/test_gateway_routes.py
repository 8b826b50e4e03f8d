"""Gateway routes — introspection, execution and error envelopes over HTTP.

Tests cover:
    - Liveness and info endpoints
    - Built-in bazi service reachable through POST /api/mcp/{server}/{tool}
    - HTTP status follows the error kind; every body carries meta.requestId
    - Boundary validation rejects bad params without taking the service offline
    - Load balancer policy read/switch
"""

from mcp_gateway.main import create_app
from mcp_gateway.services.service_registry import ServiceRegistry
from tests.api.app_factory import make_client, make_settings
from tests.services.fake_handles import FakeHandle

_PERSON = {"birthDate": "2000-01-01T08:00:00", "gender": "male", "calendarType": "solar"}


async def test_health_is_open_and_tagged_with_request_id(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["success"] is True
    body = response.json()["data"]
    assert body["status"] == "healthy"
    assert body["version"] == "1.0.0"
    assert body["uptime"] >= 0
    assert response.headers["x-request-id"]


async def test_api_info_lists_endpoints(client):
    body = (await client.get("/api")).json()
    assert body["success"] is True
    body = body["data"]
    assert body["endpoints"]["execute"] == "POST /api/mcp/{server}/{tool}"


async def test_servers_lists_builtin_bazi(client):
    body = (await client.get("/api/mcp/servers")).json()
    assert body["success"] is True
    assert body["data"]["servers"] == ["bazi"]
    assert body["data"]["available"] == ["bazi"]


async def test_tools_describe_service(client):
    body = (await client.get("/api/mcp/servers/bazi/tools")).json()
    assert "getBaziDetail" in body["data"]["operations"]
    assert body["data"]["version"] == "1.0.0"


async def test_tools_of_unknown_service_is_404(client):
    response = await client.get(
        "/api/mcp/servers/missing/tools", headers={"x-request-id": "req-42"},
    )
    assert response.status_code == 404
    body = response.json()
    assert body["error"]["code"] == "SERVICE_NOT_FOUND"
    assert body["meta"]["requestId"] == "req-42"


async def test_status_snapshot_and_aggregate(client):
    body = (await client.get("/api/mcp/status")).json()
    assert body["data"]["stats"]["totalServices"] == 1
    assert body["data"]["services"][0]["status"]["online"] is True
    one = (await client.get("/api/mcp/servers/bazi/status")).json()
    assert one["data"]["status"]["load"]["activeRequests"] == 0


async def test_status_of_unknown_service_is_404(client):
    response = await client.get("/api/mcp/servers/missing/status")
    assert response.status_code == 404


async def test_execute_bazi_detail(client):
    response = await client.post(
        "/api/mcp/bazi/getBaziDetail", json=_PERSON,
        headers={"x-request-id": "req-1"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["data"]["bazi"]["day"]["heavenly"] == "戊"
    assert body["meta"]["requestId"] == "req-1"
    assert body["meta"]["serviceName"] == "bazi"
    assert body["meta"]["operationName"] == "getBaziDetail"


async def test_invalid_params_rejected_before_dispatch(client):
    response = await client.post(
        "/api/mcp/bazi/getBaziDetail", json={**_PERSON, "gender": "x"},
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
    status = (await client.get("/api/mcp/servers/bazi/status")).json()
    assert status["data"]["status"]["online"] is True


async def test_non_object_body_is_validation_error(client):
    response = await client.post("/api/mcp/bazi/getBaziDetail", json=[1, 2])
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_unknown_service_lists_available(client):
    response = await client.post("/api/mcp/missing/op", json={})
    assert response.status_code == 404
    assert response.json()["error"]["details"] == {"availableServices": ["bazi"]}


async def test_unlisted_operation_rejected_without_taking_service_offline(client):
    first = await client.post("/api/mcp/bazi/nope", json={})
    assert first.status_code == 400
    body = first.json()
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert body["error"]["details"][0]["field"] == "operation"
    assert body["meta"]["operationName"] == "nope"
    second = await client.post("/api/mcp/bazi/getBaziDetail", json=_PERSON)
    assert second.status_code == 200
    status = (await client.get("/api/mcp/servers/bazi/status")).json()
    assert status["data"]["status"]["load"]["totalRequests"] == 1


async def test_recovery_after_probe():
    registry = ServiceRegistry()
    handle = FakeHandle("svc", error=RuntimeError("down"))
    registry.register("svc", handle)
    app = create_app(make_settings(), registry=registry)
    async with make_client(app) as client:
        assert (await client.post("/api/mcp/svc/echo", json={})).status_code == 500
        assert (await client.post("/api/mcp/svc/echo", json={})).status_code == 503
        handle.error = None
        await registry.probe_all()
        response = await client.post("/api/mcp/svc/echo", json={"a": 1})
    assert response.status_code == 200
    assert response.json()["data"] == {"echo": {"a": 1}}


async def test_debug_mode_exposes_stack():
    registry = ServiceRegistry()
    registry.register("svc", FakeHandle("svc", error=ValueError("bad")))
    app = create_app(make_settings(debug=True), registry=registry)
    async with make_client(app) as client:
        body = (await client.post("/api/mcp/svc/echo", json={})).json()
    assert body["error"]["details"]["type"] == "ValueError"


async def test_pooled_bazi_executes():
    app = create_app(make_settings(bazi_instances=3))
    async with make_client(app) as client:
        for _ in range(3):
            response = await client.post("/api/mcp/bazi/getLuckyInfo", json=_PERSON)
            assert response.status_code == 200
        pool = app.state.registry.get("bazi")
    assert [i.current_status().load.total_requests for i in pool.instances] == [1, 1, 1]


async def test_load_balancer_read_and_switch(client):
    body = (await client.get("/api/mcp/load-balancer")).json()
    assert body["data"] == {"strategy": "round_robin", "roundRobinIndex": 0}
    response = await client.put(
        "/api/mcp/load-balancer", json={"strategy": "least_connections"},
    )
    assert response.status_code == 200
    assert response.json()["data"]["strategy"] == "least_connections"


async def test_load_balancer_rejects_unknown_strategy(client):
    response = await client.put("/api/mcp/load-balancer", json={"strategy": "fastest"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_unknown_route_lists_endpoints(client):
    response = await client.get("/nope")
    assert response.status_code == 404
    body = response.json()
    assert body["error"]["code"] == "NOT_FOUND"
    assert "health" in body["error"]["details"]["availableEndpoints"]
    assert body["meta"]["requestId"]


async def test_lifespan_runs_probe_loop():
    app = create_app(make_settings(health_check_interval_seconds=60))
    async with app.router.lifespan_context(app):
        assert app.state.registry.health_check_running is True
    assert app.state.registry.health_check_running is False
