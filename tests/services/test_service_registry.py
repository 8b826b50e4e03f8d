"""Service Registry — registration, execution bookkeeping and probing.

Tests cover:
    - Handles and statuses keep identical key sets across register/unregister
    - Counters are released on success and on failure
    - One failing call marks the service offline; offline services are not called
    - Transitions for a re-registered name are dropped
    - probe_all is settle-all and brings services back online
"""

import asyncio
import logging

import pytest

from mcp_gateway.core.errors import ServiceNotFoundError, ServiceOfflineError
from mcp_gateway.core.status_policy import PROBE_FAILED_MESSAGE
from tests.services.fake_handles import FakeHandle


def _status_names(registry):
    return {entry["name"] for entry in registry.all_statuses()}


def test_key_sets_match_after_register_and_unregister(registry):
    for name in ("a", "b", "c"):
        registry.register(name, FakeHandle(name))
    registry.unregister("b")
    registry.register("a", FakeHandle("a"))
    registry.unregister("missing")
    assert set(registry.list_names()) == {"a", "c"}
    assert _status_names(registry) == {"a", "c"}
    assert registry.status_of("b") is None


def test_get_unknown_raises_with_available_names(registry):
    registry.register("svc-a", FakeHandle("svc-a"))
    with pytest.raises(ServiceNotFoundError) as exc_info:
        registry.get("missing")
    assert exc_info.value.available == ["svc-a"]


def test_overwrite_logs_warning_and_replaces_status(registry, caplog):
    registry.register("svc", FakeHandle(online=False))
    assert registry.status_of("svc").online is False
    with caplog.at_level(logging.WARNING):
        registry.register("svc", FakeHandle())
    assert "already registered" in caplog.text
    assert registry.status_of("svc").online is True


def test_list_available_filters_offline(registry):
    registry.register("up", FakeHandle("up"))
    registry.register("down", FakeHandle("down", online=False))
    assert registry.list_available() == ["up"]


def test_describe_returns_descriptor(registry):
    registry.register("svc", FakeHandle(operations=("a", "b")))
    assert registry.describe("svc").operations == ("a", "b")


def test_stats_counts_operations(registry):
    registry.register("a", FakeHandle("a", operations=("x", "y")))
    registry.register("b", FakeHandle("b", online=False))
    assert registry.stats() == {
        "totalServices": 2,
        "onlineServices": 1,
        "offlineServices": 1,
        "totalOperations": 3,
    }


async def test_execute_success_records_latency_and_releases_counter(registry):
    registry.register("svc", FakeHandle(result={"ok": True}))
    result = await registry.execute_tool("svc", "echo", {"x": 1})
    assert result == {"ok": True}
    status = registry.status_of("svc")
    assert status.online is True
    assert status.response_time_ms is not None
    assert status.load.active_requests == 0
    assert status.load.total_requests == 1


async def test_execute_failure_marks_offline_and_releases_counter(registry):
    registry.register("svc", FakeHandle(error=RuntimeError("backend exploded")))
    with pytest.raises(RuntimeError):
        await registry.execute_tool("svc", "echo", {})
    status = registry.status_of("svc")
    assert status.online is False
    assert status.error == "backend exploded"
    assert status.load.active_requests == 0
    assert status.load.total_requests == 1


async def test_offline_service_is_not_called(registry):
    handle = FakeHandle(online=False)
    registry.register("svc", handle)
    with pytest.raises(ServiceOfflineError):
        await registry.execute_tool("svc", "echo", {})
    assert handle.calls == []


async def test_active_requests_visible_while_in_flight(registry):
    handle = FakeHandle()
    handle.gate = asyncio.Event()
    registry.register("svc", handle)
    task = asyncio.create_task(registry.execute_tool("svc", "echo", {}))
    await asyncio.sleep(0)
    assert registry.status_of("svc").load.active_requests == 1
    handle.gate.set()
    await task
    assert registry.status_of("svc").load.active_requests == 0


async def test_cancelled_call_releases_counter_without_going_offline(registry):
    handle = FakeHandle()
    handle.gate = asyncio.Event()
    registry.register("svc", handle)
    task = asyncio.create_task(registry.execute_tool("svc", "echo", {}))
    await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    status = registry.status_of("svc")
    assert status.load.active_requests == 0
    assert status.online is True


async def test_failure_after_reregistration_is_dropped(registry):
    old = FakeHandle(error=RuntimeError("late failure"))
    old.gate = asyncio.Event()
    registry.register("svc", old)
    task = asyncio.create_task(registry.execute_tool("svc", "echo", {}))
    await asyncio.sleep(0)
    registry.register("svc", FakeHandle())
    old.gate.set()
    with pytest.raises(RuntimeError):
        await task
    status = registry.status_of("svc")
    assert status.online is True
    assert status.load.total_requests == 0


async def test_probe_all_is_settle_all(registry):
    registry.register("boom", FakeHandle("boom", probe_error=ConnectionError("refused")))
    registry.register("sick", FakeHandle("sick", healthy=False))
    registry.register("fine", FakeHandle("fine"))
    outcomes = await registry.probe_all()
    assert outcomes == {"boom": False, "sick": False, "fine": True}
    assert registry.status_of("boom").error == "refused"
    assert registry.status_of("sick").error == PROBE_FAILED_MESSAGE
    assert registry.status_of("fine").online is True


async def test_healthy_probe_restores_failed_service(registry):
    handle = FakeHandle(error=RuntimeError("x"))
    registry.register("svc", handle)
    with pytest.raises(RuntimeError):
        await registry.execute_tool("svc", "echo", {})
    handle.error = None
    await registry.probe_all()
    assert registry.status_of("svc").online is True
    assert await registry.execute_tool("svc", "echo", {"a": 1}) == {"echo": {"a": 1}}


async def test_probe_transition_logged(registry, caplog):
    handle = FakeHandle(healthy=False)
    registry.register("svc", handle)
    with caplog.at_level(logging.INFO):
        await registry.probe_all()
        handle.healthy = True
        await registry.probe_all()
    assert "went offline" in caplog.text
    assert "back online" in caplog.text


async def test_burst_of_failing_calls_never_leaks_counters(registry):
    handle = FakeHandle(error=RuntimeError("overloaded"))
    handle.gate = asyncio.Event()
    registry.register("svc", handle)
    tasks = [
        asyncio.create_task(registry.execute_tool("svc", "echo", {"n": n}))
        for n in range(20)
    ]
    await asyncio.sleep(0)
    assert registry.status_of("svc").load.active_requests == 20
    handle.gate.set()
    results = await asyncio.gather(*tasks, return_exceptions=True)
    assert all(isinstance(r, RuntimeError) for r in results)
    status = registry.status_of("svc")
    assert status.load.active_requests == 0
    assert status.load.total_requests == 20
    assert status.online is False
    assert status.error == "overloaded"


async def test_start_and_stop_health_check(registry):
    registry.register("svc", FakeHandle())
    await registry.start_health_check(0.01)
    assert registry.health_check_running is True
    await asyncio.sleep(0.05)
    await registry.stop_health_check()
    assert registry.health_check_running is False
