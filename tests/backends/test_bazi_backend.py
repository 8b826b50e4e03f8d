"""Bazi Backend — operations through the ServiceHandle interface."""

import pytest
from pydantic import ValidationError

from mcp_gateway.backends.bazi import BAZI_DESCRIPTOR, BaziBackend
from mcp_gateway.core.errors import UnknownOperationError

_PERSON = {"birthDate": "2000-01-01T08:00:00", "gender": "male", "calendarType": "solar"}
_OTHER = {"birthDate": "1992-06-15T14:30:00", "gender": "female", "calendarType": "solar"}


@pytest.fixture
def backend():
    return BaziBackend()


def test_descriptor_lists_every_operation(backend):
    assert set(backend.descriptor.operations) == set(backend._operations)
    assert backend.descriptor is BAZI_DESCRIPTOR


async def test_bazi_detail(backend):
    result = await backend.execute("getBaziDetail", _PERSON)
    assert result["bazi"]["day"]["heavenly"] == "戊"
    assert result["dayMaster"] == {"stem": "戊", "element": "earth"}
    assert result["basic"]["solarYear"] == 1999
    assert result["suggestions"]["favorable"]["elements"] == ["metal"]


async def test_fortune_for_given_day(backend):
    result = await backend.execute(
        "getBaziFortune",
        {**_PERSON, "targetType": "today", "targetDate": "2000-01-01"},
    )
    assert result["targetPillar"]["heavenly"] == "戊"
    assert result["relation"] == "harmony"
    assert result["outlook"].startswith("steady")


async def test_compatibility_is_deterministic(backend):
    params = {"person1": _PERSON, "person2": _OTHER}
    first = await backend.execute("getCompatibility", params)
    second = await backend.execute("getCompatibility", params)
    assert first == second
    assert 0 <= first["analysis"]["overallScore"] <= 100
    assert first["analysis"]["type"] == "love"


async def test_lucky_info_hours(backend):
    result = await backend.execute("getLuckyInfo", _PERSON)
    today = result["lucky"]["today"]
    # metal branches are shen and you
    assert today["luckyTime"] == ["15:00-17:00", "17:00-19:00"]
    assert today["unluckyTime"]


async def test_lunar_input_rejected(backend):
    with pytest.raises(ValidationError):
        await backend.execute("getBaziDetail", {**_PERSON, "calendarType": "lunar"})


async def test_unknown_operation_raises(backend):
    with pytest.raises(UnknownOperationError):
        await backend.execute("getWeather", {})


async def test_counters_return_to_idle(backend):
    await backend.execute("getBaziDetail", _PERSON)
    with pytest.raises(UnknownOperationError):
        await backend.execute("nope", {})
    load = backend.current_status().load
    assert load.active_requests == 0
    assert load.total_requests == 2


async def test_probe_health_runs_self_check(backend):
    assert await backend.probe_health() is True


async def test_probe_health_reports_failing_self_check(backend, monkeypatch):
    async def broken():
        raise RuntimeError("calendar tables corrupt")

    monkeypatch.setattr(backend, "self_check", broken)
    assert await backend.probe_health() is False
