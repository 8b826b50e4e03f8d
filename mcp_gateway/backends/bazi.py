"""Bazi Service — built-in backend computing four-pillar birth charts.

Invariants:
    - Every operation validates its params with the schemas in schemas/bazi.py
    - Results are deterministic for a given input (no randomness in scores)
    - Birth datetimes with an offset are converted to `timezone` when one is given;
      naive datetimes are read as local wall-clock time

Design Decisions:
    - Calendar arithmetic lives in bazi_calendar.py (pure); this module only shapes results
"""

from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo

from mcp_gateway.backends import bazi_calendar as cal
from mcp_gateway.backends.base import BaseBackend
from mcp_gateway.core.domain_types import ServiceDescriptor
from mcp_gateway.schemas.bazi import BaziParams, CompatibilityParams, FortuneParams

BAZI_DESCRIPTOR = ServiceDescriptor(
    name="bazi",
    version="1.0.0",
    description="Four-pillar (bazi) birth chart calculation service",
    operations=("getBaziDetail", "getBaziFortune", "getCompatibility", "getLuckyInfo"),
)

_RELATION_SCORES = {"harmony": 80, "supportive": 90, "restrictive": 60}

_TARGET_INDICES = {
    "year": cal.year_indices,
    "month": cal.month_indices,
    "today": cal.day_indices,
}

_SELF_CHECK_PARAMS = {
    "birthDate": "1990-01-01T08:00:00",
    "gender": "male",
    "calendarType": "solar",
}


class BaziBackend(BaseBackend):
    """Four operations over one birth chart computation."""

    def __init__(self, descriptor: ServiceDescriptor = BAZI_DESCRIPTOR):
        super().__init__(descriptor)
        self._operations = {
            "getBaziDetail": self.get_bazi_detail,
            "getBaziFortune": self.get_bazi_fortune,
            "getCompatibility": self.get_compatibility,
            "getLuckyInfo": self.get_lucky_info,
        }

    async def get_bazi_detail(self, params: dict[str, Any]) -> dict:
        return build_chart(BaziParams.model_validate(params))

    async def get_bazi_fortune(self, params: dict[str, Any]) -> dict:
        p = FortuneParams.model_validate(params)
        chart = build_chart(p)
        target = p.target_date or date.today()
        target_pillar = cal.pillar(*_TARGET_INDICES[p.target_type](target))
        master = chart["dayMaster"]["element"]
        return {
            **chart,
            "fortuneTarget": p.target_type,
            "targetDate": target.isoformat(),
            "targetPillar": target_pillar,
            "relation": cal.relation(target_pillar["element"], master),
            "outlook": _outlook(target_pillar["element"], master),
        }

    async def get_compatibility(self, params: dict[str, Any]) -> dict:
        p = CompatibilityParams.model_validate(params)
        a, b = build_chart(p.person1), build_chart(p.person2)
        element_score = cal.element_compatibility(
            a["elements"]["distribution"], b["elements"]["distribution"],
        )
        rel = cal.relation(a["dayMaster"]["element"], b["dayMaster"]["element"])
        overall = round(element_score * 0.6 + _RELATION_SCORES[rel] * 0.4)
        return {
            "persons": [
                {**a["basic"], "bazi": a["bazi"]},
                {**b["basic"], "bazi": b["bazi"]},
            ],
            "analysis": {
                "type": p.analysis_type,
                "overallScore": overall,
                "aspects": {
                    "element": element_score,
                    "dayMaster": _RELATION_SCORES[rel],
                },
                "relation": rel,
                "conclusion": _conclusion(overall),
            },
        }

    async def get_lucky_info(self, params: dict[str, Any]) -> dict:
        chart = build_chart(BaziParams.model_validate(params))
        balance = chart["elements"]["balance"]
        return {
            "basic": chart["basic"],
            "elements": chart["elements"],
            "lucky": {
                **chart["suggestions"],
                "today": {
                    "luckyTime": _hours_for(balance["weak"]),
                    "unluckyTime": _hours_for(balance["strong"]),
                },
            },
        }

    async def self_check(self) -> None:
        build_chart(BaziParams.model_validate(_SELF_CHECK_PARAMS))


def build_chart(p: BaziParams) -> dict:
    moment = _wall_clock(p)
    pillars = cal.four_pillars(moment)
    distribution = cal.element_distribution(pillars)
    balance = cal.element_balance(distribution)
    return {
        "basic": {
            "gender": p.gender,
            "birthDate": moment.isoformat(),
            "calendarType": p.calendar_type,
            "solarYear": cal.solar_year(moment.date()),
        },
        "bazi": pillars,
        "dayMaster": {
            "stem": pillars["day"]["heavenly"],
            "element": pillars["day"]["element"],
        },
        "elements": {"distribution": distribution, "balance": balance},
        "suggestions": {
            "favorable": cal.traits_for(balance["weak"]),
            "unfavorable": cal.traits_for(balance["strong"]),
        },
    }


def _wall_clock(p: BaziParams) -> datetime:
    if p.timezone and p.birth_date.tzinfo is not None:
        return p.birth_date.astimezone(ZoneInfo(p.timezone))
    return p.birth_date


def _hours_for(elements: list[str]) -> list[str]:
    return [
        cal.hour_range(b)
        for b in range(len(cal.BRANCHES))
        if cal.BRANCH_ELEMENTS[b] in elements
    ]


def _outlook(period: str, master: str) -> str:
    if period == master:
        return "steady: peers and allies strengthen the day master"
    if cal.generates(period, master):
        return "favorable: the period nourishes the day master"
    if cal.generates(master, period):
        return "expressive: effort flows into output and creation"
    if cal.controls(period, master):
        return "challenging: pressure from outside, act cautiously"
    return "prosperous: opportunities that reward effort"


def _conclusion(score: int) -> str:
    if score >= 85:
        return "excellent match"
    if score >= 75:
        return "good match with potential"
    return "average match, needs effort"
