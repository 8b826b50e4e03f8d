"""Bazi Schemas — Pydantic models for the built-in bazi service's operation params.

Invariants:
    - birthDate is an ISO-8601 date or datetime, not in the future, not before 1900-01-01
    - gender ∈ {male, female}; calendarType must be "solar" (lunar input is rejected
      with a hint to convert first)
    - Unknown fields are allowed (forward-compatible clients)

Design Decisions:
    - camelCase aliases keep the wire contract while Python code uses snake_case
    - Same models validate at the HTTP boundary and inside the backend
"""

from datetime import date, datetime, timezone as tz
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

_MIN_BIRTH = datetime(1900, 1, 1)


class BaziParams(BaseModel):
    """One person's birth data."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    birth_date: datetime = Field(alias="birthDate")
    gender: Literal["male", "female"]
    calendar_type: Literal["solar"] = Field(alias="calendarType")
    timezone: str | None = None

    @field_validator("birth_date")
    @classmethod
    def check_birth_range(cls, v: datetime) -> datetime:
        naive = v.astimezone(tz.utc).replace(tzinfo=None) if v.tzinfo else v
        if naive > datetime.now(tz.utc).replace(tzinfo=None):
            raise ValueError("birthDate cannot be in the future")
        if naive < _MIN_BIRTH:
            raise ValueError("birthDate must be on or after 1900-01-01")
        return v

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v: str | None) -> str | None:
        if v is None:
            return v
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown timezone: {v}")
        return v

    @field_validator("calendar_type", mode="before")
    @classmethod
    def reject_lunar(cls, v: object) -> object:
        if v == "lunar":
            raise ValueError("lunar calendar input is not supported; send the solar date")
        return v


class FortuneParams(BaziParams):
    target_type: Literal["today", "month", "year"] = Field("today", alias="targetType")
    target_date: date | None = Field(None, alias="targetDate")


class CompatibilityParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    person1: BaziParams
    person2: BaziParams
    analysis_type: Literal["love", "business", "friendship"] = Field(
        "love", alias="analysisType",
    )
