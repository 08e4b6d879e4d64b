"""Pydantic models for the people and rooms a booking draws on."""

from __future__ import annotations

from datetime import time
from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field, field_validator, model_validator

from .booking import Booking, validate_timezone


class WorkingHours(BaseModel):
    """Local time-of-day window. ``end <= start`` wraps past midnight."""

    start: time = time(9, 0)
    end: time = time(17, 0)

    @model_validator(mode="after")
    def _check_span(self) -> "WorkingHours":
        if self.start == self.end:
            raise ValueError("Working hours must not start and end at the same time")
        return self

    @property
    def wraps_midnight(self) -> bool:
        return self.end < self.start


class Member(BaseModel):
    """A schedulable person. Only used for availability, not conflict checks."""

    id: str
    name: str = ""
    timezone: str = "UTC"
    working_hours: WorkingHours = WorkingHours()
    working_days: set[int] = {1, 2, 3, 4, 5}  # 0=Sunday ... 6=Saturday

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, v: str) -> str:
        return validate_timezone(v)

    @field_validator("working_days")
    @classmethod
    def _check_days(cls, v: set[int]) -> set[int]:
        for day in v:
            if not 0 <= day <= 6:
                raise ValueError(f"working_days entries must be 0-6, got {day}")
        return v

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


class Room(BaseModel):
    id: str
    name: str = ""
    capacity: int = Field(ge=0)
    location: str = ""
    amenities: set[str] = set()
    active: bool = True  # False while out of service
    bookings: list[Booking] = []

    @field_validator("amenities")
    @classmethod
    def _normalize_amenities(cls, v: set[str]) -> set[str]:
        return {a.strip().lower() for a in v if a.strip()}
