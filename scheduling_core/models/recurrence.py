"""Pydantic models for recurrence rules.

The end condition is a tagged union discriminated on ``kind`` so a rule can
only ever carry one of: no end, an end date, or an occurrence count.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, field_validator, model_validator


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class MonthlyOverflow(str, Enum):
    """What to do when the target day does not exist in a month."""

    CLAMP = "clamp"  # move to the last day of the month
    SKIP = "skip"    # drop that period entirely


class NoEnd(BaseModel):
    kind: Literal["none"] = "none"


class EndsOn(BaseModel):
    kind: Literal["date"] = "date"
    until: date  # inclusive


class EndsAfter(BaseModel):
    kind: Literal["count"] = "count"
    count: int = Field(ge=1)


EndCondition = Annotated[Union[NoEnd, EndsOn, EndsAfter], Field(discriminator="kind")]


def weekday_index(day: date) -> int:
    """Weekday with 0=Sunday ... 6=Saturday."""
    return day.isoweekday() % 7


class RecurrenceRule(BaseModel):
    """How a booking repeats.

    ``days_of_week`` only applies to weekly rules and ``day_of_month`` only to
    monthly ones. Exceptions are matched by calendar date.
    """

    frequency: Frequency
    interval: int = Field(default=1, ge=1)
    days_of_week: list[int] = []
    day_of_month: int | None = Field(default=None, ge=1, le=31)
    end: EndCondition = NoEnd()
    exceptions: list[date] = []

    @model_validator(mode="before")
    @classmethod
    def _legacy_end_fields(cls, data):
        """Accept ``occurrences`` / ``end_date`` as shorthand for ``end``."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        occurrences = data.pop("occurrences", None)
        end_date = data.pop("end_date", None)
        if occurrences is None and end_date is None:
            return data
        if "end" in data or (occurrences is not None and end_date is not None):
            raise ValueError(
                "A recurrence rule takes exactly one end condition "
                "(end, occurrences or end_date)"
            )
        if occurrences is not None:
            data["end"] = {"kind": "count", "count": occurrences}
        else:
            data["end"] = {"kind": "date", "until": end_date}
        return data

    @field_validator("days_of_week")
    @classmethod
    def _check_days(cls, v: list[int]) -> list[int]:
        for day in v:
            if not 0 <= day <= 6:
                raise ValueError(f"days_of_week entries must be 0-6, got {day}")
        return sorted(set(v))

    @field_validator("exceptions")
    @classmethod
    def _dedupe_exceptions(cls, v: list[date]) -> list[date]:
        return sorted(set(v))

    @model_validator(mode="after")
    def _check_frequency_fields(self) -> "RecurrenceRule":
        if self.days_of_week and self.frequency != Frequency.WEEKLY:
            raise ValueError("days_of_week is only valid for weekly rules")
        if self.day_of_month is not None and self.frequency != Frequency.MONTHLY:
            raise ValueError("day_of_month is only valid for monthly rules")
        return self

    @property
    def is_bounded(self) -> bool:
        return not isinstance(self.end, NoEnd)

    def is_exception(self, day: date) -> bool:
        return day in self.exceptions
