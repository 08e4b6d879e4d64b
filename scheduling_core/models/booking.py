"""Time intervals and booking records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from enum import Enum
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator, model_validator

from scheduling_core.errors import InvalidIntervalError
from scheduling_core.models.recurrence import RecurrenceRule


def to_utc(dt: datetime) -> datetime:
    """Normalize to UTC. Naive datetimes are taken to already be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def validate_timezone(name: str) -> str:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone {name!r}") from None
    return name


@dataclass(frozen=True)
class TimeInterval:
    """A half-open ``[start, end)`` window in UTC."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        start = to_utc(self.start)
        end = to_utc(self.end)
        if start >= end:
            raise InvalidIntervalError(
                "Interval start must be before its end",
                start=start.isoformat(),
                end=end.isoformat(),
            )
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def minutes(self) -> float:
        return self.duration.total_seconds() / 60

    def overlaps(self, other: TimeInterval) -> bool:
        """Touching intervals (``a.end == b.start``) do not overlap."""
        return self.start < other.end and other.start < self.end

    def contains(self, other: TimeInterval) -> bool:
        return self.start <= other.start and other.end <= self.end


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    TENTATIVE = "tentative"
    CANCELLED = "cancelled"


class ReminderMethod(str, Enum):
    POPUP = "popup"
    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"


class Reminder(BaseModel):
    minutes: int = Field(ge=0)  # before the booking starts
    method: ReminderMethod = ReminderMethod.POPUP


class Booking(BaseModel):
    """A scheduled commitment: event, meeting or room reservation.

    ``start``/``end`` are stored in UTC. ``timezone`` is display metadata that
    also anchors all-day spans and the wall-clock time of recurring
    occurrences.
    """

    id: str
    title: str = ""
    start: datetime
    end: datetime
    all_day: bool = False
    timezone: str = "UTC"
    recurrence: RecurrenceRule | None = None
    attendees: set[str] = set()  # normalized ids, e.g. lowercase email
    room_id: str | None = None
    status: BookingStatus = BookingStatus.CONFIRMED
    reminders: list[Reminder] = []
    series_id: str | None = None  # set on materialized occurrences

    @field_validator("start", "end")
    @classmethod
    def _normalize_instant(cls, v: datetime) -> datetime:
        return to_utc(v)

    @field_validator("attendees")
    @classmethod
    def _normalize_attendees(cls, v: set[str]) -> set[str]:
        return {a.strip().lower() for a in v if a.strip()}

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, v: str) -> str:
        return validate_timezone(v)

    @model_validator(mode="after")
    def _check_order(self) -> "Booking":
        if self.start >= self.end:
            raise ValueError(
                f"Booking {self.id!r} starts at or after its end "
                f"({self.start.isoformat()} >= {self.end.isoformat()})"
            )
        return self

    @property
    def is_active(self) -> bool:
        return self.status != BookingStatus.CANCELLED

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not None

    @property
    def interval(self) -> TimeInterval:
        """The span used for overlap reasoning.

        All-day bookings cover whole local days in ``timezone``.
        """
        if not self.all_day:
            return TimeInterval(self.start, self.end)
        tz = ZoneInfo(self.timezone)
        first_day = self.start.astimezone(tz).date()
        local_end = self.end.astimezone(tz)
        last_day = local_end.date()
        if local_end.time() != time(0):
            last_day += timedelta(days=1)
        return TimeInterval(
            datetime.combine(first_day, time(0), tzinfo=tz),
            datetime.combine(last_day, time(0), tzinfo=tz),
        )
