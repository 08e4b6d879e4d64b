"""Data models for the scheduling core."""

from .booking import (
    Booking,
    BookingStatus,
    Reminder,
    ReminderMethod,
    TimeInterval,
    to_utc,
)
from .recurrence import (
    EndsAfter,
    EndsOn,
    Frequency,
    MonthlyOverflow,
    NoEnd,
    RecurrenceRule,
    weekday_index,
)
from .roster import Member, Room, WorkingHours

__all__ = [
    "Booking",
    "BookingStatus",
    "EndsAfter",
    "EndsOn",
    "Frequency",
    "Member",
    "MonthlyOverflow",
    "NoEnd",
    "RecurrenceRule",
    "Reminder",
    "ReminderMethod",
    "Room",
    "TimeInterval",
    "WorkingHours",
    "to_utc",
    "weekday_index",
]
