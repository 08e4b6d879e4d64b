"""Reminder trigger times for upcoming bookings.

Only the schedule is computed here; delivering popups, emails or pushes is
the caller's job.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

from scheduling_core.config import settings
from scheduling_core.models import Booking, ReminderMethod, to_utc


@dataclass(frozen=True)
class ReminderTrigger:
    booking_id: str
    title: str
    trigger_at: datetime
    booking_start: datetime
    minutes: int
    method: ReminderMethod

    @property
    def id(self) -> str:
        return f"{self.booking_id}-{self.minutes}-{self.method.value}"

    def is_due(self, now: datetime) -> bool:
        return self.trigger_at <= to_utc(now)


def reminder_schedule(
    bookings: Iterable[Booking],
    now: datetime,
    lookback_minutes: int | None = None,
) -> list[ReminderTrigger]:
    """Triggers for active bookings, oldest first.

    Triggers older than ``now - lookback_minutes`` are dropped.
    """
    now = to_utc(now)
    if lookback_minutes is None:
        lookback_minutes = settings.reminder_lookback_minutes
    cutoff = now - timedelta(minutes=lookback_minutes)

    triggers = []
    for booking in bookings:
        if not booking.is_active:
            continue
        for reminder in booking.reminders:
            trigger_at = booking.start - timedelta(minutes=reminder.minutes)
            if trigger_at <= cutoff:
                continue
            triggers.append(
                ReminderTrigger(
                    booking_id=booking.id,
                    title=booking.title,
                    trigger_at=trigger_at,
                    booking_start=booking.start,
                    minutes=reminder.minutes,
                    method=reminder.method,
                )
            )
    triggers.sort(key=lambda t: (t.trigger_at, t.booking_id, t.minutes))
    return triggers


def split_due(
    triggers: Iterable[ReminderTrigger], now: datetime
) -> tuple[list[ReminderTrigger], list[ReminderTrigger]]:
    """Partition into ``(due, upcoming)``."""
    due, upcoming = [], []
    for trigger in triggers:
        (due if trigger.is_due(now) else upcoming).append(trigger)
    return due, upcoming
