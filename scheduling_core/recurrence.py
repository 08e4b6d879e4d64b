"""Recurrence expansion.

Turns a :class:`RecurrenceRule` anchored on a date into the concrete dates it
produces, and materializes recurring bookings into per-occurrence bookings.

Decisions:

* Exception dates are skipped without consuming an occurrence slot, so a rule
  with ``count=N`` still yields N real occurrences.
* A target day that does not exist in a month (day 31 in April, Feb 29 in a
  common year) follows :class:`MonthlyOverflow`: clamp to the month's last
  day (default) or skip the period.
"""

from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Iterator
from zoneinfo import ZoneInfo

from scheduling_core.config import settings
from scheduling_core.errors import UnboundedRecurrenceError
from scheduling_core.models import (
    Booking,
    EndsAfter,
    EndsOn,
    Frequency,
    MonthlyOverflow,
    RecurrenceRule,
    to_utc,
    weekday_index,
)

log = logging.getLogger("scheduling_core.recurrence")

# Consecutive periods without a single candidate before a rule is declared
# impossible. 48 months covers every month length and the leap-year cycle.
_MAX_EMPTY_PERIODS = 48

_DAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
_UNIT_NAMES = {
    Frequency.DAILY: "day",
    Frequency.WEEKLY: "week",
    Frequency.MONTHLY: "month",
    Frequency.YEARLY: "year",
}


def expand(
    rule: RecurrenceRule,
    anchor: date,
    horizon_end: date | None = None,
    *,
    overflow: MonthlyOverflow | None = None,
) -> list[date]:
    """Return the ascending, duplicate-free occurrence dates of ``rule``.

    Args:
        rule: The recurrence rule.
        anchor: First date the series may produce.
        horizon_end: Inclusive cut-off supplied by the caller. Mandatory when
            the rule has no end condition.
        overflow: Short-month policy; defaults to ``settings.monthly_overflow``.

    Raises:
        UnboundedRecurrenceError: no end condition and no horizon, or a rule
            that can never produce a date.
    """
    if isinstance(anchor, datetime):
        anchor = anchor.date()
    if not rule.is_bounded and horizon_end is None:
        raise UnboundedRecurrenceError(
            "Recurrence has no end condition; a horizon is required",
            frequency=rule.frequency.value,
            anchor=anchor.isoformat(),
        )
    overflow = overflow or settings.monthly_overflow

    last_day = horizon_end
    if isinstance(rule.end, EndsOn):
        last_day = rule.end.until if last_day is None else min(last_day, rule.end.until)
    limit = rule.end.count if isinstance(rule.end, EndsAfter) else None

    dates: list[date] = []
    if last_day is not None and last_day < anchor:
        return dates

    for candidate in _candidates(rule, anchor, overflow):
        if last_day is not None and candidate > last_day:
            break
        if rule.is_exception(candidate):
            log.debug("Skipping exception date %s", candidate)
            continue
        if dates and candidate <= dates[-1]:
            continue
        dates.append(candidate)
        if limit is not None and len(dates) >= limit:
            break

    log.debug(
        "Expanded %s rule from %s: %d occurrence(s)",
        rule.frequency.value, anchor, len(dates),
    )
    return dates


def _candidates(
    rule: RecurrenceRule, anchor: date, overflow: MonthlyOverflow
) -> Iterator[date]:
    """Yield candidate dates in ascending order, forever.

    Callers bound the iteration by date or count. Periods that produce no
    candidate are counted so an impossible rule fails instead of spinning.
    """
    empty_periods = 0
    period = 0
    while True:
        produced = False
        for candidate in _period_dates(rule, anchor, period, overflow):
            if candidate >= anchor:
                produced = True
                yield candidate
        if produced:
            empty_periods = 0
        else:
            empty_periods += 1
            if empty_periods >= _MAX_EMPTY_PERIODS:
                raise UnboundedRecurrenceError(
                    "Recurrence never produces an occurrence",
                    frequency=rule.frequency.value,
                    anchor=anchor.isoformat(),
                    overflow=overflow.value,
                )
        period += 1


def _period_dates(
    rule: RecurrenceRule, anchor: date, period: int, overflow: MonthlyOverflow
) -> list[date]:
    step = period * rule.interval

    if rule.frequency == Frequency.DAILY:
        return [anchor + timedelta(days=step)]

    if rule.frequency == Frequency.WEEKLY:
        if not rule.days_of_week:
            return [anchor + timedelta(weeks=step)]
        week_start = anchor - timedelta(days=weekday_index(anchor))
        base = week_start + timedelta(weeks=step)
        return [base + timedelta(days=day) for day in rule.days_of_week]

    if rule.frequency == Frequency.MONTHLY:
        month_index = anchor.month - 1 + step
        year, month = anchor.year + month_index // 12, month_index % 12 + 1
        target = _fit_day(year, month, rule.day_of_month or anchor.day, overflow)
        return [target] if target else []

    # Yearly
    target = _fit_day(anchor.year + step, anchor.month, anchor.day, overflow)
    return [target] if target else []


def _fit_day(year: int, month: int, day: int, overflow: MonthlyOverflow) -> date | None:
    days_in_month = calendar.monthrange(year, month)[1]
    if day <= days_in_month:
        return date(year, month, day)
    if overflow == MonthlyOverflow.SKIP:
        return None
    return date(year, month, days_in_month)


# ── Bookings ──────────────────────────────────────────────────────


def expand_booking(booking: Booking, horizon_end: date | None = None) -> list[Booking]:
    """Materialize a recurring booking into concrete occurrences.

    Each occurrence keeps the series' local wall-clock start and its duration
    in ``booking.timezone``, so a 09:00 meeting stays at 09:00 across DST
    changes. Non-recurring bookings are returned unchanged.
    """
    if booking.recurrence is None:
        return [booking]

    tz = ZoneInfo(booking.timezone)
    local_start = booking.start.astimezone(tz)
    duration = booking.end - booking.start

    occurrences = []
    for day in expand(booking.recurrence, local_start.date(), horizon_end):
        start = datetime.combine(day, local_start.time(), tzinfo=tz)
        occurrences.append(
            booking.model_copy(
                update={
                    "id": f"{booking.id}:{day.isoformat()}",
                    "start": to_utc(start),
                    "end": to_utc(start) + duration,
                    "recurrence": None,
                    "series_id": booking.id,
                },
                deep=True,
            )
        )
    return occurrences


def materialize(bookings: Iterable[Booking], horizon_end: date) -> list[Booking]:
    """Flatten a pool that may contain recurring bookings, sorted by start."""
    flat: list[Booking] = []
    for booking in bookings:
        flat.extend(expand_booking(booking, horizon_end))
    flat.sort(key=lambda b: (b.start, b.id))
    return flat


# ── Display ───────────────────────────────────────────────────────


def describe(rule: RecurrenceRule) -> str:
    """Human-readable summary, e.g. ``Repeats every 2 weeks on Mon, Wed``."""
    unit = _UNIT_NAMES[rule.frequency]
    if rule.interval == 1:
        text = f"Repeats every {unit}"
    else:
        text = f"Repeats every {rule.interval} {unit}s"

    if rule.frequency == Frequency.WEEKLY and rule.days_of_week:
        text += " on " + ", ".join(_DAY_NAMES[d] for d in rule.days_of_week)
    elif rule.frequency == Frequency.MONTHLY and rule.day_of_month:
        text += f" on day {rule.day_of_month}"

    if isinstance(rule.end, EndsAfter):
        text += f", {rule.end.count} time" + ("s" if rule.end.count != 1 else "")
    elif isinstance(rule.end, EndsOn):
        text += f", until {rule.end.until.isoformat()}"

    if rule.exceptions:
        count = len(rule.exceptions)
        text += f" ({count} exception" + ("s" if count != 1 else "") + ")"
    return text
