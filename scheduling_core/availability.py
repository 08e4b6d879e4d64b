"""Multi-member availability grids.

A grid slices a day window (expressed in a reference timezone) into
fixed-width half-open slots and records, per member, whether they can meet
in that slot. Working days and hours are evaluated in each member's own
timezone.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Iterable, Iterator, Mapping

from scheduling_core.config import check_positive, check_ratio, check_timezone, settings
from scheduling_core.errors import ConfigurationError
from scheduling_core.models import Booking, Member, TimeInterval, to_utc, weekday_index

log = logging.getLogger("scheduling_core.availability")


class UnavailableReason(str, Enum):
    """Listed in precedence order: the first that applies is reported."""

    NON_WORKING_DAY = "non_working_day"
    OUTSIDE_WORKING_HOURS = "outside_working_hours"
    HAS_BOOKING = "has_booking"


@dataclass
class MemberAvailability:
    member_id: str
    available: bool
    reason: UnavailableReason | None = None
    booking_ids: list[str] = field(default_factory=list)  # overlapping bookings


@dataclass
class AvailabilitySlot:
    start: datetime
    end: datetime
    members: list[MemberAvailability]
    available_count: int
    total_count: int
    best_for_meeting: bool

    @property
    def unavailable_count(self) -> int:
        return self.total_count - self.available_count

    @property
    def available_member_ids(self) -> list[str]:
        return [m.member_id for m in self.members if m.available]

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(self.start, self.end)


@dataclass
class AvailabilityGrid:
    slots: list[AvailabilitySlot]
    granularity_minutes: int
    member_ids: list[str]

    @property
    def total_members(self) -> int:
        return len(self.member_ids)

    def __iter__(self) -> Iterator[AvailabilitySlot]:
        return iter(self.slots)

    def __len__(self) -> int:
        return len(self.slots)

    def best_slots(self) -> list[AvailabilitySlot]:
        return [s for s in self.slots if s.best_for_meeting]


# ── Quorum helpers ────────────────────────────────────────────────


def required_count(ratio: float, total: int) -> int:
    """``ceil(ratio * total)`` without float noise (0.7 * 10 is 7, not 8)."""
    return math.ceil(round(ratio * total, 9))


def meets_quorum(count: int, total: int, ratio: float) -> bool:
    """An empty roster never meets a quorum."""
    if total <= 0:
        return False
    return count >= required_count(ratio, total)


# ── Grid building ─────────────────────────────────────────────────


def _as_time(value: time | str) -> time:
    if isinstance(value, str):
        return time.fromisoformat(value)
    return value


def _within_working_hours(member: Member, slot: TimeInterval) -> bool:
    """True if some working shift fully covers the slot.

    Checks the shift of the slot's local day and, for overnight shifts, the
    one that started the day before.
    """
    tz = member.tz
    hours = member.working_hours
    local_day = slot.start.astimezone(tz).date()
    for day in (local_day - timedelta(days=1), local_day):
        if weekday_index(day) not in member.working_days:
            continue
        shift_start = datetime.combine(day, hours.start, tzinfo=tz)
        end_day = day + timedelta(days=1) if hours.wraps_midnight else day
        shift_end = datetime.combine(end_day, hours.end, tzinfo=tz)
        if shift_start <= slot.start and slot.end <= shift_end:
            return True
    return False


def _member_slot(
    member: Member, slot: TimeInterval, busy: list[Booking]
) -> MemberAvailability:
    booking_ids = [b.id for b in busy if b.interval.overlaps(slot)]

    reason = None
    if not _within_working_hours(member, slot):
        local_day = slot.start.astimezone(member.tz).date()
        if weekday_index(local_day) not in member.working_days:
            reason = UnavailableReason.NON_WORKING_DAY
        else:
            reason = UnavailableReason.OUTSIDE_WORKING_HOURS
    elif booking_ids:
        reason = UnavailableReason.HAS_BOOKING

    return MemberAvailability(
        member_id=member.id,
        available=reason is None,
        reason=reason,
        booking_ids=booking_ids,
    )


def build(
    members: Iterable[Member],
    scan_date: date,
    day_window: tuple[time | str, time | str] | None = None,
    granularity_minutes: int | None = None,
    bookings_by_member: Mapping[str, Iterable[Booking]] | None = None,
    reference_tz: str | None = None,
    *,
    good_slot_ratio: float | None = None,
) -> AvailabilityGrid:
    """Build the per-slot, per-member availability table for one day.

    Args:
        members: Roster to evaluate.
        scan_date: Day to scan, in ``reference_tz``.
        day_window: ``(start, end)`` times of day in ``reference_tz``.
        granularity_minutes: Slot width.
        bookings_by_member: Member id -> that member's bookings. Cancelled
            bookings are ignored.
        reference_tz: IANA timezone the window is expressed in.
        good_slot_ratio: Fraction of the roster that must be free for a slot
            to be flagged ``best_for_meeting``.

    Returns:
        An :class:`AvailabilityGrid`. Only full-width slots are produced; an
        empty roster yields a grid without slots.
    """
    granularity = check_positive(
        "granularity_minutes",
        settings.granularity_minutes if granularity_minutes is None else granularity_minutes,
    )
    good_ratio = check_ratio(
        "good_slot_ratio",
        settings.good_slot_ratio if good_slot_ratio is None else good_slot_ratio,
    )
    tz = check_timezone(reference_tz or settings.reference_timezone)
    window_start_time, window_end_time = (
        (_as_time(day_window[0]), _as_time(day_window[1]))
        if day_window
        else (settings.day_start, settings.day_end)
    )
    if window_start_time >= window_end_time:
        raise ConfigurationError(
            "Day window must start before it ends",
            start=window_start_time.isoformat(),
            end=window_end_time.isoformat(),
        )

    roster = list(members)
    if not roster:
        log.warning("Availability requested for an empty roster on %s", scan_date)
        return AvailabilityGrid(slots=[], granularity_minutes=granularity, member_ids=[])

    bookings_by_member = bookings_by_member or {}
    busy = {
        m.id: [b for b in bookings_by_member.get(m.id, ()) if b.is_active]
        for m in roster
    }

    window_start = datetime.combine(scan_date, window_start_time, tzinfo=tz)
    window_end = datetime.combine(scan_date, window_end_time, tzinfo=tz)
    step = timedelta(minutes=granularity)

    slots: list[AvailabilitySlot] = []
    cursor = to_utc(window_start)
    while cursor + step <= window_end:
        slot = TimeInterval(cursor, cursor + step)
        entries = [_member_slot(m, slot, busy[m.id]) for m in roster]
        available = sum(1 for e in entries if e.available)
        slots.append(
            AvailabilitySlot(
                start=slot.start,
                end=slot.end,
                members=entries,
                available_count=available,
                total_count=len(roster),
                best_for_meeting=meets_quorum(available, len(roster), good_ratio),
            )
        )
        cursor = slot.end

    log.debug(
        "Built %d slot(s) for %d member(s) on %s", len(slots), len(roster), scan_date
    )
    return AvailabilityGrid(
        slots=slots,
        granularity_minutes=granularity,
        member_ids=[m.id for m in roster],
    )


def build_range(
    members: Iterable[Member],
    start_date: date,
    end_date: date,
    day_window: tuple[time | str, time | str] | None = None,
    granularity_minutes: int | None = None,
    bookings_by_member: Mapping[str, Iterable[Booking]] | None = None,
    reference_tz: str | None = None,
    *,
    good_slot_ratio: float | None = None,
) -> AvailabilityGrid:
    """Build one grid covering every day from ``start_date`` to ``end_date``.

    Slots of different days are not contiguous, so recommendations never span
    the night.
    """
    if end_date < start_date:
        raise ConfigurationError(
            "end_date must not be before start_date",
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
        )
    roster = list(members)
    slots: list[AvailabilitySlot] = []
    granularity = (
        settings.granularity_minutes if granularity_minutes is None else granularity_minutes
    )
    day = start_date
    while day <= end_date:
        grid = build(
            roster, day, day_window, granularity, bookings_by_member, reference_tz,
            good_slot_ratio=good_slot_ratio,
        )
        slots.extend(grid.slots)
        day += timedelta(days=1)
    return AvailabilityGrid(
        slots=slots,
        granularity_minutes=granularity,
        member_ids=[m.id for m in roster],
    )
