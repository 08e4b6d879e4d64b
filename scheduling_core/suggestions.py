"""Alternatives offered alongside a conflict report.

When a candidate booking clashes, the booking form offers other windows on
the same day and the rooms still free for the requested time.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import time
from typing import Iterable, Mapping

from scheduling_core.availability import build
from scheduling_core.config import check_positive, check_timezone, settings
from scheduling_core.models import Booking, Member, Room
from scheduling_core.recommend import RecommendedSlot, recommend
from scheduling_core.rooms import filter_rooms

log = logging.getLogger("scheduling_core.suggestions")


@dataclass
class Suggestions:
    alternative_slots: list[RecommendedSlot] = field(default_factory=list)
    available_rooms: list[Room] = field(default_factory=list)


def suggest_alternatives(
    candidate: Booking,
    members: Iterable[Member],
    bookings_by_member: Mapping[str, Iterable[Booking]],
    rooms: Iterable[Room] = (),
    required_capacity: int | None = None,
    *,
    day_window: tuple[time | str, time | str] | None = None,
    reference_tz: str | None = None,
    granularity_minutes: int | None = None,
    quorum_ratio: float | None = None,
    max_results: int | None = None,
) -> Suggestions:
    """Other windows on the candidate's day, plus rooms free for its slot.

    Windows overlapping the candidate's own interval are never offered.

    ``required_capacity`` defaults to the candidate's attendee count. The
    candidate's own booking is ignored when evaluating members and rooms.
    """
    reference_tz = reference_tz or settings.reference_timezone
    scan_date = candidate.start.astimezone(check_timezone(reference_tz)).date()
    duration = math.ceil(candidate.interval.minutes)

    pools = {
        member_id: [b for b in pool if b.id != candidate.id]
        for member_id, pool in bookings_by_member.items()
    }
    grid = build(
        members, scan_date, day_window, granularity_minutes, pools, reference_tz
    )
    limit = check_positive(
        "max_results", settings.max_recommendations if max_results is None else max_results
    )
    # Windows span whole slots, so the candidate's own time can come back
    # longer than the candidate; drop anything overlapping it.
    windows = recommend(grid, duration, quorum_ratio, max_results=max(len(grid), 1))
    alternatives = [
        w for w in windows if not w.interval.overlaps(candidate.interval)
    ][:limit]

    capacity = len(candidate.attendees) if required_capacity is None else required_capacity
    feasibility = filter_rooms(
        rooms, candidate.interval, capacity, exclude_booking_id=candidate.id
    )
    log.debug(
        "Suggestions for %s: %d window(s), %d room(s)",
        candidate.id, len(alternatives), len(feasibility.feasible),
    )
    return Suggestions(
        alternative_slots=alternatives, available_rooms=feasibility.feasible
    )
