"""Room feasibility for a candidate interval.

Room conflicts have no severity tolerance: any positive overlap with an
active room booking blocks the room.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from scheduling_core.models import Room, TimeInterval
from scheduling_core.overlap import classify

log = logging.getLogger("scheduling_core.rooms")


class RoomRejectionReason(str, Enum):
    INSUFFICIENT_CAPACITY = "insufficient_capacity"
    BOOKED = "booked"
    OUT_OF_SERVICE = "out_of_service"
    MISSING_AMENITIES = "missing_amenities"


@dataclass
class RoomRejection:
    room_id: str
    reasons: list[RoomRejectionReason]
    conflicting_booking_ids: list[str] = field(default_factory=list)
    missing_amenities: list[str] = field(default_factory=list)


@dataclass
class RoomFeasibility:
    feasible: list[Room] = field(default_factory=list)  # best fit first
    rejections: dict[str, RoomRejection] = field(default_factory=dict)

    @property
    def feasible_ids(self) -> list[str]:
        return [r.id for r in self.feasible]


def filter_rooms(
    rooms: Iterable[Room],
    candidate_interval: TimeInterval,
    required_capacity: int,
    *,
    required_amenities: Iterable[str] = (),
    exclude_booking_id: str | None = None,
) -> RoomFeasibility:
    """Split ``rooms`` into feasible rooms and per-room rejection reasons.

    Args:
        rooms: Room roster, each with its own booking pool.
        candidate_interval: When the room is needed.
        required_capacity: Minimum number of seats.
        required_amenities: Amenity tags the room must offer (case-insensitive).
        exclude_booking_id: The candidate's own stored booking, when editing.

    Returns:
        Feasible rooms ranked by smallest sufficient capacity, then id, and a
        rejection for every other room listing all reasons that apply.
    """
    wanted = {a.strip().lower() for a in required_amenities if a.strip()}
    result = RoomFeasibility()

    for room in rooms:
        reasons: list[RoomRejectionReason] = []
        if room.capacity < required_capacity:
            reasons.append(RoomRejectionReason.INSUFFICIENT_CAPACITY)
        if not room.active:
            reasons.append(RoomRejectionReason.OUT_OF_SERVICE)

        missing = sorted(wanted - room.amenities)
        if missing:
            reasons.append(RoomRejectionReason.MISSING_AMENITIES)

        blocking = [
            b.id
            for b in room.bookings
            if b.is_active
            and b.id != exclude_booking_id
            and classify(candidate_interval, b.interval).overlap_minutes > 0
        ]
        if blocking:
            reasons.append(RoomRejectionReason.BOOKED)

        if reasons:
            result.rejections[room.id] = RoomRejection(
                room_id=room.id,
                reasons=reasons,
                conflicting_booking_ids=sorted(blocking),
                missing_amenities=missing,
            )
        else:
            result.feasible.append(room)

    result.feasible.sort(key=lambda r: (r.capacity, r.id))
    log.debug(
        "Rooms for %s-%s (capacity %d): %d feasible, %d rejected",
        candidate_interval.start.isoformat(), candidate_interval.end.isoformat(),
        required_capacity, len(result.feasible), len(result.rejections),
    )
    return result
