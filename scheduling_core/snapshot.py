"""Load a booking snapshot handed over by the calendar store.

The store serializes its current state as one JSON document::

    {"bookings": [...], "members": [...], "rooms": [...]}

Every record is validated on load, so the core only ever sees well-formed
bookings.
"""

from __future__ import annotations

import json
from collections import defaultdict
from pathlib import Path
from typing import Iterable

from pydantic import BaseModel

from scheduling_core.models import Booking, Member, Room


class Snapshot(BaseModel):
    bookings: list[Booking] = []
    members: list[Member] = []
    rooms: list[Room] = []

    def booking(self, booking_id: str) -> Booking:
        for booking in self.bookings:
            if booking.id == booking_id:
                return booking
        raise KeyError(booking_id)

    def all_bookings(self) -> list[Booking]:
        """Top-level bookings plus room reservations not listed at top level."""
        seen = {b.id for b in self.bookings}
        nested = [
            b for room in self.rooms for b in room.bookings if b.id not in seen
        ]
        return self.bookings + nested


def load_snapshot(path: str | Path) -> Snapshot:
    """Load and validate a snapshot file.

    A ``.jsonl`` file holds one snapshot per line; the first non-empty line
    is used.
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8").strip()
    if path.suffix == ".jsonl":
        for line in text.splitlines():
            line = line.strip()
            if line:
                return Snapshot.model_validate(json.loads(line))
        raise ValueError(f"No snapshot found in {path}")
    if not text:
        raise ValueError(f"No snapshot found in {path}")
    return Snapshot.model_validate(json.loads(text))


def bookings_by_member(
    bookings: Iterable[Booking], members: Iterable[Member]
) -> dict[str, list[Booking]]:
    """Group active bookings under each member they list as attendee.

    Member ids are matched case-insensitively against the normalized attendee
    ids.
    """
    by_attendee: dict[str, list[Booking]] = defaultdict(list)
    for booking in bookings:
        if not booking.is_active:
            continue
        for attendee in booking.attendees:
            by_attendee[attendee].append(booking)
    return {m.id: list(by_attendee.get(m.id.strip().lower(), [])) for m in members}


def attach_room_bookings(rooms: Iterable[Room], bookings: Iterable[Booking]) -> list[Room]:
    """Return copies of ``rooms`` whose pools also hold the matching bookings."""
    by_room: dict[str, list[Booking]] = defaultdict(list)
    for booking in bookings:
        if booking.room_id:
            by_room[booking.room_id].append(booking)
    attached = []
    for room in rooms:
        known = {b.id for b in room.bookings}
        extra = [b for b in by_room.get(room.id, []) if b.id not in known]
        attached.append(room.model_copy(update={"bookings": room.bookings + extra}))
    return attached
