"""Conflict detection for a candidate booking against existing commitments.

The detector only reports; whether to block or proceed is the caller's call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable

from scheduling_core.models import Booking
from scheduling_core.overlap import Severity, SeverityThresholds, classify
from scheduling_core.recurrence import expand_booking, materialize

log = logging.getLogger("scheduling_core.conflicts")

# Local dates of two series can differ by more than a day (UTC-12 vs UTC+14),
# so the pool is expanded past the candidate's horizon.
POOL_MARGIN = timedelta(days=2)


@dataclass
class Conflict:
    """One existing booking that overlaps the candidate."""

    booking: Booking
    overlap_minutes: float
    severity: Severity
    same_room: bool = False
    shared_attendees: list[str] = field(default_factory=list)

    @property
    def has_shared_attendees(self) -> bool:
        return bool(self.shared_attendees)


@dataclass
class ConflictReport:
    candidate_id: str
    conflicts: list[Conflict] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return len(self.conflicts) > 0

    @property
    def has_high_severity(self) -> bool:
        return any(c.severity == Severity.HIGH for c in self.conflicts)

    @property
    def room_conflicts(self) -> list[Conflict]:
        return [c for c in self.conflicts if c.same_room]

    @property
    def attendee_conflicts(self) -> list[Conflict]:
        return [c for c in self.conflicts if c.shared_attendees]

    def severity_counts(self) -> dict[str, int]:
        counts = {s.value: 0 for s in (Severity.HIGH, Severity.MEDIUM, Severity.LOW)}
        for conflict in self.conflicts:
            counts[conflict.severity.value] += 1
        return counts


def _sort_key(conflict: Conflict):
    return (-conflict.severity.rank, conflict.booking.start, conflict.booking.id)


def detect(
    candidate: Booking,
    existing: Iterable[Booking],
    candidate_room_id: str | None = None,
    *,
    thresholds: SeverityThresholds | None = None,
) -> ConflictReport:
    """Report every active booking that overlaps ``candidate``.

    Args:
        candidate: The proposed booking. A booking in ``existing`` with the same
            id is the candidate's stored version (edit flow) and is ignored.
        existing: Concrete bookings; expand recurring ones first (see
            :func:`detect_series`).
        candidate_room_id: Room to check instead of ``candidate.room_id``.
        thresholds: Severity tiers; defaults from settings.

    Returns:
        A report ordered by severity (high first), then start time, then id.
    """
    thresholds = thresholds or SeverityThresholds.from_settings()
    room_id = candidate_room_id or candidate.room_id
    interval = candidate.interval

    conflicts: list[Conflict] = []
    for booking in existing:
        if not booking.is_active:
            continue
        if booking.id == candidate.id:
            log.debug("Ignoring stored copy of %s", candidate.id)
            continue
        result = classify(interval, booking.interval, thresholds=thresholds)
        if not result.overlaps:
            continue
        conflicts.append(
            Conflict(
                booking=booking,
                overlap_minutes=result.overlap_minutes,
                severity=result.severity,
                same_room=room_id is not None and booking.room_id == room_id,
                shared_attendees=sorted(candidate.attendees & booking.attendees),
            )
        )

    conflicts.sort(key=_sort_key)
    if conflicts:
        log.debug(
            "Booking %s has %d conflict(s): %s",
            candidate.id, len(conflicts), [c.booking.id for c in conflicts],
        )
    return ConflictReport(candidate_id=candidate.id, conflicts=conflicts)


def detect_series(
    candidate: Booking,
    existing: Iterable[Booking],
    horizon_end: date,
    candidate_room_id: str | None = None,
    *,
    thresholds: SeverityThresholds | None = None,
) -> list[ConflictReport]:
    """Check every occurrence of a (possibly recurring) candidate.

    Recurring bookings in ``existing`` are expanded up to ``POOL_MARGIN``
    past the same horizon.
    Bookings belonging to the candidate's own series are ignored. Only
    occurrences that have conflicts are returned, in date order.
    """
    pool = [
        b for b in materialize(existing, horizon_end + POOL_MARGIN)
        if b.series_id != candidate.id and b.id != candidate.id
    ]
    reports = []
    for occurrence in expand_booking(candidate, horizon_end):
        report = detect(
            occurrence, pool, candidate_room_id, thresholds=thresholds
        )
        if report.has_conflicts:
            reports.append(report)
    log.debug(
        "Series %s: %d occurrence(s) with conflicts", candidate.id, len(reports)
    )
    return reports
