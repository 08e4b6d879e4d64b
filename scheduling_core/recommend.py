"""Best meeting window recommendation over an availability grid."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime

from scheduling_core.availability import AvailabilityGrid, AvailabilitySlot, required_count
from scheduling_core.config import check_positive, check_ratio, settings
from scheduling_core.models import TimeInterval

log = logging.getLogger("scheduling_core.recommend")


@dataclass
class RecommendedSlot:
    """A contiguous run of slots that meets the quorum."""

    start: datetime
    end: datetime
    min_available: int
    total_count: int
    available_member_ids: list[str] = field(default_factory=list)  # free for the whole run

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(self.start, self.end)


def _is_contiguous(run: list[AvailabilitySlot]) -> bool:
    return all(a.end == b.start for a, b in zip(run, run[1:]))


def recommend(
    grid: AvailabilityGrid,
    duration_minutes: int,
    quorum_ratio: float | None = None,
    max_results: int | None = None,
) -> list[RecommendedSlot]:
    """Rank meeting windows of ``duration_minutes`` by how many can attend.

    A window is ``ceil(duration / granularity)`` contiguous slots and
    qualifies when its least-available slot still has
    ``ceil(quorum_ratio * total)`` members free. Results are ordered by that
    minimum (descending), then by start time.
    """
    check_positive("duration_minutes", duration_minutes)
    quorum_ratio = check_ratio(
        "quorum_ratio", settings.quorum_ratio if quorum_ratio is None else quorum_ratio
    )
    max_results = check_positive(
        "max_results", settings.max_recommendations if max_results is None else max_results
    )

    total = grid.total_members
    if total == 0 or not grid.slots:
        return []

    run_length = math.ceil(duration_minutes / grid.granularity_minutes)
    needed = required_count(quorum_ratio, total)

    candidates: list[RecommendedSlot] = []
    for i in range(len(grid.slots) - run_length + 1):
        run = grid.slots[i:i + run_length]
        if not _is_contiguous(run):
            continue
        min_available = min(s.available_count for s in run)
        if min_available < needed:
            continue
        free_throughout = set(run[0].available_member_ids)
        for slot in run[1:]:
            free_throughout &= set(slot.available_member_ids)
        candidates.append(
            RecommendedSlot(
                start=run[0].start,
                end=run[-1].end,
                min_available=min_available,
                total_count=total,
                available_member_ids=[m for m in grid.member_ids if m in free_throughout],
            )
        )

    candidates.sort(key=lambda c: (-c.min_available, c.start))
    log.debug(
        "%d window(s) of %d min meet quorum %d/%d; returning %d",
        len(candidates), duration_minutes, needed, total,
        min(len(candidates), max_results),
    )
    return candidates[:max_results]
