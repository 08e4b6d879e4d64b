"""Overlap classification between two time intervals."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from scheduling_core.config import settings
from scheduling_core.errors import ConfigurationError
from scheduling_core.models import TimeInterval


class Severity(str, Enum):
    """How disruptive a conflict is. Members compare by rank."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _RANK[self]

    def __lt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_RANK = {Severity.LOW: 0, Severity.MEDIUM: 1, Severity.HIGH: 2}


@dataclass(frozen=True)
class SeverityThresholds:
    """Tier boundaries in minutes.

    ``high`` when the overlap exceeds ``high_minutes``; ``medium`` from
    ``medium_minutes`` up to and including ``high_minutes``.
    """

    high_minutes: float = 30
    medium_minutes: float = 15

    def __post_init__(self) -> None:
        if not 0 <= self.medium_minutes < self.high_minutes:
            raise ConfigurationError(
                "Severity thresholds must satisfy 0 <= medium < high",
                medium=self.medium_minutes,
                high=self.high_minutes,
            )

    @classmethod
    def from_settings(cls) -> SeverityThresholds:
        return cls(
            high_minutes=settings.severity_high_minutes,
            medium_minutes=settings.severity_medium_minutes,
        )


@dataclass(frozen=True)
class OverlapResult:
    overlaps: bool
    overlap_minutes: float
    severity: Severity | None  # None when the intervals do not overlap


NO_OVERLAP = OverlapResult(overlaps=False, overlap_minutes=0.0, severity=None)


def classify(
    candidate: TimeInterval,
    other: TimeInterval,
    *,
    thresholds: SeverityThresholds | None = None,
) -> OverlapResult:
    """Measure how much ``other`` overlaps ``candidate`` and grade it.

    Touching intervals do not overlap. Full containment in either direction is
    always ``high`` regardless of length.
    """
    if candidate.end <= other.start or candidate.start >= other.end:
        return NO_OVERLAP

    thresholds = thresholds or SeverityThresholds.from_settings()
    window_start = max(candidate.start, other.start)
    window_end = min(candidate.end, other.end)
    minutes = (window_end - window_start).total_seconds() / 60

    if other.contains(candidate) or candidate.contains(other):
        severity = Severity.HIGH
    elif minutes > thresholds.high_minutes:
        severity = Severity.HIGH
    elif minutes >= thresholds.medium_minutes:
        severity = Severity.MEDIUM
    else:
        severity = Severity.LOW

    return OverlapResult(overlaps=True, overlap_minutes=minutes, severity=severity)
