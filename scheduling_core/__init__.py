"""Scheduling and conflict-resolution core for the CRM calendar.

Pure, synchronous functions over caller-supplied snapshots:

- recurrence expansion (``recurrence.expand``)
- overlap grading (``overlap.classify``)
- conflict reports (``conflicts.detect``)
- availability grids (``availability.build``)
- meeting window recommendations (``recommend.recommend``)
- room feasibility (``rooms.filter_rooms``)
"""

from .availability import (
    AvailabilityGrid,
    AvailabilitySlot,
    MemberAvailability,
    UnavailableReason,
    build,
    build_range,
    meets_quorum,
    required_count,
)
from .conflicts import Conflict, ConflictReport, detect, detect_series
from .errors import (
    ConfigurationError,
    InvalidIntervalError,
    SchedulingError,
    UnboundedRecurrenceError,
)
from .models import (
    Booking,
    BookingStatus,
    EndsAfter,
    EndsOn,
    Frequency,
    Member,
    MonthlyOverflow,
    NoEnd,
    RecurrenceRule,
    Reminder,
    ReminderMethod,
    Room,
    TimeInterval,
    WorkingHours,
)
from .overlap import OverlapResult, Severity, SeverityThresholds, classify
from .recommend import RecommendedSlot, recommend
from .recurrence import describe, expand, expand_booking, materialize
from .reminders import ReminderTrigger, reminder_schedule, split_due
from .rooms import RoomFeasibility, RoomRejection, RoomRejectionReason, filter_rooms
from .suggestions import Suggestions, suggest_alternatives

__all__ = [
    "AvailabilityGrid",
    "AvailabilitySlot",
    "Booking",
    "BookingStatus",
    "ConfigurationError",
    "Conflict",
    "ConflictReport",
    "EndsAfter",
    "EndsOn",
    "Frequency",
    "InvalidIntervalError",
    "Member",
    "MemberAvailability",
    "MonthlyOverflow",
    "NoEnd",
    "OverlapResult",
    "RecommendedSlot",
    "RecurrenceRule",
    "Reminder",
    "ReminderMethod",
    "ReminderTrigger",
    "Room",
    "RoomFeasibility",
    "RoomRejection",
    "RoomRejectionReason",
    "SchedulingError",
    "Severity",
    "SeverityThresholds",
    "Suggestions",
    "TimeInterval",
    "UnavailableReason",
    "UnboundedRecurrenceError",
    "WorkingHours",
    "build",
    "build_range",
    "classify",
    "describe",
    "detect",
    "detect_series",
    "expand",
    "expand_booking",
    "filter_rooms",
    "materialize",
    "meets_quorum",
    "recommend",
    "reminder_schedule",
    "required_count",
    "split_due",
    "suggest_alternatives",
]
