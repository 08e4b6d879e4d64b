"""Structured rejections raised by the scheduling core.

Every error carries a stable ``code`` and a ``details`` dict so the calling
workflow can report it without parsing the message.
"""

from __future__ import annotations

from typing import Any


class SchedulingError(ValueError):
    """Base class for all rejections raised by the core."""

    code = "scheduling_error"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class InvalidIntervalError(SchedulingError):
    """An interval whose start is not strictly before its end."""

    code = "invalid_interval"


class UnboundedRecurrenceError(SchedulingError):
    """A recurrence that would never terminate."""

    code = "unbounded_recurrence"


class ConfigurationError(SchedulingError):
    """Out-of-range thresholds, ratios or other tuning inputs."""

    code = "invalid_configuration"
