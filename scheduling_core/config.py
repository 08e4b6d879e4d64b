"""Tuning defaults for the scheduling core, read from environment variables.

Every core function takes these values as explicit parameters; ``settings``
is only consulted when a caller passes ``None``.
"""

from __future__ import annotations

import logging
from datetime import time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings

from scheduling_core.errors import ConfigurationError
from scheduling_core.models.recurrence import MonthlyOverflow

log = logging.getLogger("scheduling_core.config")


class Settings(BaseSettings):
    # Availability grid
    granularity_minutes: int = 30
    day_start: time = time(9, 0)
    day_end: time = time(17, 0)
    reference_timezone: str = "UTC"

    # Quorum
    quorum_ratio: float = 0.6
    good_slot_ratio: float = 0.8
    max_recommendations: int = 5

    # Overlap severity tiers (minutes)
    severity_high_minutes: int = 30
    severity_medium_minutes: int = 15

    # Recurrence
    monthly_overflow: MonthlyOverflow = MonthlyOverflow.CLAMP

    # Reminders
    reminder_lookback_minutes: int = 60

    model_config = {
        "env_prefix": "SCHEDULING_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    def validate_startup(self) -> list[str]:
        """Validate configuration. Returns warnings, raises on errors."""
        warnings: list[str] = []

        check_positive("granularity_minutes", self.granularity_minutes)
        check_positive("max_recommendations", self.max_recommendations)
        check_ratio("quorum_ratio", self.quorum_ratio)
        check_ratio("good_slot_ratio", self.good_slot_ratio)
        check_timezone(self.reference_timezone)

        if self.reminder_lookback_minutes < 0:
            raise ConfigurationError(
                "reminder_lookback_minutes must not be negative",
                field="reminder_lookback_minutes",
                value=self.reminder_lookback_minutes,
            )
        if not 0 <= self.severity_medium_minutes < self.severity_high_minutes:
            raise ConfigurationError(
                "Severity thresholds must satisfy 0 <= medium < high",
                medium=self.severity_medium_minutes,
                high=self.severity_high_minutes,
            )
        if self.day_start >= self.day_end:
            raise ConfigurationError(
                "day_start must be before day_end",
                day_start=self.day_start.isoformat(),
                day_end=self.day_end.isoformat(),
            )

        if 60 % self.granularity_minutes and self.granularity_minutes % 60:
            warnings.append(
                f"granularity_minutes={self.granularity_minutes} does not align "
                "with the hour; slot boundaries will drift across hours."
            )
        if self.good_slot_ratio < self.quorum_ratio:
            warnings.append(
                "good_slot_ratio is below quorum_ratio; every recommended "
                "window will also be flagged as best for meeting."
            )

        for warning in warnings:
            log.warning(warning)
        return warnings


def check_positive(name: str, value: int) -> int:
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive", field=name, value=value)
    return value


def check_ratio(name: str, value: float) -> float:
    """Ratios are fractions of a roster: (0, 1]."""
    if not 0 < value <= 1:
        raise ConfigurationError(
            f"{name} must be in the range (0, 1]", field=name, value=value
        )
    return value


def check_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(f"Unknown timezone {name!r}", timezone=name) from exc


settings = Settings()
