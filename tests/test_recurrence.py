"""Tests for recurrence expansion and booking materialization."""

from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from scheduling_core.errors import UnboundedRecurrenceError
from scheduling_core.models import (
    Booking,
    EndsAfter,
    EndsOn,
    Frequency,
    MonthlyOverflow,
    NoEnd,
    RecurrenceRule,
    weekday_index,
)
from scheduling_core.recurrence import describe, expand, expand_booking, materialize

SUNDAY = date(2026, 3, 1)


def _rule(frequency, **kwargs):
    return RecurrenceRule(frequency=frequency, **kwargs)


# ── Rule model ─────────────────────────────────────────────────────


class TestRecurrenceRuleModel:
    def test_defaults(self):
        rule = _rule(Frequency.DAILY)
        assert rule.interval == 1
        assert isinstance(rule.end, NoEnd)
        assert rule.is_bounded is False

    def test_end_is_tagged_union(self):
        rule = RecurrenceRule.model_validate(
            {"frequency": "weekly", "end": {"kind": "date", "until": "2026-05-01"}}
        )
        assert isinstance(rule.end, EndsOn)
        assert rule.end.until == date(2026, 5, 1)

    def test_occurrences_shorthand(self):
        rule = RecurrenceRule.model_validate({"frequency": "daily", "occurrences": 3})
        assert isinstance(rule.end, EndsAfter)
        assert rule.end.count == 3

    def test_end_date_shorthand(self):
        rule = RecurrenceRule.model_validate({"frequency": "daily", "end_date": "2026-04-01"})
        assert rule.end == EndsOn(until=date(2026, 4, 1))

    def test_two_end_conditions_rejected(self):
        with pytest.raises(ValidationError):
            RecurrenceRule.model_validate(
                {"frequency": "daily", "occurrences": 3, "end_date": "2026-04-01"}
            )

    def test_zero_interval_rejected(self):
        with pytest.raises(ValidationError):
            _rule(Frequency.DAILY, interval=0)

    def test_zero_count_rejected(self):
        with pytest.raises(ValidationError):
            EndsAfter(count=0)

    def test_days_of_week_range(self):
        with pytest.raises(ValidationError):
            _rule(Frequency.WEEKLY, days_of_week=[7])

    def test_days_of_week_only_for_weekly(self):
        with pytest.raises(ValidationError):
            _rule(Frequency.MONTHLY, days_of_week=[1])

    def test_day_of_month_only_for_monthly(self):
        with pytest.raises(ValidationError):
            _rule(Frequency.WEEKLY, day_of_month=5)

    def test_days_sorted_and_deduplicated(self):
        rule = _rule(Frequency.WEEKLY, days_of_week=[3, 1, 3])
        assert rule.days_of_week == [1, 3]


# ── Expansion ──────────────────────────────────────────────────────


class TestWeekly:
    def test_anchor_on_sunday_alternates_mon_wed(self):
        rule = _rule(Frequency.WEEKLY, days_of_week=[1, 3], end=EndsAfter(count=4))
        assert expand(rule, SUNDAY) == [
            date(2026, 3, 2),
            date(2026, 3, 4),
            date(2026, 3, 9),
            date(2026, 3, 11),
        ]

    def test_anchor_not_in_set_advances(self):
        thursday = date(2026, 3, 5)
        rule = _rule(Frequency.WEEKLY, days_of_week=[1, 3], end=EndsAfter(count=3))
        dates = expand(rule, thursday)
        assert dates == [date(2026, 3, 9), date(2026, 3, 11), date(2026, 3, 16)]
        assert weekday_index(dates[0]) in rule.days_of_week

    def test_every_other_week(self):
        rule = _rule(
            Frequency.WEEKLY, interval=2, days_of_week=[1, 3], end=EndsAfter(count=4)
        )
        assert expand(rule, SUNDAY) == [
            date(2026, 3, 2),
            date(2026, 3, 4),
            date(2026, 3, 16),
            date(2026, 3, 18),
        ]

    def test_without_days_uses_anchor_weekday(self):
        rule = _rule(Frequency.WEEKLY, end=EndsAfter(count=3))
        assert expand(rule, date(2026, 3, 4)) == [
            date(2026, 3, 4),
            date(2026, 3, 11),
            date(2026, 3, 18),
        ]

    @pytest.mark.parametrize("days", [[0], [1, 3, 5], [2, 6], [0, 1, 2, 3, 4, 5, 6]])
    def test_every_date_matches_weekday_set(self, days):
        rule = _rule(Frequency.WEEKLY, days_of_week=days)
        dates = expand(rule, date(2026, 3, 5), horizon_end=date(2026, 6, 30))
        assert dates
        assert all(weekday_index(d) in days for d in dates)


class TestDailyAndBounds:
    def test_end_date_inclusive(self):
        rule = _rule(Frequency.DAILY, end=EndsOn(until=date(2026, 3, 5)))
        dates = expand(rule, SUNDAY)
        assert dates[0] == SUNDAY
        assert dates[-1] == date(2026, 3, 5)
        assert len(dates) == 5

    def test_horizon_tighter_than_end_date(self):
        rule = _rule(Frequency.DAILY, end=EndsOn(until=date(2026, 3, 31)))
        assert len(expand(rule, SUNDAY, horizon_end=date(2026, 3, 3))) == 3

    def test_count_tighter_than_horizon(self):
        rule = _rule(Frequency.DAILY, end=EndsAfter(count=2))
        assert expand(rule, SUNDAY, horizon_end=date(2026, 12, 31)) == [
            date(2026, 3, 1),
            date(2026, 3, 2),
        ]

    def test_horizon_before_anchor(self):
        rule = _rule(Frequency.DAILY)
        assert expand(rule, SUNDAY, horizon_end=date(2026, 2, 1)) == []

    def test_no_end_needs_horizon(self):
        with pytest.raises(UnboundedRecurrenceError) as exc_info:
            expand(_rule(Frequency.DAILY), SUNDAY)
        assert exc_info.value.code == "unbounded_recurrence"

    def test_no_end_with_horizon(self):
        dates = expand(_rule(Frequency.DAILY, interval=3), SUNDAY, horizon_end=date(2026, 3, 10))
        assert dates == [date(2026, 3, 1), date(2026, 3, 4), date(2026, 3, 7), date(2026, 3, 10)]

    def test_accepts_datetime_anchor(self):
        rule = _rule(Frequency.DAILY, end=EndsAfter(count=1))
        assert expand(rule, datetime(2026, 3, 1, 15, 0)) == [SUNDAY]

    @pytest.mark.parametrize("frequency", list(Frequency))
    @pytest.mark.parametrize("count", [1, 4, 13])
    def test_count_is_exact(self, frequency, count):
        rule = _rule(frequency, end=EndsAfter(count=count))
        dates = expand(rule, date(2024, 1, 31))
        assert len(dates) == count
        assert dates == sorted(set(dates))


class TestExceptions:
    def test_exception_does_not_consume_a_slot(self):
        rule = _rule(
            Frequency.DAILY,
            end=EndsAfter(count=5),
            exceptions=[date(2026, 3, 3)],
        )
        dates = expand(rule, SUNDAY)
        assert len(dates) == 5
        assert date(2026, 3, 3) not in dates
        assert dates[-1] == date(2026, 3, 6)

    def test_exception_with_end_date_shortens_series(self):
        rule = _rule(
            Frequency.DAILY,
            end=EndsOn(until=date(2026, 3, 5)),
            exceptions=[date(2026, 3, 2), date(2026, 3, 4)],
        )
        assert expand(rule, SUNDAY) == [date(2026, 3, 1), date(2026, 3, 3), date(2026, 3, 5)]

    def test_exception_outside_series_is_ignored(self):
        rule = _rule(Frequency.WEEKLY, end=EndsAfter(count=2), exceptions=[date(2026, 3, 2)])
        assert expand(rule, SUNDAY) == [date(2026, 3, 1), date(2026, 3, 8)]


class TestMonthlyOverflow:
    def test_clamp_to_last_day(self):
        rule = _rule(Frequency.MONTHLY, end=EndsAfter(count=4))
        assert expand(rule, date(2026, 1, 31), overflow=MonthlyOverflow.CLAMP) == [
            date(2026, 1, 31),
            date(2026, 2, 28),
            date(2026, 3, 31),
            date(2026, 4, 30),
        ]

    def test_clamp_is_default(self):
        rule = _rule(Frequency.MONTHLY, end=EndsAfter(count=2))
        assert expand(rule, date(2026, 1, 31))[1] == date(2026, 2, 28)

    def test_skip_short_months(self):
        rule = _rule(Frequency.MONTHLY, end=EndsAfter(count=4))
        assert expand(rule, date(2026, 1, 31), overflow=MonthlyOverflow.SKIP) == [
            date(2026, 1, 31),
            date(2026, 3, 31),
            date(2026, 5, 31),
            date(2026, 7, 31),
        ]

    def test_day_of_month_before_anchor_starts_next_month(self):
        rule = _rule(Frequency.MONTHLY, day_of_month=15, end=EndsAfter(count=2))
        assert expand(rule, date(2026, 1, 20)) == [date(2026, 2, 15), date(2026, 3, 15)]

    def test_quarterly_crosses_year(self):
        rule = _rule(Frequency.MONTHLY, interval=3, end=EndsAfter(count=3))
        assert expand(rule, date(2026, 11, 10)) == [
            date(2026, 11, 10),
            date(2027, 2, 10),
            date(2027, 5, 10),
        ]

    def test_leap_day_yearly_clamp(self):
        rule = _rule(Frequency.YEARLY, end=EndsAfter(count=3))
        assert expand(rule, date(2024, 2, 29)) == [
            date(2024, 2, 29),
            date(2025, 2, 28),
            date(2026, 2, 28),
        ]

    def test_leap_day_yearly_skip(self):
        rule = _rule(Frequency.YEARLY, end=EndsAfter(count=3))
        assert expand(rule, date(2024, 2, 29), overflow=MonthlyOverflow.SKIP) == [
            date(2024, 2, 29),
            date(2028, 2, 29),
            date(2032, 2, 29),
        ]

    def test_impossible_rule_fails_fast(self):
        rule = _rule(Frequency.MONTHLY, interval=12, day_of_month=30, end=EndsAfter(count=2))
        with pytest.raises(UnboundedRecurrenceError):
            expand(rule, date(2026, 2, 1), overflow=MonthlyOverflow.SKIP)


# ── Bookings ───────────────────────────────────────────────────────


class TestExpandBooking:
    def _weekly_booking(self):
        # 09:00 New York on Monday 2026-03-02 (EST, UTC-5)
        return Booking(
            id="evt",
            title="Pipeline review",
            start=datetime(2026, 3, 2, 14, 0, tzinfo=timezone.utc),
            end=datetime(2026, 3, 2, 15, 0, tzinfo=timezone.utc),
            timezone="America/New_York",
            attendees={"alice@example.com"},
            recurrence=RecurrenceRule(frequency="weekly", end=EndsAfter(count=3)),
        )

    def test_occurrence_ids_and_series(self):
        occurrences = expand_booking(self._weekly_booking())
        assert [o.id for o in occurrences] == [
            "evt:2026-03-02",
            "evt:2026-03-09",
            "evt:2026-03-16",
        ]
        assert all(o.series_id == "evt" for o in occurrences)
        assert all(o.recurrence is None for o in occurrences)

    def test_wall_clock_kept_across_dst(self):
        occurrences = expand_booking(self._weekly_booking())
        # DST starts 2026-03-08 in New York: 09:00 EDT is 13:00 UTC
        assert occurrences[0].start == datetime(2026, 3, 2, 14, 0, tzinfo=timezone.utc)
        assert occurrences[1].start == datetime(2026, 3, 9, 13, 0, tzinfo=timezone.utc)
        assert all((o.end - o.start).total_seconds() == 3600 for o in occurrences)

    def test_non_recurring_returned_as_is(self):
        booking = Booking(
            id="one",
            start=datetime(2026, 3, 2, 9, 0),
            end=datetime(2026, 3, 2, 10, 0),
        )
        assert expand_booking(booking) == [booking]

    def test_materialize_sorts_by_start(self):
        weekly = self._weekly_booking()
        single = Booking(
            id="single",
            start=datetime(2026, 3, 5, 9, 0),
            end=datetime(2026, 3, 5, 10, 0),
        )
        flat = materialize([weekly, single], date(2026, 3, 31))
        assert [b.id for b in flat] == [
            "evt:2026-03-02",
            "single",
            "evt:2026-03-09",
            "evt:2026-03-16",
        ]


class TestDescribe:
    def test_weekly_with_days_and_count(self):
        rule = _rule(Frequency.WEEKLY, interval=2, days_of_week=[1, 3], end=EndsAfter(count=4))
        assert describe(rule) == "Repeats every 2 weeks on Mon, Wed, 4 times"

    def test_daily_open_ended(self):
        assert describe(_rule(Frequency.DAILY)) == "Repeats every day"

    def test_monthly_until(self):
        rule = _rule(Frequency.MONTHLY, day_of_month=15, end=EndsOn(until=date(2026, 12, 31)))
        assert describe(rule) == "Repeats every month on day 15, until 2026-12-31"

    def test_exceptions_mentioned(self):
        rule = _rule(Frequency.YEARLY, exceptions=[date(2027, 1, 1)])
        assert describe(rule) == "Repeats every year (1 exception)"
