"""Tests for availability resolution and calendar helpers."""

import pytest
from datetime import date, datetime

from plan_reconciliation.dates import day_of_week, is_weekend, to_date, week_dates, week_start
from plan_reconciliation.scheduling import (
    AvailabilityConfig,
    AvailabilityStatus,
    DateOverride,
    DayAvailability,
    resolve_availability,
)

SUNDAY = date(2025, 3, 2)
WEDNESDAY = date(2025, 3, 5)
SATURDAY = date(2025, 3, 8)


class TestDates:
    """Test weekday and plan-week helpers."""

    def test_sunday_is_day_zero(self):
        assert day_of_week(SUNDAY) == 0
        assert day_of_week(WEDNESDAY) == 3
        assert day_of_week(SATURDAY) == 6

    def test_week_runs_sunday_to_saturday(self):
        days = week_dates(WEDNESDAY)
        assert days[0] == SUNDAY
        assert days[-1] == SATURDAY
        assert week_start(SATURDAY) == SUNDAY

    def test_weekend(self):
        assert is_weekend(SUNDAY)
        assert is_weekend(SATURDAY)
        assert not is_weekend(WEDNESDAY)

    def test_to_date_accepts_strings_and_datetimes(self):
        assert to_date("2025-03-05") == WEDNESDAY
        assert to_date("2025-03-05T07:30:00Z") == WEDNESDAY
        assert to_date(datetime(2025, 3, 5, 18, 0)) == WEDNESDAY

    def test_to_date_rejects_other_types(self):
        with pytest.raises(TypeError):
            to_date(12345)


class TestResolveAvailability:
    """Test the weekly pattern plus override resolution."""

    def setup_method(self):
        """Wednesday blocked, Saturday preferred with a two-hour cap."""
        self.config = AvailabilityConfig(
            weekly=[
                DayAvailability(day_of_week=3, status=AvailabilityStatus.BLOCKED, notes="Late shift"),
                DayAvailability(day_of_week=6, status="preferred", max_duration_minutes=120),
            ]
        )

    def test_weekly_pattern_applies(self):
        resolved = self.config.resolve(WEDNESDAY)
        assert resolved.status == AvailabilityStatus.BLOCKED
        assert resolved.is_blocked
        assert not resolved.is_override
        assert resolved.notes == "Late shift"

    def test_missing_weekday_defaults_to_available(self):
        resolved = self.config.resolve(date(2025, 3, 4))
        assert resolved.status == AvailabilityStatus.AVAILABLE
        assert not resolved.is_override
        assert resolved.max_duration_minutes is None

    def test_override_wins_over_weekly_pattern(self):
        config = AvailabilityConfig.from_records(
            weekly=self.config.weekly,
            overrides=[DateOverride(date=WEDNESDAY, status="available", notes="Swapped shift")],
        )
        resolved = config.resolve(WEDNESDAY)
        assert resolved.status == AvailabilityStatus.AVAILABLE
        assert resolved.is_override
        assert resolved.notes == "Swapped shift"

        # Other Wednesdays keep the weekly status
        assert config.is_blocked(date(2025, 3, 12))

    def test_override_can_block_an_available_day(self):
        config = AvailabilityConfig.from_records(
            overrides=[DateOverride(date="2025-03-04", status=AvailabilityStatus.BLOCKED)],
        )
        assert config.is_blocked(date(2025, 3, 4))

    def test_resolution_is_deterministic(self):
        first = resolve_availability(SATURDAY, self.config.weekly, self.config.overrides)
        second = resolve_availability(SATURDAY, self.config.weekly, self.config.overrides)
        assert first == second
        assert first.is_preferred
        assert first.max_duration_minutes == 120

    def test_resolve_range_is_inclusive(self):
        resolved = self.config.resolve_range(SUNDAY, SATURDAY)
        assert len(resolved) == 7
        assert [r.date for r in resolved] == week_dates(SUNDAY)
        assert [r.status.value for r in resolved].count("blocked") == 1

    def test_can_schedule_workout(self):
        assert not self.config.can_schedule_workout(WEDNESDAY)
        assert self.config.can_schedule_workout(SATURDAY, 90)
        assert not self.config.can_schedule_workout(SATURDAY, 180)
        assert self.config.can_schedule_workout(date(2025, 3, 4), 300)

    def test_weekday_lists(self):
        assert self.config.blocked_days_of_week() == [3]
        assert self.config.preferred_days_of_week() == [6]

    def test_full_week_fills_defaults(self):
        week = self.config.full_week()
        assert [d.day_of_week for d in week] == list(range(7))
        assert week[0].status == AvailabilityStatus.AVAILABLE


class TestAvailabilityValidation:
    """Malformed input is rejected at construction."""

    def test_day_of_week_out_of_range(self):
        with pytest.raises(ValueError):
            DayAvailability(day_of_week=7)
        with pytest.raises(ValueError):
            DayAvailability(day_of_week=-1)

    def test_unknown_status(self):
        with pytest.raises(ValueError):
            DayAvailability(day_of_week=1, status="sometimes")

    def test_negative_duration(self):
        with pytest.raises(ValueError):
            DateOverride(date=WEDNESDAY, status="available", max_duration_minutes=-5)

    def test_duplicate_weekday(self):
        with pytest.raises(ValueError):
            AvailabilityConfig(weekly=[DayAvailability(day_of_week=2), DayAvailability(day_of_week=2)])

    def test_duplicate_override_date(self):
        with pytest.raises(ValueError):
            AvailabilityConfig.from_records(overrides=[
                DateOverride(date=WEDNESDAY, status="blocked"),
                DateOverride(date="2025-03-05", status="available"),
            ])
