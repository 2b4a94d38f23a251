"""Tests for CTL/ATL/TSB and the training context."""

import pytest
from datetime import date, timedelta

from plan_reconciliation.adaptation import Activity, TrainingPhase
from plan_reconciliation.training_load import (
    build_training_context,
    calculate_atl,
    calculate_ctl,
    calculate_tsb,
    daily_tss_series,
    interpret_tsb,
)

TODAY = date(2025, 3, 8)


class TestTrainingLoad:
    """Exponentially weighted loads."""

    def test_no_history(self):
        assert calculate_ctl([]) == 0
        assert calculate_atl([]) == 0

    def test_steady_load_converges(self):
        assert abs(calculate_ctl([100] * 365) - 100) <= 2
        assert abs(calculate_atl([100] * 365) - 100) <= 8

    def test_single_session_today(self):
        assert calculate_ctl([0, 0, 42], time_constant=42) == 1

    def test_fatigue_reacts_faster_than_fitness(self):
        loads = [0] * 60 + [150] * 7
        assert calculate_atl(loads) > calculate_ctl(loads)

    def test_missing_days_count_as_zero(self):
        assert calculate_atl([float("nan"), 70]) == calculate_atl([0, 70])

    def test_tsb(self):
        assert calculate_tsb(60, 85) == -25

    @pytest.mark.parametrize("tsb,status", [
        (30, "fresh"),
        (10, "rested"),
        (0, "neutral"),
        (-20, "fatigued"),
        (-40, "very_fatigued"),
    ])
    def test_interpret_tsb(self, tsb, status):
        assert interpret_tsb(tsb)["status"] == status


class TestDailySeries:
    """Daily TSS totals."""

    def test_sums_per_day_and_fills_gaps(self):
        activities = [
            Activity(id="a", date=TODAY, tss=50),
            Activity(id="b", date=TODAY, tss=30),
            Activity(id="c", date=TODAY - timedelta(days=2), tss=40),
            Activity(id="d", date=TODAY - timedelta(days=1)),
            Activity(id="e", date=TODAY - timedelta(days=30), tss=100),
        ]
        series = daily_tss_series(activities, TODAY, days=7)
        assert len(series) == 7
        assert list(series.values) == [0, 0, 0, 0, 40, 0, 80]

    def test_empty_history(self):
        series = daily_tss_series([], TODAY, days=3)
        assert list(series.values) == [0, 0, 0]

    def test_days_must_be_positive(self):
        with pytest.raises(ValueError):
            daily_tss_series([], TODAY, days=0)


class TestTrainingContext:
    """Context built from activity history."""

    def test_hard_week_leaves_athlete_fatigued(self):
        activities = [Activity(id=f"a{i}", date=TODAY - timedelta(days=i), tss=150) for i in range(7)]
        context = build_training_context(activities, TODAY, training_phase=TrainingPhase.BUILD, week_number=3)
        assert context.atl > context.ctl
        assert context.tsb == context.ctl - context.atl
        assert context.tsb < -20
        assert context.training_phase == TrainingPhase.BUILD
        assert context.week_number == 3
