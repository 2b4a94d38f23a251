"""Tests for candidate-day scoring and workout redistribution."""

import itertools
import pytest
from datetime import date, timedelta

from plan_reconciliation.catalog import WorkoutCatalog
from plan_reconciliation.scheduling import (
    DEFAULT_WEIGHTS,
    NO_SUITABLE_DAY,
    AvailabilityConfig,
    AvailabilityStatus,
    DateOverride,
    DayAvailability,
    PlannedWorkout,
    ScoringWeights,
    TrainingPreferences,
    WeekState,
    find_best_alternative_day,
    preview_plan_activation,
    rank_candidate_days,
    redistribute_workouts,
    reshuffle_active_plan,
    score_candidate,
)

SUN, MON, TUE, WED, THU, FRI, SAT = (date(2025, 3, 2) + timedelta(days=i) for i in range(7))


def workout(day, workout_id, category, duration=60, tss=60, week=1):
    return PlannedWorkout(
        date=day,
        week_number=week,
        workout_id=workout_id,
        category=category,
        target_tss=tss,
        target_duration_minutes=duration,
        plan_id="plan-1",
    )


def blocked(*weekdays):
    return AvailabilityConfig(weekly=[
        DayAvailability(day_of_week=d, status=AvailabilityStatus.BLOCKED) for d in weekdays
    ])


class TestScoringPolicyConstants:
    """Scoring weights are product-tuned policy values, pinned here so changes are deliberate."""

    def test_default_weights(self):
        weights = ScoringWeights()
        assert weights.base == 50
        assert weights.preferred_day == 15
        assert weights.double_hard_day == -50
        assert weights.replace_rest_day == 10
        assert weights.occupied_day == -20
        assert weights.empty_day == 10
        assert weights.back_to_back_hard == -30
        assert weights.heavy_recovery_window == -20
        assert weights.weekend_long_ride == 20
        assert weights.per_day_offset == -2
        assert weights.exceeds_max_duration == -40

    def test_weights_can_be_overridden_per_call(self):
        threshold = workout(WED, "threshold_2x20", "threshold", duration=75)
        # Make distance from the original day dominate everything else
        weights = ScoringWeights(per_day_offset=-100)
        best = find_best_alternative_day(threshold, [threshold], blocked(3), weights=weights)
        assert best is None


class TestCandidateScoring:
    """Test individual scoring rules."""

    def setup_method(self):
        self.threshold = workout(WED, "threshold_2x20", "threshold", duration=75)
        self.prefs = TrainingPreferences()

    def score_on(self, day, week, availability=None, target=None):
        availability = availability or blocked(3)
        target = target or self.threshold
        return score_candidate(target, availability.resolve(day), WeekState.of(week), self.prefs)

    def test_empty_adjacent_day(self):
        candidate = self.score_on(THU, [self.threshold])
        assert candidate.score == 58
        assert "Empty day" in candidate.reasons
        assert "Close to original day" in candidate.reasons

    def test_preferred_never_scores_lower_than_available(self):
        preferred = AvailabilityConfig(weekly=[
            DayAvailability(day_of_week=3, status="blocked"),
            DayAvailability(day_of_week=4, status="preferred"),
        ])
        plain = self.score_on(THU, [self.threshold])
        boosted = self.score_on(THU, [self.threshold], availability=preferred)
        assert boosted.score >= plain.score
        assert boosted.score - plain.score == DEFAULT_WEIGHTS.preferred_day

    def test_double_hard_day(self):
        week = [self.threshold, workout(THU, "vo2max_5x4", "vo2max")]
        assert self.score_on(THU, week).score == 50 - 50 - 2

    def test_occupied_by_easy_workout(self):
        week = [self.threshold, workout(THU, "endurance_base", "endurance")]
        candidate = self.score_on(THU, week)
        assert candidate.score == 50 - 20 - 2
        assert "Day already has workout" in candidate.reasons

    def test_rest_day_occupant_is_an_easy_swap(self):
        week = [self.threshold, workout(THU, "rest_day", "rest", duration=0, tss=0)]
        candidate = self.score_on(THU, week)
        assert candidate.score == 50 + 10 - 2
        assert "Can replace rest day" in candidate.reasons

    def test_rest_row_without_workout_counts_as_empty(self):
        week = [self.threshold, PlannedWorkout(date=THU, week_number=1)]
        assert "Empty day" in self.score_on(THU, week).reasons

    def test_back_to_back_hard_penalty_applies_per_side(self):
        week = [
            self.threshold,
            workout(MON, "vo2max_5x4", "vo2max"),
            workout(SAT, "anaerobic_sprints", "anaerobic"),
        ]
        # Friday sits next to Saturday only
        assert self.score_on(FRI, week).score == 60 - 4 - 30
        # Sunday sits between Saturday of the previous week (not in this week) and Monday
        assert self.score_on(SUN, week).score == 60 - 6 - 30

    def test_easy_workout_ignores_adjacent_hard_days(self):
        easy = workout(WED, "endurance_base", "endurance")
        week = [easy, workout(FRI, "vo2max_5x4", "vo2max")]
        assert self.score_on(THU, week, target=easy).score == 58

    def test_duration_cap(self):
        capped = AvailabilityConfig.from_records(
            weekly=[DayAvailability(day_of_week=3, status="blocked")],
            overrides=[DateOverride(date=THU, status="available", max_duration_minutes=60)],
        )
        candidate = self.score_on(THU, [self.threshold], availability=capped)
        assert candidate.score == 58 - 40
        assert "Exceeds max duration (60min)" in candidate.reasons

    def test_weekend_long_ride_bonus(self):
        long_ride = workout(SAT, "long_ride_weekend", "long_ride", duration=240)
        candidate = self.score_on(SUN, [long_ride], availability=blocked(6), target=long_ride)
        assert candidate.score == 60 - 12 + 20

    def test_long_endurance_counts_as_long_ride(self):
        long_endurance = workout(SAT, "endurance_long", "endurance", duration=210)
        candidate = self.score_on(SUN, [long_endurance], availability=blocked(6), target=long_endurance)
        assert "Weekend - good for long ride" in candidate.reasons

    def test_heavy_conditioning_needs_recovery_before_hard_day(self):
        heavy = workout(WED, "strength_max_lower", "strength", duration=50)
        week = [heavy, workout(THU, "vo2max_5x4", "vo2max")]
        candidate = self.score_on(TUE, week, target=heavy)
        assert candidate.score == 58 - 20
        assert any("two days later" in reason for reason in candidate.reasons)


class TestRedistribution:
    """Test week-level redistribution."""

    def setup_method(self):
        self.availability = blocked(3)
        self.threshold = workout(WED, "threshold_2x20", "threshold", duration=75)

    def test_symmetric_neighbours_tie_to_earliest_date(self):
        plan = redistribute_workouts([self.threshold], self.availability)
        assert len(plan.moves) == 1
        move = plan.moves[0]
        assert move.original_date == WED
        assert move.new_date == TUE
        assert move.workout_id == "threshold_2x20"
        assert move.reason == "Empty day; Close to original day"
        assert plan.can_activate

    def test_hard_day_before_tuesday_sends_workout_to_thursday(self):
        week = [workout(MON, "vo2max_5x4", "vo2max"), self.threshold]
        plan = redistribute_workouts(week, self.availability)
        assert plan.moves[0].new_date == THU

    def test_hard_workout_on_thursday_sends_workout_to_tuesday(self):
        week = [self.threshold, workout(THU, "vo2max_5x4", "vo2max")]
        plan = redistribute_workouts(week, self.availability)
        assert plan.moves[0].new_date == TUE

    def test_catalog_supplies_missing_categories(self):
        week = [
            PlannedWorkout(date=MON, week_number=1, workout_id="vo2max_5x4"),
            PlannedWorkout(date=WED, week_number=1, workout_id="threshold_2x20"),
        ]
        # Without categories neither workout counts as hard
        assert redistribute_workouts(week, self.availability).moves[0].new_date == TUE

        plan = redistribute_workouts(week, self.availability, catalog=WorkoutCatalog())
        assert plan.moves[0].new_date == THU
        assert all(w.category is not None for w in plan.scheduled)
        assert week[1].category is None

    def test_duration_cap_steers_away_from_capped_day(self):
        availability = AvailabilityConfig.from_records(
            weekly=[DayAvailability(day_of_week=3, status="blocked")],
            overrides=[DateOverride(date=THU, status="available", max_duration_minutes=60)],
        )
        week = [workout(MON, "vo2max_5x4", "vo2max"), self.threshold]
        plan = redistribute_workouts(week, availability)
        assert plan.moves[0].new_date == FRI

    def test_rest_day_gets_replaced(self):
        week = [
            workout(MON, "vo2max_5x4", "vo2max"),
            self.threshold,
            workout(THU, "rest_day", "rest", duration=0, tss=0),
        ]
        plan = redistribute_workouts(week, self.availability)
        assert plan.moves[0].new_date == THU
        assert "Can replace rest day" in plan.moves[0].reason

    def test_weekend_preference_for_long_rides(self):
        long_ride = workout(SAT, "long_ride_weekend", "long_ride", duration=240)
        plan = redistribute_workouts([long_ride], blocked(6))
        assert plan.moves[0].new_date == SUN

        plan = redistribute_workouts(
            [long_ride], blocked(6), TrainingPreferences(prefer_weekend_long_rides=False)
        )
        assert plan.moves[0].new_date == FRI

    def test_later_moves_see_earlier_ones(self):
        # Friday's workout takes Thursday; Saturday's then avoids the occupied Thursday
        week = [
            workout(FRI, "endurance_base", "endurance"),
            workout(SAT, "tempo_2x20", "tempo"),
        ]
        plan = redistribute_workouts(week, blocked(5, 6))
        assert [(m.original_date, m.new_date) for m in plan.moves] == [(FRI, THU), (SAT, WED)]

    def test_inputs_are_not_modified(self):
        week = [workout(MON, "vo2max_5x4", "vo2max"), self.threshold]
        plan = redistribute_workouts(week, self.availability)
        assert week[1].date == WED
        moved = [w for w in plan.scheduled if w.workout_id == "threshold_2x20"]
        assert moved[0].date == THU
        assert moved[0].day_of_week == 4

    def test_no_alternative_day(self):
        everything_blocked = blocked(0, 1, 2, 3, 4, 5, 6)
        plan = redistribute_workouts([self.threshold], everything_blocked)
        move = plan.moves[0]
        assert move.is_unresolved
        assert move.new_date == WED
        assert move.reason == NO_SUITABLE_DAY
        assert not plan.can_activate
        assert len(plan.warnings) == 1
        assert NO_SUITABLE_DAY in plan.warnings[0]

    def test_only_non_positive_candidates_is_unresolved(self):
        # Thursday is the only open day and already holds a hard session
        availability = blocked(0, 1, 2, 3, 5, 6)
        week = [self.threshold, workout(THU, "vo2max_5x4", "vo2max")]
        plan = redistribute_workouts(week, availability)
        threshold_moves = [m for m in plan.moves if m.workout_id == "threshold_2x20"]
        assert threshold_moves[0].is_unresolved
        assert not plan.can_activate

    def test_rest_days_are_never_moved(self):
        rest = PlannedWorkout(date=WED, week_number=1, category="rest")
        assert redistribute_workouts([rest], self.availability).moves == []

    def test_weeks_are_independent(self):
        next_week = workout(WED + timedelta(days=7), "threshold_2x20", "threshold", week=2)
        plan = redistribute_workouts([self.threshold, next_week], self.availability)
        assert [m.new_date for m in plan.moves] == [TUE, TUE + timedelta(days=7)]

    def test_ranking_excludes_blocked_and_original_day(self):
        ranked = rank_candidate_days(self.threshold, [self.threshold], blocked(3, 4))
        dates = [c.date for c in ranked]
        assert WED not in dates
        assert THU not in dates
        assert dates[0] == TUE
        scores = [c.score for c in ranked]
        assert scores == sorted(scores, reverse=True)

    def test_never_places_on_blocked_day(self):
        week = [
            workout(SUN, "endurance_long", "endurance", duration=210),
            workout(MON, "recovery_spin", "recovery"),
            workout(TUE, "vo2max_5x4", "vo2max"),
            workout(WED, "endurance_base", "endurance"),
            workout(THU, "threshold_2x20", "threshold"),
            workout(SAT, "long_ride_weekend", "long_ride", duration=240),
        ]
        for days in itertools.chain(itertools.combinations(range(7), 1), itertools.combinations(range(7), 2)):
            availability = blocked(*days)
            plan = redistribute_workouts(week, availability)
            for move in plan.moves:
                if not move.is_unresolved:
                    assert not availability.is_blocked(move.new_date)


class TestPlanActivationPreview:
    """Test the activation preview and preference warnings."""

    def setup_method(self):
        self.week = [
            workout(SUN, "endurance_base", "endurance", duration=90),
            workout(MON, "vo2max_5x4", "vo2max", duration=65),
            workout(TUE, "threshold_2x20", "threshold", duration=75),
            workout(WED, "threshold_2x20", "threshold", duration=75),
            PlannedWorkout(date=THU, week_number=1),
            workout(FRI, "endurance_base", "endurance", duration=60),
            workout(SAT, "long_ride_weekend", "long_ride", duration=240),
        ]

    def test_preview_moves_and_counts(self):
        preview = preview_plan_activation(self.week, blocked(3))
        assert preview.blocked_days_affected == 1
        assert len(preview.moves) == 1
        assert preview.moves[0].new_date == THU
        assert preview.unresolved == []
        assert preview.can_activate

    def test_preference_warnings(self):
        preferences = TrainingPreferences(
            max_workouts_per_week=5,
            max_hours_per_week=8,
            max_hard_days_per_week=2,
            min_rest_days_per_week=2,
        )
        preview = preview_plan_activation(self.week, blocked(3), preferences)
        assert len(preview.warnings) == 4
        assert any("6 workouts" in w for w in preview.warnings)
        assert any("10.1 hours" in w for w in preview.warnings)
        assert any("3 hard days" in w for w in preview.warnings)
        assert any("1 rest day" in w for w in preview.warnings)

    def test_preview_from_today_ignores_earlier_workouts(self):
        later = preview_plan_activation(self.week, blocked(3), today=THU)
        assert later.blocked_days_affected == 0
        assert later.moves == []

        same_day = preview_plan_activation(self.week, blocked(3), today=WED)
        assert same_day.blocked_days_affected == 1
        assert same_day.moves[0].new_date == THU

    def test_unresolved_workouts_block_activation(self):
        preview = preview_plan_activation([workout(WED, "threshold_2x20", "threshold")], blocked(*range(7)))
        assert not preview.can_activate
        assert len(preview.unresolved) == 1
        assert preview.moves == []
        assert any("could not be automatically redistributed" in w for w in preview.warnings)


class TestReshuffle:
    """Test reshuffling an active plan from a given day."""

    def test_past_workouts_stay_and_nothing_moves_into_the_past(self):
        availability = AvailabilityConfig.from_records(
            weekly=[DayAvailability(day_of_week=3, status="blocked")],
            overrides=[DateOverride(date=SAT, status="blocked")],
        )
        week = [
            workout(WED, "threshold_2x20", "threshold"),
            workout(FRI, "endurance_base", "endurance"),
            workout(SAT, "tempo_2x20", "tempo"),
        ]
        plan = reshuffle_active_plan(week, availability, today=FRI)
        assert len(plan.moves) == 1
        assert plan.moves[0].original_date == SAT
        assert plan.moves[0].new_date == FRI

        # Without a reference day, Thursday is preferred
        plan = redistribute_workouts(week, availability)
        saturday = [m for m in plan.moves if m.original_date == SAT][0]
        assert saturday.new_date == THU
