"""Workout redistribution for blocked calendar days.

Workouts that land on a blocked day are moved to the best-scoring day of
the same plan-week. Weeks are independent; inside a week, workouts are
handled in date order and every placement sees the placements made before
it, so the week is threaded through the loop as an immutable WeekState.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..catalog import SupplementClass, WorkoutCatalog, supplement_class_for
from ..config import config
from ..dates import day_of_week, is_weekend, week_dates
from .availability import AvailabilityConfig
from .intensity import IntensityLevel, is_hard, workout_intensity
from .types import (
    CandidateDay,
    PlanActivationPreview,
    PlannedWorkout,
    RedistributionPlan,
    ResolvedAvailability,
    TrainingPreferences,
    WorkoutMove,
)

logger = logging.getLogger(__name__)

NO_SUITABLE_DAY = "No suitable alternative day found - may need manual adjustment"


@dataclass(frozen=True)
class ScoringWeights:
    """Candidate-day scoring constants.

    These are policy values subject to product tuning. Override per call by
    passing a customised instance, or per environment through Config.
    """
    base: float = config.SCORE_BASE
    preferred_day: float = config.SCORE_PREFERRED_DAY
    double_hard_day: float = config.SCORE_DOUBLE_HARD_DAY
    replace_rest_day: float = config.SCORE_REPLACE_REST_DAY
    occupied_day: float = config.SCORE_OCCUPIED_DAY
    empty_day: float = config.SCORE_EMPTY_DAY
    back_to_back_hard: float = config.SCORE_BACK_TO_BACK_HARD
    heavy_recovery_window: float = config.SCORE_HEAVY_RECOVERY_WINDOW
    weekend_long_ride: float = config.SCORE_WEEKEND_LONG_RIDE
    per_day_offset: float = config.SCORE_PER_DAY_OFFSET
    exceeds_max_duration: float = config.SCORE_EXCEEDS_MAX_DURATION
    long_ride_min_minutes: int = config.LONG_RIDE_MIN_MINUTES


DEFAULT_WEIGHTS = ScoringWeights()


def _same(a: PlannedWorkout, b: Optional[PlannedWorkout]) -> bool:
    return b is not None and (a is b or a == b)


@dataclass(frozen=True)
class WeekState:
    """Snapshot of one plan-week's workouts during redistribution."""
    workouts: Tuple[PlannedWorkout, ...]

    @classmethod
    def of(cls, workouts: Iterable[PlannedWorkout]) -> "WeekState":
        return cls(tuple(sorted(workouts, key=lambda w: w.date)))

    def on(self, d: date, exclude: Optional[PlannedWorkout] = None) -> List[PlannedWorkout]:
        """Scheduled (non-empty) workouts on a date."""
        return [
            w for w in self.workouts
            if w.date == d and w.workout_id is not None and not _same(w, exclude)
        ]

    def occupant(self, d: date, exclude: Optional[PlannedWorkout] = None) -> Optional[PlannedWorkout]:
        """The most demanding workout on a date, if any."""
        scheduled = self.on(d, exclude)
        if not scheduled:
            return None
        return max(scheduled, key=lambda w: workout_intensity(w).rank)

    def has_hard_on(self, d: date, exclude: Optional[PlannedWorkout] = None) -> bool:
        return any(is_hard(w) for w in self.on(d, exclude))

    def with_move(self, workout: PlannedWorkout, new_date: date) -> "WeekState":
        """New state with one workout relocated."""
        return WeekState.of(
            w.moved_to(new_date) if _same(w, workout) else w
            for w in self.workouts
        )


def is_long_ride(workout: PlannedWorkout, weights: ScoringWeights = DEFAULT_WEIGHTS) -> bool:
    if workout.category == "long_ride":
        return True
    return workout.category == "endurance" and (workout.target_duration_minutes or 0) > weights.long_ride_min_minutes


def score_candidate(
    workout: PlannedWorkout,
    candidate: ResolvedAvailability,
    week: WeekState,
    preferences: TrainingPreferences,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> CandidateDay:
    """Score one destination date for a displaced workout."""
    d = candidate.date
    hard = workout_intensity(workout) == IntensityLevel.HARD
    score = weights.base
    reasons = []

    if candidate.is_preferred:
        score += weights.preferred_day
        reasons.append("Preferred day")

    occupant = week.occupant(d, exclude=workout)
    if occupant is not None:
        occupant_intensity = workout_intensity(occupant)
        if hard and occupant_intensity == IntensityLevel.HARD:
            score += weights.double_hard_day
            reasons.append("Would create double hard day")
        elif occupant_intensity == IntensityLevel.REST:
            score += weights.replace_rest_day
            reasons.append("Can replace rest day")
        else:
            score += weights.occupied_day
            reasons.append("Day already has workout")
    else:
        score += weights.empty_day
        reasons.append("Empty day")

    if hard:
        for neighbour in (d - timedelta(days=1), d + timedelta(days=1)):
            if week.has_hard_on(neighbour, exclude=workout):
                score += weights.back_to_back_hard
                reasons.append("Would create back-to-back hard days")

    if supplement_class_for(workout.workout_id) == SupplementClass.HEAVY_CONDITIONING:
        if week.has_hard_on(d + timedelta(days=2), exclude=workout):
            score += weights.heavy_recovery_window
            reasons.append("Hard session two days later - not enough recovery")

    if is_long_ride(workout, weights) and preferences.prefer_weekend_long_rides and is_weekend(d):
        score += weights.weekend_long_ride
        reasons.append("Weekend - good for long ride")

    offset = abs((d - workout.date).days)
    score += weights.per_day_offset * offset
    if offset <= 1:
        reasons.append("Close to original day")

    if candidate.max_duration_minutes and workout.target_duration_minutes:
        if workout.target_duration_minutes > candidate.max_duration_minutes:
            score += weights.exceeds_max_duration
            reasons.append(f"Exceeds max duration ({candidate.max_duration_minutes}min)")

    return CandidateDay(
        date=d,
        day_of_week=day_of_week(d),
        score=score,
        reasons=tuple(reasons),
        availability=candidate,
    )


def rank_candidate_days(
    workout: PlannedWorkout,
    week: Union[WeekState, Sequence[PlannedWorkout]],
    availability: AvailabilityConfig,
    preferences: Optional[TrainingPreferences] = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    not_before: Optional[date] = None,
) -> List[CandidateDay]:
    """All non-blocked days of the workout's week, best first.

    Ties go to the earliest date.
    """
    if not isinstance(week, WeekState):
        week = WeekState.of(week)
    preferences = preferences or TrainingPreferences()

    candidates = []
    for d in week_dates(workout.date):
        if d == workout.date:
            continue
        if not_before is not None and d < not_before:
            continue
        resolved = availability.resolve(d)
        if resolved.is_blocked:
            continue
        candidates.append(score_candidate(workout, resolved, week, preferences, weights))

    candidates.sort(key=lambda c: (-c.score, c.date))
    for c in candidates:
        logger.debug(f"{workout.workout_id} -> {c.date.isoformat()}: {c.score:.0f} ({'; '.join(c.reasons)})")
    return candidates


def find_best_alternative_day(
    workout: PlannedWorkout,
    week: Union[WeekState, Sequence[PlannedWorkout]],
    availability: AvailabilityConfig,
    preferences: Optional[TrainingPreferences] = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    not_before: Optional[date] = None,
) -> Optional[CandidateDay]:
    """Best destination with a positive score, or None."""
    ranked = rank_candidate_days(workout, week, availability, preferences, weights, not_before)
    for candidate in ranked:
        if candidate.score > 0:
            return candidate
    return None


def _redistribute_week(
    week_number: int,
    week_workouts: Sequence[PlannedWorkout],
    availability: AvailabilityConfig,
    preferences: TrainingPreferences,
    weights: ScoringWeights,
    not_before: Optional[date],
) -> Tuple[List[WorkoutMove], List[str], WeekState]:
    initial = WeekState.of(week_workouts)
    state = initial
    moves: List[WorkoutMove] = []
    warnings: List[str] = []

    for workout in initial.workouts:
        if workout.is_rest:
            continue
        if not_before is not None and workout.date < not_before:
            continue
        if not availability.is_blocked(workout.date):
            continue

        best = find_best_alternative_day(workout, state, availability, preferences, weights, not_before)
        if best is None:
            moves.append(WorkoutMove(workout.date, workout.date, workout.workout_id, NO_SUITABLE_DAY))
            warnings.append(
                f"Week {week_number}: {workout.workout_id} on {workout.date.isoformat()} - {NO_SUITABLE_DAY}"
            )
            logger.warning(f"No destination for {workout.workout_id} on {workout.date.isoformat()}")
            continue

        moves.append(WorkoutMove(workout.date, best.date, workout.workout_id, "; ".join(best.reasons)))
        state = state.with_move(workout, best.date)
        logger.info(
            f"Moved {workout.workout_id} from {workout.date.isoformat()} to {best.date.isoformat()} "
            f"(score {best.score:.0f})"
        )

    return moves, warnings, state


def redistribute_workouts(
    workouts: Iterable[PlannedWorkout],
    availability: AvailabilityConfig,
    preferences: Optional[TrainingPreferences] = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    not_before: Optional[date] = None,
    catalog: Optional[WorkoutCatalog] = None,
) -> RedistributionPlan:
    """Move workouts off blocked days.

    Args:
        workouts: Planned workouts (any number of weeks)
        availability: Weekly pattern and overrides
        preferences: Athlete scheduling preferences
        weights: Scoring constants
        not_before: Leave workouts before this date alone and never move
            anything onto an earlier date
        catalog: When given, fills in missing categories and targets so
            intensity is judged from the workout identifier

    Returns:
        RedistributionPlan with one move per displaced workout (an identity
        move when no destination was found), warnings and the resulting
        schedule. The input workouts are not modified.
    """
    preferences = preferences or TrainingPreferences()
    if catalog is not None:
        workouts = [catalog.fill_planned_metrics(w) for w in workouts]

    by_week: Dict[int, List[PlannedWorkout]] = defaultdict(list)
    for workout in workouts:
        by_week[workout.week_number].append(workout)

    plan = RedistributionPlan()
    for week_number in sorted(by_week):
        moves, warnings, state = _redistribute_week(
            week_number, by_week[week_number], availability, preferences, weights, not_before
        )
        plan.moves.extend(moves)
        plan.warnings.extend(warnings)
        plan.scheduled.extend(state.workouts)

    plan.scheduled.sort(key=lambda w: (w.date, w.week_number))
    return plan


def check_weekly_limits(
    scheduled: Iterable[PlannedWorkout],
    preferences: TrainingPreferences,
) -> List[str]:
    """Warnings for weeks that break the athlete's weekly limits."""
    warnings = []
    by_week: Dict[int, List[PlannedWorkout]] = defaultdict(list)
    for workout in scheduled:
        by_week[workout.week_number].append(workout)

    for week_number in sorted(by_week):
        active = [w for w in by_week[week_number] if not w.is_rest]

        if preferences.max_workouts_per_week and len(active) > preferences.max_workouts_per_week:
            warnings.append(
                f"Week {week_number} has {len(active)} workouts, exceeding your limit of "
                f"{preferences.max_workouts_per_week}"
            )

        hours = sum(w.target_duration_minutes or 0 for w in active) / 60
        if preferences.max_hours_per_week and hours > preferences.max_hours_per_week:
            warnings.append(
                f"Week {week_number} has {hours:.1f} hours planned, exceeding your limit of "
                f"{preferences.max_hours_per_week:g}"
            )

        hard_days = {w.date for w in active if is_hard(w)}
        if preferences.max_hard_days_per_week is not None and len(hard_days) > preferences.max_hard_days_per_week:
            warnings.append(
                f"Week {week_number} has {len(hard_days)} hard days, exceeding your limit of "
                f"{preferences.max_hard_days_per_week}"
            )

        rest_days = 7 - len({w.date for w in active})
        if rest_days < preferences.min_rest_days_per_week:
            warnings.append(
                f"Week {week_number} has {rest_days} rest day(s), fewer than your minimum of "
                f"{preferences.min_rest_days_per_week}"
            )

    return warnings


def preview_plan_activation(
    workouts: Sequence[PlannedWorkout],
    availability: AvailabilityConfig,
    preferences: Optional[TrainingPreferences] = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    catalog: Optional[WorkoutCatalog] = None,
    today: Optional[date] = None,
) -> PlanActivationPreview:
    """Preview how a plan fits the athlete's availability.

    With ``today`` the plan is treated as active and reshuffled from that
    day on; earlier workouts are neither counted nor moved.
    """
    preferences = preferences or TrainingPreferences()
    if catalog is not None:
        workouts = [catalog.fill_planned_metrics(w) for w in workouts]

    blocked_days_affected = sum(
        1 for w in workouts
        if not w.is_rest and availability.is_blocked(w.date) and (today is None or w.date >= today)
    )

    if today is None:
        plan = redistribute_workouts(workouts, availability, preferences, weights)
    else:
        plan = reshuffle_active_plan(workouts, availability, today, preferences, weights)
    unresolved = plan.unresolved

    warnings = list(plan.warnings)
    if unresolved:
        warnings.append(f"{len(unresolved)} workout(s) could not be automatically redistributed")
    warnings.extend(check_weekly_limits(plan.scheduled, preferences))

    return PlanActivationPreview(
        blocked_days_affected=blocked_days_affected,
        moves=[m for m in plan.moves if not m.is_unresolved],
        unresolved=unresolved,
        warnings=warnings,
        can_activate=plan.can_activate,
        scheduled=plan.scheduled,
    )


def reshuffle_active_plan(
    workouts: Sequence[PlannedWorkout],
    availability: AvailabilityConfig,
    today: date,
    preferences: Optional[TrainingPreferences] = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    catalog: Optional[WorkoutCatalog] = None,
) -> RedistributionPlan:
    """Re-run redistribution for an active plan after availability changed.

    Only workouts from today onwards are moved, and never into the past.
    """
    return redistribute_workouts(
        workouts, availability, preferences, weights, not_before=today, catalog=catalog
    )
