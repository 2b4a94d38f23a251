"""Availability-aware scheduling: resolution, redistribution, supplement placement."""

from .availability import AvailabilityConfig, resolve_availability
from .intensity import IntensityLevel, get_intensity_level, is_hard, workout_intensity
from .redistribution import (
    DEFAULT_WEIGHTS,
    NO_SUITABLE_DAY,
    ScoringWeights,
    WeekState,
    find_best_alternative_day,
    preview_plan_activation,
    rank_candidate_days,
    redistribute_workouts,
    reshuffle_active_plan,
    score_candidate,
)
from .supplements import (
    PLACEMENT_RULES,
    PlacementRule,
    SupplementSuggestion,
    SupplementWeights,
    find_optimal_supplement_days,
)
from .types import (
    AvailabilityStatus,
    CandidateDay,
    DateOverride,
    DayAvailability,
    PlanActivationPreview,
    PlannedWorkout,
    RedistributionPlan,
    ResolvedAvailability,
    TrainingPreferences,
    WorkoutMove,
)

__all__ = [
    "AvailabilityConfig",
    "AvailabilityStatus",
    "CandidateDay",
    "DEFAULT_WEIGHTS",
    "DateOverride",
    "DayAvailability",
    "IntensityLevel",
    "NO_SUITABLE_DAY",
    "PLACEMENT_RULES",
    "PlacementRule",
    "PlanActivationPreview",
    "PlannedWorkout",
    "RedistributionPlan",
    "ResolvedAvailability",
    "ScoringWeights",
    "SupplementSuggestion",
    "SupplementWeights",
    "TrainingPreferences",
    "WeekState",
    "WorkoutMove",
    "find_best_alternative_day",
    "find_optimal_supplement_days",
    "get_intensity_level",
    "is_hard",
    "preview_plan_activation",
    "rank_candidate_days",
    "redistribute_workouts",
    "reshuffle_active_plan",
    "resolve_availability",
    "score_candidate",
    "workout_intensity",
]
