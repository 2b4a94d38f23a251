"""Workout intensity levels used by the placement rules."""

from enum import Enum
from typing import Optional


class IntensityLevel(Enum):
    """Coarse intensity of a day's primary session."""
    REST = "rest"
    EASY = "easy"
    MODERATE = "moderate"
    HARD = "hard"

    @property
    def rank(self) -> int:
        return _LEVEL_RANK[self]


_LEVEL_RANK = {
    IntensityLevel.REST: 0,
    IntensityLevel.EASY: 1,
    IntensityLevel.MODERATE: 2,
    IntensityLevel.HARD: 3,
}

CATEGORY_INTENSITY_LEVEL = {
    # High intensity bike workouts
    "vo2max": IntensityLevel.HARD,
    "threshold": IntensityLevel.HARD,
    "anaerobic": IntensityLevel.HARD,
    "racing": IntensityLevel.HARD,
    "criterium": IntensityLevel.HARD,
    # Moderate intensity
    "sweet_spot": IntensityLevel.MODERATE,
    "tempo": IntensityLevel.MODERATE,
    "climbing": IntensityLevel.MODERATE,
    "intervals": IntensityLevel.MODERATE,
    "strength": IntensityLevel.MODERATE,
    # Easy / recovery
    "recovery": IntensityLevel.EASY,
    "endurance": IntensityLevel.EASY,
    "long_ride": IntensityLevel.EASY,
    "core": IntensityLevel.EASY,
    "flexibility": IntensityLevel.EASY,
    "rest": IntensityLevel.REST,
}


def get_intensity_level(category: Optional[str], workout_id: Optional[str] = None) -> IntensityLevel:
    """Map a workout category to its intensity level.

    Nothing scheduled (no category and no workout) is a rest day; unknown
    categories count as moderate.
    """
    if category is None and workout_id is None:
        return IntensityLevel.REST
    if category is None:
        return IntensityLevel.MODERATE
    return CATEGORY_INTENSITY_LEVEL.get(category, IntensityLevel.MODERATE)


def workout_intensity(workout) -> IntensityLevel:
    """Intensity level of a PlannedWorkout (rest days are REST)."""
    if workout.workout_id is None:
        return IntensityLevel.REST
    return get_intensity_level(workout.category, workout.workout_id)


def is_hard(workout) -> bool:
    return workout_intensity(workout) == IntensityLevel.HARD
