"""Data types for availability resolution and workout redistribution."""

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ..dates import day_of_week, to_date


class AvailabilityStatus(Enum):
    """Effective status of a calendar day."""
    AVAILABLE = "available"
    BLOCKED = "blocked"
    PREFERRED = "preferred"


def _coerce_status(value) -> AvailabilityStatus:
    if isinstance(value, AvailabilityStatus):
        return value
    try:
        return AvailabilityStatus(value)
    except ValueError:
        raise ValueError(f"Unknown availability status: {value!r}") from None


def _check_weekday(value: int) -> None:
    if not isinstance(value, int) or not 0 <= value <= 6:
        raise ValueError(f"day_of_week must be an integer in 0..6, got {value!r}")


@dataclass(frozen=True)
class DayAvailability:
    """Weekly availability for one weekday (0=Sunday)."""
    day_of_week: int
    status: AvailabilityStatus = AvailabilityStatus.AVAILABLE
    max_duration_minutes: Optional[int] = None
    notes: Optional[str] = None

    def __post_init__(self):
        _check_weekday(self.day_of_week)
        object.__setattr__(self, "status", _coerce_status(self.status))
        if self.max_duration_minutes is not None and self.max_duration_minutes < 0:
            raise ValueError("max_duration_minutes cannot be negative")


@dataclass(frozen=True)
class DateOverride:
    """Availability for one specific calendar date."""
    date: date
    status: AvailabilityStatus
    max_duration_minutes: Optional[int] = None
    notes: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "date", to_date(self.date))
        object.__setattr__(self, "status", _coerce_status(self.status))
        if self.max_duration_minutes is not None and self.max_duration_minutes < 0:
            raise ValueError("max_duration_minutes cannot be negative")


@dataclass(frozen=True)
class ResolvedAvailability:
    """Weekly pattern and overrides combined for one date."""
    date: date
    status: AvailabilityStatus
    is_override: bool
    max_duration_minutes: Optional[int] = None
    notes: Optional[str] = None

    @property
    def is_blocked(self) -> bool:
        return self.status == AvailabilityStatus.BLOCKED

    @property
    def is_preferred(self) -> bool:
        return self.status == AvailabilityStatus.PREFERRED


@dataclass(frozen=True)
class TrainingPreferences:
    """Athlete-level scheduling preferences."""
    max_workouts_per_week: Optional[int] = None
    max_hours_per_week: Optional[float] = None
    max_hard_days_per_week: Optional[int] = None
    min_rest_days_per_week: int = 1
    prefer_weekend_long_rides: bool = True

    def __post_init__(self):
        if self.min_rest_days_per_week < 0 or self.min_rest_days_per_week > 7:
            raise ValueError("min_rest_days_per_week must be within 0..7")
        if self.max_workouts_per_week is not None and self.max_workouts_per_week < 0:
            raise ValueError("max_workouts_per_week cannot be negative")


@dataclass(frozen=True)
class PlannedWorkout:
    """A workout scheduled on one date of a plan.

    Identity is (plan_id, date). A workout without a workout_id, or with the
    "rest" category, is a rest day.
    """
    date: date
    week_number: int
    workout_id: Optional[str] = None
    category: Optional[str] = None
    target_tss: Optional[float] = None
    target_duration_minutes: Optional[int] = None
    day_of_week: Optional[int] = None
    plan_id: Optional[str] = None
    id: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "date", to_date(self.date))
        if self.day_of_week is None:
            object.__setattr__(self, "day_of_week", day_of_week(self.date))
        _check_weekday(self.day_of_week)
        if self.target_duration_minutes is not None and self.target_duration_minutes < 0:
            raise ValueError("target_duration_minutes cannot be negative")
        if self.target_tss is not None and self.target_tss < 0:
            raise ValueError("target_tss cannot be negative")

    @property
    def is_rest(self) -> bool:
        return self.workout_id is None or self.category == "rest"

    @property
    def key(self) -> str:
        """Stable identifier; falls back to plan and date."""
        if self.id is not None:
            return self.id
        return f"{self.plan_id or 'plan'}:{self.date.isoformat()}"

    def moved_to(self, new_date: date) -> "PlannedWorkout":
        """Copy of this workout on another date."""
        new_date = to_date(new_date)
        return replace(self, date=new_date, day_of_week=day_of_week(new_date))


@dataclass(frozen=True)
class WorkoutMove:
    """A proposed relocation. Identity moves mark unresolved workouts."""
    original_date: date
    new_date: date
    workout_id: Optional[str]
    reason: str

    @property
    def is_unresolved(self) -> bool:
        return self.original_date == self.new_date

    def to_dict(self) -> Dict:
        return {
            "original_date": self.original_date.isoformat(),
            "new_date": self.new_date.isoformat(),
            "workout_id": self.workout_id,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class CandidateDay:
    """A scored destination date for a displaced workout."""
    date: date
    day_of_week: int
    score: float
    reasons: Tuple[str, ...]
    availability: ResolvedAvailability


@dataclass
class RedistributionPlan:
    """Result of redistributing a set of workouts."""
    moves: List[WorkoutMove] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    scheduled: List[PlannedWorkout] = field(default_factory=list)

    @property
    def can_activate(self) -> bool:
        return not any(move.is_unresolved for move in self.moves)

    @property
    def unresolved(self) -> List[WorkoutMove]:
        return [move for move in self.moves if move.is_unresolved]


@dataclass
class PlanActivationPreview:
    """Summary shown before activating or reshuffling a plan."""
    blocked_days_affected: int
    moves: List[WorkoutMove]
    unresolved: List[WorkoutMove]
    warnings: List[str]
    can_activate: bool
    scheduled: List[PlannedWorkout] = field(default_factory=list)
