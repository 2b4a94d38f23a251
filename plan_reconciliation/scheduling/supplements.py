"""Placement advice for supplement sessions (conditioning, core, mobility).

Supplements sit alongside the primary bike plan. Each class has its own
rule set: which day intensities it may share, how much room it needs before
a hard primary session, and how often it may recur.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, FrozenSet, List, Optional, Sequence

from ..catalog import SupplementClass, WorkoutCatalog, supplement_class_for
from ..config import config
from ..dates import DateLike, date_range, days_between, to_date, week_start
from .availability import AvailabilityConfig
from .intensity import IntensityLevel, workout_intensity
from .types import PlannedWorkout

logger = logging.getLogger(__name__)

ANY_DAY = frozenset(IntensityLevel)


@dataclass(frozen=True)
class PlacementRule:
    """Placement constraints for one supplement class."""
    allowed_day_intensities: FrozenSet[IntensityLevel]
    avoid_before_intensities: FrozenSet[IntensityLevel]
    hours_before_hard: int
    max_per_week: int
    min_days_between: int
    preferred_day_intensities: FrozenSet[IntensityLevel]


PLACEMENT_RULES: Dict[SupplementClass, PlacementRule] = {
    # Heavy lifting needs 48h before hard bike work
    SupplementClass.HEAVY_CONDITIONING: PlacementRule(
        allowed_day_intensities=frozenset({IntensityLevel.EASY, IntensityLevel.REST, IntensityLevel.MODERATE}),
        avoid_before_intensities=frozenset({IntensityLevel.HARD}),
        hours_before_hard=48,
        max_per_week=2,
        min_days_between=2,
        preferred_day_intensities=frozenset({IntensityLevel.EASY, IntensityLevel.REST}),
    ),
    SupplementClass.LIGHT_CONDITIONING: PlacementRule(
        allowed_day_intensities=frozenset({IntensityLevel.EASY, IntensityLevel.REST, IntensityLevel.MODERATE}),
        avoid_before_intensities=frozenset({IntensityLevel.HARD}),
        hours_before_hard=24,
        max_per_week=3,
        min_days_between=1,
        preferred_day_intensities=frozenset({IntensityLevel.EASY, IntensityLevel.MODERATE}),
    ),
    SupplementClass.CORE: PlacementRule(
        allowed_day_intensities=ANY_DAY,
        avoid_before_intensities=frozenset(),
        hours_before_hard=0,
        max_per_week=4,
        min_days_between=1,
        preferred_day_intensities=frozenset({IntensityLevel.EASY, IntensityLevel.MODERATE}),
    ),
    SupplementClass.FLEXIBILITY: PlacementRule(
        allowed_day_intensities=ANY_DAY,
        avoid_before_intensities=frozenset(),
        hours_before_hard=0,
        max_per_week=7,
        min_days_between=0,
        preferred_day_intensities=frozenset({IntensityLevel.EASY, IntensityLevel.REST}),
    ),
}


@dataclass(frozen=True)
class SupplementWeights:
    """Supplement scoring constants (product-tuned)."""
    base: float = config.SUPPLEMENT_SCORE_BASE
    preferred_day: float = config.SUPPLEMENT_SCORE_PREFERRED_DAY
    rest_day: float = config.SUPPLEMENT_SCORE_REST_DAY
    day_before_hard: float = config.SUPPLEMENT_SCORE_DAY_BEFORE_HARD
    hard_in_window: float = config.SUPPLEMENT_SCORE_HARD_IN_WINDOW
    min_score: float = config.SUPPLEMENT_MIN_SCORE


DEFAULT_SUPPLEMENT_WEIGHTS = SupplementWeights()


@dataclass(frozen=True)
class SupplementSuggestion:
    """A suggested date for a supplement session, scored 0..100."""
    date: date
    score: float
    reasons: tuple = ()

    @property
    def reason(self) -> str:
        return self.reasons[0] if self.reasons else "Available day"

    def to_dict(self) -> Dict:
        return {
            "date": self.date.isoformat(),
            "score": self.score,
            "reason": self.reason,
        }


class _PrimaryCalendar:
    """Day-intensity lookup over the primary (non-supplement) workouts."""

    def __init__(self, workouts: Sequence[PlannedWorkout]):
        self._by_date: Dict[date, IntensityLevel] = {}
        for workout in workouts:
            if supplement_class_for(workout.workout_id) is not None:
                continue
            current = self._by_date.get(workout.date, IntensityLevel.REST)
            self._by_date[workout.date] = max(current, workout_intensity(workout), key=lambda level: level.rank)

    def intensity(self, d: date) -> IntensityLevel:
        return self._by_date.get(d, IntensityLevel.REST)


def _label(supplement_class: SupplementClass) -> str:
    return supplement_class.value.replace("_", " ")


def score_supplement_day(
    d: date,
    supplement_class: SupplementClass,
    calendar: _PrimaryCalendar,
    weights: SupplementWeights = DEFAULT_SUPPLEMENT_WEIGHTS,
) -> Optional[SupplementSuggestion]:
    """Score one date, or None when the day intensity is not allowed."""
    rule = PLACEMENT_RULES[supplement_class]
    day_intensity = calendar.intensity(d)
    if day_intensity not in rule.allowed_day_intensities:
        return None

    score = weights.base
    reasons = []

    if rule.avoid_before_intensities:
        if calendar.intensity(d + timedelta(days=1)) in rule.avoid_before_intensities:
            score += weights.day_before_hard
            reasons.append("Day before hard workout - not ideal")

        # Days beyond tomorrow still inside the recovery window
        for offset in range(2, rule.hours_before_hard // 24 + 1):
            if calendar.intensity(d + timedelta(days=offset)) == IntensityLevel.HARD:
                score += weights.hard_in_window
                reasons.append(f"Hard workout in {offset} days - allow more recovery")

    if day_intensity in rule.preferred_day_intensities:
        score += weights.preferred_day
        reasons.append(f"Good day for {_label(supplement_class)}")

    if day_intensity == IntensityLevel.REST:
        score += weights.rest_day
        reasons.append("Rest day - great for supplementary work")

    return SupplementSuggestion(date=d, score=min(100.0, max(0.0, score)), reasons=tuple(reasons))


def find_optimal_supplement_days(
    supplement_workout_id: str,
    existing_workouts: Sequence[PlannedWorkout],
    start_date: DateLike,
    weeks_ahead: Optional[int] = None,
    availability: Optional[AvailabilityConfig] = None,
    weights: SupplementWeights = DEFAULT_SUPPLEMENT_WEIGHTS,
    catalog: Optional[WorkoutCatalog] = None,
) -> List[SupplementSuggestion]:
    """Rank dates for a supplement session over a look-ahead window.

    Args:
        supplement_workout_id: Catalog identifier of the supplement session
        existing_workouts: Planned workouts (primary and supplement) in and
            around the window
        start_date: First date considered
        weeks_ahead: Window length in weeks; the window is inclusive of
            start_date + weeks_ahead * 7
        availability: When given, blocked dates are never suggested
        weights: Scoring constants
        catalog: Fills in missing categories of existing workouts

    Returns:
        Suggestions scoring above the minimum, best first, earliest date
        first among equal scores. Primary workout identifiers give [].
    """
    supplement_class = supplement_class_for(supplement_workout_id)
    if supplement_class is None:
        return []

    if weeks_ahead is None:
        weeks_ahead = config.SUPPLEMENT_LOOKAHEAD_WEEKS
    if weeks_ahead < 0:
        raise ValueError("weeks_ahead cannot be negative")

    rule = PLACEMENT_RULES[supplement_class]
    start = to_date(start_date)
    end = start + timedelta(days=weeks_ahead * 7)

    if catalog is not None:
        existing_workouts = [catalog.fill_planned_metrics(w) for w in existing_workouts]

    calendar = _PrimaryCalendar(existing_workouts)
    same_class_dates = [
        w.date for w in existing_workouts
        if supplement_class_for(w.workout_id) == supplement_class
    ]
    per_week: Dict[date, int] = defaultdict(int)
    for d in same_class_dates:
        per_week[week_start(d)] += 1

    min_gap = max(1, rule.min_days_between)
    suggestions = []
    for d in date_range(start, end):
        if availability is not None and availability.is_blocked(d):
            continue
        if per_week[week_start(d)] >= rule.max_per_week:
            continue
        if any(days_between(d, existing) < min_gap for existing in same_class_dates):
            continue

        suggestion = score_supplement_day(d, supplement_class, calendar, weights)
        if suggestion is not None and suggestion.score > weights.min_score:
            suggestions.append(suggestion)

    suggestions.sort(key=lambda s: (-s.score, s.date))
    logger.debug(
        f"{len(suggestions)} candidate days for {supplement_workout_id} "
        f"between {start.isoformat()} and {end.isoformat()}"
    )
    return suggestions
