"""Greedy pairing of completed activities with planned workouts."""

import logging
from dataclasses import dataclass, field
from typing import Collection, List, Optional, Sequence, Tuple

from ..config import config
from ..dates import days_between
from ..scheduling.types import PlannedWorkout
from .types import Activity

logger = logging.getLogger(__name__)

DATE_WEIGHT = 40.0
DURATION_WEIGHT = 30.0
TSS_WEIGHT = 30.0


@dataclass(frozen=True)
class ActivityMatch:
    """A planned workout paired with the activity that fulfilled it."""
    workout: PlannedWorkout
    activity: Activity
    score: float
    reasons: Tuple[str, ...] = ()

    @property
    def quality(self) -> str:
        return match_quality(self.score)


@dataclass
class MatchResult:
    matches: List[ActivityMatch] = field(default_factory=list)
    skipped: List[PlannedWorkout] = field(default_factory=list)
    unplanned: List[Activity] = field(default_factory=list)


def match_quality(score: float) -> str:
    """Human label for a match score."""
    if score >= 80:
        return "Excellent"
    if score >= 60:
        return "Good"
    if score >= 40:
        return "Fair"
    return "Poor"


def _ratio(a: Optional[float], b: Optional[float]) -> Optional[float]:
    if not a or not b or a <= 0 or b <= 0:
        return None
    return min(a, b) / max(a, b)


def calculate_match_score(
    workout: PlannedWorkout,
    activity: Activity,
    tolerance_days: Optional[int] = None,
) -> Optional[Tuple[float, List[str]]]:
    """Score an activity against a planned workout.

    Up to 40 points for date proximity, 30 for duration similarity and 30
    for TSS similarity. Returns None when the dates are further apart than
    the tolerance.
    """
    if tolerance_days is None:
        tolerance_days = config.MATCH_DATE_TOLERANCE_DAYS

    days_diff = days_between(workout.date, activity.date)
    if days_diff > tolerance_days:
        return None

    reasons = []
    score = DATE_WEIGHT * (1 - days_diff)
    if days_diff == 0:
        reasons.append("Exact date match")
    else:
        reasons.append(f"Date within {days_diff} day(s)")

    duration_ratio = _ratio(workout.target_duration_minutes, activity.duration_minutes)
    if duration_ratio is not None:
        score += DURATION_WEIGHT * duration_ratio
        if duration_ratio >= 0.9:
            reasons.append("Duration matches closely")
        else:
            reasons.append(f"Duration within {round((1 - duration_ratio) * 100)}%")

    tss_ratio = _ratio(workout.target_tss, activity.tss)
    if tss_ratio is not None:
        score += TSS_WEIGHT * tss_ratio
        if tss_ratio >= 0.9:
            reasons.append("TSS matches closely")
        else:
            reasons.append(f"TSS within {round((1 - tss_ratio) * 100)}%")

    return score, reasons


def find_best_matching_activity(
    workout: PlannedWorkout,
    pool: Sequence[Activity],
    min_score: Optional[float] = None,
    tolerance_days: Optional[int] = None,
) -> Optional[ActivityMatch]:
    """Best-scoring activity from the pool, if it reaches the minimum."""
    if min_score is None:
        min_score = config.MATCH_MIN_SCORE

    best: Optional[ActivityMatch] = None
    best_score = 0.0
    for activity in pool:
        scored = calculate_match_score(workout, activity, tolerance_days)
        if scored is None:
            continue
        score, reasons = scored
        if score > best_score:
            best_score = score
            best = ActivityMatch(workout=workout, activity=activity, score=score, reasons=tuple(reasons))

    if best is None or best.score < min_score:
        return None
    return best


def find_matching_workout(
    activity: Activity,
    workouts: Sequence[PlannedWorkout],
    claimed: Collection[str] = (),
    min_score: Optional[float] = None,
    tolerance_days: Optional[int] = None,
) -> Optional[ActivityMatch]:
    """Best open planned workout for a single newly recorded activity.

    Rest days and workouts whose key is in ``claimed`` are not considered.
    Among equal scores the earliest workout wins.
    """
    if min_score is None:
        min_score = config.MATCH_MIN_SCORE

    best: Optional[ActivityMatch] = None
    for workout in sorted(workouts, key=lambda w: w.date):
        if workout.is_rest or workout.key in claimed:
            continue
        scored = calculate_match_score(workout, activity, tolerance_days)
        if scored is None:
            continue
        score, reasons = scored
        if score >= min_score and (best is None or score > best.score):
            best = ActivityMatch(workout=workout, activity=activity, score=score, reasons=tuple(reasons))

    if best is not None:
        logger.debug(f"Activity {activity.id} matches {best.workout.workout_id} on {best.workout.date.isoformat()}")
    return best


def match_activities(
    workouts: Sequence[PlannedWorkout],
    activities: Sequence[Activity],
    min_score: Optional[float] = None,
    tolerance_days: Optional[int] = None,
) -> MatchResult:
    """Pair activities with planned workouts.

    Workouts are visited in date order and each claims its best remaining
    activity, which then leaves the pool. Rest days take no part. There is
    no backtracking: an earlier workout can take an activity a later one
    would have scored higher.
    """
    pool = sorted(activities, key=lambda a: (a.date, a.id))
    result = MatchResult()

    for workout in sorted(workouts, key=lambda w: w.date):
        if workout.is_rest:
            continue
        match = find_best_matching_activity(workout, pool, min_score, tolerance_days)
        if match is None:
            result.skipped.append(workout)
            logger.debug(f"No activity for {workout.workout_id} on {workout.date.isoformat()}")
            continue
        pool = [a for a in pool if a.id != match.activity.id]
        result.matches.append(match)
        logger.debug(
            f"Matched {workout.workout_id} on {workout.date.isoformat()} with activity "
            f"{match.activity.id} ({match.score:.0f}, {match.quality})"
        )

    result.unplanned = pool
    return result
