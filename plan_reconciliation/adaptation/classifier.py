"""Adaptation classification: what kind of deviation from plan happened.

The classifier compares planned and actual metrics and walks a fixed
decision order; the first rule that matches wins. Percent deltas are
relative to plan and are None when either side lacks the metric. A
missing delta is treated as "close to plan" and never as "far from plan",
so classification degrades to duration-only or category-only rules
instead of failing.
"""

import math
from typing import Optional

from .types import Activity, AdaptationType, WorkoutMetrics

# Thresholds, in percent of planned
DURATION_EXACT_MATCH = 10.0
DURATION_TRUNCATED = -15.0
DURATION_EXTENDED = 15.0
TSS_EXACT_MATCH = 15.0
TSS_SIGNIFICANT_OVER = 25.0
TSS_SIGNIFICANT_UNDER = -25.0

UNKNOWN_CATEGORY_RANK = 3

CATEGORY_INTENSITY_RANK = {
    "rest": 0,
    "recovery": 1,
    "flexibility": 1,
    "core": 2,
    "strength": 2,
    "endurance": 3,
    "long_ride": 3,
    "tempo": 4,
    "sweet_spot": 5,
    "threshold": 6,
    "climbing": 6,
    "vo2max": 7,
    "anaerobic": 8,
    "racing": 9,
}

SIMILAR_CATEGORIES = {
    "recovery": ("endurance", "flexibility"),
    "endurance": ("recovery", "tempo", "long_ride"),
    "long_ride": ("endurance",),
    "tempo": ("endurance", "sweet_spot"),
    "sweet_spot": ("tempo", "threshold"),
    "threshold": ("sweet_spot", "vo2max"),
    "vo2max": ("threshold", "anaerobic"),
    "anaerobic": ("vo2max", "racing"),
    "climbing": ("threshold", "sweet_spot"),
}

# Upper bounds of intensity factor bands for cycling
CYCLING_IF_BANDS = (
    (0.55, "recovery"),
    (0.75, "endurance"),
    (0.87, "tempo"),
    (0.94, "sweet_spot"),
    (1.05, "threshold"),
    (1.20, "vo2max"),
)

# Lower bounds of pace / threshold pace ratios for running (slower is easier)
RUNNING_PACE_RATIO_BANDS = (
    (1.40, "recovery"),
    (1.20, "endurance"),
    (1.08, "tempo"),
    (0.98, "threshold"),
    (0.90, "vo2max"),
)

# Lower bounds of min/km for runners without a threshold pace
RUNNING_ABSOLUTE_PACE_BANDS = (
    (7.0, "recovery"),
    (5.5, "endurance"),
    (4.8, "tempo"),
    (4.3, "threshold"),
    (3.8, "vo2max"),
)

# Upper bounds of TSS per hour
TSS_PER_HOUR_BANDS = (
    (35, "recovery"),
    (55, "endurance"),
    (75, "tempo"),
    (95, "threshold"),
)


def category_rank(category: Optional[str]) -> int:
    return CATEGORY_INTENSITY_RANK.get(category, UNKNOWN_CATEGORY_RANK)


def is_similar_category(first: str, second: str) -> bool:
    """Whether two categories can substitute for each other."""
    if first == second:
        return True
    return second in SIMILAR_CATEGORIES.get(first, ()) or first in SIMILAR_CATEGORIES.get(second, ())


def get_intensity_rank_delta(planned_category: str, actual_category: str) -> int:
    """Positive when the actual session was more intense than planned."""
    return category_rank(actual_category) - category_rank(planned_category)


def percent_delta(planned: Optional[float], actual: Optional[float]) -> Optional[float]:
    """Change from planned to actual in percent, or None without both values."""
    if planned is None or actual is None or planned <= 0:
        return None
    return (actual - planned) / planned * 100


def _band_below(value: float, bands, fallback: str) -> str:
    for upper, category in bands:
        if value < upper:
            return category
    return fallback


def _band_above(value: float, bands, fallback: str) -> str:
    for lower, category in bands:
        if value > lower:
            return category
    return fallback


def _tss_per_hour_category(activity: Activity) -> Optional[str]:
    if not activity.tss or not activity.duration_minutes:
        return None
    return _band_below(activity.tss / (activity.duration_minutes / 60), TSS_PER_HOUR_BANDS, "vo2max")


def _infer_running_category(activity: Activity, threshold_pace: Optional[float]) -> Optional[str]:
    if activity.average_pace and threshold_pace and threshold_pace > 0:
        return _band_above(activity.average_pace / threshold_pace, RUNNING_PACE_RATIO_BANDS, "anaerobic")

    if activity.distance_km and activity.duration_minutes:
        pace_min_per_km = activity.duration_minutes / activity.distance_km
        return _band_above(pace_min_per_km, RUNNING_ABSOLUTE_PACE_BANDS, "anaerobic")

    return _tss_per_hour_category(activity)


def estimate_intensity_factor(activity: Activity, ftp: Optional[float] = None) -> Optional[float]:
    """Intensity factor from the best available cycling metric."""
    if activity.intensity_factor:
        return activity.intensity_factor
    if ftp and ftp > 0:
        if activity.normalized_power:
            return activity.normalized_power / ftp
        # Average power underestimates NP on variable rides
        if activity.average_power:
            return activity.average_power / ftp
    if activity.tss and activity.duration_minutes:
        # TSS = hours * IF^2 * 100
        hours = activity.duration_minutes / 60
        return math.sqrt(activity.tss / (hours * 100))
    return None


def infer_workout_category(
    activity: Activity,
    ftp: Optional[float] = None,
    threshold_pace: Optional[float] = None,
) -> Optional[str]:
    """Infer the category of a performed session from its metrics.

    Args:
        activity: The completed activity
        ftp: Functional threshold power in watts (cycling)
        threshold_pace: Threshold pace in seconds per km (running)

    Returns:
        Category name, or None when no usable metric is present
    """
    if activity.is_running:
        return _infer_running_category(activity, threshold_pace)

    intensity_factor = estimate_intensity_factor(activity, ftp)
    if intensity_factor is None:
        return None
    return _band_below(intensity_factor, CYCLING_IF_BANDS, "anaerobic")


def classify_adaptation(planned: WorkoutMetrics, actual: Optional[WorkoutMetrics]) -> AdaptationType:
    """Label a planned/actual pair with exactly one adaptation type."""
    if actual is None:
        return AdaptationType.SKIPPED

    duration_delta = percent_delta(planned.duration_minutes, actual.duration_minutes)
    tss_delta = percent_delta(planned.tss, actual.tss)

    type_changed = not is_similar_category(planned.category, actual.category)
    rank_delta = get_intensity_rank_delta(planned.category, actual.category)

    duration_close = duration_delta is None or abs(duration_delta) <= DURATION_EXACT_MATCH
    tss_close = tss_delta is None or abs(tss_delta) <= TSS_EXACT_MATCH

    if duration_close and tss_close and not type_changed:
        return AdaptationType.COMPLETED_AS_PLANNED

    if duration_delta is not None and not type_changed and abs(rank_delta) <= 1:
        if duration_delta < DURATION_TRUNCATED:
            return AdaptationType.TIME_TRUNCATED
        if duration_delta > DURATION_EXTENDED:
            return AdaptationType.TIME_EXTENDED

    if type_changed and tss_close:
        return AdaptationType.INTENSITY_SWAP

    if rank_delta > 0 or (tss_delta is not None and tss_delta > TSS_SIGNIFICANT_OVER):
        return AdaptationType.UPGRADED

    if rank_delta < 0 or (tss_delta is not None and tss_delta < TSS_SIGNIFICANT_UNDER):
        return AdaptationType.DOWNGRADED

    return AdaptationType.INTENSITY_SWAP
