"""End-to-end reconciliation of a week's plan against what was done."""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence

from ..catalog import WorkoutCatalog
from ..scheduling.types import PlannedWorkout
from .assessment import generate_assessment
from .classifier import classify_adaptation, infer_workout_category, percent_delta
from .matching import match_activities
from .stimulus import analyze_stimulus_delta, calculate_stimulus_achieved, skipped_stimulus
from .types import (
    Activity,
    AdaptationRecord,
    AdaptationType,
    TrainingContext,
    WorkoutMetrics,
)

logger = logging.getLogger(__name__)

DEFAULT_PLANNED_CATEGORY = "endurance"


def _difference(planned: Optional[float], actual: Optional[float]) -> Optional[float]:
    if planned is None or actual is None:
        return None
    return actual - planned


def planned_metrics(workout: PlannedWorkout) -> WorkoutMetrics:
    return WorkoutMetrics(
        category=workout.category or DEFAULT_PLANNED_CATEGORY,
        duration_minutes=workout.target_duration_minutes,
        tss=workout.target_tss,
    )


def detect_adaptation(
    planned: PlannedWorkout,
    activity: Optional[Activity],
    ftp: Optional[float] = None,
    context: Optional[TrainingContext] = None,
    threshold_pace: Optional[float] = None,
) -> AdaptationRecord:
    """Classify, measure and assess one planned workout.

    Args:
        planned: The planned workout (metrics already filled in)
        activity: The matched activity, or None when nothing was done
        ftp: Functional threshold power for intensity inference
        context: Athlete state at the time
        threshold_pace: Running threshold pace in seconds per km

    Returns:
        AdaptationRecord for the pairing
    """
    context = context or TrainingContext()
    plan = planned_metrics(planned)

    if activity is None:
        adaptation_type = AdaptationType.SKIPPED
        actual = None
        stimulus = skipped_stimulus(plan)
    else:
        actual_category = infer_workout_category(activity, ftp, threshold_pace) or plan.category
        actual = WorkoutMetrics(
            category=actual_category,
            duration_minutes=activity.duration_minutes,
            tss=activity.tss,
        )
        adaptation_type = classify_adaptation(plan, actual)
        stimulus = analyze_stimulus_delta(plan, actual)

    assessment, explanation = generate_assessment(adaptation_type, stimulus, context, plan, actual)

    # Nothing done counts as zero for the deltas
    actual_duration = actual.duration_minutes if actual else 0
    actual_tss = actual.tss if actual else 0

    return AdaptationRecord(
        adaptation_type=adaptation_type,
        assessment=assessment,
        explanation=explanation,
        planned_workout_id=planned.key,
        activity_id=activity.id if activity else None,
        date=planned.date,
        planned_category=plan.category,
        planned_tss=plan.tss,
        planned_duration_minutes=plan.duration_minutes,
        actual_category=actual.category if actual else None,
        actual_tss=actual.tss if actual else None,
        actual_duration_minutes=actual.duration_minutes if actual else None,
        actual_intensity_factor=activity.intensity_factor if activity else None,
        actual_normalized_power=activity.normalized_power if activity else None,
        tss_delta=_difference(plan.tss, actual_tss),
        duration_delta=_difference(plan.duration_minutes, actual_duration),
        tss_delta_pct=percent_delta(plan.tss, actual_tss),
        duration_delta_pct=percent_delta(plan.duration_minutes, actual_duration),
        stimulus_achieved_pct=calculate_stimulus_achieved(plan, actual),
        stimulus_analysis=stimulus,
        week_number=context.week_number if context.week_number is not None else planned.week_number,
        training_phase=context.training_phase,
        ctl=context.ctl,
        atl=context.atl,
        tsb=context.tsb,
    )


def unplanned_adaptation(
    activity: Activity,
    ftp: Optional[float] = None,
    context: Optional[TrainingContext] = None,
    threshold_pace: Optional[float] = None,
) -> AdaptationRecord:
    """Record for an activity that matched no planned workout."""
    context = context or TrainingContext()
    assessment, explanation = generate_assessment(AdaptationType.UNPLANNED, None, context)
    return AdaptationRecord(
        adaptation_type=AdaptationType.UNPLANNED,
        assessment=assessment,
        explanation=explanation,
        activity_id=activity.id,
        date=activity.date,
        actual_category=infer_workout_category(activity, ftp, threshold_pace),
        actual_tss=activity.tss,
        actual_duration_minutes=activity.duration_minutes,
        actual_intensity_factor=activity.intensity_factor,
        actual_normalized_power=activity.normalized_power,
        week_number=context.week_number,
        training_phase=context.training_phase,
        ctl=context.ctl,
        atl=context.atl,
        tsb=context.tsb,
    )


def reconcile_week(
    planned_workouts: Sequence[PlannedWorkout],
    activities: Sequence[Activity],
    ftp: Optional[float] = None,
    context: Optional[TrainingContext] = None,
    threshold_pace: Optional[float] = None,
    catalog: Optional[WorkoutCatalog] = None,
    min_score: Optional[float] = None,
    tolerance_days: Optional[int] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[AdaptationRecord]:
    """Match, classify and assess a set of planned workouts and activities.

    Returns one record per non-rest planned workout in date order,
    followed by one unplanned record per unclaimed activity. Activities may
    extend past start and end by the matching tolerance so boundary
    workouts can claim them, but unclaimed ones outside the window get no
    unplanned record.
    """
    if catalog is not None:
        planned_workouts = [catalog.fill_planned_metrics(w) for w in planned_workouts]

    result = match_activities(planned_workouts, activities, min_score, tolerance_days)

    pairs = [(m.workout, m.activity) for m in result.matches]
    pairs.extend((w, None) for w in result.skipped)
    pairs.sort(key=lambda pair: pair[0].date)

    records = [detect_adaptation(w, a, ftp, context, threshold_pace) for w, a in pairs]
    unplanned = [
        a for a in result.unplanned
        if (start is None or a.date >= start) and (end is None or a.date <= end)
    ]
    records.extend(unplanned_adaptation(a, ftp, context, threshold_pace) for a in unplanned)

    logger.info(
        f"Reconciled {len(pairs)} planned workouts: {len(result.matches)} matched, "
        f"{len(result.skipped)} skipped, {len(unplanned)} unplanned activities"
    )
    return records


@dataclass
class AdaptationSummary:
    """Totals over a set of adaptation records."""
    total: int = 0
    by_type: Dict[str, int] = field(default_factory=dict)
    by_assessment: Dict[str, int] = field(default_factory=dict)
    planned_tss: float = 0.0
    actual_tss: float = 0.0
    unplanned_tss: float = 0.0
    stimulus_achieved_pct: Optional[int] = None

    def to_dict(self) -> Dict:
        return {
            "total": self.total,
            "by_type": dict(self.by_type),
            "by_assessment": dict(self.by_assessment),
            "planned_tss": self.planned_tss,
            "actual_tss": self.actual_tss,
            "unplanned_tss": self.unplanned_tss,
            "stimulus_achieved_pct": self.stimulus_achieved_pct,
        }


def summarize_adaptations(records: Sequence[AdaptationRecord]) -> AdaptationSummary:
    """Counts per type and assessment, and overall stimulus achieved.

    Stimulus achieved compares the TSS done against planned workouts with
    the TSS planned; unplanned activities are totalled separately.
    """
    summary = AdaptationSummary(total=len(records))
    summary.by_type = dict(Counter(r.adaptation_type.value for r in records))
    summary.by_assessment = dict(Counter(r.assessment.value for r in records))

    for record in records:
        if record.adaptation_type == AdaptationType.UNPLANNED:
            summary.unplanned_tss += record.actual_tss or 0
            continue
        summary.planned_tss += record.planned_tss or 0
        summary.actual_tss += record.actual_tss or 0

    if summary.planned_tss > 0:
        summary.stimulus_achieved_pct = round(summary.actual_tss / summary.planned_tss * 100)
    return summary
