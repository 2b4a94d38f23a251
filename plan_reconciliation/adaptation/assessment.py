"""Rule-based severity and explanation for each adaptation."""

from typing import Optional, Tuple

from .types import (
    AdaptationRecord,
    AdaptationType,
    Assessment,
    StimulusAnalysis,
    TrainingContext,
    TrainingPhase,
    WorkoutMetrics,
)

FATIGUE_TSB_THRESHOLD = -20
KEY_SESSION_CATEGORIES = ("threshold", "vo2max", "anaerobic")
LOW_LOAD_PHASES = (TrainingPhase.TAPER, TrainingPhase.RECOVERY)
FEEDBACK_STIMULUS_THRESHOLD = 80
PARTIAL_ADAPTATIONS = (
    AdaptationType.TIME_TRUNCATED,
    AdaptationType.DOWNGRADED,
    AdaptationType.INTENSITY_SWAP,
)


def shortfall_percent(
    stimulus: StimulusAnalysis,
    planned: Optional[WorkoutMetrics],
    actual: Optional[WorkoutMetrics] = None,
) -> int:
    """Share of planned load that was not done.

    Sized by TSS when the plan has TSS and the activity recorded it,
    otherwise by duration.
    """
    if planned is None:
        return 0
    tss_known = actual is None or actual.tss is not None
    if planned.tss and planned.tss > 0 and tss_known:
        return round(stimulus.missing.get("tss", 0) / planned.tss * 100)
    if planned.duration_minutes and planned.duration_minutes > 0:
        return round(stimulus.missing.get(planned.category, 0) / planned.duration_minutes * 100)
    return 0


def generate_assessment(
    adaptation_type: AdaptationType,
    stimulus: Optional[StimulusAnalysis],
    context: Optional[TrainingContext] = None,
    planned: Optional[WorkoutMetrics] = None,
    actual: Optional[WorkoutMetrics] = None,
) -> Tuple[Assessment, str]:
    """Severity and a one-sentence explanation for an adaptation.

    Args:
        adaptation_type: Classified adaptation
        stimulus: Stimulus analysis for the pairing (None for unplanned)
        context: Training phase and TSB at the time
        planned: Planned metrics, used to size truncations
        actual: Actual metrics; without TSS a truncation is sized by duration

    Returns:
        Tuple of (assessment, explanation)
    """
    context = context or TrainingContext()
    stimulus = stimulus or StimulusAnalysis()

    if adaptation_type == AdaptationType.COMPLETED_AS_PLANNED:
        return Assessment.ACCEPTABLE, "Workout completed as planned. Great consistency!"

    if adaptation_type == AdaptationType.TIME_TRUNCATED:
        pct = shortfall_percent(stimulus, planned, actual)
        if pct <= 20:
            return Assessment.ACCEPTABLE, f"Workout shortened by ~{pct}%. Minor reduction in training stimulus."
        if pct <= 35:
            return (
                Assessment.MINOR_CONCERN,
                f"Workout shortened by ~{pct}%. Consider adding volume later in the week to compensate.",
            )
        return (
            Assessment.CONCERNING,
            f"Workout significantly shortened by ~{pct}%. May need to adjust weekly targets.",
        )

    if adaptation_type == AdaptationType.TIME_EXTENDED:
        if context.training_phase in LOW_LOAD_PHASES:
            return Assessment.MINOR_CONCERN, "Extended workout during recovery/taper phase. Monitor fatigue levels."
        return Assessment.BENEFICIAL, "Extended workout duration. Extra training stimulus achieved."

    if adaptation_type == AdaptationType.INTENSITY_SWAP:
        if stimulus.net_assessment == Assessment.ACCEPTABLE:
            return stimulus.net_assessment, "Swapped workout type. Similar training load achieved."
        return stimulus.net_assessment, "Swapped workout type. Training stimulus changed - may affect weekly balance."

    if adaptation_type == AdaptationType.UPGRADED:
        if context.tsb is not None and context.tsb < FATIGUE_TSB_THRESHOLD:
            return (
                Assessment.CONCERNING,
                "Upgraded to harder workout while fatigued (TSB < -20). Risk of overtraining.",
            )
        return Assessment.ACCEPTABLE, "Upgraded to harder workout. Extra intensity achieved."

    if adaptation_type == AdaptationType.DOWNGRADED:
        if any(category in stimulus.missing for category in KEY_SESSION_CATEGORIES):
            return Assessment.MINOR_CONCERN, "Downgraded from high-intensity workout. Key session stimulus missed."
        return Assessment.ACCEPTABLE, "Downgraded workout intensity. May be appropriate based on fatigue."

    if adaptation_type == AdaptationType.SKIPPED:
        return Assessment.CONCERNING, "Workout skipped. Planned training stimulus not achieved."

    return (
        Assessment.ACCEPTABLE,
        "Unplanned activity completed. Consider how it fits into your training load.",
    )


def assess_record(record: AdaptationRecord, context: Optional[TrainingContext] = None) -> Tuple[Assessment, str]:
    """Re-run the assessment for a stored record.

    Without an explicit context, the phase and TSB captured on the record
    are used, so repeated calls give the same answer.
    """
    if context is None:
        context = TrainingContext(
            training_phase=record.training_phase,
            tsb=record.tsb,
            ctl=record.ctl,
            atl=record.atl,
            week_number=record.week_number,
        )
    planned = None
    if record.planned_category is not None:
        planned = WorkoutMetrics(
            category=record.planned_category,
            duration_minutes=record.planned_duration_minutes,
            tss=record.planned_tss,
        )
    actual = None
    if record.actual_category is not None:
        actual = WorkoutMetrics(
            category=record.actual_category,
            duration_minutes=record.actual_duration_minutes,
            tss=record.actual_tss,
        )
    return generate_assessment(record.adaptation_type, record.stimulus_analysis, context, planned, actual)


def should_prompt_for_feedback(record: AdaptationRecord) -> bool:
    """Whether the athlete should be asked how the session went.

    Skipped sessions always qualify, as do shortened, downgraded or swapped
    sessions below 80% of the planned stimulus and anything assessed as a
    concern.
    """
    if record.adaptation_type == AdaptationType.SKIPPED:
        return True
    if (
        record.adaptation_type in PARTIAL_ADAPTATIONS
        and record.stimulus_achieved_pct is not None
        and record.stimulus_achieved_pct < FEEDBACK_STIMULUS_THRESHOLD
    ):
        return True
    return record.assessment in (Assessment.MINOR_CONCERN, Assessment.CONCERNING)


def _fmt(value: Optional[float]) -> str:
    return "?" if value is None else f"{value:g}"


def describe_adaptation(record: AdaptationRecord) -> str:
    """One-line summary of an adaptation record."""
    kind = record.adaptation_type
    planned = record.planned_category or "planned"
    actual = record.actual_category or "unknown"

    if kind == AdaptationType.COMPLETED_AS_PLANNED:
        return f"Completed as planned ({_fmt(record.actual_tss)} TSS)"
    if kind == AdaptationType.TIME_TRUNCATED:
        return (
            f"Shortened from {_fmt(record.planned_duration_minutes)}min to "
            f"{_fmt(record.actual_duration_minutes)}min ({_fmt(record.stimulus_achieved_pct)}% stimulus)"
        )
    if kind == AdaptationType.TIME_EXTENDED:
        return (
            f"Extended from {_fmt(record.planned_duration_minutes)}min to "
            f"{_fmt(record.actual_duration_minutes)}min"
        )
    if kind == AdaptationType.INTENSITY_SWAP:
        return f"Swapped {planned} for {actual}"
    if kind == AdaptationType.UPGRADED:
        delta = "?" if record.tss_delta is None else f"{record.tss_delta:+g}"
        return f"Upgraded from {planned} to {actual} ({delta} TSS)"
    if kind == AdaptationType.DOWNGRADED:
        return f"Downgraded from {planned} to {actual} ({_fmt(record.tss_delta)} TSS)"
    if kind == AdaptationType.SKIPPED:
        return f"Skipped planned {planned} workout ({_fmt(record.planned_tss)} TSS missed)"
    return f"Unplanned {actual} activity ({_fmt(record.actual_tss)} TSS)"
