"""Stimulus accounting: what training effect was lost or gained."""

from typing import Dict, Optional

from .classifier import get_intensity_rank_delta, percent_delta
from .types import Assessment, StimulusAnalysis, WorkoutMetrics


def calculate_stimulus_achieved(planned: WorkoutMetrics, actual: Optional[WorkoutMetrics]) -> int:
    """Percent of planned stimulus achieved, by TSS and else by duration."""
    if actual is None:
        return 0
    if planned.tss and planned.tss > 0 and actual.tss:
        return round(actual.tss / planned.tss * 100)
    if planned.duration_minutes and planned.duration_minutes > 0 and actual.duration_minutes:
        return round(actual.duration_minutes / planned.duration_minutes * 100)
    return 0


def assess_stimulus_change(planned: WorkoutMetrics, actual: WorkoutMetrics) -> Assessment:
    """Net assessment from TSS change and intensity-rank change.

    Without TSS on both sides only the intensity change counts.
    """
    tss_pct = percent_delta(planned.tss, actual.tss) or 0.0
    rank_delta = get_intensity_rank_delta(planned.category, actual.category)

    if tss_pct > 10 and rank_delta >= 0:
        return Assessment.BENEFICIAL
    if abs(tss_pct) <= 20 and abs(rank_delta) <= 1:
        return Assessment.ACCEPTABLE
    if abs(tss_pct) <= 40 or abs(rank_delta) <= 2:
        return Assessment.MINOR_CONCERN
    return Assessment.CONCERNING


def analyze_stimulus_delta(planned: WorkoutMetrics, actual: WorkoutMetrics) -> StimulusAnalysis:
    """Break the difference between plan and execution into missing and gained.

    Same category: only the shortfall or surplus of duration and TSS counts.
    Different category: the whole planned stimulus is missing and the whole
    actual stimulus is gained. An activity recorded without TSS takes no
    part in the TSS comparison.
    """
    planned_duration = planned.duration_minutes or 0
    planned_tss = planned.tss or 0
    actual_duration = actual.duration_minutes or 0
    tss_known = actual.tss is not None

    missing: Dict[str, float] = {}
    gained: Dict[str, float] = {}

    if planned.category == actual.category:
        if actual_duration < planned_duration:
            missing[planned.category] = planned_duration - actual_duration
        if actual_duration > planned_duration:
            gained[actual.category] = actual_duration - planned_duration
        if tss_known and actual.tss < planned_tss:
            missing["tss"] = planned_tss - actual.tss
        if tss_known and actual.tss > planned_tss:
            gained["tss"] = actual.tss - planned_tss
    else:
        missing[planned.category] = planned_duration
        missing["tss"] = planned_tss
        gained[actual.category] = actual_duration
        if tss_known:
            gained["tss"] = actual.tss

    return StimulusAnalysis(
        missing=missing,
        gained=gained,
        net_assessment=assess_stimulus_change(planned, actual),
    )


def skipped_stimulus(planned: WorkoutMetrics) -> StimulusAnalysis:
    """Everything planned is missing."""
    return StimulusAnalysis(
        missing={planned.category: planned.duration_minutes or 0, "tss": planned.tss or 0},
        gained={},
        net_assessment=Assessment.CONCERNING,
    )
