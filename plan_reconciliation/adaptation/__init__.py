"""Adaptation detection: matching, classification, stimulus and assessment."""

from .assessment import (
    assess_record,
    describe_adaptation,
    generate_assessment,
    should_prompt_for_feedback,
)
from .classifier import (
    classify_adaptation,
    get_intensity_rank_delta,
    infer_workout_category,
    is_similar_category,
)
from .matching import (
    ActivityMatch,
    MatchResult,
    calculate_match_score,
    find_best_matching_activity,
    find_matching_workout,
    match_activities,
    match_quality,
)
from .reconcile import AdaptationSummary, detect_adaptation, reconcile_week, summarize_adaptations
from .stimulus import analyze_stimulus_delta, calculate_stimulus_achieved
from .types import (
    Activity,
    AdaptationRecord,
    AdaptationType,
    Assessment,
    StimulusAnalysis,
    TrainingContext,
    TrainingPhase,
    WorkoutMetrics,
)

__all__ = [
    "Activity",
    "ActivityMatch",
    "AdaptationRecord",
    "AdaptationSummary",
    "AdaptationType",
    "Assessment",
    "MatchResult",
    "StimulusAnalysis",
    "TrainingContext",
    "TrainingPhase",
    "WorkoutMetrics",
    "analyze_stimulus_delta",
    "assess_record",
    "calculate_match_score",
    "calculate_stimulus_achieved",
    "classify_adaptation",
    "describe_adaptation",
    "detect_adaptation",
    "find_best_matching_activity",
    "find_matching_workout",
    "generate_assessment",
    "get_intensity_rank_delta",
    "infer_workout_category",
    "is_similar_category",
    "match_activities",
    "match_quality",
    "reconcile_week",
    "should_prompt_for_feedback",
    "summarize_adaptations",
]
