"""Data types for planned-vs-actual reconciliation."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Optional

from ..dates import to_date


class AdaptationType(Enum):
    """How a performed session deviated from its planned workout."""
    COMPLETED_AS_PLANNED = "completed_as_planned"
    TIME_TRUNCATED = "time_truncated"
    TIME_EXTENDED = "time_extended"
    INTENSITY_SWAP = "intensity_swap"
    UPGRADED = "upgraded"
    DOWNGRADED = "downgraded"
    SKIPPED = "skipped"
    UNPLANNED = "unplanned"


class Assessment(Enum):
    """Severity of an adaptation, best to worst."""
    BENEFICIAL = "beneficial"
    ACCEPTABLE = "acceptable"
    MINOR_CONCERN = "minor_concern"
    CONCERNING = "concerning"


class TrainingPhase(Enum):
    BASE = "base"
    BUILD = "build"
    PEAK = "peak"
    TAPER = "taper"
    RECOVERY = "recovery"


@dataclass(frozen=True)
class Activity:
    """A completed activity from the activity store.

    Durations are minutes, pace is seconds per km, distance is km.
    """
    id: str
    date: date
    duration_minutes: Optional[float] = None
    tss: Optional[float] = None
    intensity_factor: Optional[float] = None
    normalized_power: Optional[float] = None
    average_power: Optional[float] = None
    average_pace: Optional[float] = None
    distance_km: Optional[float] = None
    sport_type: str = "ride"
    name: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "date", to_date(self.date))
        if self.duration_minutes is not None and self.duration_minutes < 0:
            raise ValueError("duration_minutes cannot be negative")

    @property
    def is_running(self) -> bool:
        return "run" in (self.sport_type or "").lower()


@dataclass(frozen=True)
class WorkoutMetrics:
    """Category, duration and TSS of one side of a comparison."""
    category: str
    duration_minutes: Optional[float] = None
    tss: Optional[float] = None


@dataclass(frozen=True)
class TrainingContext:
    """Athlete state at the time of the session."""
    training_phase: Optional[TrainingPhase] = None
    tsb: Optional[float] = None
    ctl: Optional[float] = None
    atl: Optional[float] = None
    week_number: Optional[int] = None


@dataclass(frozen=True)
class StimulusAnalysis:
    """Stimulus lost and gained, keyed by category name or "tss"."""
    missing: Dict[str, float] = field(default_factory=dict)
    gained: Dict[str, float] = field(default_factory=dict)
    net_assessment: Assessment = Assessment.ACCEPTABLE

    def to_dict(self) -> Dict:
        return {
            "missing": dict(self.missing),
            "gained": dict(self.gained),
            "net_assessment": self.net_assessment.value,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "StimulusAnalysis":
        return cls(
            missing=dict(data.get("missing") or {}),
            gained=dict(data.get("gained") or {}),
            net_assessment=Assessment(data.get("net_assessment", Assessment.ACCEPTABLE.value)),
        )


@dataclass(frozen=True)
class AdaptationRecord:
    """Diagnosis of one planned/actual pairing.

    Created once per reconciliation pass and never mutated; a later pass
    supersedes it.
    """
    adaptation_type: AdaptationType
    assessment: Assessment
    explanation: str
    planned_workout_id: Optional[str] = None
    activity_id: Optional[str] = None
    date: Optional[date] = None
    planned_category: Optional[str] = None
    planned_tss: Optional[float] = None
    planned_duration_minutes: Optional[float] = None
    actual_category: Optional[str] = None
    actual_tss: Optional[float] = None
    actual_duration_minutes: Optional[float] = None
    actual_intensity_factor: Optional[float] = None
    actual_normalized_power: Optional[float] = None
    tss_delta: Optional[float] = None
    duration_delta: Optional[float] = None
    tss_delta_pct: Optional[float] = None
    duration_delta_pct: Optional[float] = None
    stimulus_achieved_pct: Optional[int] = None
    stimulus_analysis: Optional[StimulusAnalysis] = None
    week_number: Optional[int] = None
    training_phase: Optional[TrainingPhase] = None
    ctl: Optional[float] = None
    atl: Optional[float] = None
    tsb: Optional[float] = None

    def to_dict(self) -> Dict:
        return {
            "planned_workout_id": self.planned_workout_id,
            "activity_id": self.activity_id,
            "date": self.date.isoformat() if self.date else None,
            "adaptation_type": self.adaptation_type.value,
            "planned_category": self.planned_category,
            "planned_tss": self.planned_tss,
            "planned_duration_minutes": self.planned_duration_minutes,
            "actual_category": self.actual_category,
            "actual_tss": self.actual_tss,
            "actual_duration_minutes": self.actual_duration_minutes,
            "actual_intensity_factor": self.actual_intensity_factor,
            "actual_normalized_power": self.actual_normalized_power,
            "tss_delta": self.tss_delta,
            "duration_delta": self.duration_delta,
            "tss_delta_pct": self.tss_delta_pct,
            "duration_delta_pct": self.duration_delta_pct,
            "stimulus_achieved_pct": self.stimulus_achieved_pct,
            "stimulus_analysis": self.stimulus_analysis.to_dict() if self.stimulus_analysis else None,
            "assessment": self.assessment.value,
            "explanation": self.explanation,
            "week_number": self.week_number,
            "training_phase": self.training_phase.value if self.training_phase else None,
            "ctl": self.ctl,
            "atl": self.atl,
            "tsb": self.tsb,
        }
