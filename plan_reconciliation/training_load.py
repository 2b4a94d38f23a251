"""Fitness (CTL), fatigue (ATL) and form (TSB) from daily training stress.

Used to build the athlete context that the assessment step reads.
"""

import logging
from datetime import timedelta
from typing import Dict, Iterable, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .adaptation.types import Activity, TrainingContext, TrainingPhase
from .config import config
from .dates import DateLike, to_date

logger = logging.getLogger(__name__)

DailyLoads = Union[Sequence[float], np.ndarray, pd.Series]


def _weighted_load(daily_tss: DailyLoads, time_constant: float) -> float:
    """Exponentially weighted load, with the last entry being today."""
    loads = np.asarray(daily_tss, dtype=float)
    if loads.size == 0:
        return 0.0
    loads = np.nan_to_num(loads, nan=0.0)
    decay = 1.0 / time_constant
    ages = np.arange(loads.size - 1, -1, -1)
    weights = np.exp(-decay * ages)
    return float(np.sum(loads * weights) * decay)


def calculate_ctl(daily_tss: DailyLoads, time_constant: Optional[float] = None) -> int:
    """Chronic training load (fitness), rounded."""
    return round(_weighted_load(daily_tss, time_constant or config.CTL_TIME_CONSTANT))


def calculate_atl(daily_tss: DailyLoads, time_constant: Optional[float] = None) -> int:
    """Acute training load (fatigue), rounded."""
    return round(_weighted_load(daily_tss, time_constant or config.ATL_TIME_CONSTANT))


def calculate_tsb(ctl: float, atl: float) -> int:
    """Training stress balance (form)."""
    return round(ctl - atl)


def interpret_tsb(tsb: float) -> Dict[str, str]:
    """Status, message and recommendation for a TSB value."""
    if tsb > 25:
        return {
            "status": "fresh",
            "message": "Very fresh - ready for hard training or racing",
            "recommendation": "Good time for a hard workout or event",
        }
    if tsb > 5:
        return {
            "status": "rested",
            "message": "Well rested - performing at peak",
            "recommendation": "Maintain current training load",
        }
    if tsb > -10:
        return {
            "status": "neutral",
            "message": "Balanced - normal training state",
            "recommendation": "Continue with planned training",
        }
    if tsb > -30:
        return {
            "status": "fatigued",
            "message": "Building fatigue - normal during hard training",
            "recommendation": "Consider a recovery day soon",
        }
    return {
        "status": "very_fatigued",
        "message": "High fatigue - risk of overtraining",
        "recommendation": "Take a recovery week immediately",
    }


def daily_tss_series(activities: Iterable[Activity], end_date: DateLike, days: int = 90) -> pd.Series:
    """Total TSS per day for the `days` days ending on end_date.

    Days without activities are 0. Activities outside the window and
    activities without TSS are ignored.
    """
    if days <= 0:
        raise ValueError("days must be positive")

    end = to_date(end_date)
    start = end - timedelta(days=days - 1)
    index = pd.date_range(start=start, end=end, freq="D")

    rows = [
        {"date": pd.Timestamp(a.date), "tss": float(a.tss)}
        for a in activities
        if a.tss is not None and start <= a.date <= end
    ]
    if not rows:
        return pd.Series(0.0, index=index, name="tss")

    frame = pd.DataFrame(rows).set_index("date")
    daily = frame["tss"].resample("D").sum()
    return daily.reindex(index, fill_value=0.0).rename("tss")


def build_training_context(
    activities: Iterable[Activity],
    as_of: DateLike,
    training_phase: Optional[TrainingPhase] = None,
    week_number: Optional[int] = None,
    days: int = 90,
) -> TrainingContext:
    """Athlete context (CTL, ATL, TSB) as of a date from activity history."""
    series = daily_tss_series(activities, as_of, days)
    ctl = calculate_ctl(series.values)
    atl = calculate_atl(series.values)
    tsb = calculate_tsb(ctl, atl)
    logger.debug(f"Training context as of {to_date(as_of).isoformat()}: CTL {ctl}, ATL {atl}, TSB {tsb}")
    return TrainingContext(
        training_phase=training_phase,
        tsb=tsb,
        ctl=ctl,
        atl=atl,
        week_number=week_number,
    )
