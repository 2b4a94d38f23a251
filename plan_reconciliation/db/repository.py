"""Snapshot reads and transactional writes for the reconciliation engine.

Rows are converted to the engine's plain dataclasses here; nothing above
this module sees SQLAlchemy objects.
"""

import json
import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional

from ..adaptation.types import (
    Activity,
    AdaptationRecord,
    AdaptationType,
    Assessment,
    StimulusAnalysis,
    TrainingPhase,
)
from ..dates import DateLike, day_of_week, to_date
from ..scheduling.availability import AvailabilityConfig
from ..scheduling.types import DateOverride, DayAvailability, PlannedWorkout, TrainingPreferences, WorkoutMove
from .database import Database
from .models import (
    AvailabilityOverride,
    CompletedActivity,
    ScheduledWorkout,
    TrainingPreference,
    WeeklyAvailability,
    WorkoutAdaptation,
)

logger = logging.getLogger(__name__)


def _to_planned_workout(row: ScheduledWorkout) -> PlannedWorkout:
    return PlannedWorkout(
        date=row.scheduled_date,
        week_number=row.week_number,
        workout_id=row.workout_id,
        category=row.category,
        target_tss=row.target_tss,
        target_duration_minutes=row.target_duration_minutes,
        day_of_week=row.day_of_week,
        plan_id=row.plan_id,
        id=str(row.id),
    )


def _to_activity(row: CompletedActivity) -> Activity:
    return Activity(
        id=row.external_id,
        date=row.date,
        duration_minutes=row.duration_minutes,
        tss=row.tss,
        intensity_factor=row.intensity_factor,
        normalized_power=row.normalized_power,
        average_power=row.average_power,
        average_pace=row.average_pace,
        distance_km=row.distance_km,
        sport_type=row.sport_type or "ride",
        name=row.name,
    )


def _to_adaptation_record(row: WorkoutAdaptation) -> AdaptationRecord:
    return AdaptationRecord(
        adaptation_type=AdaptationType(row.adaptation_type),
        assessment=Assessment(row.assessment),
        explanation=row.explanation or "",
        planned_workout_id=row.planned_workout_id,
        activity_id=row.activity_id,
        date=row.date,
        planned_category=row.planned_category,
        planned_tss=row.planned_tss,
        planned_duration_minutes=row.planned_duration_minutes,
        actual_category=row.actual_category,
        actual_tss=row.actual_tss,
        actual_duration_minutes=row.actual_duration_minutes,
        actual_intensity_factor=row.actual_intensity_factor,
        actual_normalized_power=row.actual_normalized_power,
        tss_delta=row.tss_delta,
        duration_delta=row.duration_delta,
        tss_delta_pct=row.tss_delta_pct,
        duration_delta_pct=row.duration_delta_pct,
        stimulus_achieved_pct=row.stimulus_achieved_pct,
        stimulus_analysis=(
            StimulusAnalysis.from_dict(json.loads(row.stimulus_analysis)) if row.stimulus_analysis else None
        ),
        week_number=row.week_number,
        training_phase=TrainingPhase(row.training_phase) if row.training_phase else None,
        ctl=row.ctl,
        atl=row.atl,
        tsb=row.tsb,
    )


def _is_rest_row(row: ScheduledWorkout) -> bool:
    return row.workout_id is None or row.category == "rest"


class PlanRepository:
    """Availability, plan, activity and adaptation store for one athlete."""

    def __init__(self, db: Database, user_id: str = "default"):
        self.db = db
        self.user_id = user_id

    # Reads

    def load_availability(self) -> AvailabilityConfig:
        with self.db.get_session() as session:
            weekly = [
                DayAvailability(
                    day_of_week=row.day_of_week,
                    status=row.status,
                    max_duration_minutes=row.max_duration_minutes,
                    notes=row.notes,
                )
                for row in session.query(WeeklyAvailability).filter(WeeklyAvailability.user_id == self.user_id)
            ]
            overrides = [
                DateOverride(
                    date=row.date,
                    status=row.status,
                    max_duration_minutes=row.max_duration_minutes,
                    notes=row.notes,
                )
                for row in session.query(AvailabilityOverride).filter(AvailabilityOverride.user_id == self.user_id)
            ]
        return AvailabilityConfig.from_records(weekly, overrides)

    def load_preferences(self) -> TrainingPreferences:
        with self.db.get_session() as session:
            row = session.query(TrainingPreference).filter(TrainingPreference.user_id == self.user_id).first()
            if row is None:
                return TrainingPreferences()
            return TrainingPreferences(
                max_workouts_per_week=row.max_workouts_per_week,
                max_hours_per_week=row.max_hours_per_week,
                max_hard_days_per_week=row.max_hard_days_per_week,
                min_rest_days_per_week=row.min_rest_days_per_week,
                prefer_weekend_long_rides=row.prefer_weekend_long_rides,
            )

    def load_planned_workouts(
        self,
        plan_id: str,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
    ) -> List[PlannedWorkout]:
        with self.db.get_session() as session:
            query = session.query(ScheduledWorkout).filter(ScheduledWorkout.plan_id == plan_id)
            if start is not None:
                query = query.filter(ScheduledWorkout.scheduled_date >= to_date(start))
            if end is not None:
                query = query.filter(ScheduledWorkout.scheduled_date <= to_date(end))
            rows = query.order_by(ScheduledWorkout.scheduled_date, ScheduledWorkout.id).all()
            return [_to_planned_workout(row) for row in rows]

    def load_activities(self, start: DateLike, end: DateLike) -> List[Activity]:
        with self.db.get_session() as session:
            rows = session.query(CompletedActivity).filter(
                CompletedActivity.user_id == self.user_id,
                CompletedActivity.date >= to_date(start),
                CompletedActivity.date <= to_date(end),
            ).order_by(CompletedActivity.date, CompletedActivity.external_id).all()
            return [_to_activity(row) for row in rows]

    def load_adaptations(self, include_superseded: bool = False) -> List[AdaptationRecord]:
        with self.db.get_session() as session:
            query = session.query(WorkoutAdaptation).filter(WorkoutAdaptation.user_id == self.user_id)
            if not include_superseded:
                query = query.filter(WorkoutAdaptation.superseded.is_(False))
            rows = query.order_by(WorkoutAdaptation.date, WorkoutAdaptation.id).all()
            return [_to_adaptation_record(row) for row in rows]

    # Writes

    def apply_moves(self, plan_id: str, moves: Iterable[WorkoutMove]) -> int:
        """Persist a move set in one transaction.

        Identity moves are skipped. A rest row on the destination date is
        replaced by the moved workout. Raises ValueError, leaving the plan
        untouched, when a move does not match a stored workout.
        """
        applied = 0
        with self.db.get_session() as session:
            for move in moves:
                if move.is_unresolved:
                    continue
                row = session.query(ScheduledWorkout).filter(
                    ScheduledWorkout.plan_id == plan_id,
                    ScheduledWorkout.scheduled_date == move.original_date,
                    ScheduledWorkout.workout_id == move.workout_id,
                ).first()
                if row is None:
                    raise ValueError(
                        f"No {move.workout_id} on {move.original_date.isoformat()} in plan {plan_id}"
                    )

                destination_rows = session.query(ScheduledWorkout).filter(
                    ScheduledWorkout.plan_id == plan_id,
                    ScheduledWorkout.scheduled_date == move.new_date,
                ).all()
                for existing in destination_rows:
                    if _is_rest_row(existing):
                        session.delete(existing)

                row.scheduled_date = move.new_date
                row.day_of_week = day_of_week(move.new_date)
                session.flush()
                applied += 1

        logger.info(f"Applied {applied} moves to plan {plan_id}")
        return applied

    def save_adaptations(self, records: Iterable[AdaptationRecord]) -> int:
        """Store records, superseding earlier ones for the same pairing."""
        saved = 0
        with self.db.get_session() as session:
            for record in records:
                previous = session.query(WorkoutAdaptation).filter(
                    WorkoutAdaptation.user_id == self.user_id,
                    WorkoutAdaptation.superseded.is_(False),
                )
                if record.planned_workout_id is not None:
                    previous = previous.filter(WorkoutAdaptation.planned_workout_id == record.planned_workout_id)
                else:
                    previous = previous.filter(
                        WorkoutAdaptation.planned_workout_id.is_(None),
                        WorkoutAdaptation.activity_id == record.activity_id,
                    )
                for row in previous.all():
                    row.superseded = True

                session.add(self._adaptation_row(record))
                session.flush()
                saved += 1

        logger.info(f"Saved {saved} adaptation records")
        return saved

    def _adaptation_row(self, record: AdaptationRecord) -> WorkoutAdaptation:
        data = record.to_dict()
        return WorkoutAdaptation(
            user_id=self.user_id,
            planned_workout_id=record.planned_workout_id,
            activity_id=record.activity_id,
            date=record.date,
            adaptation_type=data["adaptation_type"],
            assessment=data["assessment"],
            explanation=record.explanation,
            planned_category=record.planned_category,
            planned_tss=record.planned_tss,
            planned_duration_minutes=record.planned_duration_minutes,
            actual_category=record.actual_category,
            actual_tss=record.actual_tss,
            actual_duration_minutes=record.actual_duration_minutes,
            actual_intensity_factor=record.actual_intensity_factor,
            actual_normalized_power=record.actual_normalized_power,
            tss_delta=record.tss_delta,
            duration_delta=record.duration_delta,
            tss_delta_pct=record.tss_delta_pct,
            duration_delta_pct=record.duration_delta_pct,
            stimulus_achieved_pct=record.stimulus_achieved_pct,
            stimulus_analysis=json.dumps(data["stimulus_analysis"]) if data["stimulus_analysis"] else None,
            week_number=record.week_number,
            training_phase=data["training_phase"],
            ctl=record.ctl,
            atl=record.atl,
            tsb=record.tsb,
        )

    def import_snapshot(self, snapshot: Dict[str, Any]) -> Dict[str, int]:
        """Load a JSON-style snapshot of availability, preferences, plans and activities.

        Every entry is validated through the engine's dataclasses before
        anything is written. Weekly entries, overrides and preferences
        replace stored ones; a plan present in the snapshot replaces the
        stored plan with the same id; activities are upserted by id.
        """
        availability = snapshot.get("availability") or {}
        weekly = [DayAvailability(**entry) for entry in availability.get("weekly", [])]
        overrides = [DateOverride(**entry) for entry in availability.get("overrides", [])]
        # Rejects duplicate weekdays and dates
        AvailabilityConfig.from_records(weekly, overrides)

        preferences = None
        if snapshot.get("preferences") is not None:
            preferences = TrainingPreferences(**snapshot["preferences"])

        workouts = [PlannedWorkout(**entry) for entry in snapshot.get("planned_workouts", [])]
        workouts = [replace(w, plan_id=w.plan_id or "default") for w in workouts]
        activities = [Activity(**entry) for entry in snapshot.get("activities", [])]

        with self.db.get_session() as session:
            for day in weekly:
                session.query(WeeklyAvailability).filter(
                    WeeklyAvailability.user_id == self.user_id,
                    WeeklyAvailability.day_of_week == day.day_of_week,
                ).delete()
                session.add(WeeklyAvailability(
                    user_id=self.user_id,
                    day_of_week=day.day_of_week,
                    status=day.status.value,
                    max_duration_minutes=day.max_duration_minutes,
                    notes=day.notes,
                ))

            for override in overrides:
                session.query(AvailabilityOverride).filter(
                    AvailabilityOverride.user_id == self.user_id,
                    AvailabilityOverride.date == override.date,
                ).delete()
                session.add(AvailabilityOverride(
                    user_id=self.user_id,
                    date=override.date,
                    status=override.status.value,
                    max_duration_minutes=override.max_duration_minutes,
                    notes=override.notes,
                ))

            if preferences is not None:
                session.query(TrainingPreference).filter(TrainingPreference.user_id == self.user_id).delete()
                session.add(TrainingPreference(
                    user_id=self.user_id,
                    max_workouts_per_week=preferences.max_workouts_per_week,
                    max_hours_per_week=preferences.max_hours_per_week,
                    max_hard_days_per_week=preferences.max_hard_days_per_week,
                    min_rest_days_per_week=preferences.min_rest_days_per_week,
                    prefer_weekend_long_rides=preferences.prefer_weekend_long_rides,
                ))

            for plan_id in {w.plan_id for w in workouts}:
                session.query(ScheduledWorkout).filter(ScheduledWorkout.plan_id == plan_id).delete()
            for workout in workouts:
                session.add(ScheduledWorkout(
                    plan_id=workout.plan_id or "default",
                    scheduled_date=workout.date,
                    week_number=workout.week_number,
                    day_of_week=workout.day_of_week,
                    workout_id=workout.workout_id,
                    category=workout.category,
                    target_tss=workout.target_tss,
                    target_duration_minutes=workout.target_duration_minutes,
                ))

            for activity in activities:
                session.query(CompletedActivity).filter(CompletedActivity.external_id == activity.id).delete()
                session.add(CompletedActivity(
                    external_id=activity.id,
                    user_id=self.user_id,
                    name=activity.name,
                    sport_type=activity.sport_type,
                    date=activity.date,
                    duration_minutes=activity.duration_minutes,
                    tss=activity.tss,
                    intensity_factor=activity.intensity_factor,
                    normalized_power=activity.normalized_power,
                    average_power=activity.average_power,
                    average_pace=activity.average_pace,
                    distance_km=activity.distance_km,
                ))

        counts = {
            "weekly": len(weekly),
            "overrides": len(overrides),
            "preferences": 1 if preferences is not None else 0,
            "planned_workouts": len(workouts),
            "activities": len(activities),
        }
        logger.info(f"Imported snapshot: {counts}")
        return counts
