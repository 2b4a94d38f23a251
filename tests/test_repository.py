"""Tests for the SQLAlchemy-backed plan repository."""

import pytest
from datetime import date

from plan_reconciliation.adaptation import (
    Activity,
    AdaptationType,
    TrainingContext,
    TrainingPhase,
    detect_adaptation,
    reconcile_week,
)
from plan_reconciliation.db import Database, PlanRepository
from plan_reconciliation.scheduling import WorkoutMove, redistribute_workouts

MON = date(2025, 3, 3)
TUE = date(2025, 3, 4)
WED = date(2025, 3, 5)
THU = date(2025, 3, 6)
SAT = date(2025, 3, 8)

SNAPSHOT = {
    "availability": {
        "weekly": [
            {"day_of_week": 3, "status": "blocked", "notes": "Late shift"},
            {"day_of_week": 6, "status": "preferred", "max_duration_minutes": 240},
        ],
        "overrides": [
            {"date": "2025-03-04", "status": "blocked", "notes": "Travel"},
        ],
    },
    "preferences": {"max_workouts_per_week": 5, "min_rest_days_per_week": 1},
    "planned_workouts": [
        {"date": "2025-03-03", "week_number": 1, "workout_id": "vo2max_5x4", "category": "vo2max",
         "target_tss": 85, "target_duration_minutes": 65, "plan_id": "p1"},
        {"date": "2025-03-05", "week_number": 1, "workout_id": "threshold_2x20", "category": "threshold",
         "target_tss": 90, "target_duration_minutes": 75, "plan_id": "p1"},
        {"date": "2025-03-06", "week_number": 1, "plan_id": "p1"},
        {"date": "2025-03-08", "week_number": 1, "workout_id": "long_ride_weekend", "category": "long_ride",
         "target_tss": 180, "target_duration_minutes": 240, "plan_id": "p1"},
    ],
    "activities": [
        {"id": "a1", "date": "2025-03-03", "duration_minutes": 65, "tss": 85, "intensity_factor": 1.1},
        {"id": "a2", "date": "2025-03-09", "duration_minutes": 30, "tss": 20},
    ],
}


class TestPlanRepository:
    """Round trips through an in-memory database."""

    def setup_method(self):
        self.db = Database("sqlite://")
        self.db.create_tables()
        self.repo = PlanRepository(self.db, user_id="athlete-1")
        self.counts = self.repo.import_snapshot(SNAPSHOT)

    def teardown_method(self):
        self.db.close()

    def test_import_counts(self):
        assert self.counts == {
            "weekly": 2,
            "overrides": 1,
            "preferences": 1,
            "planned_workouts": 4,
            "activities": 2,
        }

    def test_reimport_replaces(self):
        self.repo.import_snapshot(SNAPSHOT)
        assert len(self.repo.load_planned_workouts("p1")) == 4
        assert len(self.repo.load_activities(MON, date(2025, 3, 9))) == 2
        assert len(self.repo.load_availability().weekly) == 2

    def test_invalid_snapshot_writes_nothing(self):
        other = PlanRepository(self.db, user_id="athlete-2")
        bad = {"availability": {"weekly": [{"day_of_week": 9, "status": "blocked"}]}}
        with pytest.raises(ValueError):
            other.import_snapshot(bad)
        assert other.load_availability().weekly == []

    def test_load_availability(self):
        availability = self.repo.load_availability()
        assert availability.is_blocked(WED)
        assert availability.is_blocked(TUE)
        assert availability.resolve(TUE).notes == "Travel"
        assert availability.resolve(SAT).is_preferred
        assert not availability.is_blocked(date(2025, 3, 11))

    def test_load_preferences(self):
        preferences = self.repo.load_preferences()
        assert preferences.max_workouts_per_week == 5
        assert preferences.prefer_weekend_long_rides is True
        assert PlanRepository(self.db, user_id="nobody").load_preferences().max_workouts_per_week is None

    def test_load_planned_workouts(self):
        workouts = self.repo.load_planned_workouts("p1")
        assert [w.date for w in workouts] == [MON, WED, THU, SAT]
        assert workouts[2].is_rest
        assert all(w.plan_id == "p1" for w in workouts)
        assert [w.date for w in self.repo.load_planned_workouts("p1", start=TUE, end=THU)] == [WED, THU]
        assert self.repo.load_planned_workouts("other") == []

    def test_load_activities(self):
        activities = self.repo.load_activities(MON, SAT)
        assert [a.id for a in activities] == ["a1"]
        assert activities[0].intensity_factor == 1.1

    def test_apply_move_replaces_rest_row(self):
        move = WorkoutMove(original_date=WED, new_date=THU, workout_id="threshold_2x20", reason="Empty day")
        assert self.repo.apply_moves("p1", [move]) == 1

        workouts = self.repo.load_planned_workouts("p1")
        assert [(w.date, w.workout_id) for w in workouts] == [
            (MON, "vo2max_5x4"),
            (THU, "threshold_2x20"),
            (SAT, "long_ride_weekend"),
        ]
        assert workouts[1].day_of_week == 4

    def test_identity_moves_are_skipped(self):
        move = WorkoutMove(original_date=WED, new_date=WED, workout_id="threshold_2x20", reason="stuck")
        assert self.repo.apply_moves("p1", [move]) == 0
        assert len(self.repo.load_planned_workouts("p1")) == 4

    def test_failed_move_set_is_rolled_back(self):
        moves = [
            WorkoutMove(original_date=WED, new_date=THU, workout_id="threshold_2x20", reason="Empty day"),
            WorkoutMove(original_date=MON, new_date=TUE, workout_id="not_there", reason="?"),
        ]
        with pytest.raises(ValueError):
            self.repo.apply_moves("p1", moves)

        workouts = self.repo.load_planned_workouts("p1")
        assert [(w.date, w.workout_id) for w in workouts] == [
            (MON, "vo2max_5x4"),
            (WED, "threshold_2x20"),
            (THU, None),
            (SAT, "long_ride_weekend"),
        ]

    def test_redistribution_against_stored_plan(self):
        plan = redistribute_workouts(
            self.repo.load_planned_workouts("p1"),
            self.repo.load_availability(),
            self.repo.load_preferences(),
        )
        availability = self.repo.load_availability()
        for move in plan.moves:
            if not move.is_unresolved:
                assert not availability.is_blocked(move.new_date)

        applied = self.repo.apply_moves("p1", plan.moves)
        assert applied == len([m for m in plan.moves if not m.is_unresolved])
        stored = self.repo.load_planned_workouts("p1")
        assert WED not in [w.date for w in stored if not w.is_rest]


class TestAdaptationStorage:
    """Adaptation records are superseded, not overwritten."""

    def setup_method(self):
        self.db = Database("sqlite://")
        self.db.create_tables()
        self.repo = PlanRepository(self.db)
        self.repo.import_snapshot(SNAPSHOT)
        self.workouts = self.repo.load_planned_workouts("p1")

    def teardown_method(self):
        self.db.close()

    def test_round_trip(self):
        activity = Activity(id="a1", date=MON, duration_minutes=65, tss=85, intensity_factor=1.1)
        context = TrainingContext(training_phase=TrainingPhase.BUILD, tsb=-5)
        record = detect_adaptation(self.workouts[0], activity, context=context)
        assert self.repo.save_adaptations([record]) == 1

        loaded = self.repo.load_adaptations()
        assert len(loaded) == 1
        assert loaded[0].adaptation_type == record.adaptation_type
        assert loaded[0].assessment == record.assessment
        assert loaded[0].explanation == record.explanation
        assert loaded[0].stimulus_analysis == record.stimulus_analysis
        assert loaded[0].training_phase == TrainingPhase.BUILD
        assert loaded[0].planned_workout_id == record.planned_workout_id

    def test_second_pass_supersedes_first(self):
        first = detect_adaptation(self.workouts[0], None)
        self.repo.save_adaptations([first])

        activity = Activity(id="a1", date=MON, duration_minutes=65, tss=85, intensity_factor=1.1)
        second = detect_adaptation(self.workouts[0], activity)
        self.repo.save_adaptations([second])

        current = self.repo.load_adaptations()
        assert [r.adaptation_type for r in current] == [AdaptationType.COMPLETED_AS_PLANNED]
        assert len(self.repo.load_adaptations(include_superseded=True)) == 2

    def test_unplanned_records_superseded_by_activity(self):
        activities = self.repo.load_activities(MON, date(2025, 3, 9))
        records = reconcile_week(self.workouts, activities)
        self.repo.save_adaptations(records)
        self.repo.save_adaptations(records)

        current = self.repo.load_adaptations()
        assert len(current) == len(records)
        assert len(self.repo.load_adaptations(include_superseded=True)) == 2 * len(records)
        assert [r.activity_id for r in current if r.adaptation_type == AdaptationType.UNPLANNED] == ["a2"]


class TestDatabase:
    """Table management on a fresh store."""

    def test_tables_created_and_dropped(self):
        db = Database("sqlite://")
        assert db.table_names() == []

        db.create_tables()
        assert db.table_names() == [
            "day_availability",
            "date_overrides",
            "training_preferences",
            "planned_workouts",
            "activities",
            "workout_adaptations",
        ]

        db.drop_tables()
        assert db.table_names() == []
        db.close()

