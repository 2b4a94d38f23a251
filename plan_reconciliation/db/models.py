"""Database models for availability, plans, activities and adaptations."""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Boolean, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class WeeklyAvailability(Base):
    """Availability for one weekday of an athlete's week."""

    __tablename__ = "day_availability"
    __table_args__ = (UniqueConstraint("user_id", "day_of_week", name="uq_day_availability_user_day"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(String(50), default="default", nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0=Sunday .. 6=Saturday
    status = Column(String(20), nullable=False, default="available")  # available, blocked, preferred
    max_duration_minutes = Column(Integer)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<WeeklyAvailability(day={self.day_of_week}, status={self.status})>"


class AvailabilityOverride(Base):
    """Availability for one specific date."""

    __tablename__ = "date_overrides"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_date_overrides_user_date"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(String(50), default="default", nullable=False)
    date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False)
    max_duration_minutes = Column(Integer)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<AvailabilityOverride(date={self.date}, status={self.status})>"


class TrainingPreference(Base):
    """Athlete scheduling preferences."""

    __tablename__ = "training_preferences"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(50), default="default", unique=True, nullable=False)
    max_workouts_per_week = Column(Integer)
    max_hours_per_week = Column(Float)
    max_hard_days_per_week = Column(Integer)
    min_rest_days_per_week = Column(Integer, default=1, nullable=False)
    prefer_weekend_long_rides = Column(Boolean, default=True, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class ScheduledWorkout(Base):
    """A workout placed on a date of a training plan."""

    __tablename__ = "planned_workouts"

    id = Column(Integer, primary_key=True)
    plan_id = Column(String(50), nullable=False, index=True)
    scheduled_date = Column(Date, nullable=False)
    week_number = Column(Integer, nullable=False)
    day_of_week = Column(Integer, nullable=False)
    workout_id = Column(String(100))  # Null for rest days
    category = Column(String(50))
    target_tss = Column(Float)
    target_duration_minutes = Column(Integer)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<ScheduledWorkout(plan={self.plan_id}, date={self.scheduled_date}, workout={self.workout_id})>"


class CompletedActivity(Base):
    """A completed activity imported from an activity source."""

    __tablename__ = "activities"

    id = Column(Integer, primary_key=True)
    external_id = Column(String(100), unique=True, nullable=False)
    user_id = Column(String(50), default="default", nullable=False)
    name = Column(String(255))
    sport_type = Column(String(50), default="ride")  # ride, run, ...
    date = Column(Date, nullable=False)
    duration_minutes = Column(Float)
    tss = Column(Float)
    intensity_factor = Column(Float)
    normalized_power = Column(Float)  # watts
    average_power = Column(Float)  # watts
    average_pace = Column(Float)  # seconds per km
    distance_km = Column(Float)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<CompletedActivity(external_id={self.external_id}, date={self.date})>"


class WorkoutAdaptation(Base):
    """Stored result of a reconciliation pass for one pairing."""

    __tablename__ = "workout_adaptations"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(50), default="default", nullable=False)
    planned_workout_id = Column(String(100), index=True)
    activity_id = Column(String(100), index=True)
    date = Column(Date)
    adaptation_type = Column(String(30), nullable=False)
    assessment = Column(String(20), nullable=False)
    explanation = Column(Text)
    planned_category = Column(String(50))
    planned_tss = Column(Float)
    planned_duration_minutes = Column(Float)
    actual_category = Column(String(50))
    actual_tss = Column(Float)
    actual_duration_minutes = Column(Float)
    actual_intensity_factor = Column(Float)
    actual_normalized_power = Column(Float)
    tss_delta = Column(Float)
    duration_delta = Column(Float)
    tss_delta_pct = Column(Float)
    duration_delta_pct = Column(Float)
    stimulus_achieved_pct = Column(Integer)
    stimulus_analysis = Column(Text)  # JSON
    week_number = Column(Integer)
    training_phase = Column(String(20))
    ctl = Column(Float)
    atl = Column(Float)
    tsb = Column(Float)
    superseded = Column(Boolean, default=False, nullable=False)
    detected_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<WorkoutAdaptation(type={self.adaptation_type}, assessment={self.assessment})>"
