"""Availability resolution from a weekly pattern and date-specific overrides."""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from ..dates import DateLike, date_range, day_of_week, to_date
from .types import AvailabilityStatus, DateOverride, DayAvailability, ResolvedAvailability


def resolve_availability(
    on_date: DateLike,
    weekly_pattern: Sequence[DayAvailability],
    overrides: Mapping[date, DateOverride],
) -> ResolvedAvailability:
    """Resolve the effective status of a date.

    An override for the date always wins. Otherwise the weekday entry from
    the weekly pattern applies, and a weekday without an entry is available.
    """
    d = to_date(on_date)

    override = overrides.get(d)
    if override is not None:
        return ResolvedAvailability(
            date=d,
            status=override.status,
            is_override=True,
            max_duration_minutes=override.max_duration_minutes,
            notes=override.notes,
        )

    weekday = day_of_week(d)
    for day in weekly_pattern:
        if day.day_of_week == weekday:
            return ResolvedAvailability(
                date=d,
                status=day.status,
                is_override=False,
                max_duration_minutes=day.max_duration_minutes,
                notes=day.notes,
            )

    return ResolvedAvailability(date=d, status=AvailabilityStatus.AVAILABLE, is_override=False)


@dataclass
class AvailabilityConfig:
    """An athlete's weekly pattern plus date overrides.

    Treated as an immutable snapshot: build a new one to change it.
    """
    weekly: List[DayAvailability] = field(default_factory=list)
    overrides: Dict[date, DateOverride] = field(default_factory=dict)

    def __post_init__(self):
        seen = set()
        for day in self.weekly:
            if day.day_of_week in seen:
                raise ValueError(f"Duplicate weekly availability for day {day.day_of_week}")
            seen.add(day.day_of_week)
        self.weekly = sorted(self.weekly, key=lambda d: d.day_of_week)
        # Re-key so lookups by date always work
        self.overrides = {to_date(key): value for key, value in self.overrides.items()}

    @classmethod
    def from_records(
        cls,
        weekly: Iterable[DayAvailability] = (),
        overrides: Iterable[DateOverride] = (),
    ) -> "AvailabilityConfig":
        override_map: Dict[date, DateOverride] = {}
        for override in overrides:
            if override.date in override_map:
                raise ValueError(f"More than one override for {override.date.isoformat()}")
            override_map[override.date] = override
        return cls(weekly=list(weekly), overrides=override_map)

    def full_week(self) -> List[DayAvailability]:
        """All seven weekdays, filling missing ones with defaults."""
        by_day = {day.day_of_week: day for day in self.weekly}
        return [by_day.get(index, DayAvailability(day_of_week=index)) for index in range(7)]

    def resolve(self, on_date: DateLike) -> ResolvedAvailability:
        return resolve_availability(on_date, self.weekly, self.overrides)

    def resolve_range(self, start: DateLike, end: DateLike) -> List[ResolvedAvailability]:
        """Resolved availability for each date from start to end inclusive."""
        return [self.resolve(d) for d in date_range(start, end)]

    def is_blocked(self, on_date: DateLike) -> bool:
        return self.resolve(on_date).is_blocked

    def is_preferred(self, on_date: DateLike) -> bool:
        return self.resolve(on_date).is_preferred

    def can_schedule_workout(self, on_date: DateLike, duration_minutes: Optional[int] = None) -> bool:
        """Whether a workout of the given length fits on a date."""
        resolved = self.resolve(on_date)
        if resolved.is_blocked:
            return False
        if duration_minutes and resolved.max_duration_minutes:
            return duration_minutes <= resolved.max_duration_minutes
        return True

    def blocked_days_of_week(self) -> List[int]:
        return [d.day_of_week for d in self.weekly if d.status == AvailabilityStatus.BLOCKED]

    def preferred_days_of_week(self) -> List[int]:
        return [d.day_of_week for d in self.weekly if d.status == AvailabilityStatus.PREFERRED]
