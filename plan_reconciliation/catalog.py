"""Workout catalog and supplement classification.

The catalog is read-only reference data: it fills in the planned-side
metrics (category, target TSS, target duration) for a workout identifier.
Supplement sessions are classified through an explicit identifier table
rather than by parsing the identifier text.
"""

import json
import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Hashable, Iterable, Optional, Union

logger = logging.getLogger(__name__)


class SupplementClass(Enum):
    """Classes of auxiliary (non-primary) sessions."""
    HEAVY_CONDITIONING = "heavy_conditioning"  # Max strength / explosive lifting
    LIGHT_CONDITIONING = "light_conditioning"  # Circuits, maintenance strength
    CORE = "core"
    FLEXIBILITY = "flexibility"


class UnknownWorkoutError(KeyError):
    """Raised when a workout identifier is not in the catalog."""


@dataclass(frozen=True)
class CatalogEntry:
    """Planned-side metrics for a library workout."""
    workout_id: str
    name: str
    category: str
    target_tss: Optional[float] = None
    target_duration_minutes: Optional[int] = None

    def to_dict(self) -> Dict:
        return {
            "workout_id": self.workout_id,
            "name": self.name,
            "category": self.category,
            "target_tss": self.target_tss,
            "target_duration_minutes": self.target_duration_minutes,
        }


SUPPLEMENT_CLASSES: Dict[str, SupplementClass] = {
    # Heavy lifting needs 48h before hard bike sessions
    "strength_max_lower": SupplementClass.HEAVY_CONDITIONING,
    "strength_explosive_power": SupplementClass.HEAVY_CONDITIONING,
    "strength_express_circuit": SupplementClass.LIGHT_CONDITIONING,
    "strength_quick_lower": SupplementClass.LIGHT_CONDITIONING,
    "strength_maintenance": SupplementClass.LIGHT_CONDITIONING,
    "strength_anatomical_adaptation": SupplementClass.LIGHT_CONDITIONING,
    "strength_muscle_endurance": SupplementClass.LIGHT_CONDITIONING,
    "core_foundation": SupplementClass.CORE,
    "core_stability": SupplementClass.CORE,
    "core_power": SupplementClass.CORE,
    "flexibility_post_ride": SupplementClass.FLEXIBILITY,
    "flexibility_hip_mobility": SupplementClass.FLEXIBILITY,
    "flexibility_yoga_cyclist": SupplementClass.FLEXIBILITY,
    "flexibility_full_body_recovery": SupplementClass.FLEXIBILITY,
    "flexibility_dynamic_warmup": SupplementClass.FLEXIBILITY,
}


def supplement_class_for(workout_id: Optional[str]) -> Optional[SupplementClass]:
    """Supplement class of a workout, or None for primary sessions."""
    if workout_id is None:
        return None
    return SUPPLEMENT_CLASSES.get(workout_id)


def supplement_workouts(supplement_class: Optional[SupplementClass] = None) -> list:
    """Supplement workout identifiers, optionally restricted to one class."""
    return [
        workout_id for workout_id, cls in SUPPLEMENT_CLASSES.items()
        if supplement_class is None or cls == supplement_class
    ]


DEFAULT_WORKOUTS = [
    CatalogEntry("recovery_spin", "Recovery Spin", "recovery", 25, 45),
    CatalogEntry("endurance_base", "Endurance Base Ride", "endurance", 65, 90),
    CatalogEntry("endurance_long", "Long Endurance Ride", "endurance", 150, 210),
    CatalogEntry("long_ride_weekend", "Weekend Long Ride", "long_ride", 180, 240),
    CatalogEntry("tempo_2x20", "Tempo 2x20", "tempo", 75, 75),
    CatalogEntry("sweet_spot_3x15", "Sweet Spot 3x15", "sweet_spot", 85, 80),
    CatalogEntry("threshold_2x20", "Threshold 2x20", "threshold", 90, 75),
    CatalogEntry("climbing_repeats", "Climbing Repeats", "climbing", 95, 90),
    CatalogEntry("vo2max_5x4", "VO2max 5x4", "vo2max", 85, 65),
    CatalogEntry("anaerobic_sprints", "Anaerobic Sprints", "anaerobic", 70, 60),
    CatalogEntry("race_simulation", "Race Simulation", "racing", 120, 90),
    CatalogEntry("rest_day", "Rest Day", "rest", 0, 0),
    CatalogEntry("strength_max_lower", "Max Strength Lower Body", "strength", 40, 50),
    CatalogEntry("strength_explosive_power", "Explosive Power", "strength", 35, 45),
    CatalogEntry("strength_express_circuit", "Express Strength Circuit", "strength", 20, 25),
    CatalogEntry("strength_quick_lower", "Quick Lower Body", "strength", 20, 25),
    CatalogEntry("strength_maintenance", "Strength Maintenance", "strength", 25, 35),
    CatalogEntry("strength_anatomical_adaptation", "Anatomical Adaptation", "strength", 30, 45),
    CatalogEntry("strength_muscle_endurance", "Muscle Endurance", "strength", 30, 40),
    CatalogEntry("core_foundation", "Core Foundation", "core", 10, 20),
    CatalogEntry("core_stability", "Core Stability", "core", 10, 20),
    CatalogEntry("core_power", "Core Power", "core", 15, 25),
    CatalogEntry("flexibility_post_ride", "Post-Ride Stretch", "flexibility", 5, 15),
    CatalogEntry("flexibility_hip_mobility", "Hip Mobility", "flexibility", 5, 20),
    CatalogEntry("flexibility_yoga_cyclist", "Yoga for Cyclists", "flexibility", 10, 30),
    CatalogEntry("flexibility_full_body_recovery", "Full Body Recovery", "flexibility", 5, 30),
    CatalogEntry("flexibility_dynamic_warmup", "Dynamic Warmup", "flexibility", 5, 10),
]


class WorkoutCatalog:
    """Read-only lookup from workout identifier to planned metrics."""

    def __init__(self, entries: Optional[Iterable[CatalogEntry]] = None):
        entries = DEFAULT_WORKOUTS if entries is None else entries
        self._entries: Dict[str, CatalogEntry] = {}
        for entry in entries:
            if entry.workout_id in self._entries:
                raise ValueError(f"Duplicate catalog entry: {entry.workout_id}")
            self._entries[entry.workout_id] = entry

    def __contains__(self, workout_id: str) -> bool:
        return workout_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self) -> list:
        return list(self._entries.values())

    def get(self, workout_id: Optional[str]) -> Optional[CatalogEntry]:
        if workout_id is None:
            return None
        return self._entries.get(workout_id)

    def require(self, workout_id: str) -> CatalogEntry:
        entry = self.get(workout_id)
        if entry is None:
            raise UnknownWorkoutError(workout_id)
        return entry

    def fill_planned_metrics(self, workout):
        """Return a copy of a planned workout with missing metrics filled in.

        Values already present on the workout win over catalog values.
        Workouts not found in the catalog are returned unchanged.
        """
        entry = self.get(workout.workout_id)
        if entry is None:
            return workout
        return replace(
            workout,
            category=workout.category if workout.category is not None else entry.category,
            target_tss=workout.target_tss if workout.target_tss is not None else entry.target_tss,
            target_duration_minutes=(
                workout.target_duration_minutes
                if workout.target_duration_minutes is not None
                else entry.target_duration_minutes
            ),
        )

    @classmethod
    def from_dicts(cls, rows: Iterable[Dict[str, Any]]) -> "WorkoutCatalog":
        return cls(
            CatalogEntry(
                workout_id=row["workout_id"],
                name=row.get("name", row["workout_id"]),
                category=row["category"],
                target_tss=row.get("target_tss"),
                target_duration_minutes=row.get("target_duration_minutes"),
            )
            for row in rows
        )


def load_catalog_file(path: Union[str, Path]) -> WorkoutCatalog:
    """Load a catalog from a JSON list of entries, merged over the defaults."""
    with open(path) as f:
        rows = json.load(f)
    custom = WorkoutCatalog.from_dicts(rows)
    merged = {entry.workout_id: entry for entry in DEFAULT_WORKOUTS}
    merged.update({entry.workout_id: entry for entry in custom.entries()})
    logger.info(f"Loaded {len(custom)} custom workouts from {path}")
    return WorkoutCatalog(merged.values())


class TTLCache:
    """Small time-based cache with an injected clock.

    Construct one per process and pass it to whatever needs it.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds cannot be negative")
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._items: Dict[Hashable, tuple] = {}

    def get(self, key: Hashable) -> Optional[Any]:
        item = self._items.get(key)
        if item is None:
            return None
        stored_at, value = item
        if self.clock() - stored_at >= self.ttl_seconds:
            del self._items[key]
            return None
        return value

    def set(self, key: Hashable, value: Any) -> None:
        self._items[key] = (self.clock(), value)

    def invalidate(self, key: Optional[Hashable] = None) -> None:
        """Drop one key, or everything when no key is given."""
        if key is None:
            self._items.clear()
        else:
            self._items.pop(key, None)

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        value = self.get(key)
        if value is None:
            value = loader()
            self.set(key, value)
        return value


class CachedCatalogLoader:
    """Memoizes catalog loads per source through a TTLCache."""

    def __init__(self, cache: TTLCache, loader: Callable[[str], WorkoutCatalog] = load_catalog_file):
        self.cache = cache
        self.loader = loader

    def load(self, source: Optional[str] = None) -> WorkoutCatalog:
        if source is None:
            return self.cache.get_or_load("__default__", WorkoutCatalog)
        return self.cache.get_or_load(source, lambda: self.loader(source))
