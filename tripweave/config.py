"""
Planner configuration for tripweave.

All lookup tables used by the allocator, the schedule builder and the
calendar layout live on a single ``PlannerConfig`` instance which is
passed explicitly to the functions that need it. The defaults reproduce
the behaviour of the original travel planner: days start at 09:00, at
most five places are visited per day and travel between two places is
estimated at 2 minutes per kilometre with a 15 minute minimum.

Example usage:

    config = PlannerConfig.from_mapping({"max_places_per_day": 4})
    schedule = build_schedule(places, "2025-06-01", "2025-06-03", config)
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional, Tuple

TOURIST_ATTRACTION = "tourist_attraction"

DEFAULT_CATEGORY_ORDER: Tuple[str, ...] = (
    "restaurant",
    "museum",
    "park",
    "shopping_mall",
    "lodging",
)

DEFAULT_VISIT_DURATIONS: Dict[str, int] = {
    "restaurant": 90,
    TOURIST_ATTRACTION: 120,
    "museum": 150,
    "park": 90,
    "shopping_mall": 120,
    "lodging": 30,
}


@dataclass(frozen=True)
class PlannerConfig:
    # Schedule generation
    day_start_minutes: int = 9 * 60
    max_places_per_day: int = 5
    priority_category: str = TOURIST_ATTRACTION
    category_order: Tuple[str, ...] = DEFAULT_CATEGORY_ORDER
    visit_durations: Mapping[str, int] = field(default_factory=lambda: dict(DEFAULT_VISIT_DURATIONS))
    default_visit_duration: int = 60
    # Travel time heuristic
    km_per_degree: float = 111.0
    minutes_per_km: float = 2.0
    min_travel_minutes: int = 15
    # Calendar
    pixels_per_minute: float = 1.0
    min_event_height: float = 20.0
    default_event_duration: int = 120
    timezone: str = "UTC"
    log_level: str = "INFO"

    def visit_duration(self, category: Optional[str]) -> int:
        """Return the estimated visit length in minutes for a category."""
        if category is None:
            return self.default_visit_duration
        return self.visit_durations.get(category, self.default_visit_duration)

    @classmethod
    def from_mapping(cls, values: Optional[Mapping[str, Any]]) -> "PlannerConfig":
        """Build a config from a mapping, ignoring unknown keys.

        Missing keys keep their defaults. ``category_order`` may be given as
        any sequence and ``visit_durations`` is merged over the default table
        so that a partial override does not drop the other categories.
        """
        if not values:
            return cls()
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {k: v for k, v in dict(values).items() if k in known}
        if "category_order" in kwargs:
            kwargs["category_order"] = tuple(kwargs["category_order"])
        if "visit_durations" in kwargs:
            durations = dict(DEFAULT_VISIT_DURATIONS)
            durations.update({str(k): int(v) for k, v in dict(kwargs["visit_durations"]).items()})
            kwargs["visit_durations"] = durations
        return cls(**kwargs)
