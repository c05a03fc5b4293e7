"""
Day allocation heuristics for tripweave.

This module picks which of the still unscheduled places are visited on
one day of a trip. The choice favours variety over proximity:

    - on the first day a tourist attraction (if any is left) opens the day;
    - then one place of each preferred category is taken in a fixed order
      (restaurant, museum, park, shopping mall, lodging);
    - any capacity left is filled with the best rated remaining places.

The pool passed in is never modified; callers remove the returned places
themselves.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from tripweave.config import PlannerConfig
from tripweave.models import Place


def _first_of_category(available: List[Place], category: str) -> Optional[Place]:
    for place in available:
        if place.category == category:
            return place
    return None


def select_places_for_day(
    pool: Sequence[Place],
    max_places: int,
    is_first_day: bool,
    config: Optional[PlannerConfig] = None,
) -> List[Place]:
    """Select up to ``max_places`` places for one day.

    Args:
        pool: Places not yet scheduled, in their original order.
        max_places: Capacity of the day.
        is_first_day: Whether this is the first day of the trip.
        config: Planner configuration with the category preferences.

    Returns:
        The selected places in visiting order.
    """
    config = config or PlannerConfig()
    if max_places <= 0:
        return []
    selected: List[Place] = []
    available = list(pool)

    if is_first_day:
        attraction = _first_of_category(available, config.priority_category)
        if attraction is not None:
            selected.append(attraction)
            available.remove(attraction)

    for category in config.category_order:
        if len(selected) >= max_places:
            break
        place = _first_of_category(available, category)
        if place is not None:
            selected.append(place)
            available.remove(place)

    # sorted() is stable, so equal ratings keep pool order
    best_rated = sorted(available, key=lambda p: -(p.rating or 0))
    selected.extend(best_rated[: max(0, max_places - len(selected))])
    return selected
