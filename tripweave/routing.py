"""
Travel time estimation for tripweave.

Travel between two places is estimated from the straight-line distance
between their coordinates, measured directly in degrees and converted
with a fixed 111 km per degree. The result is turned into minutes at a
fixed rate (2 minutes per km, i.e. about 30 km/h in a city) and never
drops below 15 minutes.

This is a deliberately coarse heuristic: it is not geodesic and knows
nothing about roads. The constants and the floor are part of the
schedule's observable behaviour and come from ``PlannerConfig``.

Example usage:

    minutes = estimate_travel_time(place_a, place_b)
"""

from __future__ import annotations

import math
from typing import Optional, Tuple

from tripweave.config import PlannerConfig
from tripweave.models import Place


def planar_distance_degrees(coord1: Tuple[float, float], coord2: Tuple[float, float]) -> float:
    """Euclidean distance between two (lat, lng) pairs, in degrees."""
    lat1, lng1 = coord1
    lat2, lng2 = coord2
    return math.sqrt((lat2 - lat1) ** 2 + (lng2 - lng1) ** 2)


def planar_distance_km(
    coord1: Tuple[float, float],
    coord2: Tuple[float, float],
    config: Optional[PlannerConfig] = None,
) -> float:
    """Approximate distance in kilometres using a flat degree-to-km factor."""
    config = config or PlannerConfig()
    return planar_distance_degrees(coord1, coord2) * config.km_per_degree


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def estimate_travel_time(origin: Place, destination: Place, config: Optional[PlannerConfig] = None) -> int:
    """Estimate the travel time in whole minutes between two places.

    Args:
        origin: Place the traveller leaves from.
        destination: Place the traveller goes to.
        config: Planner configuration holding the conversion constants.

    Returns:
        Estimated minutes, at least ``config.min_travel_minutes``.
    """
    config = config or PlannerConfig()
    km = planar_distance_km(origin.coords, destination.coords, config)
    return max(config.min_travel_minutes, round_half_up(km * config.minutes_per_km))
