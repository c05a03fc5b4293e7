"""
Schedule calculation utilities for tripweave.

This module turns a trip's places and date range into a day-by-day
itinerary and keeps that itinerary consistent when the user edits it.

    - ``build_schedule`` allocates places to days and assigns each visit
      a start time, a duration and the travel time from the previous stop.
    - ``edit_entry`` changes one visit and shifts the rest of its day.
    - ``PlannerSession`` holds the current schedule of one trip and
      offers cancellable asynchronous generation.

Every function here is pure: schedules are immutable and edits return a
new list, so a caller never sees a half-updated day.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import replace
from datetime import timedelta
from typing import List, Optional, Sequence

from tripweave.allocation import select_places_for_day
from tripweave.config import PlannerConfig
from tripweave.models import DaySchedule, Place, ScheduledPlace, Trip, parse_date, parse_time_string
from tripweave.routing import estimate_travel_time

logger = logging.getLogger(__name__)


def schedule_day(
    day_places: Sequence[Place],
    config: Optional[PlannerConfig] = None,
) -> List[ScheduledPlace]:
    """Assign start times to an ordered list of places visited on one day.

    The clock starts at ``config.day_start_minutes``. Before every place
    but the first the estimated travel time from the previous place is
    added; after every place its category's visit duration is added.
    """
    config = config or PlannerConfig()
    clock = config.day_start_minutes
    entries: List[ScheduledPlace] = []
    for idx, place in enumerate(day_places):
        travel = estimate_travel_time(day_places[idx - 1], place, config) if idx > 0 else 0
        clock += travel
        duration = config.visit_duration(place.category)
        entries.append(ScheduledPlace(place=place, start_minutes=clock, duration=duration, travel_time=travel))
        clock += duration
    return entries


def total_duration(entries: Sequence[ScheduledPlace]) -> int:
    return sum(e.duration + e.travel_time for e in entries)


def build_schedule(
    places: Sequence[Place],
    start_date,
    end_date,
    config: Optional[PlannerConfig] = None,
) -> List[DaySchedule]:
    """Generate a day-by-day itinerary.

    Args:
        places: Places to visit, in the trip's order.
        start_date: First day (``date`` or ``YYYY-MM-DD``), inclusive.
        end_date: Last day (``date`` or ``YYYY-MM-DD``), inclusive.
        config: Planner configuration.

    Returns:
        One ``DaySchedule`` per day that received at least one place. A
        missing date or an empty place list gives an empty list.
    """
    config = config or PlannerConfig()
    start = parse_date(start_date)
    end = parse_date(end_date)
    if start is None or end is None or not places:
        return []
    total_days = (end - start).days + 1
    if total_days <= 0:
        logger.warning("End date %s is before start date %s, nothing to schedule", end, start)
        return []

    remaining = list(places)
    schedules: List[DaySchedule] = []
    for day in range(total_days):
        places_per_day = math.ceil(len(remaining) / (total_days - day))
        day_cap = min(config.max_places_per_day, places_per_day)
        day_places = select_places_for_day(remaining, day_cap, day == 0, config)
        entries = schedule_day(day_places, config)
        chosen = {p.id for p in day_places}
        remaining = [p for p in remaining if p.id not in chosen]
        logger.debug("Day %d: %d places scheduled, %d remaining", day + 1, len(entries), len(remaining))
        if entries:
            schedules.append(
                DaySchedule(
                    day=day + 1,
                    date=(start + timedelta(days=day)).isoformat(),
                    places=tuple(entries),
                    total_duration=total_duration(entries),
                )
            )
    if remaining:
        logger.info("%d places did not fit into %d days", len(remaining), total_days)
    return schedules


def generate_for_trip(trip: Trip, config: Optional[PlannerConfig] = None) -> List[DaySchedule]:
    return build_schedule(trip.places, trip.start_date, trip.end_date, config)


def recalculate_day(day: DaySchedule, start_index: int) -> DaySchedule:
    """Return ``day`` with entries from ``start_index`` on shifted to follow their predecessor.

    Travel times are kept as recorded; they are not estimated again.
    """
    entries = list(day.places)
    for i in range(max(start_index, 1), len(entries)):
        previous = entries[i - 1]
        entries[i] = replace(entries[i], start_minutes=previous.end_minutes + entries[i].travel_time)
    return replace(day, places=tuple(entries), total_duration=total_duration(entries))


def edit_entry(
    schedule: Sequence[DaySchedule],
    day_index: int,
    place_index: int,
    start_time: Optional[str] = None,
    duration: Optional[int] = None,
) -> List[DaySchedule]:
    """Change one visit's start time and/or duration and cascade the day.

    Args:
        schedule: Current schedule; it is not modified.
        day_index: Zero-based index of the day in ``schedule``.
        place_index: Zero-based index of the visit within that day.
        start_time: New start as ``HH:MM``, or ``None`` to keep it.
        duration: New duration in minutes, or ``None`` to keep it.

    Returns:
        A new schedule list in which only the edited day differs.

    Raises:
        IndexError: If either index is out of range.
        ValueError: If the start time is malformed or the duration is not positive.
    """
    if not 0 <= day_index < len(schedule):
        raise IndexError(f"day index {day_index} out of range")
    day = schedule[day_index]
    if not 0 <= place_index < len(day.places):
        raise IndexError(f"place index {place_index} out of range for day {day.day}")
    if duration is not None and duration <= 0:
        raise ValueError("duration must be positive")

    entry = day.places[place_index]
    if start_time is not None:
        entry = replace(entry, start_minutes=parse_time_string(start_time))
    if duration is not None:
        entry = replace(entry, duration=int(duration))
    entries = list(day.places)
    entries[place_index] = entry
    edited = recalculate_day(replace(day, places=tuple(entries)), place_index + 1)

    new_schedule = list(schedule)
    new_schedule[day_index] = edited
    return new_schedule


def ordered_places(schedule: Sequence[DaySchedule]) -> List[Place]:
    """Flatten a schedule into the visiting order of its places."""
    return [entry.place for day in schedule for entry in day.places]


def schedule_total_duration(schedule: Sequence[DaySchedule]) -> int:
    return sum(day.total_duration for day in schedule)


class PlannerSession:
    """Current schedule of one trip and the commands that change it.

    A single writer is assumed. ``generate`` only replaces the schedule
    once a new one is complete; if the task is cancelled the previous
    schedule stays in place.
    """

    def __init__(self, trip: Trip, config: Optional[PlannerConfig] = None):
        self.trip = trip
        self.config = config or PlannerConfig()
        self.schedule: List[DaySchedule] = []

    async def generate(self, delay: float = 0.0) -> List[DaySchedule]:
        """Build a new schedule, optionally after ``delay`` seconds.

        The computation runs in a worker thread so the event loop stays
        responsive; cancelling the awaiting task discards its result.
        """
        if delay:
            await asyncio.sleep(delay)
        schedule = await asyncio.to_thread(generate_for_trip, self.trip, self.config)
        self.schedule = schedule
        logger.info("Generated %d day(s) for trip %s", len(schedule), self.trip.id)
        return schedule

    def generate_now(self) -> List[DaySchedule]:
        self.schedule = generate_for_trip(self.trip, self.config)
        return self.schedule

    def edit(
        self,
        day_index: int,
        place_index: int,
        start_time: Optional[str] = None,
        duration: Optional[int] = None,
    ) -> List[DaySchedule]:
        self.schedule = edit_entry(self.schedule, day_index, place_index, start_time, duration)
        return self.schedule

    def apply(self) -> List[Place]:
        """Return the trip's places re-ordered to follow the schedule.

        Places that did not make it into the schedule keep their relative
        order after the scheduled ones.
        """
        scheduled = ordered_places(self.schedule)
        seen = {p.id for p in scheduled}
        return scheduled + [p for p in self.trip.places if p.id not in seen]

    def total_duration(self) -> int:
        return schedule_total_duration(self.schedule)
