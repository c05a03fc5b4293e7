"""
iCalendar export for tripweave.

Serialises a generated schedule into an ``.ics`` document using the
``icalendar`` library so it can be imported into any calendar client.
Each scheduled visit becomes one ``VEVENT``; visits are given in local
wall-clock time and written out in UTC.
"""

from __future__ import annotations

import re
from datetime import datetime, time, timedelta
from typing import Optional, Sequence

from icalendar import Calendar, Event
from zoneinfo import ZoneInfo

from tripweave.config import PlannerConfig
from tripweave.models import DaySchedule, ScheduledPlace, Trip, parse_date

PRODID = "-//Travel Planner//Travel Schedule//EN"
UID_DOMAIN = "travelplanner.app"
UTC = ZoneInfo("UTC")


def export_filename(trip_name: str) -> str:
    """Download file name for a trip's calendar, e.g. ``paris_trip_schedule.ics``."""
    return f"{re.sub(r'[^a-z0-9]', '_', trip_name, flags=re.IGNORECASE).lower()}_schedule.ics"


def describe_visit(entry: ScheduledPlace, is_first: bool) -> str:
    place = entry.place
    description = f"Visit {place.name}"
    if place.notes:
        description += f"\n\nNotes: {place.notes}"
    if place.rating:
        description += f"\n\nRating: {place.rating}/5 stars"
    description += f"\n\nDuration: {entry.duration} minutes"
    if entry.travel_time and not is_first:
        description += f"\nTravel time from previous location: {entry.travel_time} minutes"
    return description


def schedule_to_calendar(
    schedule: Sequence[DaySchedule],
    trip: Trip,
    config: Optional[PlannerConfig] = None,
    now: Optional[datetime] = None,
) -> Calendar:
    """Build an ``icalendar.Calendar`` for a schedule.

    Entries without a start time or a positive duration are skipped.
    """
    config = config or PlannerConfig()
    local_tz = ZoneInfo(config.timezone)
    stamp = (now or datetime.now(UTC)).astimezone(UTC).replace(microsecond=0)

    cal = Calendar()
    cal.add("version", "2.0")
    cal.add("prodid", PRODID)
    cal.add("calscale", "GREGORIAN")
    cal.add("method", "PUBLISH")
    cal.add("x-wr-calname", f"{trip.name} - Travel Schedule")
    cal.add("x-wr-caldesc", f"Generated travel itinerary for {trip.name}")

    for day in schedule:
        day_date = parse_date(day.date)
        if day_date is None:
            continue
        midnight = datetime.combine(day_date, time(0), tzinfo=local_tz)
        for index, entry in enumerate(day.places):
            if entry.start_minutes is None or not entry.duration:
                continue
            start = (midnight + timedelta(minutes=entry.start_minutes)).astimezone(UTC)
            end = start + timedelta(minutes=entry.duration)
            place = entry.place

            event = Event()
            event.add("uid", f"{trip.id}-{place.id}-{day.day}@{UID_DOMAIN}")
            event.add("dtstamp", stamp)
            event.add("dtstart", start)
            event.add("dtend", end)
            event.add("summary", place.name)
            event.add("description", describe_visit(entry, index == 0))
            event.add("location", place.address)
            event.add("categories", [place.category or "Place"])
            event.add("status", "CONFIRMED")
            event.add("transp", "OPAQUE")
            cal.add_component(event)
    return cal


def schedule_to_ics(
    schedule: Sequence[DaySchedule],
    trip: Trip,
    config: Optional[PlannerConfig] = None,
    now: Optional[datetime] = None,
) -> bytes:
    """Serialise a schedule as an iCalendar document (CRLF line endings)."""
    return schedule_to_calendar(schedule, trip, config, now).to_ical(sorted=False)
