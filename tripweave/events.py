"""
Manual calendar for tripweave.

Besides the generated itinerary, visits can be booked one at a time on
a calendar. This module holds those bookings and works out how they are
laid out in a week (or month) view:

    - ``ManualEventStore`` creates, updates and removes ``ScheduledEvent``
      records and groups them per date. Events whose place has been
      removed from the trip are hidden rather than reported.
    - ``CalendarView`` tracks the pivot date and the week/month mode and
      produces the dates to display.
    - ``layout_event`` and ``week_layout`` position events on a 24 hour
      axis and attach the (advisory) opening-hours status of each visit.
    - ``free_hours`` lists the hour cells of a day that are still empty.

Events may overlap; nothing here prevents double bookings.
"""

from __future__ import annotations

import calendar
import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from tripweave.config import PlannerConfig
from tripweave.hours import MINUTES_PER_DAY, OpeningStatus, check_opening_hours
from tripweave.models import Place, ScheduledEvent, parse_date, parse_time_string

logger = logging.getLogger(__name__)

DAYS_OF_WEEK = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
WEEK = "week"
MONTH = "month"


def format_time_12h(time_str: str) -> str:
    """Format ``HH:MM`` as ``h:MM AM/PM``."""
    hours, minutes = time_str.split(":")
    h = int(hours)
    suffix = "PM" if h >= 12 else "AM"
    return f"{h % 12 or 12}:{minutes} {suffix}"


def format_duration(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes}min"
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}min" if mins else f"{hours}h"


def week_dates(pivot: date) -> List[date]:
    """Seven dates starting on the Sunday on or before ``pivot``."""
    start = pivot - timedelta(days=(pivot.weekday() + 1) % 7)
    return [start + timedelta(days=i) for i in range(7)]


def month_dates(pivot: date) -> List[date]:
    """Whole Sunday-to-Saturday weeks covering the month of ``pivot``."""
    cal = calendar.Calendar(firstweekday=calendar.SUNDAY)
    return [d for week in cal.monthdatescalendar(pivot.year, pivot.month) for d in week]


@dataclass(frozen=True)
class EventRequest:
    """Pre-filled values for the event creation form."""

    date: str
    start_time: str = "10:00"
    duration: int = 120
    place_id: Optional[str] = None


def parse_clock_time(start_time: str) -> int:
    """Parse a booking start time; unlike schedule times it must fall within the day."""
    minutes = parse_time_string(start_time)
    if minutes >= MINUTES_PER_DAY:
        raise ValueError(f"invalid time {start_time!r}, expected 00:00-23:59")
    return minutes


def request_for_cell(day, hour: int, config: Optional[PlannerConfig] = None) -> EventRequest:
    """Event creation request for a click on an empty hour cell."""
    config = config or PlannerConfig()
    if not 0 <= hour < 24:
        raise ValueError(f"hour {hour} outside 0-23")
    target = parse_date(day)
    if target is None:
        raise ValueError(f"invalid date {day!r}")
    return EventRequest(date=target.isoformat(), start_time=f"{hour:02d}:00", duration=config.default_event_duration)


class ManualEventStore:
    """Independently booked visits, keyed by event id."""

    def __init__(self, places: Iterable[Place], events: Iterable[ScheduledEvent] = ()):
        self.places: Dict[str, Place] = {p.id: p for p in places}
        self._events: Dict[str, ScheduledEvent] = {e.id: e for e in events}

    def __len__(self) -> int:
        return len(self._events)

    def set_places(self, places: Iterable[Place]) -> None:
        self.places = {p.id: p for p in places}

    def place_for(self, event: ScheduledEvent) -> Optional[Place]:
        return self.places.get(event.place_id)

    def add_event(
        self,
        place_id: str,
        day,
        start_time: str,
        duration: int,
        notes: Optional[str] = None,
    ) -> ScheduledEvent:
        """Book a visit.

        Opening hours are not consulted here; an out-of-hours booking is
        stored like any other and flagged when laid out.

        Raises:
            ValueError: If the place, date or start time is missing or
                malformed, the start time is not within the day, or the duration
                is not positive.
        """
        if not place_id:
            raise ValueError("Please select a place")
        target = parse_date(day)
        if target is None:
            raise ValueError("Please select a date")
        if not start_time:
            raise ValueError("Please select a start time")
        parse_clock_time(start_time)
        if int(duration) <= 0:
            raise ValueError("duration must be positive")
        event = ScheduledEvent(
            id=uuid.uuid4().hex,
            place_id=place_id,
            date=target.isoformat(),
            start_time=start_time,
            duration=int(duration),
            notes=(notes or "").strip() or None,
        )
        self._events[event.id] = event
        logger.debug("Added event %s for place %s on %s", event.id, place_id, event.date)
        return event

    def add_request(self, request: EventRequest, place_id: Optional[str] = None, notes: Optional[str] = None) -> ScheduledEvent:
        return self.add_event(place_id or request.place_id, request.date, request.start_time, request.duration, notes)

    def update_event(self, event_id: str, **changes) -> Optional[ScheduledEvent]:
        """Change fields of an event in place; returns ``None`` for unknown ids."""
        event = self._events.get(event_id)
        if event is None:
            return None
        if "start_time" in changes:
            parse_clock_time(changes["start_time"])
        if "duration" in changes and int(changes["duration"]) <= 0:
            raise ValueError("duration must be positive")
        if "date" in changes:
            target = parse_date(changes["date"])
            if target is None:
                raise ValueError(f"invalid date {changes['date']!r}")
            changes["date"] = target.isoformat()
        updated = replace(event, **changes)
        self._events[event_id] = updated
        return updated

    def remove_event(self, event_id: str) -> bool:
        return self._events.pop(event_id, None) is not None

    def get_event(self, event_id: str) -> Optional[ScheduledEvent]:
        return self._events.get(event_id)

    def events_for_date(self, day) -> List[ScheduledEvent]:
        """Events on ``day`` whose place is known, ordered by start time."""
        target = parse_date(day)
        if target is None:
            return []
        key = target.isoformat()
        found = [e for e in self._events.values() if e.date == key and e.place_id in self.places]
        return sorted(found, key=lambda e: e.start_minutes)

    def events_by_date(self) -> Dict[str, List[ScheduledEvent]]:
        grouped: Dict[str, List[ScheduledEvent]] = {}
        for event in self._events.values():
            if event.place_id not in self.places:
                continue
            grouped.setdefault(event.date, []).append(event)
        for events in grouped.values():
            events.sort(key=lambda e: e.start_minutes)
        return grouped

    def summary(self) -> Dict[str, int]:
        return {"events": len(self._events), "places": len(self.places)}


class CalendarView:
    """Navigation state of the calendar: a pivot date and a view mode."""

    def __init__(self, pivot: Optional[date] = None, mode: str = WEEK):
        if mode not in (WEEK, MONTH):
            raise ValueError(f"unknown view mode {mode!r}")
        self.pivot = pivot or date.today()
        self.mode = mode

    def dates(self) -> List[date]:
        return week_dates(self.pivot) if self.mode == WEEK else month_dates(self.pivot)

    def next(self) -> None:
        if self.mode == WEEK:
            self.pivot += timedelta(days=7)
        else:
            self.pivot = _shift_month(self.pivot, 1)

    def previous(self) -> None:
        if self.mode == WEEK:
            self.pivot -= timedelta(days=7)
        else:
            self.pivot = _shift_month(self.pivot, -1)

    def today(self, today: Optional[date] = None) -> None:
        self.pivot = today or date.today()

    def header_text(self) -> str:
        if self.mode == MONTH:
            return f"{calendar.month_name[self.pivot.month]} {self.pivot.year}"
        days = week_dates(self.pivot)
        start, end = days[0], days[-1]
        if start.month == end.month:
            return f"{calendar.month_name[start.month]} {start.day} - {end.day}, {start.year}"
        return (
            f"{calendar.month_name[start.month]} {start.day} - "
            f"{calendar.month_name[end.month]} {end.day}, {start.year}"
        )


def _shift_month(day: date, months: int) -> date:
    month_index = day.year * 12 + day.month - 1 + months
    year, month = divmod(month_index, 12)
    last = calendar.monthrange(year, month + 1)[1]
    return date(year, month + 1, min(day.day, last))


@dataclass(frozen=True)
class EventBlock:
    event: ScheduledEvent
    place: Place
    top: float
    height: float
    status: OpeningStatus

    @property
    def is_open(self) -> bool:
        return self.status.is_open


@dataclass
class DayColumn:
    date: date
    blocks: List[EventBlock] = field(default_factory=list)

    @property
    def label(self) -> str:
        return f"{DAYS_OF_WEEK[(self.date.weekday() + 1) % 7]} {self.date.day}"


def layout_event(event: ScheduledEvent, place: Place, config: Optional[PlannerConfig] = None) -> EventBlock:
    """Position an event on the 24 hour axis and check it against opening hours."""
    config = config or PlannerConfig()
    top = event.start_minutes * config.pixels_per_minute
    height = max(event.duration * config.pixels_per_minute, config.min_event_height)
    status = check_opening_hours(place, event.date, event.start_time, event.duration)
    return EventBlock(event=event, place=place, top=top, height=height, status=status)


def week_layout(
    store: ManualEventStore,
    dates: Sequence[date],
    config: Optional[PlannerConfig] = None,
) -> List[DayColumn]:
    """Lay out every visible event for each of ``dates``."""
    config = config or PlannerConfig()
    columns = []
    for day in dates:
        column = DayColumn(date=day)
        for event in store.events_for_date(day):
            column.blocks.append(layout_event(event, store.place_for(event), config))
        columns.append(column)
    return columns


def free_hours(column: DayColumn) -> List[int]:
    """Hours of the day whose cell no event in ``column`` overlaps."""
    busy = set()
    for block in column.blocks:
        start = block.event.start_minutes
        end = start + block.event.duration
        busy.update(range(start // 60, min(-(-end // 60), 24)))
    return [hour for hour in range(24) if hour not in busy]
