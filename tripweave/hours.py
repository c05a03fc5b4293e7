"""
Opening hours checks for tripweave.

Given a place's structured opening periods, decide whether a visit of a
given length starting at a given time on a given date fits inside them.
The answer is advisory: callers display the warning but never refuse to
book or show a visit because of it.

Conventions:

    - ``OpeningPeriod.open.day`` counts from Sunday = 0.
    - ``OpeningHours.weekday_text`` is Monday first, so the text for a
      day-of-week ``d`` is at index ``(d + 6) % 7``. Every caller goes
      through ``weekday_text_for`` so the two numbering schemes never mix.
    - A period without a close time is open until the end of that day.
    - A period that closes on a later day (an overnight venue) is not
      wrapped around midnight; its close time is compared against the
      opening day as-is.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from tripweave.models import OpeningHours, OpeningPeriod, Place, parse_date, parse_time_string

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60

CLOSED_ON_DAY = "Closed on this day"
OUTSIDE_HOURS = "Outside opening hours"


@dataclass(frozen=True)
class OpeningStatus:
    is_open: bool
    warning: Optional[str] = None
    hours: Optional[str] = None


def day_of_week(day: date) -> int:
    """Return the day of week with Sunday = 0."""
    return (day.weekday() + 1) % 7


def weekday_text_for(opening_hours: Optional[OpeningHours], day: date) -> Optional[str]:
    """Return the raw weekday text (e.g. ``"Monday: 9:00 AM - 5:00 PM"``) for a date."""
    if opening_hours is None or len(opening_hours.weekday_text) < 7:
        return None
    text = opening_hours.weekday_text[(day_of_week(day) + 6) % 7]
    return text or None


def strip_day_label(text: str) -> str:
    """Drop the leading ``"Monday: "`` style label from a weekday text."""
    label, sep, rest = text.partition(":")
    if sep and label.strip().isalpha():
        return rest.strip()
    return text.strip()


def hours_for_day(place: Place, day) -> Optional[str]:
    """Return the opening hours text for ``day`` without its weekday label."""
    target = parse_date(day)
    if target is None:
        return None
    text = weekday_text_for(place.opening_hours, target)
    return strip_day_label(text) if text else None


def period_window(period: OpeningPeriod) -> tuple:
    """Return ``(open, close)`` minutes after midnight of the opening day."""
    open_minutes = period.open.minutes
    if period.close is None:
        return open_minutes, MINUTES_PER_DAY
    return open_minutes, period.close.minutes


def check_opening_hours(place: Place, day, start_time: str, duration: int) -> OpeningStatus:
    """Check whether a visit falls inside a place's opening hours.

    Args:
        place: Place to check; places without period data are assumed open.
        day: Visit date as a ``date`` or ``YYYY-MM-DD`` string.
        start_time: Visit start as ``HH:MM``.
        duration: Visit length in minutes.

    Returns:
        An ``OpeningStatus``. ``hours`` carries the day's weekday text when
        the place has one.
    """
    hours = place.opening_hours
    if hours is None or not hours.periods:
        return OpeningStatus(is_open=True)
    target = parse_date(day)
    if target is None:
        return OpeningStatus(is_open=True)
    text = weekday_text_for(hours, target)
    dow = day_of_week(target)
    todays = [p for p in hours.periods if p.open.day == dow]
    if not todays:
        return OpeningStatus(is_open=False, warning=text or CLOSED_ON_DAY, hours=text)

    start = parse_time_string(start_time)
    end = start + duration
    for period in todays:
        try:
            open_minutes, close_minutes = period_window(period)
        except ValueError:
            logger.warning("Skipping malformed opening period %r for place %s", period, place.id)
            continue
        if open_minutes <= start and end <= close_minutes:
            return OpeningStatus(is_open=True, hours=text)
    return OpeningStatus(is_open=False, warning=OUTSIDE_HOURS, hours=text)
