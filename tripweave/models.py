"""
Data model for tripweave.

Places, trips and schedule entries are plain dataclasses. Two input
shapes are understood:

    - the client shape produced by the planner front end (``lat``/``lng``,
      ``type`` and ``openingHours`` keys), read by ``Place.from_dict`` and
      ``Trip.from_dict``;
    - the storage document shape returned by the trip API (``_id``,
      ``googlePlaceId`` and a GeoJSON ``location`` with ``[lng, lat]``
      coordinates), read by ``Trip.from_api``. There a place's ``id`` is the
      document ``_id``, since that is what the trip document references.

Times of day inside a generated schedule are kept as whole minutes after
midnight so that arithmetic on them is exact; ``format_minutes`` renders
them as ``HH:MM``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


def parse_time_string(t: str) -> int:
    """Parse a HH:MM formatted time string into minutes after midnight."""
    try:
        h, m = map(int, t.strip().split(":"))
    except (AttributeError, ValueError):
        raise ValueError(f"invalid time {t!r}, expected HH:MM") from None
    if h < 0 or not 0 <= m < 60:
        raise ValueError(f"invalid time {t!r}, expected HH:MM")
    return h * 60 + m


def parse_hhmm(t: str) -> int:
    """Parse an opening-hours ``HHMM`` string into minutes after midnight."""
    t = t.strip()
    if len(t) != 4 or not t.isdigit():
        raise ValueError(f"invalid opening time {t!r}, expected HHMM")
    return int(t[:2]) * 60 + int(t[2:])


def format_minutes(minutes: int) -> str:
    """Format minutes after midnight as HH:MM (hours may exceed 23)."""
    h, m = divmod(int(minutes), 60)
    return f"{h:02d}:{m:02d}"


def parse_date(value: Any) -> Optional[date]:
    """Return a ``date`` for a ``YYYY-MM-DD`` string, ISO timestamp or date.

    Missing or unparseable values give ``None``.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        logger.warning("Ignoring unparseable date %r", value)
        return None


@dataclass(frozen=True)
class DayTime:
    day: int  # 0 = Sunday
    time: str  # HHMM

    @property
    def minutes(self) -> int:
        return parse_hhmm(self.time)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DayTime":
        return cls(day=int(data["day"]), time=str(data["time"]))


@dataclass(frozen=True)
class OpeningPeriod:
    open: DayTime
    close: Optional[DayTime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OpeningPeriod":
        close = data.get("close")
        return cls(
            open=DayTime.from_dict(data["open"]),
            close=DayTime.from_dict(close) if close else None,
        )


@dataclass(frozen=True)
class OpeningHours:
    periods: List[OpeningPeriod] = field(default_factory=list)
    # Seven entries, Monday first.
    weekday_text: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["OpeningHours"]:
        if not data:
            return None
        return cls(
            periods=[OpeningPeriod.from_dict(p) for p in data.get("periods") or [] if p.get("open")],
            weekday_text=[str(t) for t in data.get("weekdayText") or data.get("weekday_text") or []],
        )


@dataclass
class Place:
    id: str
    name: str
    address: str = ""
    lat: float = 0.0
    lng: float = 0.0
    category: Optional[str] = None
    rating: Optional[float] = None
    opening_hours: Optional[OpeningHours] = None
    notes: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    visit_preference: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    price_level: Optional[int] = None
    google_place_id: Optional[str] = None

    @property
    def coords(self) -> Tuple[float, float]:
        return self.lat, self.lng

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Place":
        """Build a place from the client-side record."""
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            address=data.get("address", ""),
            lat=float(data.get("lat", 0.0)),
            lng=float(data.get("lng", 0.0)),
            category=data.get("type") or data.get("category"),
            rating=data.get("rating"),
            opening_hours=OpeningHours.from_dict(data.get("openingHours")),
            notes=data.get("notes"),
            tags=list(data.get("tags") or []),
            visit_preference=data.get("visitPreference"),
            phone=data.get("phone"),
            website=data.get("website"),
            price_level=data.get("priceLevel"),
            google_place_id=data.get("googlePlaceId"),
        )

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Place":
        """Build a place from a stored place document.

        ``id`` is the document id, which the trip document references;
        the provider id is kept in ``google_place_id``.
        """
        # GeoJSON order is [lng, lat]
        lng, lat = data.get("location", {}).get("coordinates", [0.0, 0.0])
        record = dict(data)
        record["id"] = data.get("_id") or data.get("id")
        record["lat"] = lat
        record["lng"] = lng
        return cls.from_dict(record)


@dataclass
class Trip:
    id: str
    name: str
    places: List[Place] = field(default_factory=list)
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Trip":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            places=[Place.from_dict(p) for p in data.get("places") or []],
            start_date=data.get("startDate"),
            end_date=data.get("endDate"),
            description=data.get("description"),
        )

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Trip":
        """Build a trip from the storage document, normalising dates to YYYY-MM-DD."""
        start = parse_date(data.get("startDate"))
        end = parse_date(data.get("endDate"))
        return cls(
            id=str(data.get("_id") or data.get("id")),
            name=data.get("name", ""),
            places=[Place.from_api(p) for p in data.get("places") or [] if isinstance(p, dict)],
            start_date=start.isoformat() if start else None,
            end_date=end.isoformat() if end else None,
            description=data.get("description"),
        )


@dataclass
class ScheduledEvent:
    id: str
    place_id: str
    date: str  # YYYY-MM-DD
    start_time: str  # HH:MM
    duration: int  # minutes
    notes: Optional[str] = None

    @property
    def start_minutes(self) -> int:
        return parse_time_string(self.start_time)


@dataclass(frozen=True)
class ScheduledPlace:
    place: Place
    start_minutes: int
    duration: int
    travel_time: int = 0

    @property
    def scheduled_time(self) -> str:
        return format_minutes(self.start_minutes)

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration


@dataclass(frozen=True)
class DaySchedule:
    day: int
    date: str
    places: Tuple[ScheduledPlace, ...] = ()
    total_duration: int = 0
