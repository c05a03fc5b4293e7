"""
tripweave package initialization.

This package provides the planning core of a travel planner: it turns a
trip's saved places and date range into a day-by-day itinerary and
supports a calendar of manually booked visits. Components include:

Modules:
    config      – PlannerConfig with the lookup tables and constants.
    models      – Place, Trip and schedule dataclasses plus parsers.
    routing     – Straight-line travel time estimation.
    hours       – Opening hours checks for a planned visit.
    allocation  – Category-diversity heuristic choosing places for a day.
    schedule    – Schedule generation, edit cascading and the planner session.
    events      – Manually booked visits and week/month calendar layout.
    export      – iCalendar export of a generated schedule.
    storage     – HTTP client for the trip storage API.
    app         – Streamlit user interface.

The schedules produced are best-effort heuristics; they do not take real
road networks into account and do not guarantee a feasible day.
"""

__all__ = [
    "config",
    "models",
    "routing",
    "hours",
    "allocation",
    "schedule",
    "events",
    "export",
    "storage",
]
