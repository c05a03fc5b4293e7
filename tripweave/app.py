"""
Streamlit application for tripweave.

This script defines the user interface and orchestrates the planner
modules: it loads a trip (from the trip API or an uploaded JSON file),
generates a day-by-day schedule, lets the user adjust individual visits,
exports the result as an ``.ics`` file and offers a week/month calendar
for booking visits by hand.

To run this app locally for development, install the package and
execute:

    streamlit run tripweave/app.py

Settings are read from Streamlit's secrets: ``TRIP_API_URL`` and
``TRIP_API_TOKEN`` for the trip storage, and an optional ``[planner]``
table overriding ``PlannerConfig`` fields.
"""

from __future__ import annotations

import asyncio
import html
import json
import logging
from dataclasses import replace
from datetime import date
from typing import Optional

import streamlit as st

from tripweave.config import PlannerConfig
from tripweave.events import (
    DAYS_OF_WEEK,
    MONTH,
    WEEK,
    CalendarView,
    DayColumn,
    ManualEventStore,
    format_duration,
    format_time_12h,
    free_hours,
    request_for_cell,
    week_layout,
)
from tripweave.export import export_filename, schedule_to_ics
from tripweave.hours import check_opening_hours, hours_for_day
from tripweave.models import Trip, format_minutes, parse_date
from tripweave.schedule import PlannerSession
from tripweave.storage import TripStoreClient

logger = logging.getLogger(__name__)

DURATION_OPTIONS = [30, 60, 90, 120, 180, 240, 300, 360, 480]
DEFAULT_BOOKING_HOUR = 10
TIMELINE_VIEWPORT = 480


def load_config() -> PlannerConfig:
    config = PlannerConfig.from_mapping(st.secrets.get("planner", {}))
    logging.basicConfig(level=config.log_level, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    return config


def get_store_client() -> Optional[TripStoreClient]:
    base_url = st.secrets.get("TRIP_API_URL", "")
    if not base_url:
        return None
    return TripStoreClient(base_url, token=st.secrets.get("TRIP_API_TOKEN"))


def select_trip(client: Optional[TripStoreClient]) -> Optional[Trip]:
    """Let the user pick a stored trip, or upload one when no API is configured."""
    if client is not None:
        trips = client.fetch_trips()
        if not trips:
            st.warning("No trips could be loaded from the trip API.")
            return None
        names = {f"{t.name} ({t.start_date or '?'} → {t.end_date or '?'})": t for t in trips}
        return names[st.sidebar.selectbox("Trip", list(names))]
    uploaded = st.sidebar.file_uploader("Trip JSON", type=["json"])
    if uploaded is None:
        return None
    try:
        return Trip.from_dict(json.load(uploaded))
    except (ValueError, KeyError, TypeError) as exc:
        st.error(f"Could not read trip file: {exc}")
        return None


def init_state(trip: Trip, config: PlannerConfig) -> None:
    """(Re)initialise per-trip session state when the selected trip changes."""
    if st.session_state.get("trip_id") == trip.id:
        st.session_state["events"].set_places(trip.places)
        return
    st.session_state["trip_id"] = trip.id
    st.session_state["planner"] = PlannerSession(trip, config)
    st.session_state["events"] = ManualEventStore(trip.places)
    st.session_state["view"] = CalendarView()
    st.session_state["pending_request"] = None


def render_schedule_tab(planner: PlannerSession, client: Optional[TripStoreClient], config: PlannerConfig) -> None:
    trip = planner.trip
    st.subheader(f"Visit schedule for {trip.name}")
    if not trip.start_date or not trip.end_date:
        st.info("Set a start and end date on the trip to generate a schedule.")
    if st.button("Generate schedule", disabled=not trip.places):
        with st.spinner("Generating your schedule…"):
            asyncio.run(planner.generate())
    schedule = planner.schedule
    if not schedule:
        st.caption(f"{len(trip.places)} places ready to be organised.")
        return

    total_h, total_m = divmod(planner.total_duration(), 60)
    st.success(f"{len(schedule)} day(s), total {total_h}h {total_m}m including travel")
    for day in schedule:
        st.markdown(f"#### Day {day.day} – {day.date}")
        rows = []
        for entry in day.places:
            rows.append(
                {
                    "Start": entry.scheduled_time,
                    "End": format_minutes(entry.end_minutes),
                    "Place": entry.place.name,
                    "Category": entry.place.category or "place",
                    "Duration": format_duration(entry.duration),
                    "Travel": f"{entry.travel_time} min" if entry.travel_time else "",
                }
            )
        st.table(rows)

    with st.form("edit_entry"):
        st.markdown("#### Adjust a visit")
        day_index = st.selectbox("Day", range(len(schedule)), format_func=lambda i: f"Day {schedule[i].day}")
        day = schedule[day_index]
        place_index = st.selectbox(
            "Place", range(len(day.places)), format_func=lambda i: day.places[i].place.name
        )
        entry = day.places[place_index]
        new_time = st.text_input("Start time (HH:MM)", value=entry.scheduled_time)
        new_duration = st.number_input("Duration (minutes)", min_value=1, max_value=720, value=entry.duration)
        if st.form_submit_button("Save"):
            try:
                planner.edit(day_index, place_index, start_time=new_time, duration=int(new_duration))
                st.rerun()
            except (ValueError, IndexError) as exc:
                st.error(str(exc))

    col_export, col_apply = st.columns(2)
    with col_export:
        st.download_button(
            "Export to calendar",
            data=schedule_to_ics(schedule, trip, config),
            file_name=export_filename(trip.name),
            mime="text/calendar",
        )
    with col_apply:
        if st.button("Apply schedule"):
            ordered = planner.apply()
            if client is None:
                st.info("No trip API configured; the new order was not saved.")
            elif client.save_place_order(trip.id, [p.id for p in ordered]):
                st.success("Trip places re-ordered to follow the schedule.")
            else:
                st.error("Saving the new order failed.")


def render_event_form(store: ManualEventStore, config: PlannerConfig) -> None:
    request = st.session_state.get("pending_request")
    if request is None or not store.places:
        return
    places = list(store.places.values())
    with st.form(f"new_event_{request.date}_{request.start_time}"):
        st.markdown(f"#### Schedule a visit on {request.date}")
        place = st.selectbox("Place", places, format_func=lambda p: p.name)
        start_time = st.text_input("Start time (HH:MM)", value=request.start_time)
        default_index = DURATION_OPTIONS.index(request.duration) if request.duration in DURATION_OPTIONS else 0
        duration = st.selectbox("Duration", DURATION_OPTIONS, index=default_index, format_func=format_duration)
        notes = st.text_area("Notes")
        day_hours = hours_for_day(place, request.date)
        if day_hours:
            st.caption(f"Opening hours: {day_hours}")
        # Advisory only: an out-of-hours visit can still be saved.
        try:
            status = check_opening_hours(place, request.date, start_time, duration)
        except ValueError:
            status = None
        if status is not None and not status.is_open:
            message = status.warning
            if status.hours and status.hours != status.warning:
                message += f" ({status.hours})"
            st.warning(message)
        if st.form_submit_button("Save event"):
            try:
                store.add_request(replace(request, start_time=start_time, duration=duration), place.id, notes)
                st.session_state["pending_request"] = None
                st.rerun()
            except ValueError as exc:
                st.error(str(exc))


def day_timeline_html(column: DayColumn, config: PlannerConfig) -> str:
    """Event blocks of one day positioned on a 24 hour axis."""
    hour_px = 60 * config.pixels_per_minute
    parts = [
        f'<div style="max-height:{TIMELINE_VIEWPORT}px;overflow-y:auto;">'
        f'<div style="position:relative;height:{24 * hour_px}px;border-left:1px solid #ddd;">'
    ]
    for hour in range(24):
        parts.append(
            f'<div style="position:absolute;top:{hour * hour_px}px;left:0;right:0;height:{hour_px}px;'
            f'border-top:1px solid #eee;font-size:10px;color:#999;">{hour:02d}</div>'
        )
    for block in column.blocks:
        background, border = ("#e3f2fd", "#1e88e5") if block.is_open else ("#fff3e0", "#fb8c00")
        text = html.escape(f"{format_time_12h(block.event.start_time)} {block.place.name}")
        if not block.is_open:
            text += f"<br><em>{html.escape(block.status.warning or '')}</em>"
        parts.append(
            f'<div style="position:absolute;top:{block.top}px;height:{block.height}px;left:20px;right:2px;'
            f'background:{background};border-left:3px solid {border};font-size:11px;overflow:hidden;">{text}</div>'
        )
    parts.append("</div></div>")
    return "".join(parts)


def render_week_grid(store: ManualEventStore, view: CalendarView, config: PlannerConfig) -> None:
    today = date.today()
    columns = week_layout(store, view.dates(), config)
    for cell, column in zip(st.columns(7), columns):
        with cell:
            st.markdown(f"**{column.label}**" if column.date == today else column.label)
            st.markdown(day_timeline_html(column, config), unsafe_allow_html=True)
            with st.expander("Free hours"):
                for hour in free_hours(column):
                    if st.button(f"{hour:02d}:00", key=f"cell_{column.date.isoformat()}_{hour}"):
                        st.session_state["pending_request"] = request_for_cell(column.date, hour, config)


def render_month_grid(store: ManualEventStore, view: CalendarView, config: PlannerConfig) -> None:
    grouped = store.events_by_date()
    dates = view.dates()
    for cell, name in zip(st.columns(7), DAYS_OF_WEEK):
        cell.markdown(f"**{name}**")
    for week_start in range(0, len(dates), 7):
        for cell, day in zip(st.columns(7), dates[week_start: week_start + 7]):
            with cell:
                label = str(day.day) if day.month == view.pivot.month else f":grey[{day.day}]"
                st.markdown(label)
                for event in grouped.get(day.isoformat(), []):
                    status = check_opening_hours(store.place_for(event), event.date, event.start_time, event.duration)
                    marker = "" if status.is_open else "⚠️ "
                    st.caption(f"{marker}{format_time_12h(event.start_time)} {store.place_for(event).name}")
                if st.button("＋", key=f"day_{day.isoformat()}"):
                    st.session_state["pending_request"] = request_for_cell(day, DEFAULT_BOOKING_HOUR, config)


def render_booked_events(store: ManualEventStore, dates) -> None:
    visible = {d.isoformat() for d in dates}
    booked = [e for day, events in sorted(store.events_by_date().items()) if day in visible for e in events]
    if not booked:
        return
    with st.expander(f"Booked visits ({len(booked)})"):
        event = st.selectbox(
            "Visit",
            booked,
            format_func=lambda e: f"{e.date} {e.start_time} {store.place_for(e).name}",
        )
        with st.form(f"edit_event_{event.id}"):
            new_date = st.date_input("Date", value=parse_date(event.date))
            new_time = st.text_input("Start time (HH:MM)", value=event.start_time)
            new_duration = st.number_input("Duration (minutes)", min_value=1, max_value=720, value=event.duration)
            notes = st.text_area("Notes", value=event.notes or "")
            col_save, col_remove = st.columns(2)
            save = col_save.form_submit_button("Save changes")
            remove = col_remove.form_submit_button("Remove")
        if save:
            try:
                store.update_event(
                    event.id,
                    date=new_date,
                    start_time=new_time,
                    duration=int(new_duration),
                    notes=notes.strip() or None,
                )
                st.rerun()
            except ValueError as exc:
                st.error(str(exc))
        if remove:
            store.remove_event(event.id)
            st.rerun()


def render_calendar_tab(store: ManualEventStore, view: CalendarView, config: PlannerConfig) -> None:
    col_prev, col_header, col_next = st.columns([1, 4, 1])
    with col_prev:
        if st.button("◀", key="cal_prev"):
            view.previous()
    with col_next:
        if st.button("▶", key="cal_next"):
            view.next()
    with col_header:
        mode = st.radio("View", [WEEK, MONTH], horizontal=True, index=0 if view.mode == WEEK else 1)
        view.mode = mode
        st.markdown(f"**{view.header_text()}**")
        if st.button("Today"):
            view.today()

    if view.mode == WEEK:
        render_week_grid(store, view, config)
    else:
        render_month_grid(store, view, config)
    render_event_form(store, config)
    render_booked_events(store, view.dates())
    summary = store.summary()
    st.caption(f"{summary['events']} events total · {summary['places']} places")


def main():
    st.set_page_config(page_title="tripweave", layout="wide")
    st.title("🗓️ tripweave trip planner")
    config = load_config()
    client = get_store_client()
    trip = select_trip(client)
    if trip is None:
        st.info("Choose a trip to start planning.")
        st.stop()
    init_state(trip, config)
    tab_schedule, tab_calendar = st.tabs(["Schedule", "Calendar"])
    with tab_schedule:
        render_schedule_tab(st.session_state["planner"], client, config)
    with tab_calendar:
        render_calendar_tab(st.session_state["events"], st.session_state["view"], config)


if __name__ == "__main__":
    main()
