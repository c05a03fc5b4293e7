import unittest
from datetime import datetime, timezone

from icalendar import Calendar

from tripweave.config import PlannerConfig
from tripweave.export import export_filename, schedule_to_ics
from tripweave.models import DaySchedule, Place, ScheduledPlace, Trip
from tripweave.schedule import build_schedule

NOW = datetime(2025, 5, 20, 8, 30, tzinfo=timezone.utc)


def make_trip():
    places = [
        Place(id="a", name="Eiffel Tower", address="Champ de Mars, Paris", category="tourist_attraction", rating=4.7),
        Place(id="b", name="Le Bistro", address="1 Rue de Rivoli, Paris", category="restaurant", notes="Book ahead"),
    ]
    return Trip(id="trip1", name="Paris Weekend", places=places, start_date="2025-06-01", end_date="2025-06-01")


class TestExport(unittest.TestCase):
    def setUp(self):
        self.trip = make_trip()
        self.schedule = build_schedule(self.trip.places, self.trip.start_date, self.trip.end_date)

    def parse(self, data):
        return Calendar.from_ical(data)

    def test_document_structure(self):
        data = schedule_to_ics(self.schedule, self.trip, now=NOW)
        self.assertTrue(data.startswith(b"BEGIN:VCALENDAR\r\n"))
        self.assertTrue(data.rstrip().endswith(b"END:VCALENDAR"))
        self.assertEqual(data.count(b"END:VCALENDAR"), 1)
        self.assertIn(b"VERSION:2.0", data)
        self.assertIn(b"CALSCALE:GREGORIAN", data)
        self.assertIn(b"METHOD:PUBLISH", data)
        self.assertIn(b"X-WR-CALNAME:Paris Weekend - Travel Schedule", data)

    def test_events(self):
        cal = self.parse(schedule_to_ics(self.schedule, self.trip, now=NOW))
        events = cal.walk("VEVENT")
        self.assertEqual(len(events), 2)
        first, second = events
        self.assertEqual(str(first["uid"]), "trip1-a-1@travelplanner.app")
        self.assertEqual(str(first["summary"]), "Eiffel Tower")
        self.assertEqual(str(first["location"]), "Champ de Mars, Paris")
        self.assertEqual(first.decoded("dtstart"), datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc))
        self.assertEqual(first.decoded("dtend"), datetime(2025, 6, 1, 11, 0, tzinfo=timezone.utc))
        self.assertEqual(str(first["status"]), "CONFIRMED")
        self.assertEqual(str(first["transp"]), "OPAQUE")
        self.assertIn("Rating: 4.7/5 stars", str(first["description"]))
        self.assertNotIn("Travel time", str(first["description"]))

        description = str(second["description"])
        self.assertIn("Notes: Book ahead", description)
        self.assertIn("Duration: 90 minutes", description)
        self.assertIn("Travel time from previous location: 15 minutes", description)

    def test_utc_compact_timestamps(self):
        data = schedule_to_ics(self.schedule, self.trip, now=NOW)
        self.assertIn(b"DTSTART:20250601T090000Z", data)
        self.assertIn(b"DTEND:20250601T110000Z", data)
        self.assertIn(b"DTSTAMP:20250520T083000Z", data)

    def test_local_timezone_is_converted(self):
        config = PlannerConfig(timezone="Europe/Paris")
        data = schedule_to_ics(self.schedule, self.trip, config, now=NOW)
        # 09:00 in Paris during summer time is 07:00 UTC
        self.assertIn(b"DTSTART:20250601T070000Z", data)

    def test_entries_without_duration_are_skipped(self):
        place = Place(id="x", name="Nowhere")
        day = DaySchedule(day=1, date="2025-06-01", places=(ScheduledPlace(place=place, start_minutes=540, duration=0),))
        cal = self.parse(schedule_to_ics([day], self.trip, now=NOW))
        self.assertEqual(cal.walk("VEVENT"), [])

    def test_empty_schedule(self):
        cal = self.parse(schedule_to_ics([], self.trip, now=NOW))
        self.assertEqual(cal.walk("VEVENT"), [])

    def test_export_filename(self):
        self.assertEqual(export_filename("Paris Weekend!"), "paris_weekend__schedule.ics")


if __name__ == "__main__":
    unittest.main()
