import asyncio
import unittest

from tripweave.config import PlannerConfig
from tripweave.models import Place, Trip
from tripweave.schedule import (
    PlannerSession,
    build_schedule,
    edit_entry,
    ordered_places,
    schedule_day,
    schedule_total_duration,
)


def place(pid, category=None, rating=None, lat=48.8566, lng=2.3522):
    return Place(id=pid, name=pid.upper(), address=f"{pid} street", lat=lat, lng=lng, category=category, rating=rating)


def example_places():
    return [
        place("a", "tourist_attraction", 4.5),
        place("b", "restaurant", 4.0),
        place("c", "museum", 4.8),
        place("d", "park", 3.5),
    ]


class TestBuildSchedule(unittest.TestCase):
    def test_two_day_example(self):
        schedule = build_schedule(example_places(), "2025-06-01", "2025-06-02")
        self.assertEqual(len(schedule), 2)
        day1, day2 = schedule
        self.assertEqual((day1.day, day1.date), (1, "2025-06-01"))
        self.assertEqual((day2.day, day2.date), (2, "2025-06-02"))
        self.assertEqual([e.place.id for e in day1.places], ["a", "b"])
        self.assertEqual([e.place.id for e in day2.places], ["c", "d"])

        a, b = day1.places
        self.assertEqual((a.scheduled_time, a.duration, a.travel_time), ("09:00", 120, 0))
        self.assertEqual((b.scheduled_time, b.duration, b.travel_time), ("11:15", 90, 15))
        self.assertEqual(b.end_minutes, 12 * 60 + 45)
        self.assertEqual(day1.total_duration, 120 + 90 + 15)

        c, d = day2.places
        self.assertEqual(c.scheduled_time, "09:00")
        self.assertEqual(d.scheduled_time, "11:45")

    def test_missing_dates_give_empty_schedule(self):
        self.assertEqual(build_schedule(example_places(), None, "2025-06-02"), [])
        self.assertEqual(build_schedule(example_places(), "2025-06-01", ""), [])
        self.assertEqual(build_schedule(example_places(), "not a date", "2025-06-02"), [])

    def test_no_places_give_empty_schedule(self):
        self.assertEqual(build_schedule([], "2025-06-01", "2025-06-05"), [])

    def test_end_before_start(self):
        self.assertEqual(build_schedule(example_places(), "2025-06-05", "2025-06-01"), [])

    def test_single_day_trip(self):
        schedule = build_schedule(example_places(), "2025-06-01", "2025-06-01")
        self.assertEqual(len(schedule), 1)
        self.assertEqual([e.place.id for e in schedule[0].places], ["a", "b", "c", "d"])

    def test_days_without_places_are_dropped(self):
        schedule = build_schedule(example_places()[:1], "2025-06-01", "2025-06-04")
        self.assertEqual(len(schedule), 1)
        self.assertEqual(schedule[0].day, 1)

    def test_places_beyond_capacity_are_left_out(self):
        places = [place(f"p{i}", rating=i) for i in range(8)]
        schedule = build_schedule(places, "2025-06-01", "2025-06-01")
        self.assertEqual(len(schedule[0].places), 5)

    def test_unknown_category_uses_default_duration(self):
        entries = schedule_day([place("x", "zoo")])
        self.assertEqual(entries[0].duration, 60)

    def test_travel_time_uses_coordinates(self):
        far = [place("x", lat=48.0, lng=2.0), place("y", lat=48.1, lng=2.0)]
        entries = schedule_day(far)
        self.assertEqual(entries[1].travel_time, 22)
        self.assertEqual(entries[1].start_minutes, 9 * 60 + 60 + 22)

    def test_config_start_of_day(self):
        config = PlannerConfig(day_start_minutes=8 * 60)
        schedule = build_schedule(example_places(), "2025-06-01", "2025-06-02", config)
        self.assertEqual(schedule[0].places[0].scheduled_time, "08:00")


class TestEditEntry(unittest.TestCase):
    def setUp(self):
        places = example_places() + [place("e", "shopping_mall", 4.1), place("f", "lodging", 3.9)]
        self.schedule = build_schedule(places, "2025-06-01", "2025-06-02")

    def test_duration_change_shifts_later_entries(self):
        before = [e.start_minutes for e in self.schedule[0].places]
        edited = edit_entry(self.schedule, 0, 0, duration=self.schedule[0].places[0].duration + 30)
        after = [e.start_minutes for e in edited[0].places]
        self.assertEqual(after[0], before[0])
        self.assertEqual([a - b for a, b in zip(after[1:], before[1:])], [30] * (len(before) - 1))
        self.assertEqual(edited[0].total_duration, self.schedule[0].total_duration + 30)

    def test_edit_leaves_other_days_and_input_alone(self):
        original_day1 = self.schedule[0]
        edited = edit_entry(self.schedule, 0, 1, start_time="13:00")
        self.assertIs(edited[1], self.schedule[1])
        self.assertIs(self.schedule[0], original_day1)
        self.assertEqual(
            [e.place.id for e in edited[0].places], [e.place.id for e in self.schedule[0].places]
        )

    def test_start_change_keeps_recorded_travel(self):
        edited = edit_entry(self.schedule, 0, 1, start_time="13:00")
        entries = edited[0].places
        self.assertEqual(entries[1].scheduled_time, "13:00")
        for prev, nxt in zip(entries[1:], entries[2:]):
            self.assertEqual(nxt.start_minutes, prev.end_minutes + nxt.travel_time)

    def test_invalid_edits(self):
        with self.assertRaises(IndexError):
            edit_entry(self.schedule, 5, 0, duration=10)
        with self.assertRaises(IndexError):
            edit_entry(self.schedule, 0, 10, duration=10)
        with self.assertRaises(ValueError):
            edit_entry(self.schedule, 0, 0, duration=0)
        with self.assertRaises(ValueError):
            edit_entry(self.schedule, 0, 0, start_time="25h")


class TestHelpers(unittest.TestCase):
    def test_ordered_places_and_total(self):
        schedule = build_schedule(example_places(), "2025-06-01", "2025-06-02")
        self.assertEqual([p.id for p in ordered_places(schedule)], ["a", "b", "c", "d"])
        self.assertEqual(schedule_total_duration(schedule), 225 + 150 + 90 + 15)


class TestPlannerSession(unittest.IsolatedAsyncioTestCase):
    def make_session(self):
        trip = Trip(id="t1", name="Paris", places=example_places(), start_date="2025-06-01", end_date="2025-06-02")
        return PlannerSession(trip)

    async def test_generate(self):
        session = self.make_session()
        schedule = await session.generate()
        self.assertEqual(len(schedule), 2)
        self.assertIs(session.schedule, schedule)

    async def test_cancelled_generation_keeps_previous_schedule(self):
        session = self.make_session()
        previous = session.generate_now()
        session.trip.places = session.trip.places[:1]
        task = asyncio.create_task(session.generate(delay=10))
        await asyncio.sleep(0)
        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task
        self.assertIs(session.schedule, previous)

    async def test_edit_and_apply(self):
        session = self.make_session()
        session.trip.places.append(place("z", rating=1.0))
        session.trip.end_date = "2025-06-01"
        session.generate_now()
        session.edit(0, 0, duration=60)
        self.assertEqual(session.schedule[0].places[1].scheduled_time, "10:15")
        self.assertEqual([p.id for p in session.apply()], ["a", "b", "c", "d", "z"])
        self.assertEqual(session.total_duration(), session.schedule[0].total_duration)


if __name__ == "__main__":
    unittest.main()
