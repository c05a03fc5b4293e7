import random
import unittest

from tripweave.models import Place
from tripweave.schedule import build_schedule

CATEGORIES = [None, "restaurant", "tourist_attraction", "museum", "park", "shopping_mall", "lodging", "cafe"]


def random_places(rng, n):
    places = []
    for i in range(n):
        # random coordinates around Tokyo (lat 35.6-35.8, lng 139.6-139.8)
        lat = 35.6 + rng.random() * 0.2
        lng = 139.6 + rng.random() * 0.2
        rating = round(rng.uniform(1, 5), 1) if rng.random() > 0.2 else None
        places.append(Place(id=f"p{i}", name=f"Place {i}", lat=lat, lng=lng, category=rng.choice(CATEGORIES), rating=rating))
    return places


class TestSimulation(unittest.TestCase):
    def test_random_cases(self):
        # Random trips must keep the structural guarantees of the generator.
        rng = random.Random(1234)
        for _ in range(50):
            days = rng.randint(1, 5)
            n = rng.randint(1, days * 5)
            places = random_places(rng, n)
            end = f"2025-03-{days:02d}"
            schedule = build_schedule(places, "2025-03-01", end)

            # deterministic
            self.assertEqual(schedule, build_schedule(places, "2025-03-01", end))

            seen = [e.place.id for day in schedule for e in day.places]
            # every place exactly once when capacity allows
            self.assertEqual(sorted(seen), sorted(p.id for p in places))
            for day in schedule:
                self.assertLessEqual(len(day.places), 5)
                self.assertGreater(len(day.places), 0)
                self.assertEqual(day.total_duration, sum(e.duration + e.travel_time for e in day.places))
                self.assertEqual(day.places[0].travel_time, 0)
                for prev, nxt in zip(day.places, day.places[1:]):
                    self.assertGreaterEqual(nxt.travel_time, 15)
                    self.assertEqual(nxt.start_minutes, prev.end_minutes + nxt.travel_time)


if __name__ == "__main__":
    unittest.main()
