import itertools
import random
import unittest

from core.endpoint_registry import EndpointRegistry
from core.estimator import LatencyEstimator, distance_km, haversine_km, round_ms
from helpers import make_endpoint


class TestRounding(unittest.TestCase):
    def test_round_half_up(self):
        self.assertEqual(round_ms(2.5), 3)
        self.assertEqual(round_ms(3.5), 4)
        self.assertEqual(round_ms(1.49), 1)
        self.assertEqual(round_ms(0.5), 1)


class TestDistance(unittest.TestCase):
    def test_known_distance(self):
        # New York to London is roughly 5570 km
        d = haversine_km(40.7128, -74.0060, 51.5074, -0.1278)
        self.assertAlmostEqual(d, 5570, delta=15)

    def test_same_location_is_zero(self):
        a = make_endpoint("a", 1.3521, 103.8198)
        b = make_endpoint("b", 1.3521, 103.8198)
        self.assertAlmostEqual(distance_km(a, b), 0.0, places=6)

    def test_symmetric(self):
        endpoints = EndpointRegistry.default().list_endpoints()
        for a, b in itertools.combinations(endpoints, 2):
            self.assertAlmostEqual(distance_km(a, b), distance_km(b, a), places=6)


class TestLatencyEstimator(unittest.TestCase):
    def test_simulated_latency_bounds(self):
        estimator = LatencyEstimator(random.Random(1))
        a = make_endpoint("a", 10.0, 10.0)
        b = make_endpoint("b", 10.0, 10.0)
        for _ in range(200):
            latency = estimator.simulated_latency(a, b)
            self.assertGreaterEqual(latency, 10)
            self.assertLessEqual(latency, 30)

    def test_distance_dominates(self):
        estimator = LatencyEstimator(random.Random(2))
        ny = make_endpoint("ny", 40.7128, -74.0060)
        sg = make_endpoint("sg", 1.3521, 103.8198)
        latency = estimator.simulated_latency(ny, sg)
        expected = 10 + distance_km(ny, sg) / 100
        self.assertGreaterEqual(latency, round_ms(expected))
        self.assertLessEqual(latency, round_ms(expected + 20))

    def test_fixed_seed_is_reproducible(self):
        endpoints = EndpointRegistry.default().list_endpoints()
        pairs = list(itertools.combinations(endpoints, 2))
        first = LatencyEstimator(random.Random(42))
        second = LatencyEstimator(random.Random(42))
        self.assertEqual(
            [first.simulated_latency(a, b) for a, b in pairs],
            [second.simulated_latency(a, b) for a, b in pairs],
        )

    def test_vary_stays_within_twenty_percent(self):
        estimator = LatencyEstimator(random.Random(3))
        for _ in range(500):
            value = estimator.vary(100)
            self.assertGreaterEqual(value, 80)
            self.assertLessEqual(value, 120)

    def test_vary_never_below_one(self):
        estimator = LatencyEstimator(random.Random(4))
        for _ in range(100):
            self.assertGreaterEqual(estimator.vary(1), 1)


if __name__ == "__main__":
    unittest.main()
