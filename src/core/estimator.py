import math
import random
from typing import Optional

from contracts.endpoint import Endpoint

EARTH_RADIUS_KM = 6371.0
BASE_LATENCY_MS = 10.0
KM_PER_MS = 100.0
MAX_JITTER_MS = 20.0
VARIATION = 0.2  # +/- fraction applied by vary()


def round_ms(value: float) -> int:
    """Round half up, as latency values are reported in whole milliseconds."""
    return int(math.floor(value + 0.5))


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_km(a: Endpoint, b: Endpoint) -> float:
    """Great-circle distance between two endpoints."""
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)


class LatencyEstimator:
    """
    Distance-derived synthetic latency.

    All randomness comes from the injected ``random.Random`` so a fixed seed
    reproduces every simulated value.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def distance_km(self, a: Endpoint, b: Endpoint) -> float:
        return distance_km(a, b)

    def simulated_latency(self, a: Endpoint, b: Endpoint) -> int:
        # roughly 1 ms per 100 km on top of a 10 ms floor, plus jitter
        jitter = self.rng.random() * MAX_JITTER_MS
        base = BASE_LATENCY_MS + distance_km(a, b) / KM_PER_MS + jitter
        return round_ms(max(1.0, base))

    def vary(self, base: int) -> int:
        """Apply up to +/-20% random variation to a base latency."""
        variation = (self.rng.random() - 0.5) * 2 * VARIATION
        return max(1, round_ms(base * (1 + variation)))
