import asyncio

from abstractions.probe_backend import ProbeBackend
from contracts.endpoint import Endpoint
from core.errors import ProbeError

FIXED_NOW = 1_700_000_000_000


def make_endpoint(
    endpoint_id,
    latitude=0.0,
    longitude=0.0,
    provider="AWS",
    name=None,
    probe_target="example.com",
    probe_location="US",
):
    return Endpoint(
        id=endpoint_id,
        name=name or endpoint_id,
        latitude=latitude,
        longitude=longitude,
        provider=provider,
        probe_target=probe_target,
        probe_location=probe_location,
    )


def ping_payload(avg=None, min=None, max=None, status="finished", measurement_id="m-1"):
    return {
        "id": measurement_id,
        "status": status,
        "results": [
            {
                "result": {
                    "status": status,
                    "stats": {"avg": avg, "min": min, "max": max},
                }
            }
        ],
    }


def pending_payload(measurement_id="m-1"):
    return {"id": measurement_id, "status": "in-progress"}


class FakeClock:
    def __init__(self, now=FIXED_NOW):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


class FakeSleep:
    """Records requested delays and only yields to the event loop."""

    def __init__(self):
        self.calls = []

    async def __call__(self, delay):
        self.calls.append(delay)
        await asyncio.sleep(0)

    def count(self, delay):
        return sum(1 for d in self.calls if d == delay)


class FakeProbeBackend(ProbeBackend):
    """
    In-memory probe backend.

    ``on_submit(target, locations)`` and ``on_fetch(measurement_id)`` produce
    the payload or raise. When ``gate`` is set, submit waits on it first.
    """

    def __init__(self, on_submit=None, on_fetch=None, gate=None):
        self.on_submit = on_submit or (lambda target, locations: ping_payload(avg=42.0))
        self.on_fetch = on_fetch or (lambda measurement_id: pending_payload(measurement_id))
        self.gate = gate
        self.submit_calls = []
        self.fetch_calls = []
        self.closed = False

    async def submit(self, target, locations):
        self.submit_calls.append((target, locations))
        if self.gate is not None:
            await self.gate.wait()
        await asyncio.sleep(0)
        return self.on_submit(target, locations)

    async def fetch(self, measurement_id):
        self.fetch_calls.append(measurement_id)
        await asyncio.sleep(0)
        return self.on_fetch(measurement_id)

    async def aclose(self):
        self.closed = True


def failing(message="backend unavailable"):
    def raise_error(*args):
        raise ProbeError(message)

    return raise_error


def sequence(*items):
    """Return a callable yielding ``items`` in order; exceptions are raised."""
    remaining = list(items)

    def next_item(*args):
        item = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        if isinstance(item, Exception):
            raise item
        return item

    return next_item


class ManualTimer:
    """Monotonic clock in seconds whose sleep advances time instantly."""

    def __init__(self, now=0.0):
        self.now = now
        self.sleeps = []

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds

    async def sleep(self, delay):
        self.sleeps.append(delay)
        self.now += delay
        await asyncio.sleep(0)
