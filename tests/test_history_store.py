import unittest

from contracts.latency import LatencySample, Provenance
from core.history_store import HistoryStore
from helpers import FakeClock


def sample(from_id, to_id, latency, timestamp, provenance=Provenance.SIMULATED):
    return LatencySample(
        from_id=from_id,
        to_id=to_id,
        latency=latency,
        timestamp=timestamp,
        provenance=provenance,
    )


class TestHistoryStore(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.clock = FakeClock()
        self.store = HistoryStore(max_samples=1000, clock=self.clock)

    async def test_bounded_per_pair(self):
        now = self.clock()
        for i in range(1001):
            await self.store.record(sample("a", "b", i + 1, now - 1001 + i))
        self.assertEqual(await self.store.size("a", "b"), 1000)
        samples = await self.store.query("a", "b", 10_000)
        self.assertEqual(len(samples), 1000)
        # oldest sample was evicted, order is preserved
        self.assertEqual(samples[0].latency, 2)
        self.assertEqual(samples[-1].latency, 1001)

    async def test_query_either_direction(self):
        now = self.clock()
        await self.store.record(sample("a", "b", 10, now))
        await self.store.record(sample("b", "a", 20, now))
        forward = await self.store.query("a", "b", 1000)
        backward = await self.store.query("b", "a", 1000)
        self.assertEqual(forward, backward)
        self.assertEqual([s.latency for s in forward], [10, 20])
        self.assertEqual(await self.store.pairs(), [("a", "b")])
        self.assertEqual(len(self.store), 1)

    async def test_query_window(self):
        now = self.clock()
        await self.store.record(sample("a", "b", 10, now - 5000))
        await self.store.record(sample("a", "b", 20, now - 1000))
        await self.store.record(sample("a", "b", 30, now))
        recent = await self.store.query("a", "b", 1000)
        self.assertEqual([s.latency for s in recent], [20, 30])
        self.clock.advance(10_000)
        self.assertEqual(await self.store.query("a", "b", 1000), [])

    async def test_query_returns_copy(self):
        await self.store.record(sample("a", "b", 10, self.clock()))
        samples = await self.store.query("a", "b", 1000)
        samples.clear()
        self.assertEqual(len(await self.store.query("a", "b", 1000)), 1)

    async def test_unknown_pair(self):
        self.assertEqual(await self.store.query("x", "y", 1000), [])
        self.assertEqual(await self.store.size("x", "y"), 0)

    async def test_stats(self):
        now = self.clock()
        for latency in (10, 11, 20):
            await self.store.record(sample("a", "b", latency, now))
        stats = await self.store.stats("b", "a", 1000)
        self.assertEqual(stats.min, 10)
        self.assertEqual(stats.max, 20)
        # 41 / 3 = 13.67
        self.assertEqual(stats.avg, 14)

    async def test_stats_empty(self):
        stats = await self.store.stats("a", "b", 1000)
        self.assertEqual((stats.min, stats.max, stats.avg), (0, 0, 0))

    async def test_record_many(self):
        now = self.clock()
        await self.store.record_many(
            [sample("a", "b", 5, now), sample("a", "c", 6, now), sample("c", "a", 7, now)]
        )
        self.assertEqual(await self.store.size("a", "b"), 1)
        self.assertEqual(await self.store.size("a", "c"), 2)


if __name__ == "__main__":
    unittest.main()
