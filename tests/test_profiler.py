import unittest

from prometheus_client import REGISTRY

from core.profiler import Profiler


class Sample:
    @Profiler.profile
    def add(self, a, b):
        return a + b

    @Profiler.profile
    async def add_later(self, a, b):
        return a + b

    @Profiler.profile
    def explode(self):
        raise ValueError("boom")


def observed(method):
    value = REGISTRY.get_sample_value(
        "latency_method_duration_seconds_count", {"method": method}
    )
    return value or 0


class TestProfiler(unittest.IsolatedAsyncioTestCase):
    async def test_sync_method(self):
        before = observed("Sample.add")
        self.assertEqual(Sample().add(2, 3), 5)
        self.assertEqual(observed("Sample.add"), before + 1)
        self.assertEqual(Sample.add.__name__, "add")

    async def test_async_method(self):
        before = observed("Sample.add_later")
        self.assertEqual(await Sample().add_later(2, 3), 5)
        self.assertEqual(observed("Sample.add_later"), before + 1)

    async def test_exception_still_recorded(self):
        before = observed("Sample.explode")
        with self.assertRaises(ValueError):
            Sample().explode()
        self.assertEqual(observed("Sample.explode"), before + 1)


if __name__ == "__main__":
    unittest.main()
