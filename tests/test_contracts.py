import unittest

from pydantic import ValidationError

from contracts.endpoint import Endpoint
from contracts.latency import (
    AcquisitionMode,
    LatencySample,
    Provenance,
    Snapshot,
)
from contracts.measurement import MeasurementResponse
from core.errors import PartialRoundFailure


class TestEndpoint(unittest.TestCase):
    def test_endpoint_fields(self):
        e = Endpoint(
            id="okx-hk",
            name="OKX  Hong Kong",
            latitude=22.3,
            longitude=114.2,
            provider="GCP",
        )
        self.assertEqual(e.normalized_name, "okx-hong-kong")
        self.assertIsNone(e.probe_target)
        self.assertEqual(e.probe_location, "US")
        self.assertIn("okx-hk", repr(e))

    def test_endpoint_is_immutable(self):
        e = Endpoint(id="a", name="A", latitude=0, longitude=0, provider="AWS")
        with self.assertRaises(ValidationError):
            e.id = "b"


class TestLatencySample(unittest.TestCase):
    def test_aliases_and_defaults(self):
        s = LatencySample.model_validate(
            {"from": "a", "to": "b", "latency": 12, "timestamp": 1}
        )
        self.assertEqual(s.pair, ("a", "b"))
        self.assertEqual(s.provenance, Provenance.SIMULATED)
        self.assertFalse(s.is_real)
        dumped = s.model_dump(mode="json", by_alias=True)
        self.assertEqual(dumped["from"], "a")
        self.assertEqual(dumped["to"], "b")
        self.assertEqual(dumped["provenance"], "simulated")

    def test_latency_must_be_positive(self):
        with self.assertRaises(ValidationError):
            LatencySample(from_id="a", to_id="b", latency=0, timestamp=1)


class TestAcquisitionMode(unittest.TestCase):
    def test_values_and_aliases(self):
        self.assertIs(AcquisitionMode("real"), AcquisitionMode.REAL)
        self.assertIs(AcquisitionMode("both"), AcquisitionMode.MIXED)
        self.assertIs(AcquisitionMode("Real_Only"), AcquisitionMode.REAL)
        self.assertIs(AcquisitionMode(" SIMULATED "), AcquisitionMode.SIMULATED)

    def test_unknown_mode_rejected(self):
        with self.assertRaises(ValueError):
            AcquisitionMode("turbo")
        with self.assertRaises(ValueError):
            AcquisitionMode(3)


class TestSnapshot(unittest.TestCase):
    def _sample(self, a, b):
        return LatencySample(from_id=a, to_id=b, latency=5, timestamp=1)

    def test_raise_for_partial(self):
        complete = Snapshot(mode=AcquisitionMode.REAL, timestamp=1, total_pairs=1)
        complete.raise_for_partial()
        partial = Snapshot(
            mode=AcquisitionMode.REAL,
            timestamp=1,
            total_pairs=3,
            dropped=[("a", "b")],
        )
        with self.assertRaises(PartialRoundFailure) as ctx:
            partial.raise_for_partial()
        self.assertEqual(ctx.exception.dropped, [("a", "b")])
        self.assertEqual(ctx.exception.total, 3)
        self.assertIn("1 of 3", str(ctx.exception))

    def test_detached_copy_does_not_share_lists(self):
        snap = Snapshot(
            mode=AcquisitionMode.SIMULATED,
            timestamp=1,
            samples=[self._sample("a", "b")],
        )
        copy = snap.detached()
        copy.samples.append(self._sample("b", "c"))
        self.assertEqual(len(snap.samples), 1)
        self.assertEqual(len(copy.samples), 2)


class TestMeasurementResponse(unittest.TestCase):
    def test_first_stats(self):
        resp = MeasurementResponse.model_validate(
            {
                "id": "m1",
                "status": "finished",
                "results": [{"result": {"status": "finished", "stats": {"avg": 20.4}}}],
            }
        )
        self.assertFalse(resp.in_progress)
        self.assertEqual(resp.first_stats.avg, 20.4)
        self.assertIsNone(resp.first_stats.min)

    def test_missing_results(self):
        resp = MeasurementResponse.model_validate({"id": "m1", "status": "in-progress"})
        self.assertTrue(resp.in_progress)
        self.assertIsNone(resp.first_stats)
        resp = MeasurementResponse.model_validate({"id": "m1", "results": [{}]})
        self.assertIsNone(resp.first_stats)


if __name__ == "__main__":
    unittest.main()
