from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from contracts.latency import Provenance


class PingStats(BaseModel):
    avg: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None


class ProbeOutput(BaseModel):
    status: Optional[str] = None
    stats: Optional[PingStats] = None


class ProbeResultEntry(BaseModel):
    result: Optional[ProbeOutput] = None


class MeasurementResponse(BaseModel):
    """
    Data model for a measurement returned by the probe backend on submit or fetch.
    """

    id: Optional[str] = None
    status: Optional[str] = None
    results: Optional[List[ProbeResultEntry]] = None

    @property
    def in_progress(self) -> bool:
        return self.status == "in-progress"

    @property
    def first_stats(self) -> Optional[PingStats]:
        if not self.results:
            return None
        first = self.results[0]
        if first.result is None:
            return None
        return first.result.stats


class ProbeResult(BaseModel):
    """
    Settled outcome of a probe: the latency and whether it was really measured.
    """

    model_config = ConfigDict(frozen=True)

    latency: int
    provenance: Provenance
    measurement_id: Optional[str] = None
