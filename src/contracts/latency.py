from enum import Enum
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field

from core.errors import PartialRoundFailure


class Provenance(str, Enum):
    REAL = "real"
    SIMULATED = "simulated"


class AcquisitionMode(str, Enum):
    """
    How a round obtains latency values.

    SIMULATED uses the distance estimator only, REAL probes every pair and
    drops failures, MIXED probes the highest-priority pairs and estimates the rest.
    """

    SIMULATED = "simulated"
    REAL = "real"
    MIXED = "mixed"

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, str):
            return None
        lowered = value.strip().lower()
        aliases = {"both": cls.MIXED, "real_only": cls.REAL, "realonly": cls.REAL}
        if lowered in aliases:
            return aliases[lowered]
        for member in cls:
            if member.value == lowered:
                return member
        return None


class LatencySample(BaseModel):
    """
    One latency observation for an ordered endpoint pair.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_id: str = Field(alias="from")
    to_id: str = Field(alias="to")
    latency: int = Field(gt=0)  # milliseconds
    timestamp: int  # epoch milliseconds
    provenance: Provenance = Provenance.SIMULATED

    @property
    def is_real(self) -> bool:
        return self.provenance is Provenance.REAL

    @property
    def pair(self) -> Tuple[str, str]:
        return (self.from_id, self.to_id)


class Snapshot(BaseModel):
    """
    Samples produced by one round, as delivered to subscribers.
    """

    mode: AcquisitionMode
    timestamp: int
    total_pairs: int = 0
    samples: List[LatencySample] = Field(default_factory=list)
    # True for the incremental snapshots broadcast while a real-only round runs
    partial: bool = False
    dropped: List[Tuple[str, str]] = Field(default_factory=list)
    # True when the round failed and this is a stand-in built from estimates
    degraded: bool = False

    def raise_for_partial(self) -> None:
        """
        Raise PartialRoundFailure if any pair was dropped from this snapshot.
        """
        if self.dropped:
            raise PartialRoundFailure(self.dropped, self.total_pairs)

    def detached(self) -> "Snapshot":
        """
        Return a copy whose sample and dropped lists are not shared with this one.
        """
        return self.model_copy(
            update={"samples": list(self.samples), "dropped": list(self.dropped)}
        )


class LatencyStats(BaseModel):
    min: int = 0
    max: int = 0
    avg: int = 0


class RoundProgress(BaseModel):
    """
    Progress of the round currently running (or the last one, when idle).
    """

    mode: AcquisitionMode
    completed: int
    total: int
    active: bool
