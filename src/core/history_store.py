import asyncio
import logging
from collections import deque
from typing import Callable, Dict, List, Optional, Tuple

from contracts.latency import LatencySample, LatencyStats
from core.clock import epoch_ms
from core.estimator import round_ms
from core.profiler import Profiler

logger = logging.getLogger(__name__)

PairKey = Tuple[str, str]


class HistoryStore:
    """
    Bounded rolling history of latency samples per unordered endpoint pair.

    A pair is stored under the orientation of its first sample; lookups in
    either direction reach the same history. Readers always get list copies.
    """

    def __init__(self, max_samples: int = 1000, clock: Callable[[], int] = epoch_ms):
        self.max_samples = max_samples
        self._clock = clock
        # Structure: {(from_id, to_id): deque[LatencySample]}
        self._history: Dict[PairKey, deque] = {}
        self._lock = asyncio.Lock()

    def _find_key(self, from_id: str, to_id: str) -> Optional[PairKey]:
        if (from_id, to_id) in self._history:
            return (from_id, to_id)
        if (to_id, from_id) in self._history:
            return (to_id, from_id)
        return None

    async def record(self, sample: LatencySample) -> None:
        async with self._lock:
            self._append(sample)

    @Profiler.profile
    async def record_many(self, samples) -> None:
        async with self._lock:
            for sample in samples:
                self._append(sample)

    def _append(self, sample: LatencySample) -> None:
        key = self._find_key(sample.from_id, sample.to_id)
        if key is None:
            key = sample.pair
            # deque(maxlen) drops the oldest entry on overflow
            self._history[key] = deque(maxlen=self.max_samples)
        self._history[key].append(sample)

    async def query(self, from_id: str, to_id: str, window_ms: int) -> List[LatencySample]:
        """
        Return samples for the pair with timestamp >= now - window_ms, oldest first.
        """
        cutoff = self._clock() - window_ms
        async with self._lock:
            key = self._find_key(from_id, to_id)
            if key is None:
                return []
            return [s for s in self._history[key] if s.timestamp >= cutoff]

    async def stats(self, from_id: str, to_id: str, window_ms: int) -> LatencyStats:
        samples = await self.query(from_id, to_id, window_ms)
        if not samples:
            return LatencyStats(min=0, max=0, avg=0)
        latencies = [s.latency for s in samples]
        return LatencyStats(
            min=min(latencies),
            max=max(latencies),
            avg=round_ms(sum(latencies) / len(latencies)),
        )

    async def size(self, from_id: str, to_id: str) -> int:
        async with self._lock:
            key = self._find_key(from_id, to_id)
            return len(self._history[key]) if key is not None else 0

    async def pairs(self) -> List[PairKey]:
        async with self._lock:
            return list(self._history)

    def __len__(self):
        return len(self._history)
