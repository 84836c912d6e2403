import asyncio
import itertools
import logging
import time
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from abstractions.registry import Registry
from contracts.endpoint import Endpoint
from contracts.latency import (
    AcquisitionMode,
    LatencySample,
    Provenance,
    RoundProgress,
    Snapshot,
)
from core.clock import epoch_ms
from core.errors import PartialRoundFailure
from core.estimator import LatencyEstimator
from core.history_store import HistoryStore
from core.measurement_client import MeasurementClient
from core.metrics import ROUND_DROPPED, ROUND_DURATION, ROUND_SAMPLES
from core.profiler import Profiler

logger = logging.getLogger(__name__)

Pair = Tuple[Endpoint, Endpoint]
PartialCallback = Callable[[Snapshot], Awaitable[None]]


class AcquisitionOrchestrator:
    """
    Drives one acquisition round over every unordered endpoint pair under a
    given mode, pacing probes in batches and committing samples to history.
    """

    def __init__(
        self,
        registry: Registry,
        estimator: LatencyEstimator,
        client: MeasurementClient,
        history: HistoryStore,
        clock: Callable[[], int] = epoch_ms,
        sleep=asyncio.sleep,
        batch_size: int = 2,
        batch_delay: float = 0.5,
        partial_every: int = 5,
        mixed_probe_limit: int = 20,
    ):
        self.registry = registry
        self.estimator = estimator
        self.client = client
        self.history = history
        self._clock = clock
        self._sleep = sleep
        self.batch_size = max(1, batch_size)
        self.batch_delay = batch_delay
        self.partial_every = partial_every
        self.mixed_probe_limit = mixed_probe_limit

        self._current: Optional[Snapshot] = None
        self._round_mode = AcquisitionMode.SIMULATED
        self._round_total = 0
        self._round_completed = 0
        self._round_active = False

        # Per-pair base latency behind bootstrap history and degraded snapshots
        self._base_latency: Dict[Tuple[str, str], int] = {
            (a.id, b.id): self.estimator.simulated_latency(a, b) for a, b in self.pairs()
        }
        logger.info(
            f"AcquisitionOrchestrator initialized with {len(self._base_latency)} pairs, "
            f"batch_size={self.batch_size}, batch_delay={self.batch_delay}s"
        )

    def pairs(self) -> List[Pair]:
        return list(itertools.combinations(self.registry.list_endpoints(), 2))

    def current_snapshot(self) -> Optional[Snapshot]:
        return self._current.detached() if self._current is not None else None

    def progress(self) -> RoundProgress:
        return RoundProgress(
            mode=self._round_mode,
            completed=self._round_completed,
            total=self._round_total,
            active=self._round_active,
        )

    @Profiler.profile
    async def run_round(
        self, mode: AcquisitionMode, on_partial: Optional[PartialCallback] = None
    ) -> Snapshot:
        """
        Run one full round and make its snapshot the current one.

        Args:
            mode (AcquisitionMode): How values are obtained for this round.
            on_partial: Coroutine function receiving incremental snapshots while a
                real-only round runs.

        Returns:
            Snapshot: The completed round.
        """
        mode = AcquisitionMode(mode)
        started = time.perf_counter()
        pairs = self.pairs()
        timestamp = self._clock()
        self._round_mode = mode
        self._round_total = len(pairs)
        self._round_completed = 0
        self._round_active = True
        samples: List[LatencySample] = []
        dropped: List[Tuple[str, str]] = []
        try:
            if mode is AcquisitionMode.SIMULATED:
                await self._run_simulated(pairs, timestamp, samples)
            elif mode is AcquisitionMode.REAL:
                await self._run_real(pairs, timestamp, samples, dropped, on_partial)
            else:
                await self._run_mixed(pairs, timestamp, samples)
        finally:
            self._round_active = False

        snapshot = Snapshot(
            mode=mode,
            timestamp=timestamp,
            total_pairs=len(pairs),
            samples=samples,
            dropped=dropped,
        )
        self._current = snapshot

        elapsed = time.perf_counter() - started
        ROUND_DURATION.labels(mode=mode.value).observe(elapsed)
        real = sum(1 for s in samples if s.is_real)
        ROUND_SAMPLES.labels(provenance=Provenance.REAL.value).inc(real)
        ROUND_SAMPLES.labels(provenance=Provenance.SIMULATED.value).inc(len(samples) - real)
        if dropped:
            ROUND_DROPPED.inc(len(dropped))
            logger.warning(str(PartialRoundFailure(dropped, len(pairs))))
        logger.info(
            f"Round complete in {mode.value} mode: {len(samples)}/{len(pairs)} samples "
            f"({real} real) in {elapsed:.2f}s"
        )
        return snapshot.detached()

    async def _commit(self, sample: LatencySample, samples: List[LatencySample]) -> None:
        await self.history.record(sample)
        samples.append(sample)
        self._round_completed = len(samples)

    def _estimate(self, a: Endpoint, b: Endpoint, timestamp: int) -> LatencySample:
        return LatencySample(
            from_id=a.id,
            to_id=b.id,
            latency=self.estimator.simulated_latency(a, b),
            timestamp=timestamp,
            provenance=Provenance.SIMULATED,
        )

    def _batches(self, pairs: List[Pair]) -> List[List[Pair]]:
        return [pairs[i : i + self.batch_size] for i in range(0, len(pairs), self.batch_size)]

    async def _run_simulated(self, pairs, timestamp, samples) -> None:
        for a, b in pairs:
            await self._commit(self._estimate(a, b, timestamp), samples)

    async def _run_real(self, pairs, timestamp, samples, dropped, on_partial) -> None:
        batches = self._batches(pairs)
        logger.info(f"Real-only round: {len(pairs)} pairs in {len(batches)} batches")
        for index, batch in enumerate(batches, start=1):
            logger.debug(
                f"Processing batch {index}/{len(batches)} ({len(samples)} samples so far)"
            )
            results = await asyncio.gather(
                *(self.client.probe(a, b, require_real=True) for a, b in batch),
                return_exceptions=True,
            )
            for (a, b), result in zip(batch, results):
                if isinstance(result, Exception):
                    logger.warning(f"Dropping {a.id} -> {b.id}: {result}")
                    dropped.append((a.id, b.id))
                    continue
                if isinstance(result, BaseException):
                    raise result
                if result.provenance is not Provenance.REAL:
                    # joined a shared probe that had fallen back to an estimate
                    logger.warning(f"Dropping {a.id} -> {b.id}: no real measurement")
                    dropped.append((a.id, b.id))
                    continue
                sample = LatencySample(
                    from_id=a.id,
                    to_id=b.id,
                    latency=result.latency,
                    timestamp=timestamp,
                    provenance=Provenance.REAL,
                )
                await self._commit(sample, samples)
                if on_partial is not None and len(samples) % self.partial_every == 0:
                    logger.info(f"Incremental update: {len(samples)} samples")
                    await on_partial(
                        Snapshot(
                            mode=AcquisitionMode.REAL,
                            timestamp=timestamp,
                            total_pairs=len(pairs),
                            samples=list(samples),
                            partial=True,
                        )
                    )
            if index < len(batches):
                await self._sleep(self.batch_delay)

    async def _run_mixed(self, pairs, timestamp, samples) -> None:
        # cross-provider pairs first; sorted() is stable within each group
        ranked = sorted(pairs, key=lambda p: p[0].provider == p[1].provider)
        limit = min(self.mixed_probe_limit, len(ranked))
        probed, rest = ranked[:limit], ranked[limit:]
        batches = self._batches(probed)
        logger.info(f"Mixed round: probing {limit} of {len(pairs)} pairs")
        for index, batch in enumerate(batches, start=1):
            results = await asyncio.gather(
                *(self.client.probe(a, b, require_real=False) for a, b in batch),
                return_exceptions=True,
            )
            for (a, b), result in zip(batch, results):
                if isinstance(result, Exception):
                    logger.warning(f"Probe {a.id} -> {b.id} raised, using estimate: {result}")
                    sample = self._estimate(a, b, timestamp)
                elif isinstance(result, BaseException):
                    raise result
                else:
                    sample = LatencySample(
                        from_id=a.id,
                        to_id=b.id,
                        latency=result.latency,
                        timestamp=timestamp,
                        provenance=result.provenance,
                    )
                await self._commit(sample, samples)
            if index < len(batches):
                await self._sleep(self.batch_delay)

        for a, b in rest:
            await self._commit(self._estimate(a, b, timestamp), samples)

    @Profiler.profile
    async def bootstrap_history(self, window_ms: int = 3_600_000, step_ms: int = 60_000) -> int:
        """
        Fill history with synthetic samples covering the last ``window_ms``.

        Returns:
            int: Number of samples written.
        """
        now = self._clock()
        samples = [
            LatencySample(
                from_id=from_id,
                to_id=to_id,
                latency=self.estimator.vary(base),
                timestamp=timestamp,
                provenance=Provenance.SIMULATED,
            )
            for timestamp in range(now - window_ms, now + 1, step_ms)
            for (from_id, to_id), base in self._base_latency.items()
        ]
        await self.history.record_many(samples)
        logger.info(f"Bootstrapped {len(samples)} historical samples for {len(self._base_latency)} pairs")
        return len(samples)

    async def degraded_snapshot(self) -> Snapshot:
        """
        Fully simulated snapshot built from base latencies, without consulting the registry.
        """
        timestamp = self._clock()
        samples = [
            LatencySample(
                from_id=from_id,
                to_id=to_id,
                latency=self.estimator.vary(base),
                timestamp=timestamp,
                provenance=Provenance.SIMULATED,
            )
            for (from_id, to_id), base in self._base_latency.items()
        ]
        await self.history.record_many(samples)
        return Snapshot(
            mode=AcquisitionMode.SIMULATED,
            timestamp=timestamp,
            total_pairs=len(samples),
            samples=samples,
            degraded=True,
        )
