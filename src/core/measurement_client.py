import asyncio
import logging
from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import ValidationError

from abstractions.probe_backend import ProbeBackend
from contracts.endpoint import Endpoint
from contracts.latency import Provenance
from contracts.measurement import MeasurementResponse, ProbeResult
from core.errors import ProbeError, ProbeTimeout
from core.estimator import LatencyEstimator, round_ms
from core.metrics import PROBE_OUTCOMES, PROBE_SUBMISSIONS, PROBES_IN_FLIGHT
from core.profiler import Profiler

logger = logging.getLogger(__name__)

PairKey = Tuple[str, str]


class ProbeState(str, Enum):
    IDLE = "idle"
    SUBMITTED = "submitted"
    POLLING = "polling"
    RESOLVED = "resolved"
    FAILED = "failed"


def extract_latency(response: MeasurementResponse) -> Optional[int]:
    """
    Latency in whole ms from the first result's stats (avg, else min, else max),
    or None when the measurement carries no usable statistics yet.
    """
    stats = response.first_stats
    if stats is None:
        return None
    value = stats.avg or stats.min or stats.max
    if not value or value <= 0:
        return None
    latency = round_ms(value)
    return latency if latency > 0 else None


def _consume_outcome(task: asyncio.Task) -> None:
    # a strict probe may fail with nobody left awaiting it
    if not task.cancelled():
        task.exception()


class ProbeHandle:
    """
    Shared view of the single in-flight probe for an ordered pair.

    Every caller asking for the same pair awaits the same handle. Awaiting is
    shielded, so a cancelled caller does not cancel the probe for the others;
    ``cancel()`` does.
    """

    def __init__(self, key: PairKey):
        self.key = key
        self.state = ProbeState.IDLE
        self.measurement_id: Optional[str] = None
        self.attempts = 0
        self.task: Optional[asyncio.Task] = None

    @property
    def settled(self) -> bool:
        return self.task is not None and self.task.done()

    def cancel(self) -> bool:
        if self.task is None or self.task.done():
            return False
        return self.task.cancel()

    async def result(self) -> ProbeResult:
        return await asyncio.shield(self.task)

    def __await__(self):
        return self.result().__await__()

    def __repr__(self):
        return (
            f"ProbeHandle(key={self.key}, state={self.state.value}, "
            f"measurement_id={self.measurement_id}, attempts={self.attempts})"
        )


class MeasurementClient:
    """
    Runs submit-then-poll probes against the measurement backend, with at most
    one outstanding probe per ordered endpoint pair.
    """

    def __init__(
        self,
        backend: ProbeBackend,
        estimator: LatencyEstimator,
        max_attempts: int = 20,
        poll_interval: float = 1.0,
        settle_grace: float = 1.0,
        sleep=asyncio.sleep,
    ):
        """
        Initialize the MeasurementClient.

        Args:
            backend (ProbeBackend): External measurement backend.
            estimator (LatencyEstimator): Source of fallback values.
            max_attempts (int): Fetch attempts before a measurement times out.
            poll_interval (float): Seconds between fetch attempts.
            settle_grace (float): Seconds a settled probe stays shareable before eviction.
            sleep: Awaitable sleep function, injectable for tests.
        """
        self.backend = backend
        self.estimator = estimator
        self.max_attempts = max_attempts
        self.poll_interval = poll_interval
        self.settle_grace = settle_grace
        self._sleep = sleep
        self._in_flight: Dict[PairKey, ProbeHandle] = {}
        self._lock = asyncio.Lock()
        self._evictions = set()
        self._closed = False
        self.submissions = 0

    def in_flight(self, source_id: str, target_id: str) -> Optional[ProbeHandle]:
        return self._in_flight.get((source_id, target_id))

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    async def start_probe(
        self, source: Endpoint, target: Endpoint, require_real: bool = False
    ) -> ProbeHandle:
        """
        Return the in-flight handle for (source, target), starting a probe if none exists.
        """
        key = (source.id, target.id)
        async with self._lock:
            handle = self._in_flight.get(key)
            if handle is not None:
                PROBE_OUTCOMES.labels(outcome="coalesced").inc()
                logger.debug(f"Joining in-flight probe {handle}")
                return handle
            handle = ProbeHandle(key)
            handle.task = asyncio.create_task(
                self._run(handle, source, target, require_real)
            )
            handle.task.add_done_callback(_consume_outcome)
            self._in_flight[key] = handle
            return handle

    @Profiler.profile
    async def probe(
        self, source: Endpoint, target: Endpoint, require_real: bool = False
    ) -> ProbeResult:
        """
        Measure latency from ``source`` to ``target``.

        Args:
            source (Endpoint): Endpoint whose probe location measures.
            target (Endpoint): Endpoint whose probe target is pinged.
            require_real (bool): If True, failures raise instead of falling back
                to a simulated value.

        Returns:
            ProbeResult: Latency and provenance.

        Raises:
            ProbeTimeout: Polling exhausted (only when ``require_real``).
            ProbeError: Transport or parse failure (only when ``require_real``).
        """
        handle = await self.start_probe(source, target, require_real)
        try:
            return await handle
        except ProbeError as e:
            if require_real:
                raise
            # joined a shared real-only probe that failed
            return self._fallback(source, target, e)

    async def _run(
        self, handle: ProbeHandle, source: Endpoint, target: Endpoint, require_real: bool
    ) -> ProbeResult:
        PROBES_IN_FLIGHT.inc()
        try:
            latency = await self._measure(handle, source, target)
        except ProbeError as e:
            handle.state = ProbeState.FAILED
            outcome = "timeout" if isinstance(e, ProbeTimeout) else "error"
            PROBE_OUTCOMES.labels(outcome=outcome).inc()
            if require_real:
                logger.warning(f"Probe {source.id} -> {target.id} failed: {e}")
                raise
            return self._fallback(source, target, e)
        except asyncio.CancelledError:
            handle.state = ProbeState.FAILED
            logger.info(f"Probe {source.id} -> {target.id} cancelled")
            raise
        else:
            handle.state = ProbeState.RESOLVED
            PROBE_OUTCOMES.labels(outcome="resolved").inc()
            logger.info(
                f"Probe success {source.id} -> {target.id}: {latency}ms "
                f"(measurement={handle.measurement_id}, attempts={handle.attempts})"
            )
            return ProbeResult(
                latency=latency,
                provenance=Provenance.REAL,
                measurement_id=handle.measurement_id,
            )
        finally:
            PROBES_IN_FLIGHT.dec()
            self._schedule_eviction(handle)

    async def _measure(self, handle: ProbeHandle, source: Endpoint, target: Endpoint) -> int:
        if not target.probe_target:
            raise ProbeError(f"Endpoint {target.id} has no probe target")

        handle.state = ProbeState.SUBMITTED
        self.submissions += 1
        PROBE_SUBMISSIONS.inc()
        response = self._parse(
            await self.backend.submit(
                target.probe_target, [{"country": source.probe_location}]
            )
        )
        handle.measurement_id = response.id
        logger.debug(
            f"Submitted {source.id} -> {target.id}: id={response.id}, status={response.status}"
        )
        latency = extract_latency(response)
        if latency is not None and not (response.in_progress and response.id):
            return latency
        if not response.id:
            raise ProbeError("No valid latency data and no measurement id to poll")

        handle.state = ProbeState.POLLING
        while handle.attempts < self.max_attempts:
            await self._sleep(self.poll_interval)
            handle.attempts += 1
            try:
                response = self._parse(await self.backend.fetch(handle.measurement_id))
            except ProbeError as e:
                logger.warning(
                    f"Error polling measurement {handle.measurement_id} "
                    f"(attempt {handle.attempts}/{self.max_attempts}): {e}"
                )
                continue
            if response.in_progress:
                continue
            latency = extract_latency(response)
            if latency is not None:
                return latency
        raise ProbeTimeout(handle.measurement_id, handle.attempts)

    @staticmethod
    def _parse(payload: dict) -> MeasurementResponse:
        try:
            return MeasurementResponse.model_validate(payload)
        except ValidationError as e:
            raise ProbeError(f"Malformed measurement payload: {e}") from e

    def _fallback(self, source: Endpoint, target: Endpoint, error: Exception) -> ProbeResult:
        latency = self.estimator.simulated_latency(source, target)
        PROBE_OUTCOMES.labels(outcome="fallback").inc()
        logger.warning(
            f"Probe {source.id} -> {target.id} failed, using estimate {latency}ms: {error}"
        )
        return ProbeResult(latency=latency, provenance=Provenance.SIMULATED)

    def _schedule_eviction(self, handle: ProbeHandle) -> None:
        if self._closed:
            self._in_flight.pop(handle.key, None)
            return
        task = asyncio.create_task(self._evict_after_grace(handle))
        self._evictions.add(task)
        task.add_done_callback(self._evictions.discard)

    async def _evict_after_grace(self, handle: ProbeHandle) -> None:
        await self._sleep(self.settle_grace)
        if self._in_flight.get(handle.key) is handle:
            del self._in_flight[handle.key]
            logger.debug(f"Evicted settled probe {handle}")

    async def aclose(self) -> None:
        """
        Cancel outstanding probes and pending evictions.
        """
        self._closed = True
        tasks = [h.task for h in self._in_flight.values() if h.task is not None]
        tasks.extend(self._evictions)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._in_flight.clear()
