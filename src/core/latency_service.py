import asyncio
import logging
import random
from typing import Callable, List, Optional, Union

from abstractions.probe_backend import ProbeBackend
from abstractions.registry import Registry
from contracts.endpoint import Endpoint
from contracts.latency import (
    AcquisitionMode,
    LatencySample,
    LatencyStats,
    RoundProgress,
    Snapshot,
)
from core.clock import epoch_ms
from core.estimator import LatencyEstimator
from core.history_store import HistoryStore
from core.measurement_client import MeasurementClient
from core.orchestrator import AcquisitionOrchestrator
from core.publication_hub import Handler, PublicationHub

logger = logging.getLogger(__name__)


class LatencyService:
    """
    Consumer-facing service: wires the registry, estimator, measurement client,
    history, orchestrator and hub together behind one object with an explicit
    start/stop lifecycle.
    """

    def __init__(
        self,
        registry: Registry,
        backend: ProbeBackend,
        rng: Optional[random.Random] = None,
        clock: Callable[[], int] = epoch_ms,
        sleep=asyncio.sleep,
        mode: Union[AcquisitionMode, str] = AcquisitionMode.SIMULATED,
        refresh_interval: float = 30.0,
        max_attempts: int = 20,
        poll_interval: float = 1.0,
        settle_grace: float = 1.0,
        batch_size: int = 2,
        batch_delay: float = 0.5,
        partial_every: int = 5,
        mixed_probe_limit: int = 20,
        history_max_samples: int = 1000,
        bootstrap_window_ms: int = 3_600_000,
        bootstrap_step_ms: int = 60_000,
    ):
        self.registry = registry
        self.backend = backend
        self._clock = clock
        self.bootstrap_window_ms = bootstrap_window_ms
        self.bootstrap_step_ms = bootstrap_step_ms
        self.estimator = LatencyEstimator(rng)
        self.history = HistoryStore(max_samples=history_max_samples, clock=clock)
        self.client = MeasurementClient(
            backend,
            self.estimator,
            max_attempts=max_attempts,
            poll_interval=poll_interval,
            settle_grace=settle_grace,
            sleep=sleep,
        )
        self.orchestrator = AcquisitionOrchestrator(
            registry,
            self.estimator,
            self.client,
            self.history,
            clock=clock,
            sleep=sleep,
            batch_size=batch_size,
            batch_delay=batch_delay,
            partial_every=partial_every,
            mixed_probe_limit=mixed_probe_limit,
        )
        self.hub = PublicationHub(
            self.orchestrator,
            refresh_interval=refresh_interval,
            mode=mode,
            sleep=sleep,
        )
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> None:
        """
        Bootstrap synthetic history and enable the refresh schedule.
        """
        if self._started:
            return
        await self.orchestrator.bootstrap_history(
            self.bootstrap_window_ms, self.bootstrap_step_ms
        )
        await self.hub.start()
        self._started = True
        logger.info(f"LatencyService started in {self.get_mode().value} mode")

    async def stop(self) -> None:
        await self.hub.stop()
        await self.client.aclose()
        await self.backend.aclose()
        self._started = False
        logger.info("LatencyService stopped.")

    async def subscribe(self, handler: Handler) -> None:
        await self.hub.subscribe(handler)

    async def unsubscribe(self, handler: Handler) -> None:
        await self.hub.unsubscribe(handler)

    async def set_mode(self, mode: Union[AcquisitionMode, str]) -> AcquisitionMode:
        return await self.hub.set_mode(mode)

    def get_mode(self) -> AcquisitionMode:
        return self.hub.mode

    async def refresh_now(self) -> Snapshot:
        return await self.hub.refresh_now()

    def get_current_snapshot(self) -> Snapshot:
        snapshot = self.orchestrator.current_snapshot()
        if snapshot is None:
            return Snapshot(
                mode=self.get_mode(),
                timestamp=self._clock(),
                total_pairs=len(self.orchestrator.pairs()),
            )
        return snapshot

    def progress(self) -> RoundProgress:
        return self.orchestrator.progress()

    def list_endpoints(self) -> List[Endpoint]:
        return self.registry.list_endpoints()

    def get_endpoint(self, endpoint_id: str) -> Endpoint:
        return self.registry.get_endpoint(endpoint_id)

    async def query_history(self, from_id: str, to_id: str, window_ms: int) -> List[LatencySample]:
        return await self.history.query(
            self.registry.resolve_id(from_id), self.registry.resolve_id(to_id), window_ms
        )

    async def get_stats(self, from_id: str, to_id: str, window_ms: int) -> LatencyStats:
        return await self.history.stats(
            self.registry.resolve_id(from_id), self.registry.resolve_id(to_id), window_ms
        )
