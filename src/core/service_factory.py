"""
Service factory for building a LatencyService from configuration.
"""
import logging
import random
from typing import Optional

from abstractions.probe_backend import ProbeBackend
from abstractions.registry import Registry
from config.config import Config
from core.endpoint_registry import EndpointRegistry
from core.globalping_backend import GlobalpingBackend
from core.latency_service import LatencyService

logger = logging.getLogger(__name__)


class ServiceFactory:
    """
    Factory class for creating LatencyService instances.
    """

    @staticmethod
    def create_registry(endpoints_file: Optional[str] = None) -> Registry:
        return EndpointRegistry.default(endpoints_file or Config.ENDPOINTS_FILE)

    @staticmethod
    def create_backend() -> ProbeBackend:
        return GlobalpingBackend(
            Config.PROBE_API_URL,
            packets=Config.PROBE_PACKETS,
            timeout=Config.PROBE_REQUEST_TIMEOUT,
        )

    @staticmethod
    def create_service(
        registry: Optional[Registry] = None,
        backend: Optional[ProbeBackend] = None,
        mode: Optional[str] = None,
        seed: Optional[int] = None,
        **kwargs,
    ) -> LatencyService:
        """
        Create a LatencyService wired from Config, with optional overrides.

        Args:
            registry (Optional[Registry]): Endpoint registry; defaults to the configured table.
            backend (Optional[ProbeBackend]): Probe backend; defaults to Globalping.
            mode (Optional[str]): Initial acquisition mode; defaults to Config.ACQUISITION_MODE.
            seed (Optional[int]): Random seed; defaults to Config.RANDOM_SEED.
            **kwargs: Further LatencyService keyword arguments.

        Returns:
            LatencyService: An unstarted service.
        """
        mode = mode or Config.ACQUISITION_MODE
        seed = seed if seed is not None else Config.RANDOM_SEED
        settings = dict(
            mode=mode,
            refresh_interval=Config.REFRESH_INTERVAL_SECONDS,
            max_attempts=Config.PROBE_MAX_ATTEMPTS,
            poll_interval=Config.PROBE_POLL_INTERVAL_SECONDS,
            settle_grace=Config.PROBE_SETTLE_GRACE_SECONDS,
            batch_size=Config.BATCH_SIZE,
            batch_delay=Config.BATCH_DELAY_SECONDS,
            partial_every=Config.PARTIAL_SNAPSHOT_EVERY,
            mixed_probe_limit=Config.MIXED_PROBE_LIMIT,
            history_max_samples=Config.HISTORY_MAX_SAMPLES,
            bootstrap_window_ms=Config.BOOTSTRAP_WINDOW_SECONDS * 1000,
            bootstrap_step_ms=Config.BOOTSTRAP_STEP_SECONDS * 1000,
        )
        settings.update(kwargs)
        logger.info(f"Creating LatencyService: mode={mode}, seed={seed}")
        return LatencyService(
            registry or ServiceFactory.create_registry(),
            backend or ServiceFactory.create_backend(),
            rng=random.Random(seed),
            **settings,
        )
