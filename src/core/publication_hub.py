import asyncio
import inspect
import logging
import time
from typing import Callable, List, Optional, Union

from contracts.latency import AcquisitionMode, Snapshot
from core.metrics import SUBSCRIBERS
from core.orchestrator import AcquisitionOrchestrator

logger = logging.getLogger(__name__)

Handler = Callable[[Snapshot], object]


class PublicationHub:
    """
    Owns the subscriber set and the periodic refresh task, and broadcasts
    round snapshots to subscribers.
    """

    def __init__(
        self,
        orchestrator: AcquisitionOrchestrator,
        refresh_interval: float = 30.0,
        mode: Union[AcquisitionMode, str] = AcquisitionMode.SIMULATED,
        sleep=asyncio.sleep,
        monotonic=time.monotonic,
    ):
        """
        Initialize the PublicationHub.

        Args:
            orchestrator (AcquisitionOrchestrator): Runs the rounds.
            refresh_interval (float): Seconds between scheduled rounds.
            mode (AcquisitionMode): Initial acquisition mode.
            sleep: Awaitable sleep function, injectable for tests.
            monotonic: Monotonic clock in seconds that paces the refresh ticks.
        """
        self.orchestrator = orchestrator
        self.refresh_interval = refresh_interval
        self._mode = AcquisitionMode(mode)
        self._sleep = sleep
        self._monotonic = monotonic
        self._subscribers: List[Handler] = []
        self._timer_task: Optional[asyncio.Task] = None
        self._pending = set()
        # one logical acquisition pipeline: rounds never interleave
        self._round_lock = asyncio.Lock()
        self._running = False
        logger.info(
            f"PublicationHub initialized: mode={self._mode.value}, "
            f"refresh_interval={self.refresh_interval}s"
        )

    @property
    def mode(self) -> AcquisitionMode:
        return self._mode

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def timer_running(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    async def start(self):
        self._running = True
        if self._subscribers:
            self._start_timer()
        logger.info("PublicationHub started.")

    async def stop(self):
        """
        Cancel the refresh task and any ad hoc rounds still running.
        """
        self._running = False
        tasks = list(self._pending)
        if self._timer_task is not None:
            tasks.append(self._timer_task)
        self._timer_task = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("PublicationHub stopped.")

    async def subscribe(self, handler: Handler) -> None:
        """
        Register a handler. It receives the result of an immediate ad hoc round,
        then every scheduled broadcast.
        """
        if handler in self._subscribers:
            return
        self._subscribers.append(handler)
        SUBSCRIBERS.set(len(self._subscribers))
        logger.info(f"Subscriber added ({len(self._subscribers)} total)")
        self._spawn(self._deliver_initial(handler))
        if self._running:
            self._start_timer()

    async def unsubscribe(self, handler: Handler) -> None:
        if handler not in self._subscribers:
            return
        self._subscribers.remove(handler)
        SUBSCRIBERS.set(len(self._subscribers))
        logger.info(f"Subscriber removed ({len(self._subscribers)} remaining)")
        if not self._subscribers:
            self._stop_timer()

    async def set_mode(self, mode: Union[AcquisitionMode, str]) -> AcquisitionMode:
        """
        Switch acquisition mode and broadcast one immediate round in the new mode.
        """
        self._mode = AcquisitionMode(mode)
        logger.info(f"Acquisition mode set to {self._mode.value}")
        self._spawn(self._broadcast_round())
        return self._mode

    async def refresh_now(self) -> Snapshot:
        snapshot = await self.run_round()
        await self.broadcast(snapshot)
        return snapshot

    async def join(self) -> None:
        """
        Wait for outstanding ad hoc rounds to finish delivering.
        """
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def run_round(self) -> Snapshot:
        """
        Run a round in the current mode; a pipeline failure yields a degraded
        fully simulated snapshot instead of an error.
        """
        mode = self._mode
        async with self._round_lock:
            try:
                return await self.orchestrator.run_round(mode, on_partial=self.broadcast)
            except Exception:
                logger.exception(
                    f"Round failed in {mode.value} mode; publishing simulated snapshot"
                )
                return await self.orchestrator.degraded_snapshot()

    async def broadcast(self, snapshot: Snapshot) -> None:
        for handler in list(self._subscribers):
            await self._deliver(handler, snapshot)

    async def _deliver(self, handler: Handler, snapshot: Snapshot) -> None:
        try:
            result = handler(snapshot.detached())
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(f"Subscriber {handler!r} failed to handle snapshot")

    async def _deliver_initial(self, handler: Handler) -> None:
        snapshot = await self.run_round()
        if handler in self._subscribers:
            await self._deliver(handler, snapshot)

    async def _broadcast_round(self) -> None:
        await self.broadcast(await self.run_round())

    async def _refresh_loop(self):
        next_tick = self._monotonic() + self.refresh_interval
        while self._running and self._subscribers:
            await self._sleep(max(0.0, next_tick - self._monotonic()))
            if not self._subscribers:
                break
            # a round that has started runs to completion even if the timer stops
            await asyncio.shield(self._spawn(self._broadcast_round()))
            # fixed rate: an overrunning round starts the next one at once, without catch-up
            next_tick = max(next_tick + self.refresh_interval, self._monotonic())

    def _start_timer(self):
        if not self.timer_running:
            self._timer_task = asyncio.create_task(self._refresh_loop())
            logger.info("Refresh loop started.")

    def _stop_timer(self):
        if self._timer_task is not None and not self._timer_task.done():
            self._timer_task.cancel()
            logger.info("Refresh loop stopped.")
        self._timer_task = None

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task
