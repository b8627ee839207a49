import asyncio
import logging
from typing import Optional

from contracts.target import Target
from core.concurrency_limiter import OverlapGuard, SlotPool
from core.probe_executor import ProbeExecutor

logger = logging.getLogger(__name__)


class TargetScheduler:
    """
    Drives the probe cadence of a single target.

    Each tick launches at most one probe: the tick is dropped when the
    previous probe for this target is still running or when the shared slot
    pool is exhausted. Dropped ticks are not deferred and produce no metrics.
    """

    def __init__(
        self,
        target: Target,
        executor: ProbeExecutor,
        slot_pool: SlotPool,
        interval: Optional[float] = None,
    ):
        self.target = target
        self.executor = executor
        self.slot_pool = slot_pool
        self.interval = interval if interval is not None else target.interval_seconds
        self.guard = OverlapGuard()
        self._task: Optional[asyncio.Task] = None
        self._probe_task: Optional[asyncio.Task] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self):
        """
        Start the tick loop as an asynchronous task.
        """
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._tick_loop())
        logger.info(f"Scheduler started for {self.target.url} every {self.interval}s")

    async def stop(self):
        """
        Stop the tick loop and cancel the in-flight probe, if any.
        """
        self._running = False
        tasks = [t for t in (self._task, self._probe_task) if t is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._task = None
        logger.info(f"Scheduler stopped for {self.target.url}")

    def tick(self) -> bool:
        """
        Run one scheduling decision.

        Returns:
            bool: True if a probe was launched, False if the tick was dropped.
        """
        if not self.guard.try_acquire():
            logger.debug(f"Tick dropped for {self.target.url}: previous probe still running")
            return False
        if not self.slot_pool.try_acquire():
            # The guard only marks intent here; no probe ran
            self.guard.release()
            logger.debug(f"Tick dropped for {self.target.url}: no free probe slot")
            return False
        task = asyncio.create_task(self.executor.probe(self.target))
        task.add_done_callback(self._probe_done)
        self._probe_task = task
        return True

    def _probe_done(self, task: asyncio.Task):
        # Runs on every exit, including a cancel that lands before the probe started
        self.slot_pool.release()
        self.guard.release()
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                f"Probe task for {self.target.url} failed", exc_info=task.exception()
            )

    async def _tick_loop(self):
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self.interval
        while self._running:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            self.tick()
            next_tick += self.interval
            now = loop.time()
            if next_tick < now:
                # Fell behind; skip the missed ticks instead of firing them in a burst
                missed = int((now - next_tick) // self.interval) + 1
                next_tick += missed * self.interval
