import asyncio
import logging
from typing import Iterable, List, Optional

from config.config import Config
from contracts.target import Target
from core.concurrency_limiter import SlotPool
from core.probe_executor import ProbeExecutor
from core.target_scheduler import TargetScheduler

logger = logging.getLogger(__name__)


class ProbeManager:
    """
    Runs one independent scheduler per target, all sharing a single slot pool
    that bounds how many probes execute at once across the process.
    """

    def __init__(
        self,
        targets: Iterable[Target],
        executor: ProbeExecutor,
        max_concurrent_probes: Optional[int] = None,
    ):
        capacity = (
            max_concurrent_probes
            if max_concurrent_probes is not None
            else Config.GLOBAL_SLOT_SIZE
        )
        self.executor = executor
        self.slot_pool = SlotPool(capacity)
        self.schedulers: List[TargetScheduler] = []
        seen = set()
        for target in targets:
            if target in seen:
                logger.warning(f"Ignoring duplicate target {target.url}")
                continue
            seen.add(target)
            self.schedulers.append(TargetScheduler(target, executor, self.slot_pool))
        self._running = False

    @property
    def targets(self) -> List[Target]:
        return [s.target for s in self.schedulers]

    @property
    def running(self) -> bool:
        return self._running

    async def start(self):
        self._running = True
        for scheduler in self.schedulers:
            await scheduler.start()
        logger.info(
            f"ProbeManager started {len(self.schedulers)} schedulers "
            f"with {self.slot_pool.capacity} probe slots"
        )

    async def stop(self):
        self._running = False
        await asyncio.gather(*(s.stop() for s in self.schedulers))
        logger.info("ProbeManager stopped.")


def targets_from_config(urls: Optional[Iterable[str]] = None) -> List[Target]:
    interval = Config.probe_interval_seconds()
    return [
        Target(url=url, interval_seconds=interval)
        for url in (urls if urls is not None else Config.TARGETS)
    ]
