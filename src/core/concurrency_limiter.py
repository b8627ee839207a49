import logging
import threading

logger = logging.getLogger(__name__)


class SlotPool:
    """
    Fixed-capacity pool of execution slots shared by every target scheduler.

    Acquisition never waits: when all slots are taken the caller is told so
    immediately and is expected to drop its work. Which caller receives a
    freed slot next is unspecified.
    """

    def __init__(self, capacity: int = 10):
        if capacity < 1:
            raise ValueError(f"slot pool capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._in_use = 0
        self._lock = threading.Lock()
        logger.info(f"SlotPool initialized with capacity {capacity}")

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def in_use(self) -> int:
        return self._in_use

    @property
    def available(self) -> int:
        return self._capacity - self._in_use

    def try_acquire(self) -> bool:
        with self._lock:
            if self._in_use >= self._capacity:
                return False
            self._in_use += 1
            return True

    def release(self) -> None:
        with self._lock:
            if self._in_use == 0:
                raise ValueError("SlotPool.release() called with no slot held")
            self._in_use -= 1


class OverlapGuard:
    """
    Per-target compare-and-set flag, set while a probe for the target is in flight.
    """

    def __init__(self):
        self._busy = False
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._busy

    def try_acquire(self) -> bool:
        """Flip the flag from False to True; return False if it was already set."""
        with self._lock:
            if self._busy:
                return False
            self._busy = True
            return True

    def release(self) -> None:
        with self._lock:
            self._busy = False
