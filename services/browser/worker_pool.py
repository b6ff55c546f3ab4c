"""
Browser Worker Pool

Holds a fixed number of launched browsers and lends them out one task
at a time. The pool is built once at startup and never resized.

A task that finds every browser busy sleeps for POLL_INTERVAL and scans
again. Free slots are handed out in ascending index order, so there is
no FIFO fairness between waiting tasks.

Usage:
    from services.browser.worker_pool import WorkerPool

    pool = WorkerPool(size=2, builder=launch_browser)
    await pool.initialize()

    async with pool.slot() as slot:
        session = await slot.handle.new_session()
        ...
    # Slot released on every exit path

    await pool.shutdown()
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from config.constants import POOL_POLL_INTERVAL_SECONDS
from services.browser.engine import BrowserHandle
from utils.exceptions import PoolInitError
from utils.logging import get_logger

logger = get_logger(__name__)

# Builds the worker for a given slot index
WorkerBuilder = Callable[[int], Awaitable[BrowserHandle]]


@dataclass
class WorkerSlot:
    """One pool entry: a browser and whether a task currently holds it."""
    index: int
    handle: BrowserHandle
    busy: bool = False


class WorkerPool:
    """
    Fixed-size pool of browser workers with acquire/release semantics.

    Only acquire/release mutate the busy flags, and the scan-and-mark
    step runs under a lock so two waiters can never take the same slot.
    """

    POLL_INTERVAL = POOL_POLL_INTERVAL_SECONDS

    def __init__(self, size: int, builder: WorkerBuilder):
        if size < 1:
            raise ValueError("Worker pool size must be at least 1")
        self.size = size
        self._builder = builder
        self._slots: List[WorkerSlot] = []
        self._lock = asyncio.Lock()

    @property
    def slots(self) -> List[WorkerSlot]:
        return list(self._slots)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def initialize(self) -> None:
        """
        Launch every worker, one after another.

        Raises:
            PoolInitError: If any launch fails. Workers launched before the
                failure are closed again, so no partial pool is left behind.
        """
        logger.info("Starting browser initialization")
        built: List[WorkerSlot] = []

        for index in range(self.size):
            try:
                handle = await self._builder(index)
            except Exception as e:
                logger.error(f"Failed to initialize browser {index}: {e}")
                await self._close_all(built)
                raise PoolInitError(
                    f"Failed to initialize browser {index}: {e}", slot=index
                ) from e

            built.append(WorkerSlot(index=index, handle=handle))
            logger.debug(f"Browser {index} initialized successfully")

        self._slots = built
        logger.info(f"✅ Browser pool initialized with {len(self._slots)} browsers")

    async def shutdown(self) -> None:
        """Close every worker. A failing close is logged and skipped."""
        logger.info("Shutting down browser pool...")
        await self._close_all(self._slots)
        self._slots = []
        logger.info("Browser pool shutdown complete")

    @staticmethod
    async def _close_all(slots: List[WorkerSlot]) -> None:
        for slot in slots:
            try:
                await slot.handle.close()
            except Exception as e:
                logger.error(f"Error closing browser {slot.index}: {e}")

    # =========================================================================
    # Acquire / Release
    # =========================================================================

    async def acquire(self) -> WorkerSlot:
        """
        Take the lowest-index free worker, waiting as long as it takes.

        Returns:
            WorkerSlot: The slot, now marked busy.
        """
        while True:
            slot = await self._try_acquire()
            if slot is not None:
                logger.debug(f"Browser {slot.index} acquired ({self.busy_count}/{self.size} busy)")
                return slot
            await asyncio.sleep(self.POLL_INTERVAL)

    async def _try_acquire(self) -> Optional[WorkerSlot]:
        async with self._lock:
            for slot in self._slots:
                if not slot.busy:
                    slot.busy = True
                    return slot
        return None

    def release(self, index: int) -> None:
        """Mark slot ``index`` free. Releasing a free slot does nothing."""
        for slot in self._slots:
            if slot.index == index:
                if slot.busy:
                    slot.busy = False
                    logger.debug(f"Browser {index} released ({self.busy_count}/{self.size} busy)")
                return

    @asynccontextmanager
    async def slot(self):
        """
        Borrow a worker for the duration of the ``async with`` block.

        Usage:
            async with pool.slot() as slot:
                await run_task(slot.handle)
        """
        slot = await self.acquire()
        try:
            yield slot
        finally:
            self.release(slot.index)

    # =========================================================================
    # Status
    # =========================================================================

    @property
    def busy_count(self) -> int:
        return sum(1 for slot in self._slots if slot.busy)

    def status(self) -> Dict[str, Any]:
        """Get current pool status."""
        busy = self.busy_count
        return {
            "size": len(self._slots),
            "busy": busy,
            "free": len(self._slots) - busy,
        }
