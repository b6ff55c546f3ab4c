"""
Solve Dispatcher

Owns the worker pool, the result store and the task runner, and is the
only object the HTTP layer talks to.

submit() validates the request, registers the task as pending and starts
the runner in the background; it returns the new task id without waiting.
Results are then polled with fetch_result().

Usage:
    dispatcher = Dispatcher.from_settings(settings)
    await dispatcher.startup()

    task_id = dispatcher.submit(url="https://example.com", sitekey="0x4AAA...")
    result = dispatcher.fetch_result(task_id)

    await dispatcher.shutdown()
"""

import asyncio
import uuid
from typing import Any, Dict, Optional, Set

from config.settings import Settings
from services.browser.engine import PlaywrightEngine
from services.browser.proxies import ProxyPool
from services.browser.worker_pool import WorkerBuilder, WorkerPool
from services.turnstile.models import FailureResult, SolveTask, TaskResult
from services.turnstile.runner import TaskRunner
from services.turnstile.store import ResultStore
from utils.exceptions import UnknownTaskError, ValidationError
from utils.logging import get_logger

logger = get_logger(__name__)


class Dispatcher:
    """Accepts solve requests and serves their results."""

    def __init__(
        self,
        pool: WorkerPool,
        store: ResultStore,
        runner: TaskRunner,
        engine: Optional[PlaywrightEngine] = None
    ):
        self.pool = pool
        self.store = store
        self.runner = runner
        self._engine = engine
        self._tasks: Set[asyncio.Task] = set()

    @classmethod
    def from_settings(
        cls,
        config: Settings,
        builder: Optional[WorkerBuilder] = None
    ) -> "Dispatcher":
        """
        Wire a dispatcher from application settings.

        Args:
            config: Application settings
            builder: Worker factory; defaults to launching Playwright browsers
        """
        engine = None
        if builder is None:
            engine = PlaywrightEngine()

            async def launch_browser(index: int):
                return await engine.launch(
                    config.BROWSER_TYPE,
                    headless=config.HEADLESS,
                    args=config.browser_args,
                )

            builder = launch_browser

        pool = WorkerPool(size=config.THREAD, builder=builder)
        store = ResultStore(config.RESULTS_FILE)
        proxies = ProxyPool(config.PROXIES_FILE) if config.PROXY else None
        runner = TaskRunner(pool, store, proxies=proxies)
        return cls(pool, store, runner, engine=engine)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def startup(self) -> None:
        """
        Load stored results and launch the worker pool.

        Raises:
            PoolInitError: If a worker cannot be launched.
        """
        self.store.load()
        await self.pool.initialize()

    async def shutdown(self) -> None:
        """
        Stop in-flight tasks, close every worker and stop the engine.

        Interrupted tasks keep their in-memory pending placeholder, which
        is never written to the results file.
        """
        in_flight = list(self._tasks)
        if in_flight:
            logger.info(f"Cancelling {len(in_flight)} in-flight tasks")
            for task in in_flight:
                task.cancel()
            await asyncio.gather(*in_flight, return_exceptions=True)

        await self.pool.shutdown()
        if self._engine is not None:
            await self._engine.stop()

    # =========================================================================
    # Operations
    # =========================================================================

    def submit(
        self,
        url: Optional[str],
        sitekey: Optional[str],
        action: Optional[str] = None,
        cdata: Optional[str] = None,
        selector: Optional[str] = None
    ) -> str:
        """
        Register a solve task and start it in the background.

        Returns:
            str: The new task id (result is pending until the runner finishes)

        Raises:
            ValidationError: If url or sitekey is missing. No task is created.
        """
        missing = [name for name, value in (("url", url), ("sitekey", sitekey)) if not value]
        if missing:
            raise ValidationError(missing=missing)

        task = SolveTask(
            task_id=str(uuid.uuid4()),
            url=url,
            sitekey=sitekey,
            action=action or None,
            cdata=cdata or None,
            selector=selector or None,
        )
        self.store.set_pending(task.task_id)

        background = asyncio.create_task(self._run_detached(task))
        self._tasks.add(background)
        background.add_done_callback(self._tasks.discard)

        logger.info(f"Task accepted: {task.task_id} ({task.url})")
        return task.task_id

    def fetch_result(self, task_id: Optional[str]) -> TaskResult:
        """
        Look up the current result of a task.

        Raises:
            UnknownTaskError: If the id was never issued (or not reloaded).
        """
        result = self.store.get(task_id) if task_id else None
        if result is None:
            raise UnknownTaskError(task_id)
        return result

    def status(self) -> Dict[str, Any]:
        return {
            "pool": self.pool.status(),
            "results": len(self.store),
            "running_tasks": len(self._tasks),
        }

    async def _run_detached(self, task: SolveTask) -> None:
        try:
            await self.runner.run(task)
        except Exception:
            logger.exception(f"Background solve error for task {task.task_id}")
            await self.store.set_result(
                task.task_id, FailureResult(reason="error", elapsed_seconds=0.0)
            )
