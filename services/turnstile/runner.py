"""
Turnstile Task Runner

Runs one solve task against a borrowed browser:

1. Acquire a worker from the pool (waits until one is free)
2. Optionally pick a proxy and open an isolated session with it
3. Serve the synthesized challenge page in place of the target URL
4. Wait for the widget, then loop: read the response input, click the
   widget while it is empty, stop as soon as a token shows up
5. Store Success / Failure, close the session, release the worker

The runner is started detached from any request, so it never raises:
every failure ends up as a stored FailureResult.

Attempt state machine:
    Attempting -> SUCCESS             -> SuccessResult
    Attempting -> RETRY -> Attempting
    Attempting -> (attempts exhausted) -> FailureResult("interaction-timeout")
"""

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Optional, TypeVar

from config.constants import (
    CHALLENGE_SELECTOR,
    CHALLENGE_WIDTH_PX,
    CLICK_BACKOFF_SECONDS,
    CLICK_TIMEOUT_SECONDS,
    ELEMENT_WAIT_TIMEOUT_SECONDS,
    MAX_SOLVE_ATTEMPTS,
    RESPONSE_INPUT_SELECTOR,
    RESPONSE_READ_TIMEOUT_SECONDS,
)
from services.browser.engine import BrowserPage, BrowserSession
from services.browser.proxies import ProxyPool
from services.browser.worker_pool import WorkerPool, WorkerSlot
from services.turnstile.models import FailureResult, SolveTask, SuccessResult, TaskResult
from services.turnstile.page import build_challenge_page, normalize_url
from services.turnstile.store import ResultStore
from utils.exceptions import InteractionTimeoutError, SessionError
from utils.logging import get_logger, log_solve_outcome

logger = get_logger(__name__)

T = TypeVar("T")


class AttemptOutcome(Enum):
    """Outcome of a single read/click attempt."""
    SUCCESS = "success"
    RETRY = "retry"


@dataclass
class AttemptResult:
    outcome: AttemptOutcome
    token: Optional[str] = None
    error: Optional[str] = None


class TaskRunner:
    """
    Executes solve tasks on workers borrowed from a WorkerPool.

    Timing constants are class attributes; they are fixed for the
    service and are not taken from requests.

    Usage:
        runner = TaskRunner(pool, store, proxies=ProxyPool("proxies.txt"))
        await runner.run(task)
        print(store.get(task.task_id))
    """

    MAX_ATTEMPTS = MAX_SOLVE_ATTEMPTS
    READ_TIMEOUT = RESPONSE_READ_TIMEOUT_SECONDS
    CLICK_TIMEOUT = CLICK_TIMEOUT_SECONDS
    CLICK_BACKOFF = CLICK_BACKOFF_SECONDS
    ELEMENT_WAIT_TIMEOUT = ELEMENT_WAIT_TIMEOUT_SECONDS

    def __init__(
        self,
        pool: WorkerPool,
        store: ResultStore,
        proxies: Optional[ProxyPool] = None
    ):
        """
        Args:
            pool: Worker pool to borrow browsers from
            store: Where terminal results are written
            proxies: Proxy list to pick from; None disables proxies
        """
        self._pool = pool
        self._store = store
        self._proxies = proxies

    async def run(self, task: SolveTask) -> None:
        """Solve one task and record its outcome in the store."""
        async with self._pool.slot() as slot:
            started = time.monotonic()
            session: Optional[BrowserSession] = None
            try:
                try:
                    session = await self._open_session(slot)
                    page = await self._prepare_page(session, task)
                    token = await self._interact(page, task.selector or CHALLENGE_SELECTOR)
                    result: TaskResult = SuccessResult(
                        token=token, elapsed_seconds=_elapsed(started)
                    )
                except InteractionTimeoutError as e:
                    logger.debug(f"Browser {slot.index}: {e.message}")
                    result = FailureResult(
                        reason="interaction-timeout", elapsed_seconds=_elapsed(started)
                    )
                except Exception as e:
                    logger.debug(f"Browser {slot.index}: Error: {e}")
                    result = FailureResult(reason="error", elapsed_seconds=_elapsed(started))

                await self._record(task, slot, result)
            finally:
                # Also runs when the task is cancelled at shutdown
                if session is not None:
                    await self._close_session(slot, session)

    # =========================================================================
    # Session Setup
    # =========================================================================

    async def _open_session(self, slot: WorkerSlot) -> BrowserSession:
        proxy = await self._proxies.choose() if self._proxies else None
        if proxy:
            logger.debug(f"Browser {slot.index}: Using proxy {proxy.server}")
        return await self._step(
            "new_session",
            slot.handle.new_session(proxy.to_dict() if proxy else None),
        )

    async def _prepare_page(self, session: BrowserSession, task: SolveTask) -> BrowserPage:
        """Open a page on the target URL with the challenge widget mounted."""
        selector = task.selector or CHALLENGE_SELECTOR
        url = normalize_url(task.url)
        body = build_challenge_page(task.sitekey, task.action, task.cdata)

        page = await self._step("new_page", session.new_page())
        await self._step("intercept", page.intercept_and_serve(url, body))
        await self._step("navigate", page.navigate(url))
        await self._step(
            "wait_for_element",
            page.wait_for_element(selector, self.ELEMENT_WAIT_TIMEOUT),
            timeout=self.ELEMENT_WAIT_TIMEOUT,
        )
        await self._step("resize", page.resize_element(selector, CHALLENGE_WIDTH_PX))
        return page

    @staticmethod
    async def _step(name: str, awaitable: Awaitable[T], timeout: Optional[float] = None) -> T:
        """Run one setup step, turning any failure into a SessionError."""
        try:
            if timeout is not None:
                return await asyncio.wait_for(awaitable, timeout)
            return await awaitable
        except Exception as e:
            raise SessionError(f"{name} failed: {e!r}", step=name) from e

    # =========================================================================
    # Interaction Loop
    # =========================================================================

    async def _interact(self, page: BrowserPage, selector: str) -> str:
        """
        Run up to MAX_ATTEMPTS read/click attempts.

        Raises:
            InteractionTimeoutError: If no attempt produced a token.
        """
        for attempt in range(1, self.MAX_ATTEMPTS + 1):
            result = await self._attempt(page, selector)
            if result.outcome is AttemptOutcome.SUCCESS:
                return result.token
            if result.error:
                logger.debug(f"Attempt {attempt}/{self.MAX_ATTEMPTS} failed: {result.error}")
        raise InteractionTimeoutError(self.MAX_ATTEMPTS)

    async def _attempt(self, page: BrowserPage, selector: str) -> AttemptResult:
        try:
            token = await asyncio.wait_for(
                page.read_input_value(RESPONSE_INPUT_SELECTOR, self.READ_TIMEOUT),
                self.READ_TIMEOUT,
            )
            if token:
                return AttemptResult(AttemptOutcome.SUCCESS, token=token)

            await asyncio.wait_for(page.click(selector, self.CLICK_TIMEOUT), self.CLICK_TIMEOUT)
            await asyncio.sleep(self.CLICK_BACKOFF)
            return AttemptResult(AttemptOutcome.RETRY)
        except Exception as e:
            return AttemptResult(AttemptOutcome.RETRY, error=repr(e))

    # =========================================================================
    # Teardown
    # =========================================================================

    async def _record(self, task: SolveTask, slot: WorkerSlot, result: TaskResult) -> None:
        await self._store.set_result(task.task_id, result)
        if isinstance(result, SuccessResult):
            log_solve_outcome(task.task_id, slot.index, True, result.elapsed_seconds)
        else:
            log_solve_outcome(
                task.task_id, slot.index, False, result.elapsed_seconds, reason=result.reason
            )

    @staticmethod
    async def _close_session(slot: WorkerSlot, session: BrowserSession) -> None:
        try:
            await session.close()
        except Exception as e:
            logger.warning(f"Browser {slot.index}: Error closing session: {e}")


def _elapsed(started: float) -> float:
    return round(time.monotonic() - started, 3)
