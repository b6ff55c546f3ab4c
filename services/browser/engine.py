"""
Automation Engine Adapter

The solver core only talks to the abstract handles defined here.
PlaywrightEngine is the production implementation; tests provide
in-memory fakes with the same shape.

Object model:
    engine.launch(kind, headless, args) -> BrowserHandle   (one per pool slot)
    handle.new_session(proxy)           -> BrowserSession  (one per task)
    session.new_page()                  -> BrowserPage

All timeouts cross this boundary in seconds.

Usage:
    engine = PlaywrightEngine()
    handle = await engine.launch("chromium", headless=True, args=[])
    session = await handle.new_session(proxy=None)
    page = await session.new_page()
    await page.navigate("https://example.com/")
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from utils.logging import get_logger

logger = get_logger(__name__)


# =============================================================================
# Abstract Handles
# =============================================================================

class BrowserPage(ABC):
    """A single tab inside a session."""

    @abstractmethod
    async def intercept_and_serve(self, url: str, body: str) -> None:
        """Serve ``body`` as HTML the next time ``url`` is requested."""

    @abstractmethod
    async def navigate(self, url: str) -> None:
        """Navigate to ``url``."""

    @abstractmethod
    async def wait_for_element(self, selector: str, timeout: float) -> None:
        """Wait until ``selector`` is attached to the DOM."""

    @abstractmethod
    async def resize_element(self, selector: str, width_px: int) -> None:
        """Force the CSS width of the element matching ``selector``."""

    @abstractmethod
    async def read_input_value(self, selector: str, timeout: float) -> str:
        """Return the current value of the input matching ``selector``."""

    @abstractmethod
    async def click(self, selector: str, timeout: float) -> None:
        """Click the element matching ``selector``."""


class BrowserSession(ABC):
    """An isolated browsing context (cookies, storage, proxy)."""

    @abstractmethod
    async def new_page(self) -> BrowserPage:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...


class BrowserHandle(ABC):
    """A launched browser process owned by the worker pool."""

    @abstractmethod
    async def new_session(self, proxy: Optional[Dict[str, str]] = None) -> BrowserSession:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...


# =============================================================================
# Playwright Implementation
# =============================================================================

def _ms(seconds: float) -> float:
    return seconds * 1000


class PlaywrightPage(BrowserPage):
    """BrowserPage backed by a playwright Page."""

    def __init__(self, page: Any):
        self._page = page

    async def intercept_and_serve(self, url: str, body: str) -> None:
        async def fulfill(route):
            await route.fulfill(body=body, status=200, content_type="text/html")

        await self._page.route(url, fulfill, times=1)

    async def navigate(self, url: str) -> None:
        await self._page.goto(url)

    async def wait_for_element(self, selector: str, timeout: float) -> None:
        await self._page.wait_for_selector(selector, state="attached", timeout=_ms(timeout))

    async def resize_element(self, selector: str, width_px: int) -> None:
        await self._page.locator(selector).first.evaluate(
            "(el, width) => { el.style.width = width + 'px'; }",
            width_px,
        )

    async def read_input_value(self, selector: str, timeout: float) -> str:
        return await self._page.input_value(selector, timeout=_ms(timeout))

    async def click(self, selector: str, timeout: float) -> None:
        await self._page.locator(selector).first.click(timeout=_ms(timeout))


class PlaywrightSession(BrowserSession):
    """BrowserSession backed by a playwright BrowserContext."""

    def __init__(self, context: Any):
        self._context = context

    async def new_page(self) -> BrowserPage:
        return PlaywrightPage(await self._context.new_page())

    async def close(self) -> None:
        await self._context.close()


class PlaywrightHandle(BrowserHandle):
    """BrowserHandle backed by a playwright Browser."""

    def __init__(self, browser: Any):
        self._browser = browser

    async def new_session(self, proxy: Optional[Dict[str, str]] = None) -> BrowserSession:
        options: Dict[str, Any] = {}
        if proxy:
            options["proxy"] = proxy
        return PlaywrightSession(await self._browser.new_context(**options))

    async def close(self) -> None:
        await self._browser.close()


class PlaywrightEngine:
    """
    Launches browsers through a single shared Playwright driver.

    The driver is started on the first launch and stopped by stop(),
    which must run after every handle has been closed.
    """

    def __init__(self):
        self._playwright = None
        self._lock = asyncio.Lock()

    async def _driver(self):
        async with self._lock:
            if self._playwright is None:
                from playwright.async_api import async_playwright

                logger.info("🌐 Starting Playwright driver...")
                self._playwright = await async_playwright().start()
            return self._playwright

    async def launch(self, kind: str, headless: bool, args: List[str]) -> BrowserHandle:
        """
        Launch one browser.

        Args:
            kind: chromium, firefox or webkit
            headless: Run without a visible window
            args: Extra command line arguments for the browser
        """
        driver = await self._driver()
        browser_type = getattr(driver, kind)
        browser = await browser_type.launch(headless=headless, args=args)
        return PlaywrightHandle(browser)

    async def stop(self) -> None:
        """Stop the Playwright driver, if it was started."""
        if self._playwright is None:
            return
        try:
            await self._playwright.stop()
        except Exception as e:
            logger.error(f"Error stopping Playwright driver: {e}")
        self._playwright = None
