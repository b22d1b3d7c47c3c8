"""
Browser Session
===============

Owns the single headless Chromium instance shared by every render and
hands out isolated contexts for individual requests.

The launch is memoized as a task rather than as its result, so callers
arriving while Chromium is still starting all await the same launch. A
failed launch stays memoized: every later caller sees the same
:class:`BrowserLaunchFailure` until :meth:`BrowserSession.close` resets
the session or the process is restarted.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from slide_renderer.config.logging import get_logger
from slide_renderer.config.settings import Settings, get_settings
from slide_renderer.core.exceptions import BrowserLaunchFailure

logger = get_logger(__name__)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]


@dataclass
class RenderContext:
    """An isolated browser context and its page, owned by one request."""

    context: BrowserContext
    page: Page

    async def close(self) -> None:
        """Close page then context. Errors are logged, never raised."""
        try:
            await self.page.close()
        except Exception as e:
            logger.debug("Page close failed", error=str(e))
        try:
            await self.context.close()
        except Exception as e:
            logger.debug("Context close failed", error=str(e))


class BrowserSession:
    """Lazily launched, process-wide browser handle."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._launch_task: Optional["asyncio.Task[Browser]"] = None
        self._playwright: Optional[Playwright] = None
        self.logger: Any = logger.bind(component="browser_session")

    @property
    def launched(self) -> bool:
        task = self._launch_task
        return task is not None and task.done() and task.exception() is None

    async def acquire(self) -> Browser:
        """
        Return the shared browser, launching it on first use.

        Raises:
            BrowserLaunchFailure: The (memoized) launch attempt failed
        """
        if self._launch_task is None:
            self._launch_task = asyncio.ensure_future(self._launch())
        # A cancelled caller must not cancel the launch other callers await.
        try:
            return await asyncio.shield(self._launch_task)
        except BrowserLaunchFailure as e:
            # Fresh instance per caller; the memoized one is shared.
            raise BrowserLaunchFailure(e.message) from e

    async def _launch(self) -> Browser:
        self.logger.info("Launching browser", headless=self.settings.playwright_headless)
        try:
            self._playwright = await async_playwright().start()
            browser = await self._playwright.chromium.launch(
                headless=self.settings.playwright_headless,
                args=LAUNCH_ARGS,
            )
        except Exception as e:
            self.logger.error("Browser launch failed", error=str(e))
            await self._stop_driver()
            raise BrowserLaunchFailure(f"Browser launch failed: {e}") from e

        self.logger.info("Browser launched", version=browser.version)
        return browser

    async def new_render_context(self) -> RenderContext:
        """Create a fresh context and page with the configured viewport and timeouts."""
        browser = await self.acquire()
        context = await browser.new_context(
            viewport=self.settings.viewport,
            device_scale_factor=self.settings.device_scale_factor,
        )
        context.set_default_timeout(self.settings.default_timeout_ms)
        context.set_default_navigation_timeout(self.settings.default_timeout_ms)
        try:
            page = await context.new_page()
        except Exception:
            await context.close()
            raise
        return RenderContext(context=context, page=page)

    async def close(self) -> None:
        """Close the browser and Playwright driver, allowing a fresh launch afterwards."""
        task, self._launch_task = self._launch_task, None
        if task is not None:
            if not task.done():
                task.cancel()
            try:
                browser = await task
            except (asyncio.CancelledError, BrowserLaunchFailure):
                browser = None
            if browser is not None:
                try:
                    await browser.close()
                except Exception as e:
                    self.logger.warning("Browser close failed", error=str(e))

        await self._stop_driver()
        self.logger.info("Browser session closed")

    async def _stop_driver(self) -> None:
        playwright, self._playwright = self._playwright, None
        if playwright is None:
            return
        try:
            await playwright.stop()
        except Exception as e:
            self.logger.warning("Playwright stop failed", error=str(e))
