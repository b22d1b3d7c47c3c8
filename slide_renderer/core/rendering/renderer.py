"""
Template Renderer
=================

Drives a page through the render protocol:

    IDLE -> CONTENT_LOADED -> AWAITING_SIGNAL -> RENDERED -> CANVAS_LOCATED -> CAPTURED

The template is loaded with the request injected, the renderer waits for
the template's own script to raise ``__RENDERED__`` or ``__RENDER_ERROR__``,
then screenshots the ``#canvas`` element. Every failure is raised as a
:class:`RenderFailure` carrying the browser log and best-effort page debug.
"""

import base64
import io
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import psutil
from PIL import Image
from playwright.async_api import Page, TimeoutError as PlaywrightTimeoutError

from slide_renderer.config.logging import get_logger
from slide_renderer.config.settings import Settings, get_settings
from slide_renderer.core.exceptions import (
    CanvasMissing,
    RenderFailure,
    RenderSignalTimeout,
    TemplateError,
    UnknownRenderFailure,
)
from slide_renderer.core.rendering.browser_session import BrowserSession, RenderContext
from slide_renderer.core.rendering.diagnostics import BrowserLogCollector
from slide_renderer.core.rendering.templates import TemplateRegistry
from slide_renderer.models.schemas import RenderRequest, RenderResult

logger = get_logger(__name__)

CANVAS_SELECTOR = "#canvas"

RENDER_SIGNAL_PREDICATE = """() =>
  window.__RENDERED__ === true ||
  (typeof window.__RENDER_ERROR__ === "string" && window.__RENDER_ERROR__.length > 0)"""

READ_RENDER_ERROR = """() =>
  typeof window.__RENDER_ERROR__ === "string" ? window.__RENDER_ERROR__ : ''"""

HAS_CANVAS = f"() => !!document.querySelector({CANVAS_SELECTOR!r})"


class RenderStage(str, Enum):
    """Furthest point an attempt reached in the render protocol."""

    IDLE = "idle"
    CONTENT_LOADED = "content_loaded"
    AWAITING_SIGNAL = "awaiting_signal"
    RENDERED = "rendered"
    CANVAS_LOCATED = "canvas_located"
    CAPTURED = "captured"


@dataclass
class RenderAttempt:
    stage: RenderStage = RenderStage.IDLE


def png_dimensions(png: bytes) -> Tuple[Optional[int], Optional[int]]:
    """Read pixel dimensions from PNG bytes, or ``(None, None)`` if unreadable."""
    try:
        with Image.open(io.BytesIO(png)) as image:
            return image.size
    except Exception as e:
        logger.warning("Could not read PNG dimensions", error=str(e))
        return None, None


def process_memory_mb() -> Optional[float]:
    try:
        return round(psutil.Process().memory_info().rss / 1024 / 1024, 1)
    except Exception:
        return None


class TemplateRenderer:
    """Renders :class:`RenderRequest` objects to PNG through a shared browser."""

    def __init__(
        self,
        session: BrowserSession,
        templates: Optional[TemplateRegistry] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.session = session
        self.templates = templates or TemplateRegistry()
        self.logger: Any = logger.bind(component="template_renderer")

    async def render(self, request: RenderRequest) -> RenderResult:
        """
        Render a request to PNG.

        Args:
            request: Normalized render request

        Returns:
            RenderResult with PNG bytes and pixel dimensions

        Raises:
            RenderFailure: Any failure, with ``browser_logs`` and ``debug`` filled in
        """
        started = time.perf_counter()
        logs = BrowserLogCollector(self.settings.browser_log_capacity)
        render_context: Optional[RenderContext] = None
        attempt = RenderAttempt()

        self.logger.info(
            "Render started", template_id=request.template_id.value, source=request.source
        )

        try:
            render_context = await self.session.new_render_context()
            logs.attach(render_context.page)
            png = await self._run_protocol(render_context.page, request, attempt)
        except Exception as e:
            failure = e if isinstance(e, RenderFailure) else UnknownRenderFailure(str(e))
            failure.browser_logs = logs.lines()
            failure.debug.update(await self._collect_debug(render_context, attempt.stage, failure))
            self.logger.warning(
                "Render failed",
                template_id=request.template_id.value,
                error_type=type(failure).__name__,
                error_message=failure.message,
                stage=attempt.stage.value,
            )
            if failure is e:
                raise
            raise failure from e
        finally:
            if render_context is not None:
                await render_context.close()

        width, height = png_dimensions(png)
        duration_ms = round((time.perf_counter() - started) * 1000, 1)
        self.logger.info(
            "Render completed",
            template_id=request.template_id.value,
            size_bytes=len(png),
            width=width,
            height=height,
            duration_ms=duration_ms,
        )
        return RenderResult(png=png, width=width, height=height, duration_ms=duration_ms)

    async def _run_protocol(
        self, page: Page, request: RenderRequest, attempt: RenderAttempt
    ) -> bytes:
        html = self.templates.build_html(request)
        await page.set_content(html, wait_until="domcontentloaded")
        attempt.stage = RenderStage.CONTENT_LOADED

        timeout_ms = self.settings.render_signal_timeout_ms
        attempt.stage = RenderStage.AWAITING_SIGNAL
        try:
            await page.wait_for_function(RENDER_SIGNAL_PREDICATE, timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise RenderSignalTimeout(timeout_ms) from e

        render_error = await page.evaluate(READ_RENDER_ERROR)
        if render_error:
            raise TemplateError(str(render_error))
        attempt.stage = RenderStage.RENDERED

        try:
            await page.wait_for_selector(CANVAS_SELECTOR, state="attached", timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise CanvasMissing(CANVAS_SELECTOR) from e
        canvas = await page.query_selector(CANVAS_SELECTOR)
        if canvas is None:
            raise CanvasMissing(CANVAS_SELECTOR)
        attempt.stage = RenderStage.CANVAS_LOCATED

        png = await canvas.screenshot(type="png", timeout=self.settings.default_timeout_ms)
        attempt.stage = RenderStage.CAPTURED
        return png

    async def _collect_debug(
        self,
        render_context: Optional[RenderContext],
        stage: RenderStage,
        failure: RenderFailure,
    ) -> Dict[str, Any]:
        """Gather page state for a failure response. Never raises."""
        debug: Dict[str, Any] = {"stage": stage.value, "url": None, "hasCanvas": None}
        rss_mb = process_memory_mb()
        if rss_mb is not None:
            debug["rssMb"] = rss_mb
        if render_context is None:
            return debug

        page = render_context.page
        try:
            debug["url"] = page.url
        except Exception as e:
            self.logger.debug("Could not read page url", error=str(e))
        try:
            debug["hasCanvas"] = bool(await page.evaluate(HAS_CANVAS))
        except Exception as e:
            self.logger.debug("Could not check for canvas", error=str(e))

        if isinstance(failure, CanvasMissing):
            if self.settings.html_snapshot_chars:
                try:
                    debug["htmlSnapshot"] = (await page.content())[: self.settings.html_snapshot_chars]
                except Exception as e:
                    self.logger.debug("Could not snapshot page HTML", error=str(e))
            if self.settings.failure_screenshot:
                try:
                    shot = await page.screenshot(type="png", full_page=True)
                    debug["pageScreenshotBase64"] = base64.b64encode(shot).decode("ascii")
                except Exception as e:
                    self.logger.debug("Could not capture failure screenshot", error=str(e))
        return debug
