"""
Renderer Exceptions
===================

Error taxonomy for the render service. The API layer maps each class to a
structured JSON response; nothing here knows about HTTP.
"""

from typing import Any, Dict, List, Optional


class RendererError(Exception):
    """Base class for every error raised by the render service."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RequestRejected(RendererError):
    """The request was refused before any browser work started."""


class MissingTemplateId(RequestRejected):
    """No usable ``template_id`` could be found in the request body."""

    def __init__(self, debug: Dict[str, Any]):
        super().__init__("Missing template_id")
        self.debug = debug


class UnsupportedTemplate(RequestRejected):
    """The ``template_id`` is not in the template registry."""

    def __init__(self, got: Any, supported: List[str]):
        super().__init__(f"Unsupported template_id: {got!r}")
        self.got = got
        self.supported = supported


class InvalidRequestBody(RequestRejected):
    """The request body could not be decoded as JSON."""


class PayloadTooLarge(RequestRejected):
    """The request body exceeds the configured JSON limit."""

    def __init__(self, limit: str):
        super().__init__(f"Request body exceeds the {limit} limit")
        self.limit = limit


class Busy(RendererError):
    """Admission rejected because the concurrency cap is reached."""

    def __init__(self, max_concurrency: int):
        super().__init__(
            f"Renderer is at capacity (MAX_CONCURRENCY={max_concurrency}). Try again."
        )
        self.max_concurrency = max_concurrency


class RenderFailure(RendererError):
    """
    A failure inside the render protocol.

    Carries the browser log collected for the attempt and a debug mapping
    that the renderer and request handler fill in on the way out.
    """

    def __init__(
        self,
        message: str,
        browser_logs: Optional[List[str]] = None,
        debug: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.browser_logs: List[str] = list(browser_logs or [])
        self.debug: Dict[str, Any] = dict(debug or {})


class TemplateError(RenderFailure):
    """The template reported a failure through ``window.__RENDER_ERROR__``."""

    def __init__(self, template_message: str, **kwargs: Any):
        super().__init__(f"TemplateError: {template_message}", **kwargs)
        self.template_message = template_message


class RenderSignalTimeout(RenderFailure):
    """Neither render flag was set before the signal timeout elapsed."""

    def __init__(self, timeout_ms: int, **kwargs: Any):
        super().__init__(
            f"Render signal timeout: template did not set __RENDERED__ or "
            f"__RENDER_ERROR__ within {timeout_ms}ms",
            **kwargs,
        )
        self.timeout_ms = timeout_ms


class CanvasMissing(RenderFailure):
    """The template signalled success but ``#canvas`` never appeared."""

    def __init__(self, selector: str = "#canvas", **kwargs: Any):
        super().__init__(f"Missing {selector} element", **kwargs)
        self.selector = selector


class BrowserLaunchFailure(RenderFailure):
    """The shared browser process could not be started."""


class UnknownRenderFailure(RenderFailure):
    """Any other exception raised while running the render protocol."""
