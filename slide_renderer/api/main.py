"""
FastAPI Application
==================

Application factory, lifespan and exception handlers for the renderer.
"""

from contextlib import asynccontextmanager
import time
import uuid
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn

from slide_renderer.config.logging import get_logger, get_logging_config
from slide_renderer.config.settings import Settings, get_settings
from slide_renderer.core.concurrency import ConcurrencyGate
from slide_renderer.core.exceptions import (
    Busy,
    InvalidRequestBody,
    MissingTemplateId,
    PayloadTooLarge,
    RenderFailure,
    UnsupportedTemplate,
)
from slide_renderer.core.rendering.browser_session import BrowserSession
from slide_renderer.core.rendering.renderer import TemplateRenderer
from slide_renderer.core.rendering.templates import TemplateRegistry
from slide_renderer.api.routes.health import router as health_router
from slide_renderer.api.routes.render import router as render_router
from slide_renderer.models.schemas import (
    BusyResponse,
    ErrorResponse,
    MissingTemplateIdResponse,
    RenderFailedResponse,
    UnsupportedTemplateResponse,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    logger.info(
        "Renderer listening",
        port=settings.port,
        max_concurrency=settings.max_concurrency,
        device_scale_factor=settings.device_scale_factor,
    )

    try:
        yield
    finally:
        logger.info("Shutting down renderer")
        try:
            await app.state.browser_session.close()
        except Exception as e:
            logger.error("Error closing browser session", error=str(e))


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


def register_exception_handlers(app: FastAPI) -> None:
    """Map renderer exceptions to structured JSON responses."""

    @app.exception_handler(MissingTemplateId)
    async def missing_template_handler(request: Request, exc: MissingTemplateId) -> JSONResponse:
        body = MissingTemplateIdResponse(debug=exc.debug)
        return JSONResponse(status_code=400, content=body.model_dump(mode="json"))

    @app.exception_handler(UnsupportedTemplate)
    async def unsupported_template_handler(
        request: Request, exc: UnsupportedTemplate
    ) -> JSONResponse:
        body = UnsupportedTemplateResponse(got=exc.got, supported=exc.supported)
        return JSONResponse(status_code=422, content=body.model_dump(mode="json"))

    @app.exception_handler(InvalidRequestBody)
    async def invalid_body_handler(request: Request, exc: InvalidRequestBody) -> JSONResponse:
        body = ErrorResponse(error="Invalid JSON", message=exc.message)
        return JSONResponse(status_code=400, content=body.model_dump(mode="json"))

    @app.exception_handler(PayloadTooLarge)
    async def payload_too_large_handler(request: Request, exc: PayloadTooLarge) -> JSONResponse:
        body = ErrorResponse(error="Payload too large", message=exc.message)
        return JSONResponse(status_code=413, content=body.model_dump(mode="json"))

    @app.exception_handler(Busy)
    async def busy_handler(request: Request, exc: Busy) -> JSONResponse:
        body = BusyResponse(message=exc.message)
        return JSONResponse(status_code=429, content=body.model_dump(mode="json"))

    @app.exception_handler(RenderFailure)
    async def render_failure_handler(request: Request, exc: RenderFailure) -> JSONResponse:
        debug = {"now": int(time.time() * 1000), **app.state.gate.snapshot(), **exc.debug}
        body = RenderFailedResponse(message=exc.message, browser_logs=exc.browser_logs, debug=debug)

        logger.error(
            "Render failed",
            error_type=type(exc).__name__,
            error_message=exc.message,
            request_id=_request_id(request),
        )

        return JSONResponse(
            status_code=500, content=body.model_dump(mode="json", by_alias=True)
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """General exception handler for unexpected errors."""
        logger.error(
            "Unhandled exception",
            exception=str(exc),
            request_id=_request_id(request),
            exc_info=True,
        )
        message = str(exc) if app.state.settings.debug else None
        body = ErrorResponse(error="Internal server error", message=message)
        return JSONResponse(status_code=500, content=body.model_dump(mode="json"))


def create_app(
    settings: Optional[Settings] = None,
    browser_session: Optional[BrowserSession] = None,
    templates: Optional[TemplateRegistry] = None,
) -> FastAPI:
    """
    Application factory.

    Args:
        settings: Settings to use instead of the environment-derived ones
        browser_session: Shared browser session (one is created when omitted)
        templates: Template registry (package templates when omitted)

    Returns:
        FastAPI application instance
    """
    settings = settings or get_settings()
    browser_session = browser_session or BrowserSession(settings)

    app = FastAPI(
        title=settings.app_name,
        description="Render JSON requests to PNG images through HTML templates",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.state.settings = settings
    app.state.gate = ConcurrencyGate(settings.max_concurrency)
    app.state.browser_session = browser_session
    app.state.renderer = TemplateRenderer(browser_session, templates=templates, settings=settings)

    # Request ID middleware
    @app.middleware("http")
    async def add_request_id(request: Request, call_next):  # type: ignore[no-untyped-def]
        """Add request ID to all requests."""
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    register_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(render_router)

    return app


app = create_app()


def run_server() -> None:
    """Run the renderer with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "slide_renderer.api.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        log_config=get_logging_config(settings),
        access_log=True,
    )


if __name__ == "__main__":
    run_server()
