"""
Render Routes
=============

``POST /render``: admission control, body decoding, normalization and the
render itself. Errors are raised as :mod:`slide_renderer.core.exceptions`
and turned into JSON responses by the handlers in :mod:`slide_renderer.api.main`.
"""

import json
import time
from typing import Any, Tuple

from fastapi import APIRouter, Request, Response

from slide_renderer.config.logging import get_logger
from slide_renderer.config.settings import Settings
from slide_renderer.core.concurrency import ConcurrencyGate
from slide_renderer.core.exceptions import InvalidRequestBody, PayloadTooLarge, RenderFailure
from slide_renderer.core.rendering.renderer import TemplateRenderer
from slide_renderer.core.request.normalizer import build_render_request
from slide_renderer.models.schemas import (
    BusyResponse,
    MissingTemplateIdResponse,
    RenderFailedResponse,
    UnsupportedTemplateResponse,
)

logger = get_logger(__name__)

router = APIRouter(tags=["Rendering"])


def _reject_constant(name: str) -> Any:
    # NaN, Infinity and -Infinity are not valid JSON.
    raise InvalidRequestBody(f"Invalid JSON body: unexpected token {name}")


async def read_json_body(request: Request, settings: Settings) -> Tuple[Any, str]:
    """
    Read and decode the request body.

    Bodies not declared as JSON are not parsed and decode to ``{}``, so the
    missing-template diagnostics can point at the content type.

    Returns:
        Tuple of decoded body and raw body text
    """
    limit = settings.json_limit_bytes
    declared_length = request.headers.get("content-length")
    if declared_length and declared_length.isdigit() and int(declared_length) > limit:
        raise PayloadTooLarge(settings.json_limit)

    raw = await request.body()
    if len(raw) > limit:
        raise PayloadTooLarge(settings.json_limit)

    raw_text = raw.decode("utf-8", errors="replace")
    content_type = request.headers.get("content-type") or ""
    if "json" not in content_type.lower() or not raw_text.strip():
        return {}, raw_text

    try:
        return json.loads(raw_text, parse_constant=_reject_constant), raw_text
    except json.JSONDecodeError as e:
        raise InvalidRequestBody(f"Invalid JSON body: {e}") from e
    except RecursionError as e:
        raise InvalidRequestBody("Invalid JSON body: nested too deeply") from e


@router.post(
    "/render",
    response_class=Response,
    responses={
        200: {"content": {"image/png": {}}, "description": "Rendered PNG"},
        400: {"model": MissingTemplateIdResponse},
        422: {"model": UnsupportedTemplateResponse},
        429: {"model": BusyResponse},
        500: {"model": RenderFailedResponse},
    },
)
async def render(request: Request) -> Response:
    """Render a JSON render request to a PNG image."""
    state = request.app.state
    gate: ConcurrencyGate = state.gate
    renderer: TemplateRenderer = state.renderer
    settings: Settings = state.settings

    with gate.admit():
        started = time.perf_counter()
        body, raw_text = await read_json_body(request, settings)
        render_request = build_render_request(
            body, raw_body=raw_text, content_type=request.headers.get("content-type")
        )

        try:
            result = await renderer.render(render_request)
        except RenderFailure as e:
            # Counters are captured while this request still holds its slot.
            e.debug.update({"now": int(time.time() * 1000), **gate.snapshot()})
            raise

        logger.info(
            "Render request served",
            request_id=getattr(request.state, "request_id", None),
            template_id=render_request.template_id.value,
            source=render_request.source,
            size_bytes=len(result.png),
            elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return Response(content=result.png, media_type="image/png")
