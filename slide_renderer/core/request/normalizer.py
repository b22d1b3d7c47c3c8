"""
Request Normalizer
==================

Integrations send the render request in a few historically grown shapes:

- ``{...}``                the request object itself
- ``{"input": {...}}``     wrapped in an ``input`` field
- ``[{...}, ...]``         an array, first element used
- ``[{"input": {...}}]``   both of the above

All of them collapse into a single :class:`RenderRequest`. The shape only
survives as a provenance label used in diagnostics.

Only an object-valued ``input`` is unwrapped. An array-valued ``input`` is
left in place and treated as an ordinary payload field.
"""

from typing import Any, Dict, List, Optional, Tuple

from slide_renderer.config.logging import get_logger
from slide_renderer.core.exceptions import MissingTemplateId, UnsupportedTemplate
from slide_renderer.models.schemas import RenderRequest, TemplateId

logger = get_logger(__name__)

RAW_BODY_PREFIX_CHARS = 200


def json_type_name(value: Any) -> str:
    """Name a decoded JSON value by its JSON type."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def normalize_request_body(body: Any) -> Tuple[Any, str]:
    """
    Locate the render request inside a decoded JSON body.

    Returns:
        Tuple of the candidate request value and a provenance label such as
        ``body``, ``body.input``, ``array[0]`` or ``array[0].input``.
    """
    candidate = body
    source = "body"

    if isinstance(candidate, list):
        candidate = candidate[0] if candidate else None
        source = "array[0]"

    if isinstance(candidate, dict) and isinstance(candidate.get("input"), dict):
        candidate = candidate["input"]
        source = f"{source}.input"

    return candidate, source


def extract_template_id(candidate: Any) -> Any:
    """Read the template id under its snake_case or camelCase spelling."""
    if not isinstance(candidate, dict):
        return None
    template_id = candidate.get("template_id")
    if template_id is None:
        template_id = candidate.get("templateId")
    return template_id


def build_missing_template_debug(
    body: Any, source: str, content_type: Optional[str], raw_body: str
) -> Dict[str, Any]:
    keys: Optional[List[str]] = list(body.keys()) if isinstance(body, dict) else None
    return {
        "where": source,
        "contentType": content_type,
        "bodyType": json_type_name(body),
        "isArray": isinstance(body, list),
        "rawBodyFirst200": (raw_body or "")[:RAW_BODY_PREFIX_CHARS],
        "keysTopLevel": keys,
    }


def build_render_request(
    body: Any, raw_body: str = "", content_type: Optional[str] = None
) -> RenderRequest:
    """
    Turn a decoded request body into a validated :class:`RenderRequest`.

    Args:
        body: Decoded JSON body (any JSON value)
        raw_body: Undecoded body text, used for diagnostics only
        content_type: Declared ``Content-Type`` header, used for diagnostics only

    Raises:
        MissingTemplateId: No non-empty template id in the located payload
        UnsupportedTemplate: The template id is not registered
    """
    candidate, source = normalize_request_body(body)
    template_id = extract_template_id(candidate)

    # Falsy scalars (None, "", 0, false) count as missing; empty containers do not.
    if template_id is None or (not template_id and not isinstance(template_id, (dict, list))):
        debug = build_missing_template_debug(body, source, content_type, raw_body)
        logger.info("Render request without template_id", where=source, content_type=content_type)
        raise MissingTemplateId(debug)

    supported = TemplateId.supported()
    if not isinstance(template_id, str) or template_id not in supported:
        logger.info("Unsupported template_id", got=template_id)
        raise UnsupportedTemplate(template_id, supported)

    return RenderRequest(template_id=TemplateId(template_id), payload=candidate, source=source)
