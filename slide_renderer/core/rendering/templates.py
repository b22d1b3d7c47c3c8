"""
Template Registry
=================

Maps template ids to the HTML files shipped in ``slide_renderer/templates``
and injects the render request into them.

Template contract:
- The request is available as JSON in ``<script id="__RR__" type="application/json">``.
  ``&``, ``<`` and ``>`` are HTML-escaped; script content is raw text, so the
  template decodes ``&lt;``, ``&gt;`` and ``&amp;`` before ``JSON.parse``.
- On success the template sets ``window.__RENDERED__ = true`` and exposes ``#canvas``.
- On failure it sets ``window.__RENDER_ERROR__`` to a non-empty string.
"""

import json
from pathlib import Path
from typing import Dict, Optional

from slide_renderer.models.schemas import RenderRequest, TemplateId

TEMPLATE_DIR = Path(__file__).resolve().parent.parent.parent / "templates"

TEMPLATE_FILES: Dict[TemplateId, str] = {
    TemplateId.KONTEKST_CAROUSEL_V1_SLIDE_1_HOOK: "kontekst_carousel_v1_slide_1_hook.html",
}

REQUEST_SCRIPT_ID = "__RR__"


class TemplateNotFoundError(Exception):
    """Raised when a registered template has no markup on disk."""


def escape_html(value: str) -> str:
    return value.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def inject_request(markup: str, payload: dict) -> str:
    """Insert the request JSON right after the first ``<body>`` tag."""
    request_json = escape_html(json.dumps(payload, ensure_ascii=False, separators=(",", ":")))
    script = f'<script id="{REQUEST_SCRIPT_ID}" type="application/json">{request_json}</script>'
    return markup.replace("<body>", f"<body>\n  {script}", 1)


class TemplateRegistry:
    """Loads template markup once and builds per-request HTML."""

    def __init__(self, template_dir: Optional[Path] = None):
        self.template_dir = Path(template_dir) if template_dir else TEMPLATE_DIR
        self._cache: Dict[TemplateId, str] = {}

    def markup(self, template_id: TemplateId) -> str:
        if template_id not in self._cache:
            path = self.template_dir / TEMPLATE_FILES[template_id]
            try:
                self._cache[template_id] = path.read_text(encoding="utf-8")
            except FileNotFoundError as e:
                raise TemplateNotFoundError(f"Template markup not found: {path}") from e
        return self._cache[template_id]

    def build_html(self, request: RenderRequest) -> str:
        return inject_request(self.markup(request.template_id), request.payload)
