"""
Pydantic Models and Schemas
===========================

Render request/result types, the template registry enum and the JSON
bodies returned by the API.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TemplateId(str, Enum):
    """Templates the renderer knows how to draw."""

    KONTEKST_CAROUSEL_V1_SLIDE_1_HOOK = "KONTEKST_CAROUSEL_V1_SLIDE_1_HOOK"

    @classmethod
    def supported(cls) -> List[str]:
        return [member.value for member in cls]


class RenderRequest(BaseModel):
    """A normalized render request, ready to be injected into a template."""

    model_config = ConfigDict(frozen=True)

    template_id: TemplateId = Field(..., description="Template to render")
    payload: Dict[str, Any] = Field(..., description="Request object passed to the template")
    source: str = Field(default="body", description="Where in the body the payload was found")


class RenderResult(BaseModel):
    """PNG output of a successful render."""

    png: bytes = Field(..., description="Raw PNG bytes")
    width: Optional[int] = Field(None, description="Image width in device pixels")
    height: Optional[int] = Field(None, description="Image height in device pixels")
    duration_ms: float = Field(..., description="Wall-clock render time")


# API responses


class HealthResponse(BaseModel):
    ok: bool = True


class ErrorResponse(BaseModel):
    """Generic error body."""

    error: str
    message: Optional[str] = None


class MissingTemplateIdResponse(BaseModel):
    error: str = "Missing template_id"
    debug: Dict[str, Any] = Field(default_factory=dict)


class UnsupportedTemplateResponse(BaseModel):
    error: str = "Unsupported template_id"
    got: Any = None
    supported: List[str] = Field(default_factory=list)


class BusyResponse(BaseModel):
    error: str = "Busy"
    message: str


class RenderFailedResponse(BaseModel):
    """Body returned when the render protocol fails."""

    model_config = ConfigDict(populate_by_name=True)

    error: str = "Render failed"
    message: str
    browser_logs: List[str] = Field(default_factory=list, alias="browserLogs")
    debug: Dict[str, Any] = Field(default_factory=dict)
