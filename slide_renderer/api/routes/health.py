"""
Health Routes
=============

Liveness endpoint. Deliberately independent of the browser so a wedged
or not-yet-launched Chromium does not take the process out of rotation.
"""

from fastapi import APIRouter

from slide_renderer.models.schemas import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check endpoint."""
    return HealthResponse(ok=True)
