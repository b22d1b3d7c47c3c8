"""
FastAPI REST Endpoints
======================

HTTP access to the renderer.

Endpoints:
- GET /health: Liveness check, independent of browser state
- POST /render: Render a JSON request to a PNG image
"""
