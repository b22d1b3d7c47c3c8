"""
Slide Renderer
==============

HTTP microservice that turns a JSON render request into a PNG image by
loading an HTML template into headless Chromium and screenshotting its
``#canvas`` element.

This package provides:
- FastAPI endpoints for health checks and rendering
- Request normalization for the payload shapes integrations send
- A shared, lazily launched Playwright browser
- The template render protocol and browser diagnostics
"""

__version__ = "1.0.0"
__author__ = "Slide Renderer Team"
