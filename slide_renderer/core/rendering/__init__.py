"""
Rendering Engine
================

Browser-based rendering of templates to PNG.

Components:
- browser_session: Shared Playwright browser and per-request contexts
- templates: Template registry and request injection
- diagnostics: Bounded browser log collection
- renderer: The load, signal and capture protocol
"""
