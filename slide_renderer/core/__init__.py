"""
Core Business Logic
==================

Request normalization, admission control and the browser render protocol.

Modules:
- request: Normalization of inbound payload shapes
- rendering: Browser session, templates, diagnostics and the render protocol
- concurrency: Admission control for simultaneous renders
- exceptions: Error taxonomy shared by the core and the API layer
"""
