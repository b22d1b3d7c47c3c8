"""
Request Handling
================

Normalization of the JSON payload shapes accepted by ``POST /render``.
"""
