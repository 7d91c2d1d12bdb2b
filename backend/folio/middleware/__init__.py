"""
Folio Backend — Middleware Package
====================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (execution order):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID first, so every later log line can carry it
    2. Logging sees the final status code and total duration
    3. GZip / CORS are FastAPI's stock middleware
"""
