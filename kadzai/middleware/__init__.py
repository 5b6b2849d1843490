# Middleware package init
"""
Kadzai Backend — Middleware Package
====================================

Middleware Chain (request direction):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    1. Rate Limit first: abusive clients are rejected before any work
    2. Request ID: correlation ID stored in a ContextVar and echoed back
    3. Logging: one access line per request, tagged with the request ID
"""
