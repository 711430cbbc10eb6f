# Middleware package init
"""
Songbook Backend: Middleware Package
====================================

Middleware Chain:
    Request → [Request ID] → [Access Log] → [CORS] → Route Handler

    Request ID runs first so the access log line and every handler log line
    can carry the same correlation id.
"""
