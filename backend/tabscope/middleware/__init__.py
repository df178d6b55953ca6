"""
TabScope Backend — Middleware Package
=======================================

Middleware Chain:
    Request → [Request ID] → [Access Log] → [GZip] → [CORS] → Route Handler

    The request ID is assigned first so the access log line carries it.
"""
