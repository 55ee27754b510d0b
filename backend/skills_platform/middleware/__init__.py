# Middleware package init
"""
Skills Platform Backend — Middleware Package
==============================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [CORS] → [Request ID] → [Logging] → [Rate Limit] → [Body Limit] → [GZip] → Route

    1. CORS outermost: 429 and 413 responses carry CORS headers too, so
       the browser lets the frontend read them
    2. Request ID before Logging: access log lines carry the ID
    3. Logging before Rate Limit: rejected requests are logged
    4. Rate Limit and Body Limit reject before any route work

Responses produced by middleware bypass FastAPI's exception handlers, so
these middlewares build the error envelope themselves.
"""
