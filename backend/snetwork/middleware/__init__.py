# Middleware package init
"""
S-Network Backend — Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Rate Limit first: rejects abusive clients before any other work
    2. Request ID: correlation id for logs and error bodies
    3. Logging: method, path, status and duration with that id
    4. GZip / CORS: provided by FastAPI

    Responses travel the chain in reverse, so the request id header is set
    on every response, including 429s produced further out.
"""
