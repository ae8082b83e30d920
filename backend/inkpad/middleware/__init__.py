"""
InkPad Backend — Middleware Package
====================================

Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Access Log] → [GZip] → [CORS] → Route

    - rate_limit.py:  sliding-window limit per caller (user id, else client IP)
    - request_id.py:  correlation id in a ContextVar and the X-Request-ID header
    - logging.py:     one access log line per request with status and duration
"""
