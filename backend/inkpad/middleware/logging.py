"""
InkPad Backend — Access Log Middleware
=======================================

What:  One log line per request: method, path, status, duration, caller.
How:   Logged on the "inkpad.access" logger at a level chosen by status code
       (5xx ERROR, 4xx WARNING, otherwise INFO). The structured fields are
       also attached as `extra` for log shippers.

Request bodies are never logged: they carry note content and drawings.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from inkpad.config import settings
from inkpad.middleware.request_id import request_id_var

logger = logging.getLogger("inkpad.access")

QUIET_PATHS = frozenset({"/health"})


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        rid = request_id_var.get("")
        caller = request.headers.get(settings.user_id_header) or "-"
        client_ip = request.client.host if request.client else "unknown"

        logger.log(
            _level_for(response.status_code),
            "%s %s %d %.1fms [%s] user=%s from %s",
            request.method,
            path,
            response.status_code,
            duration_ms,
            rid,
            caller,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "user_id": caller,
            },
        )
        return response
