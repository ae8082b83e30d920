"""
InkPad Backend — Rate Limiting Middleware
==========================================

What:  Sliding-window request limit per caller.
How:   Callers are keyed by the gateway user id header, falling back to the
       client IP. Each key keeps a deque of request timestamps; entries older
       than the window are dropped on every request, and a request arriving
       with `rate_limit_requests` entries still inside the window gets a 429
       with Retry-After.

The limiter runs before get_current_user, so the header is unverified here.
Keying on it requires a gateway that overwrites it on outside traffic. With
`rate_limit_by_user` off every caller is keyed by client IP, and rotating the
header gains nothing.

The state is in-process. Multi-worker deployments need a shared store.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from inkpad.config import settings
from inkpad.exceptions import RateLimitExceededError
from inkpad.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

# Prune idle callers once this many keys are tracked
_PRUNE_THRESHOLD = 10_000


class RateLimitMiddleware(BaseHTTPMiddleware):
    EXCLUDED_PATHS = frozenset({"/health", "/docs", "/openapi.json", "/redoc"})

    def __init__(
        self,
        app: ASGIApp,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
        by_user: Optional[bool] = None,
    ):
        super().__init__(app)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._clock = clock
        self.by_user = settings.rate_limit_by_user if by_user is None else by_user
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)

    def _caller_key(self, request: Request) -> str:
        user_id = request.headers.get(settings.user_id_header, "").strip() if self.by_user else ""
        if user_id:
            return f"user:{user_id}"
        return f"ip:{request.client.host if request.client else 'unknown'}"

    def check(self, key: str) -> None:
        """
        Record a hit for `key`.

        Raises:
            RateLimitExceededError: the key already used its window allowance
        """
        now = self._clock()
        hits = self._hits[key]
        while hits and hits[0] <= now - self.window_seconds:
            hits.popleft()

        if len(hits) >= self.max_requests:
            retry_after = int(hits[0] + self.window_seconds - now) + 1
            raise RateLimitExceededError(retry_after=retry_after)

        hits.append(now)
        if len(self._hits) > _PRUNE_THRESHOLD:
            self._prune(now)

    def _prune(self, now: float) -> None:
        idle = [k for k, hits in self._hits.items() if not hits or hits[-1] <= now - self.window_seconds]
        for key in idle:
            del self._hits[key]
        logger.debug("Pruned %d idle rate-limit keys", len(idle))

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        key = self._caller_key(request)
        try:
            self.check(key)
        except RateLimitExceededError as exc:
            logger.warning(
                "Rate limit exceeded for %s: %d requests in %ds",
                key,
                self.max_requests,
                self.window_seconds,
            )
            # Raised exceptions would bypass the app's handlers from middleware
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "details": exc.context,
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(exc.retry_after)},
            )

        return await call_next(request)
