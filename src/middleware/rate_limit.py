"""In-memory per-client rate limiting with a sliding window.

:class:`SlidingWindowLimiter` holds the bookkeeping and is usable on its
own; :class:`RateLimitMiddleware` applies it to every API request except
health checks, metrics and docs.  State is per process.
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from collections.abc import Callable
from typing import Final

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_EXEMPT_PATHS: Final[frozenset[str]] = frozenset({
    "/",
    "/api",
    "/api/v1/health",
    "/api/v1/health/ready",
    "/metrics",
    "/docs",
    "/redoc",
    "/openapi.json",
})


class SlidingWindowLimiter:
    """Allow at most ``limit`` hits per key within ``window_seconds``.

    Keys with no hits inside the window are dropped every
    ``sweep_every`` calls so one-off clients do not accumulate.
    """

    __slots__ = ("_calls", "_clock", "_hits", "_limit", "_sweep_every", "_window")

    def __init__(
        self,
        limit: int,
        window_seconds: float = 60.0,
        *,
        clock: Callable[[], float] = time.monotonic,
        sweep_every: int = 1000,
    ) -> None:
        self._limit = limit
        self._window = window_seconds
        self._clock = clock
        self._sweep_every = sweep_every
        self._hits: dict[str, deque[float]] = {}
        self._calls = 0

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def tracked_keys(self) -> int:
        return len(self._hits)

    def hit(self, key: str) -> tuple[bool, int, int]:
        """Record a hit for *key*.

        Returns ``(allowed, remaining, retry_after_seconds)``.  A refused
        hit is not recorded.
        """
        now = self._clock()
        self._calls += 1
        if self._calls % self._sweep_every == 0:
            self._sweep(now)

        hits = self._hits.setdefault(key, deque())
        cutoff = now - self._window
        while hits and hits[0] <= cutoff:
            hits.popleft()

        if len(hits) >= self._limit:
            retry_after = max(1, int(self._window - (now - hits[0])) + 1)
            return False, 0, retry_after

        hits.append(now)
        return True, self._limit - len(hits), 0

    def _sweep(self, now: float) -> None:
        cutoff = now - self._window
        stale = [key for key, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for key in stale:
            del self._hits[key]
        if stale:
            logger.debug("rate_limit.sweep", removed=len(stale))


def client_address(request: Request, trusted_proxy_count: int) -> str:
    """Best-effort client IP.

    With ``N`` trusted proxies the client is ``X-Forwarded-For[-(N + 1)]``;
    a shorter header falls back to its leftmost entry.  Without the
    header, ``X-Real-IP`` and then the socket peer are used.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        hops = [hop.strip() for hop in forwarded.split(",")]
        if trusted_proxy_count > 0 and trusted_proxy_count + 1 <= len(hops):
            return hops[-(trusted_proxy_count + 1)]
        return hops[0]
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Answer 429 once a client exceeds ``max_requests_per_minute``."""

    def __init__(
        self,
        app: object,
        max_requests_per_minute: int = 60,
        trusted_proxy_count: int = 1,
    ) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self._limiter = SlidingWindowLimiter(max_requests_per_minute)
        self._trusted_proxy_count = trusted_proxy_count
        self._lock = asyncio.Lock()

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in _EXEMPT_PATHS:
            return await call_next(request)

        client = client_address(request, self._trusted_proxy_count)
        async with self._lock:
            allowed, remaining, retry_after = self._limiter.hit(client)

        limit = str(self._limiter.limit)
        if not allowed:
            logger.warning("rate_limit.exceeded", client_ip=client, max_rpm=self._limiter.limit)
            return JSONResponse(
                status_code=429,
                content={
                    "detail": "Rate limit exceeded. Please try again later.",
                    "retry_after_seconds": retry_after,
                },
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": limit,
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = limit
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response
