"""API middleware: request logging and per-client rate limiting."""

import logging
import time
import uuid
from collections import defaultdict, deque
from typing import Callable, Iterable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

_STALE_CLIENT_THRESHOLD = 300  # seconds


def _client_host(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request with its outcome, latency and a request id.

    The id is taken from ``X-Request-ID`` when the caller sends one and is
    echoed back on the response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:16]
        request.state.request_id = request_id
        start_time = time.monotonic()
        context = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "client": _client_host(request),
        }

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "%s %s failed after %.3fs: %s",
                request.method,
                request.url.path,
                time.monotonic() - start_time,
                e,
                extra=context,
            )
            raise

        elapsed = time.monotonic() - start_time
        level = logging.ERROR if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "%s %s -> %d in %.3fs",
            request.method,
            request.url.path,
            response.status_code,
            elapsed,
            extra={**context, "status_code": response.status_code, "process_time_s": round(elapsed, 3)},
        )

        response.headers["X-Process-Time"] = f"{elapsed:.3f}"
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window request limit per client address.

    Paths in ``exempt_paths`` (health probes) are never counted. Idle
    clients are evicted periodically so the table stays bounded.
    """

    def __init__(
        self,
        app,
        requests_per_period: int = 100,
        period: int = 60,
        exempt_paths: Iterable[str] = (),
    ) -> None:
        super().__init__(app)
        self.requests_per_period = requests_per_period
        self.period = period
        self.exempt_paths = frozenset(exempt_paths)
        self._hits: dict[str, deque[float]] = defaultdict(deque)
        self._last_cleanup = time.monotonic()

    def _evict_idle_clients(self, now: float) -> None:
        if now - self._last_cleanup < _STALE_CLIENT_THRESHOLD:
            return
        cutoff = now - max(_STALE_CLIENT_THRESHOLD, self.period)
        for client_id in [c for c, hits in self._hits.items() if not hits or hits[-1] < cutoff]:
            del self._hits[client_id]
        self._last_cleanup = now

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.exempt_paths:
            return await call_next(request)

        client_id = _client_host(request)
        now = time.monotonic()

        self._evict_idle_clients(now)
        hits = self._hits[client_id]
        while hits and hits[0] <= now - self.period:
            hits.popleft()

        if len(hits) >= self.requests_per_period:
            retry_after = max(1, int(self.period - (now - hits[0])) + 1)
            logger.warning(
                "Rate limit exceeded for %s on %s",
                client_id,
                request.url.path,
                extra={"client": client_id, "path": request.url.path},
            )
            return JSONResponse(
                status_code=429,
                content={"error": "RATE_LIMITED", "message": "Too many requests, please try again later."},
                headers={"Retry-After": str(retry_after)},
            )

        hits.append(now)
        return await call_next(request)
