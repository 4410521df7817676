# app/api/middleware.py
"""HTTP middleware: per-client rate limiting and security headers."""

from __future__ import annotations

import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.status import HTTP_429_TOO_MANY_REQUESTS

from app.api.v1.envelope import error

logger = logging.getLogger("api.middleware")


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window limiter keyed by client address.

    Only paths under ``prefix`` are counted. State lives in the process, so
    each worker enforces its own window.
    """

    def __init__(
        self,
        app: Callable,
        limit: int = 100,
        window: int = 60,
        prefix: str = "/api",
    ) -> None:
        super().__init__(app)
        self.limit = limit
        self.window = window
        self.prefix = prefix
        self._hits: dict[str, list[float]] = {}

    def _client_key(self, request: Request) -> str:
        return request.client.host if request.client else "unknown"

    def _prune(self, now: float) -> None:
        """Drop hits outside the window, and clients left with none."""
        for key in list(self._hits):
            hits = [t for t in self._hits[key] if now - t < self.window]
            if hits:
                self._hits[key] = hits
            else:
                del self._hits[key]

    async def dispatch(self, request: Request, call_next: Callable) -> Response:  # type: ignore[override]
        if not request.url.path.startswith(self.prefix):
            return await call_next(request)

        key = self._client_key(request)
        now = time.time()
        self._prune(now)
        hits = self._hits.get(key, [])
        if len(hits) >= self.limit:
            retry = int(self.window - (now - hits[0])) + 1
            logger.warning("Rate limit exceeded for %s on %s", key, request.url.path)
            return JSONResponse(
                error("Too many requests, please try again later."),
                status_code=HTTP_429_TOO_MANY_REQUESTS,
                headers={"Retry-After": str(retry)},
            )
        hits.append(now)
        self._hits[key] = hits
        return await call_next(request)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach the standard hardening headers to every response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:  # type: ignore[override]
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
        response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        response.headers.setdefault("Cross-Origin-Resource-Policy", "same-origin")
        return response
