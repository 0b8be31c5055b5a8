"""
DevCamper API: Rate Limiting Middleware
========================================

What:  Per-IP sliding window limit (default 100 requests per 10 minutes).
How:   Each IP keeps a deque of request timestamps; timestamps older than the
       window are dropped on every request. A full window is answered with
       429, a Retry-After header and the usual error envelope.

State is in-process memory: limits are per worker, and reset on restart.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from devcamper.config import settings
from devcamper.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    EXCLUDED_PATHS = frozenset({"/health", "/docs", "/openapi.json", "/redoc"})
    # Idle IPs are pruned every this many requests
    SWEEP_EVERY = 1000

    def __init__(
        self,
        app,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
    ):
        super().__init__(app)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._seen = 0

    def _retry_after(self, hits: Deque[float], now: float) -> Optional[int]:
        """Seconds until the client may retry, or None if the request is allowed."""
        window_start = now - self.window_seconds
        while hits and hits[0] <= window_start:
            hits.popleft()
        if len(hits) >= self.max_requests:
            return int(hits[0] + self.window_seconds - now) + 1
        hits.append(now)
        return None

    def _sweep(self, now: float) -> None:
        window_start = now - self.window_seconds
        idle = [ip for ip, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for ip in idle:
            del self._hits[ip]
        if idle:
            logger.debug("Pruned %d idle rate limit entries", len(idle))

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        retry_after = self._retry_after(self._hits[client_ip], now)

        self._seen += 1
        if self._seen % self.SWEEP_EVERY == 0:
            self._sweep(now)

        if retry_after is not None:
            error = RateLimitExceededError(retry_after=retry_after)
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds",
                client_ip,
                self.max_requests,
                self.window_seconds,
            )
            return JSONResponse(
                status_code=error.status_code,
                content={"success": False, "error": error.message},
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)
