"""
API rate limiting - fixed window per client IP.

Defaults: 100 requests per 15 minutes across the versioned API.
"""

import time
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware

from src.config import get_settings
from src.logging_config import get_logger

logger = get_logger(__name__)


def _get_client_ip(request: Request) -> str:
    """Get client IP from request (X-Forwarded-For or direct)."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class FixedWindowCounter:
    """In-memory fixed-window counter. Key -> (count, window_start)."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._windows: Dict[str, Tuple[int, float]] = {}
        self._clock = clock

    def hit(self, key: str, limit: int, window_seconds: int) -> bool:
        """Count one request. False once the key is over its limit for this window."""
        now = self._clock()
        count, start = self._windows.get(key, (0, now))
        if now - start >= window_seconds:
            count, start = 0, now
        if count >= limit:
            return False
        self._windows[key] = (count + 1, start)
        return True

    def cleanup_old(self, max_age_seconds: int) -> None:
        """Drop windows older than max_age_seconds to avoid unbounded growth."""
        now = self._clock()
        stale = [k for k, (_, start) in self._windows.items() if now - start > max_age_seconds]
        for key in stale:
            self._windows.pop(key, None)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rejects requests over the per-IP budget with 429."""

    def __init__(self, app, counter: Optional[FixedWindowCounter] = None):
        super().__init__(app)
        self.counter = counter or FixedWindowCounter()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        settings = get_settings()
        if not settings.rate_limit_enabled:
            return await call_next(request)

        path = request.url.path or ""
        if not path.startswith(settings.api_v1_prefix):
            return await call_next(request)

        window = settings.rate_limit_window_seconds
        self.counter.cleanup_old(max_age_seconds=window * 2)

        client_ip = _get_client_ip(request)
        if not self.counter.hit(f"api:{client_ip}", settings.rate_limit_requests, window):
            logger.warning("Rate limit exceeded", extra={"client_ip": client_ip, "path": path})
            return Response(
                content='{"detail":"Too many requests. Please try again later."}',
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                media_type="application/json",
            )
        return await call_next(request)
