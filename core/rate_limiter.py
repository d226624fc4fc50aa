"""
Simple rate limiter middleware (in-memory, sliding window).

- Only /api/ paths are limited; health checks are never throttled.
- Idle client buckets are swept once per window so the map does not grow without bound.
- Not suitable for multi-instance deployments (each process keeps its own buckets).
- Usage: app.add_middleware(RateLimiterMiddleware, calls=120, per_seconds=60)
"""
import time
import asyncio
from typing import Optional
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi import Request
from fastapi.responses import JSONResponse

from core.response import error

class RateLimiterMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, calls: int = 60, per_seconds: int = 60, prefix: str = "/api/"):
        super().__init__(app)
        self.calls = calls
        self.per_seconds = per_seconds
        self.prefix = prefix
        self._buckets = {}  # ip -> [timestamps]
        self._last_sweep = 0.0
        self._lock = asyncio.Lock()

    def _sweep(self, window_start: float):
        stale = [key for key, ts in self._buckets.items() if not ts or ts[-1] <= window_start]
        for key in stale:
            del self._buckets[key]

    def _hit(self, key: str, now: float) -> Optional[int]:
        """Record a request; returns seconds to wait when `key` is over the limit, else None."""
        window_start = now - self.per_seconds
        if now - self._last_sweep >= self.per_seconds:
            self._sweep(window_start)
            self._last_sweep = now

        timestamps = [ts for ts in self._buckets.get(key, []) if ts > window_start]
        if len(timestamps) >= self.calls:
            self._buckets[key] = timestamps
            return max(1, int(timestamps[0] + self.per_seconds - now))
        timestamps.append(now)
        self._buckets[key] = timestamps
        return None

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(self.prefix):
            return await call_next(request)

        key = request.client.host if request.client else "anon"
        async with self._lock:
            retry_after = self._hit(key, time.time())
        if retry_after is not None:
            return JSONResponse(
                status_code=429,
                content=error(f"Rate limit exceeded. Retry after {retry_after} seconds"),
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)
