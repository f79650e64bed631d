"""
Rate limiting - sliding window per client IP.

The limiter is created once in main.py from Settings and stored on
app.state; routes opt in with Depends(enforce_rate_limit).
"""

import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional

from fastapi import HTTPException, Request, status


class SlidingWindowRateLimiter:
    """Allow at most `max_requests` per `window_seconds` for each key."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    @property
    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def _prune(self, hits: Deque[float], now: float) -> None:
        while hits and now - hits[0] >= self.window_seconds:
            hits.popleft()

    def _sweep(self, now: float) -> None:
        # Forget clients with no request inside the window
        for key in [k for k, hits in self._hits.items() if now - hits[-1] >= self.window_seconds]:
            del self._hits[key]
        self._last_sweep = now

    def hit(self, key: str) -> bool:
        """Record a request for `key`. Returns False if it is over the limit."""
        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(now)
            hits = self._hits.get(key)
            if hits is not None:
                self._prune(hits, now)
                if len(hits) >= self.max_requests:
                    return False
            else:
                hits = self._hits[key] = deque()
            hits.append(now)
            return True

    def retry_after(self, key: str) -> int:
        """Seconds until `key` may send another request."""
        with self._lock:
            hits = self._hits.get(key)
            if not hits:
                return 0
            remaining = self.window_seconds - (self._clock() - hits[0])
        return max(1, int(remaining + 0.999))

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


def get_client_ip(request: Request, trust_forwarded_for: bool = False) -> str:
    """
    Client address used as the rate limit key.

    Forwarding headers are client controlled, so they are only read when the
    app runs behind a proxy that sets them (Settings.trust_forwarded_for).
    """
    if trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


async def enforce_rate_limit(request: Request) -> None:
    """
    FastAPI dependency - reject the request with 429 when the client is over
    its limit. No limiter on app.state means limiting is disabled.
    """
    limiter: Optional[SlidingWindowRateLimiter] = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        return

    trust_forwarded_for = getattr(request.app.state, "trust_forwarded_for", False)
    client_ip = get_client_ip(request, trust_forwarded_for)
    if not limiter.hit(client_ip):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests",
            headers={"Retry-After": str(limiter.retry_after(client_ip))},
        )
