"""
Sliding-window rate limiting for the /api/auth routes.

State is per process; every worker keeps its own windows.
"""
from __future__ import annotations

import math
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict

from fastapi import Request

from cryptovault.core.config import settings
from cryptovault.core.errors import RateLimitError


class SlidingWindowRateLimiter:
    """Allows at most ``limit`` hits per key within any ``window`` seconds."""

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def hit(self, key: str) -> int:
        """
        Record a request for ``key``.

        Returns:
            0 when the request is allowed, otherwise the number of seconds
            until the oldest hit leaves the window.
        """
        now = self._clock()
        cutoff = now - self.window_seconds
        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(cutoff)
                self._last_sweep = now

            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= cutoff:
                hits.popleft()

            if len(hits) >= self.limit:
                return max(1, math.ceil(hits[0] + self.window_seconds - now))

            hits.append(now)
            return 0

    def _sweep(self, cutoff: float) -> None:
        # keys whose newest hit left the window hold no state worth keeping
        stale = [k for k, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for key in stale:
            del self._hits[key]

    def __len__(self) -> int:
        return len(self._hits)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


auth_rate_limiter = SlidingWindowRateLimiter(
    limit=settings.auth_rate_limit,
    window_seconds=settings.auth_rate_window_seconds,
)


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


def limit_auth_requests(request: Request) -> None:
    retry_after = auth_rate_limiter.hit(f"auth:{client_ip(request)}")
    if retry_after:
        raise RateLimitError("Too many requests. Please try again later.", retry_after)
