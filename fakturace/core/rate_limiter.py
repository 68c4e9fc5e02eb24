"""In-memory sliding-window rate limiters for the public auth endpoints."""

import time
from collections import defaultdict
from threading import Lock

from fastapi import Request

from fakturace.core.config import settings
from fakturace.core.errors import RateLimitError


class RateLimiter:
    """Sliding-window rate limiter keyed by an arbitrary string (usually a client IP).

    Keeps the timestamps of accepted calls per key and rejects a call once
    ``max_requests`` of them fall inside the trailing window.
    """

    def __init__(self, max_requests: int, window_seconds: int = 60):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._hits: dict[str, list[float]] = defaultdict(list)
        self._lock = Lock()

    def is_allowed(self, key: str) -> bool:
        """Record a hit for ``key`` and return False if it is over the limit."""
        now = time.monotonic()
        cutoff = now - self.window_seconds

        with self._lock:
            hits = [t for t in self._hits[key] if t > cutoff]
            if len(hits) >= self.max_requests:
                self._hits[key] = hits
                return False
            hits.append(now)
            self._hits[key] = hits
            return True

    def check(self, key: str) -> None:
        """Like :meth:`is_allowed` but raises ``RateLimitError`` when over the limit."""
        if not self.is_allowed(key):
            raise RateLimitError()

    def reset(self) -> None:
        """Forget every key (used by tests)."""
        with self._lock:
            self._hits.clear()


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


register_limiter = RateLimiter(settings.RATE_LIMIT_REGISTER_PER_HOUR, window_seconds=3600)
login_limiter = RateLimiter(settings.RATE_LIMIT_LOGIN_PER_MINUTE, window_seconds=60)
password_reset_limiter = RateLimiter(
    settings.RATE_LIMIT_PASSWORD_RESET_PER_HOUR, window_seconds=3600
)
