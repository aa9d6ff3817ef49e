"""Per-client token bucket rate limiting."""

import time
from dataclasses import dataclass
from typing import Callable, Dict

from fastapi import Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ...utils.logging import get_logger
from .error_handler import RATE_LIMIT_MESSAGE, error_response

logger = get_logger(__name__)


@dataclass
class RateLimitConfig:
    """Configuration for rate limiting."""
    requests_per_second: float = 10.0
    burst_size: int = 20
    idle_timeout: float = 180.0
    sweep_interval: float = 60.0


class TokenBucket:
    """Token bucket refilled continuously at ``rate`` tokens per second."""

    def __init__(self, rate: float, burst: int, now: float) -> None:
        self.rate = rate
        self.burst = burst
        self.tokens = float(burst)
        self.last_refill = now

    def take(self, now: float) -> bool:
        """Spend one token if available."""
        elapsed = now - self.last_refill
        self.tokens = min(self.tokens + elapsed * self.rate, self.burst)
        self.last_refill = now
        if self.tokens < 1:
            return False
        self.tokens -= 1
        return True


class ClientRateLimiter:
    """One token bucket per client address; idle clients are forgotten."""

    def __init__(self, config: RateLimitConfig, clock: Callable[[], float] = time.monotonic) -> None:
        self.config = config
        self._clock = clock
        self._buckets: Dict[str, TokenBucket] = {}
        self._last_sweep = clock()

    def __len__(self) -> int:
        return len(self._buckets)

    def allow(self, client: str) -> bool:
        """Return whether ``client`` may make a request now."""
        now = self._clock()
        self._sweep(now)
        bucket = self._buckets.get(client)
        if bucket is None:
            bucket = TokenBucket(self.config.requests_per_second, self.config.burst_size, now)
            self._buckets[client] = bucket
        return bucket.take(now)

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < self.config.sweep_interval:
            return
        self._last_sweep = now
        cutoff = now - self.config.idle_timeout
        for client in [c for c, b in self._buckets.items() if b.last_refill < cutoff]:
            del self._buckets[client]


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests from clients that exhausted their bucket with 429."""

    def __init__(self, app: ASGIApp, limiter: ClientRateLimiter) -> None:
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        client = request.client.host if request.client else "unknown"
        if not self.limiter.allow(client):
            logger.info("rate_limited", client=client, method=request.method, uri=request.url.path)
            return error_response(status.HTTP_429_TOO_MANY_REQUESTS, RATE_LIMIT_MESSAGE)
        return await call_next(request)
