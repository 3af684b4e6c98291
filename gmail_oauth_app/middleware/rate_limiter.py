"""Rate limiting middleware using token bucket algorithm."""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from gmail_oauth_app.config import get_rate_limit
from gmail_oauth_app.utils.errors import RateLimitError

logger = logging.getLogger(__name__)


@dataclass
class Bucket:
    """Token bucket for rate limiting."""

    tokens: float
    last_update: float
    max_tokens: float
    refill_rate: float  # tokens per second


class RateLimiter:
    """Per-client rate limiter using token bucket algorithm.

    Each client has their own bucket that refills at a constant rate.
    Requests consume tokens; when empty, requests are rejected.
    """

    def __init__(
        self,
        max_requests: int | None = None,
        window_seconds: int | None = None,
    ):
        """Initialize rate limiter.

        Args:
            max_requests: Maximum requests per window.
                Defaults to RATE_LIMIT_MAX env var or 300.
            window_seconds: Time window in seconds.
                Defaults to RATE_LIMIT_WINDOW_SECONDS env var or 900.
        """
        default_max, default_window = get_rate_limit()
        self._max_requests = max_requests or default_max
        self._window_seconds = window_seconds or default_window
        self._refill_rate = self._max_requests / self._window_seconds
        self._buckets: dict[str, Bucket] = {}
        self._lock = threading.Lock()

        logger.info(
            "RateLimiter initialized: %d requests per %d seconds",
            self._max_requests,
            self._window_seconds,
        )

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    def _get_bucket(self, client_id: str) -> Bucket:
        """Get or create bucket for client."""
        if client_id not in self._buckets:
            self._buckets[client_id] = Bucket(
                tokens=float(self._max_requests),
                last_update=time.monotonic(),
                max_tokens=float(self._max_requests),
                refill_rate=self._refill_rate,
            )
        return self._buckets[client_id]

    def _refill(self, bucket: Bucket) -> None:
        """Refill bucket based on elapsed time."""
        now = time.monotonic()
        elapsed = now - bucket.last_update
        bucket.tokens = min(
            bucket.max_tokens,
            bucket.tokens + elapsed * bucket.refill_rate,
        )
        bucket.last_update = now

    def consume(self, client_id: str, tokens: int = 1) -> None:
        """Consume tokens for a request.

        Args:
            client_id: Client identifier (remote address).
            tokens: Number of tokens to consume.

        Raises:
            RateLimitError: If not enough tokens available.
        """
        with self._lock:
            bucket = self._get_bucket(client_id)
            self._refill(bucket)

            if bucket.tokens < tokens:
                wait_time = (tokens - bucket.tokens) / bucket.refill_rate
                logger.warning(
                    "Rate limit exceeded for %s. Retry after %.1f seconds",
                    client_id,
                    wait_time,
                )
                raise RateLimitError(
                    f"Rate limit exceeded. Retry after {wait_time:.1f} seconds.",
                    retry_after_seconds=math.ceil(wait_time),
                    details={"remaining": int(bucket.tokens)},
                )

            bucket.tokens -= tokens

    def remaining(self, client_id: str) -> int:
        """Get remaining tokens for client (rounded down)."""
        with self._lock:
            bucket = self._get_bucket(client_id)
            self._refill(bucket)
            return int(bucket.tokens)

    def cleanup_stale(self, max_age_seconds: float | None = None) -> int:
        """Drop buckets of clients that have been idle.

        An idle bucket has refilled completely after one window, so dropping
        it does not change what the client may do next.

        Args:
            max_age_seconds: Idle time after which a bucket is dropped.
                Defaults to the window length.

        Returns:
            Number of buckets removed.
        """
        if max_age_seconds is None:
            max_age_seconds = self._window_seconds
        now = time.monotonic()

        with self._lock:
            stale_clients = [
                client_id
                for client_id, bucket in self._buckets.items()
                if now - bucket.last_update > max_age_seconds
            ]
            for client_id in stale_clients:
                del self._buckets[client_id]

        if stale_clients:
            logger.debug("Cleaned up %d stale rate limit buckets", len(stale_clients))
        return len(stale_clients)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Applies a ``RateLimiter`` to every request, keyed by client address.

    Adds ``RateLimit-Limit`` / ``RateLimit-Remaining`` headers to every
    response and answers 429 with ``Retry-After`` once the budget is spent.
    """

    def __init__(self, app: ASGIApp, limiter: RateLimiter) -> None:
        super().__init__(app)
        self._limiter = limiter

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        client_id = request.client.host if request.client else "unknown"
        limit_headers = {"RateLimit-Limit": str(self._limiter.max_requests)}

        try:
            self._limiter.consume(client_id)
        except RateLimitError as e:
            return JSONResponse(
                {"error": "Too many requests, please try again later."},
                status_code=429,
                headers={
                    **limit_headers,
                    "RateLimit-Remaining": "0",
                    "Retry-After": str(e.retry_after_seconds or 1),
                },
            )

        response = await call_next(request)
        response.headers.update(limit_headers)
        response.headers["RateLimit-Remaining"] = str(
            self._limiter.remaining(client_id)
        )
        return response
