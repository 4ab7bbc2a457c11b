"""Redis-backed fixed-window rate limiting middleware."""

import time
from typing import Any

import structlog
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from mindful.redis_client import get_redis_optional

logger = structlog.get_logger()

_EXEMPT_PATHS = frozenset({"/health", "/ready"})


def rate_limit_key(client: str, window_seconds: int, now: float | None = None) -> str:
    window = int(time.time() if now is None else now) // window_seconds
    return f"ratelimit:{client}:{window}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Counts requests per client IP per window; 429 once the window is spent.

    Playback event batches arrive every few seconds per open player, so the
    limit is per window rather than per second.
    """

    def __init__(self, app: Any, requests_per_window: int = 100, window_seconds: int = 60) -> None:  # noqa: ANN401
        super().__init__(app)
        self.requests_per_window = requests_per_window
        self.window_seconds = window_seconds

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        redis = get_redis_optional()
        if redis is None or request.url.path in _EXEMPT_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        key = rate_limit_key(client_ip, self.window_seconds)

        try:
            pipe = redis.pipeline()
            pipe.incr(key)
            pipe.expire(key, self.window_seconds + 1)
            results: list[Any] = await pipe.execute()
        except RedisError:
            logger.warning("rate_limit_unavailable", path=request.url.path, exc_info=True)
            return await call_next(request)

        current_count: int = results[0]
        limit_headers = {"X-RateLimit-Limit": str(self.requests_per_window)}

        if current_count > self.requests_per_window:
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded. Try again later."},
                headers={
                    **limit_headers,
                    "Retry-After": str(self.window_seconds),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        response.headers.update(limit_headers)
        response.headers["X-RateLimit-Remaining"] = str(max(0, self.requests_per_window - current_count))
        return response
