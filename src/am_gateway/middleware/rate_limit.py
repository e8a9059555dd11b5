"""Redis fixed-window rate limiting.

Rules (per client IP, per minute, configurable in settings):
  - auth:    /api/v1/auth/*            RATE_LIMIT_AUTH_PER_MIN    (anti brute-force)
  - bid:     POST /api/v1/market/*/bids RATE_LIMIT_BID_PER_MIN    (anti spam)
  - default: everything else           RATE_LIMIT_DEFAULT_PER_MIN

Key pattern: "ratelimit:{client_ip}:{group}:{window_start}".
The client IP comes from the first X-Forwarded-For entry when present.
Over the limit -> 429 with the RateLimitError envelope and Retry-After.
If Redis is unreachable the request is let through and a warning is logged.
"""

import logging
import time

from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from config.settings import settings
from src.am_common.errors import RateLimitError
from src.am_common.redis_client import get_redis, incr_window
from src.am_common.response import error_response

logger = logging.getLogger(__name__)

_WINDOW_SECONDS = 60
_EXEMPT_PATHS = frozenset({"/health", "/docs", "/openapi.json"})


def classify(method: str, path: str) -> str:
    """Map a request to its rate-limit group."""
    if path.startswith("/api/v1/auth/"):
        return "auth"
    if method == "POST" and path.startswith("/api/v1/market/") and path.endswith("/bids"):
        return "bid"
    return "default"


def limit_for(group: str) -> int:
    if group == "auth":
        return settings.RATE_LIMIT_AUTH_PER_MIN
    if group == "bid":
        return settings.RATE_LIMIT_BID_PER_MIN
    return settings.RATE_LIMIT_DEFAULT_PER_MIN


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not settings.RATE_LIMIT_ENABLED or request.url.path in _EXEMPT_PATHS:
            return await call_next(request)

        group = classify(request.method, request.url.path)
        now = int(time.time())
        window_start = now - now % _WINDOW_SECONDS
        key = f"ratelimit:{client_ip(request)}:{group}:{window_start}"

        try:
            redis = await get_redis()
            count = await incr_window(redis, key, _WINDOW_SECONDS)
        except RedisError:
            logger.warning("Rate limiter unavailable, allowing %s %s", request.method, request.url.path)
            return await call_next(request)

        if count > limit_for(group):
            exc = RateLimitError()
            resp = error_response(exc.code, exc.message)
            resp.request_id = getattr(request.state, "request_id", resp.request_id)
            return JSONResponse(
                status_code=exc.http_status,
                content=resp.model_dump(),
                headers={"Retry-After": str(window_start + _WINDOW_SECONDS - now)},
            )
        return await call_next(request)
