"""Request logging middleware.

One access line per request with method, path, status, latency, client IP
and a request ID. The ID is taken from an incoming X-Request-ID header when
it is a short token (so a proxy can correlate its own logs), otherwise a
fresh "req_<12 hex>" is generated. It is stored on request.state for the
ApiResponse envelope and echoed back in the X-Request-ID response header.

Log format:
    INFO  POST /api/v1/market/123/bids 201 23ms ip=203.0.113.9 req_a1b2c3d4e5f6
    ERROR POST /api/v1/market/123/bids raised after 5ms ip=203.0.113.9 req_a1b2c3d4e5f6

5xx responses are logged at WARNING. An exception escaping the app is
logged with its traceback and re-raised for the server error handler.
"""

import logging
import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.am_gateway.middleware.rate_limit import client_ip

logger = logging.getLogger("am.request")

_INCOMING_ID = re.compile(r"^[A-Za-z0-9_.\-]{1,64}$")


def resolve_request_id(incoming: str | None) -> str:
    if incoming and _INCOMING_ID.match(incoming):
        return incoming
    return f"req_{uuid.uuid4().hex[:12]}"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = resolve_request_id(request.headers.get("x-request-id"))
        request.state.request_id = request_id
        ip = client_ip(request)

        start = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            logger.exception(
                "%s %s raised after %.0fms ip=%s %s",
                request.method,
                request.url.path,
                (time.perf_counter() - start) * 1000,
                ip,
                request_id,
            )
            raise
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers["X-Request-ID"] = request_id
        logger.log(
            logging.WARNING if response.status_code >= 500 else logging.INFO,
            "%s %s %d %.0fms ip=%s %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            ip,
            request_id,
        )
        return response
