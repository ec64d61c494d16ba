"""Request logging middleware.

Tags every request with a short request ID and the resolved client IP,
then logs method, path, status code and latency once the response is ready.
Both values live on request.state: the request ID is echoed in ApiResponse,
the client IP keys the per-IP registration rate limit.

Log format:
    INFO [POST] /api/v1/bids → 201 (23ms) req_a1b2c3d4e5f6 ip=203.0.113.7
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("wb.request")


def resolve_client_ip(request: Request) -> str:
    """First hop of X-Forwarded-For when behind a proxy, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client is not None:
        return request.client.host
    return "unknown"


def get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "req_unknown")


def get_client_ip(request: Request) -> str:
    return getattr(request.state, "client_ip", None) or resolve_client_ip(request)


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.request_id = f"req_{uuid.uuid4().hex[:12]}"
        request.state.client_ip = resolve_client_ip(request)

        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        logger.info(
            "[%s] %s → %d (%.0fms) %s ip=%s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request.state.request_id,
            request.state.client_ip,
        )
        return response
