"""Request logging middleware.

Logs one line per API request with:
- Request ID (also returned as ``X-Request-ID``)
- Method, path and response status
- Duration
- Client IP address

Bodies are never logged; approval tokens travel in them.
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("procurement.access")

# Paths that should not be logged
EXCLUDED_PATHS = {
    "/health",
    "/health/ready",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/favicon.ico",
}


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxies."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    if request.client:
        return request.client.host

    return "unknown"


def level_for_status(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Tags each request with an ID and logs its outcome."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
        request.state.request_id = request_id

        if request.url.path in EXCLUDED_PATHS:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = int((time.perf_counter() - start_time) * 1000)

        response.headers["X-Request-ID"] = request_id
        logger.log(
            level_for_status(response.status_code),
            "%s %s -> %d (%dms) ip=%s rid=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            get_client_ip(request),
            request_id,
        )
        return response
