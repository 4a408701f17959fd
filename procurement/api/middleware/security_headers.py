"""Security headers middleware for the JSON API.

Adds to all responses:
- X-Content-Type-Options: nosniff
- X-Frame-Options: DENY
- Referrer-Policy: no-referrer
- Content-Security-Policy suited to a JSON-only API
- Strict-Transport-Security outside debug mode

Approval responses may carry a live token, so they are never cached.
"""

from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from procurement.core.config import get_settings

NO_STORE_PREFIXES = ("/api/approvals",)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        settings = get_settings()

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        # Decision links carry the token in the URL of the page that posts it
        response.headers["Referrer-Policy"] = "no-referrer"

        if request.url.path.startswith(NO_STORE_PREFIXES):
            response.headers["Cache-Control"] = "no-store"

        if settings.debug:
            # Swagger UI loads its assets from a CDN
            response.headers["Content-Security-Policy"] = "default-src 'self' 'unsafe-inline' https: data:"
        else:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
            response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        return response
