"""
Security Headers Middleware
Adds security headers to all API responses

HEADERS ADDED:
- Strict-Transport-Security (production only)
- Content-Security-Policy
- X-Content-Type-Options / X-Frame-Options / Referrer-Policy
- Cache-Control: no-store (responses carry per-user business data)
"""
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from bizpulse.core.config import settings

logger = logging.getLogger(__name__)

STATIC_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to every response. JSON API only: no scripts, no framing."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        if settings.environment == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        for name, value in STATIC_HEADERS.items():
            response.headers[name] = value

        # Dashboard data and sync results are per-user
        if request.url.path != "/health":
            response.headers["Cache-Control"] = "no-store"

        if "server" in response.headers:
            del response.headers["server"]

        return response
