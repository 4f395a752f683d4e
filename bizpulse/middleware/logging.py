"""
Request Logging Middleware
Logs all HTTP requests and responses with timing information
"""
import logging
import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Request logging middleware.
    Logs every HTTP request with method, path, status code, and duration.
    Server errors are logged at WARNING so they stand out next to sync logs.
    """

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        user_id = getattr(request.state, "user_id", None)
        level = logging.WARNING if response.status_code >= 500 else logging.INFO

        logger.log(
            level,
            f"{request.method} {request.url.path} - {response.status_code} ({duration_ms:.2f}ms)",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "user_id": user_id[:8] if user_id else None,
                "client_host": request.client.host if request.client else None
            }
        )

        return response
