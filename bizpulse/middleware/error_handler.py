"""
Global Error Handler Middleware
Catches all unhandled exceptions and returns structured error responses

Layers:
- sync_error_handler: FastAPI exception handler for SyncError raised by
  dependencies and routes (e.g. auth failures)
- rate_limit_exceeded_handler: slowapi limit hits as RATE_LIMIT_EXCEEDED
- ErrorHandlerMiddleware: last resort, anything else becomes INTERNAL_ERROR
"""
import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from bizpulse.core.errors import InternalSyncError, RateLimitedError, SyncError

logger = logging.getLogger(__name__)


async def sync_error_handler(request: Request, exc: SyncError) -> JSONResponse:
    """Render a SyncError with its own status, payload and headers."""
    logger.warning(f"{request.method} {request.url.path} failed: {exc.code} - {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_payload(),
        headers=exc.headers()
    )


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Render our own slowapi limit hits in the same shape as Google rate limits.

    retryAfter is the length of the limit window (e.g. 3600 for "30/hour").
    """
    error = RateLimitedError(
        retry_after=exc.limit.limit.get_expiry(),
        message="Too many sync requests. Please try again later.",
        details=f"Rate limit exceeded: {exc.detail}"
    )
    return await sync_error_handler(request, error)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handler middleware.
    Catches all unhandled exceptions and returns JSON error responses.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            response = await call_next(request)
            return response
        except Exception as exc:
            # Log the full exception with traceback
            logger.error(
                "Unhandled exception during request",
                exc_info=True,
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "client_host": request.client.host if request.client else None
                }
            )

            error = InternalSyncError(details=type(exc).__name__)
            return JSONResponse(status_code=error.status_code, content=error.to_payload())
