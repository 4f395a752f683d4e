"""
BizPulse - Google Business Profile Dashboard Backend
====================================================
Version: 1.0.0

FastAPI application entry point.

Architecture:
- bizpulse/core/: Configuration, dependencies, security, errors, retry
- bizpulse/middleware/: Error handling, logging, CORS, rate limiting
- bizpulse/models/: Pydantic schemas
- bizpulse/services/: Business logic (token store, sync, dashboard aggregation)
- bizpulse/api/v1/routes/: API endpoints
"""
import sys
import logging
import traceback
from contextlib import asynccontextmanager
from fastapi import FastAPI

# Startup error handling
try:
    # Import core components
    from bizpulse.core.config import settings
    from bizpulse.core.dependencies import initialize_clients, shutdown_clients
    from bizpulse.core.errors import SyncError

    # Import middleware
    from bizpulse.middleware.error_handler import ErrorHandlerMiddleware, sync_error_handler
    from bizpulse.middleware.logging import RequestLoggingMiddleware
    from bizpulse.middleware.cors import get_cors_middleware
    from bizpulse.middleware.security_headers import SecurityHeadersMiddleware

    # Import routes
    from bizpulse.api.v1.routes.health import router as health_router
    from bizpulse.api.v1.routes.auth import router as auth_router
    from bizpulse.api.v1.routes.accounts import router as accounts_router
    from bizpulse.api.v1.routes.sync import router as sync_router
    from bizpulse.api.v1.routes.dashboard import router as dashboard_router

except Exception as e:
    print(f"🚨 FATAL STARTUP ERROR: {e}", file=sys.stderr)
    print(f"Traceback:\n{traceback.format_exc()}", file=sys.stderr)
    sys.exit(1)

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.environment == "production" else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# ============================================================================
# SENTRY ERROR TRACKING
# ============================================================================

if settings.sentry_dsn:
    try:
        import sentry_sdk
        from sentry_sdk.integrations.fastapi import FastApiIntegration
        from sentry_sdk.integrations.logging import LoggingIntegration

        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            traces_sample_rate=0.1,  # 10% of requests for performance monitoring
            send_default_pii=False,  # Bearer tokens live in headers
            integrations=[
                FastApiIntegration(),
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)
            ]
        )
        logger.info("✅ Sentry error tracking initialized")
    except Exception as e:
        logger.warning(f"⚠️  Failed to initialize Sentry: {e}")
else:
    logger.info("ℹ️  Sentry not configured (SENTRY_DSN not set)")

# ============================================================================
# LIFECYCLE MANAGEMENT
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown."""
    # Startup
    logger.info("=" * 80)
    logger.info("Starting BizPulse API")
    logger.info("=" * 80)
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Port: {settings.port}")
    logger.info(f"Debug: {settings.debug}")

    await initialize_clients()

    logger.info("✅ BizPulse started successfully")

    yield

    # Shutdown
    logger.info("Shutting down BizPulse...")
    await shutdown_clients()
    logger.info("✅ Shutdown complete")


# ============================================================================
# APP INITIALIZATION
# ============================================================================

app = FastAPI(
    title="BizPulse API",
    description="Google Business Profile sync and dashboard metrics",
    version="1.0.0",
    docs_url="/docs" if settings.debug else None,  # Disable docs in production
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan
)

# Structured errors raised by dependencies/routes (auth failures, etc.)
app.add_exception_handler(SyncError, sync_error_handler)

# ============================================================================
# RATE LIMITING
# ============================================================================

from slowapi.errors import RateLimitExceeded
from bizpulse.middleware.error_handler import rate_limit_exceeded_handler
from bizpulse.middleware.rate_limit import limiter

app.state.limiter = limiter
# Same RATE_LIMIT_EXCEEDED payload + Retry-After as Google rate limits
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
logger.info("✅ Rate limiting enabled")

# ============================================================================
# MIDDLEWARE (order matters!)
# ============================================================================

# Security headers (must be first to apply to all responses)
app.add_middleware(SecurityHeadersMiddleware)

# CORS (after security headers)
cors_middleware, cors_config = get_cors_middleware()
app.add_middleware(cors_middleware, **cors_config)

# Request logging
app.add_middleware(RequestLoggingMiddleware)

# Global error handler (must be last)
app.add_middleware(ErrorHandlerMiddleware)

# ============================================================================
# ROUTES
# ============================================================================

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(accounts_router)
app.include_router(sync_router)
app.include_router(dashboard_router)

logger.info("✅ All routes registered")

# ============================================================================
# MAIN
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.debug,
        log_level="info"
    )
