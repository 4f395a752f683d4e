"""
CORS Configuration
Cross-Origin Resource Sharing settings for the dashboard frontend

SECURITY:
- Production: only origins listed in CORS_ALLOWED_ORIGINS
- Development: all origins (no credentials)
- NO "null" origin (prevents file:// attacks)
"""
import logging
from fastapi.middleware.cors import CORSMiddleware as FastAPICORSMiddleware
from bizpulse.core.config import settings

logger = logging.getLogger(__name__)

# Headers the dashboard's Supabase client sends
ALLOWED_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


def get_cors_middleware():
    """
    Returns configured CORS middleware with environment-based settings.

    Returns:
        (middleware class, keyword arguments for app.add_middleware)
    """
    if settings.environment == "development":
        logger.warning("⚠️  DEV MODE: CORS allowing ALL origins (*) for testing")
        return FastAPICORSMiddleware, {
            "allow_origins": ["*"],
            "allow_credentials": False,  # Must be False when using "*"
            "allow_methods": ["GET", "POST", "OPTIONS"],
            "allow_headers": ALLOWED_HEADERS,
            "max_age": 600,
        }

    allowed_origins = [origin for origin in settings.cors_origin_list if origin != "null"]
    logger.info(f"🌐 CORS allowed origins: {allowed_origins}")

    return FastAPICORSMiddleware, {
        "allow_origins": allowed_origins,
        "allow_credentials": True,
        "allow_methods": ["GET", "POST", "OPTIONS"],
        "allow_headers": ALLOWED_HEADERS,
        "expose_headers": ["Retry-After"],  # Frontend reads it after a 429
        "max_age": 600,  # Cache preflight requests for 10 minutes
    }
