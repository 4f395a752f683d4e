"""
Rate Limiting Middleware
Protects the sync endpoint (and Google quota) from hammering using slowapi

RATE LIMITS:
- Global: 100 requests/minute per key (default)
- Sync: settings.sync_rate_limit per user (default 30/hour)

SECURITY: Uses user_id for authenticated requests (can't bypass via IP switching)
"""
import logging
from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request

logger = logging.getLogger(__name__)


def rate_limit_key_func(request: Request) -> str:
    """
    Determine rate limit key based on authentication status.

    STRATEGY:
    - Authenticated requests: use user_id (set by get_current_user_context)
    - Unauthenticated requests: use IP address
    """
    user_id = getattr(request.state, "user_id", None)
    if user_id:
        # SECURITY: Don't log full user_id (PII)
        logger.debug(f"Rate limit key: user_id={user_id[:8]}...")
        return f"user:{user_id}"

    ip = get_remote_address(request)
    logger.debug(f"Rate limit key: ip={ip}")
    return f"ip:{ip}"


# In-memory storage (single instance)
limiter = Limiter(
    key_func=rate_limit_key_func,
    default_limits=["100/minute"],
    storage_uri="memory://",
)
