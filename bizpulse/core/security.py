"""
Security and Authentication
Validates the dashboard's Supabase session and builds an explicit UserContext

Flow:
1. Read the bearer token from the Authorization header
2. Validate it with Supabase Auth (service client)
3. Return UserContext (user_id, email, identity metadata)

Missing header -> MissingAuthorizationError (401, MISSING_AUTHORIZATION)
Rejected token -> InvalidSessionError (401, INVALID_SESSION)
"""
import logging
from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.concurrency import run_in_threadpool
from supabase import Client

from bizpulse.core.dependencies import get_supabase
from bizpulse.core.errors import InvalidSessionError, MissingAuthorizationError
from bizpulse.models.schemas import UserContext

logger = logging.getLogger(__name__)

# auto_error=False so a missing header maps to our own structured error
bearer_scheme = HTTPBearer(auto_error=False)


# ============================================================================
# JWT AUTHENTICATION (Supabase)
# ============================================================================

async def get_current_user_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    supabase: Client = Depends(get_supabase)
) -> UserContext:
    """
    Get the authenticated user's context.

    Returns:
        UserContext with user_id, email and identity metadata

    Raises:
        MissingAuthorizationError: no bearer token
        InvalidSessionError: Supabase rejected the token
    """
    if not credentials or not credentials.credentials:
        logger.warning("No authorization credentials provided")
        raise MissingAuthorizationError()

    token = credentials.credentials

    try:
        # supabase-py is synchronous; keep the auth round trip off the event loop
        response = await run_in_threadpool(supabase.auth.get_user, token)
    except Exception as e:
        logger.warning(f"JWT validation error: {e}")
        raise InvalidSessionError()

    if not response or not response.user:
        logger.warning("JWT validation failed: no user returned")
        raise InvalidSessionError()

    user = response.user
    context = UserContext(
        user_id=user.id,
        email=user.email,
        user_metadata=user.user_metadata or {}
    )

    # Rate limiter keys authenticated requests by user
    request.state.user_id = context.user_id

    logger.info(f"✅ User authenticated: {sanitize_for_logging(context.email or context.user_id)}")
    return context


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def sanitize_for_logging(text: str, max_length: int = 50) -> str:
    """
    Sanitize sensitive data for logging (prevent PII leakage).

    Truncates long strings and masks email addresses.

    Example:
        "user@example.com" -> "u***@example.com"
        "very long text..." -> "very long te..."
    """
    if not text:
        return ""

    # Truncate long strings
    if len(text) > max_length:
        text = text[:max_length] + "..."

    # Mask emails (keep first char and domain)
    if "@" in text:
        parts = text.split("@")
        if len(parts) == 2:
            local = parts[0]
            domain = parts[1]
            masked_local = local[0] + "***" if len(local) > 1 else local
            text = f"{masked_local}@{domain}"

    return text


def mask_token(token: Optional[str]) -> str:
    """Show only the edges of a bearer token in logs."""
    if not token:
        return "MISSING"
    if len(token) <= 12:
        return "***"
    return f"{token[:6]}...{token[-4:]}"
