"""
Google OAuth client
Handles access-token liveness probes and refresh-token exchange
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx

from bizpulse.core.config import settings
from bizpulse.core.security import mask_token

logger = logging.getLogger(__name__)


@dataclass
class RefreshedToken:
    access_token: str
    expires_at: Optional[datetime]


# ============================================================================
# TOKEN INFO (liveness probe)
# ============================================================================

async def probe_access_token(http_client: httpx.AsyncClient, access_token: str) -> bool:
    """
    Check an access token against Google's token-info endpoint.

    Args:
        http_client: Async HTTP client instance
        access_token: Google access token to check

    Returns:
        True if Google accepts the token, False otherwise (never raises)
    """
    try:
        response = await http_client.get(
            settings.google_token_info_url,
            params={"access_token": access_token}
        )
    except httpx.HTTPError as e:
        logger.warning(f"Token info probe failed for {mask_token(access_token)}: {e}")
        return False

    if response.is_success:
        return True

    logger.info(f"Token info probe rejected {mask_token(access_token)}: {response.status_code}")
    return False


# ============================================================================
# TOKEN REFRESH
# ============================================================================

async def refresh_access_token(
    http_client: httpx.AsyncClient,
    refresh_token: str
) -> Optional[RefreshedToken]:
    """
    Exchange a refresh token for a new access token.

    Args:
        http_client: Async HTTP client instance
        refresh_token: Stored Google refresh token

    Returns:
        RefreshedToken on success, None on any failure (caller falls through)
    """
    if not settings.google_client_id or not settings.google_client_secret:
        logger.error("Cannot refresh Google token: GOOGLE_CLIENT_ID/GOOGLE_CLIENT_SECRET not configured")
        return None

    logger.info("Attempting to refresh Google access token...")

    try:
        response = await http_client.post(
            settings.google_token_url,
            data={
                "client_id": settings.google_client_id,
                "client_secret": settings.google_client_secret,
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            }
        )
    except httpx.HTTPError as e:
        logger.error(f"Error refreshing Google token: {e}")
        return None

    if not response.is_success:
        logger.error(f"Failed to refresh token: {response.status_code} - {response.text[:200]}")
        return None

    try:
        data = response.json()
    except ValueError as e:
        logger.error(f"Invalid JSON from token endpoint: {e}")
        return None

    access_token = data.get("access_token")
    if not access_token:
        logger.error("Token endpoint response had no access_token")
        return None

    expires_in = data.get("expires_in")
    expires_at = None
    if expires_in:
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=int(expires_in))

    logger.info("✅ Successfully refreshed Google access token")
    return RefreshedToken(access_token=access_token, expires_at=expires_at)
