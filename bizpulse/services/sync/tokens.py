"""
Token Resolution
Turns a stored credential row into a bearer token Google will accept

Resolution order (first hit wins):
1. stored    - access_token passes the token-info probe
2. refreshed - refresh_token exchanged once; new token + expiry persisted
3. session   - provider token carried by the authenticated request passes the probe
Otherwise NoUsableTokenError (client must reauthenticate).
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import httpx
from supabase import Client

from bizpulse.core.errors import NoUsableTokenError
from bizpulse.services.sync.database import save_google_tokens
from bizpulse.services.sync.oauth import probe_access_token, refresh_access_token

logger = logging.getLogger(__name__)


class TokenSource(str, Enum):
    STORED = "stored"
    REFRESHED = "refreshed"
    SESSION = "session"


@dataclass
class ResolvedToken:
    access_token: str
    source: TokenSource


async def resolve_access_token(
    http_client: httpx.AsyncClient,
    supabase: Client,
    account: Dict[str, Any],
    session_token: Optional[str] = None
) -> ResolvedToken:
    """
    Produce a currently-valid Google access token for a credential row.

    Args:
        http_client: Async HTTP client instance
        supabase: Supabase client (refreshed/recovered tokens are persisted)
        account: google_accounts row
        session_token: Provider token from the request's session, if any

    Returns:
        ResolvedToken with the token and where it came from

    Raises:
        NoUsableTokenError: no path yielded a live token
    """
    account_id = account["id"]
    stored_token = account.get("access_token")

    # 1. Stored token
    if stored_token:
        if await probe_access_token(http_client, stored_token):
            logger.info(f"Using stored access token for account {account_id}")
            return ResolvedToken(stored_token, TokenSource.STORED)
        logger.info(f"Stored access token for account {account_id} is no longer valid")

    # 2. Refresh
    refresh_token = account.get("refresh_token")
    if refresh_token:
        refreshed = await refresh_access_token(http_client, refresh_token)
        if refreshed:
            await _persist(supabase, account_id, refreshed.access_token, refreshed.expires_at)
            return ResolvedToken(refreshed.access_token, TokenSource.REFRESHED)

    # 3. Session metadata
    if session_token and session_token != stored_token:
        if await probe_access_token(http_client, session_token):
            logger.info(f"Recovered access token from session metadata for account {account_id}")
            await _persist(supabase, account_id, session_token, None)
            return ResolvedToken(session_token, TokenSource.SESSION)

    logger.error(f"No valid Google access token found for account {account_id}")
    raise NoUsableTokenError()


async def _persist(supabase: Client, account_id: str, access_token: str, expires_at) -> None:
    # A failed write never discards a live token
    try:
        await save_google_tokens(supabase, account_id, access_token, expires_at)
    except Exception as e:
        logger.error(f"Failed to persist Google access token for account {account_id}: {e}")
