"""
Token Store
Persists Google provider tokens when the dashboard reports a Supabase sign-in

Only SIGNED_IN events carrying a provider token are stored. A missing refresh
token never erases one we already hold.
"""
import logging
from datetime import datetime, timezone

from supabase import Client

from bizpulse.models.schemas import AuthEvent, AuthEventResponse, UserContext
from bizpulse.services.sync.database import upsert_google_account, utc_now_iso

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"


async def handle_auth_event(supabase: Client, user: UserContext, event: AuthEvent) -> AuthEventResponse:
    """
    Store (or update) the user's google_accounts row from a sign-in event.

    Args:
        supabase: Supabase client
        user: Authenticated user context
        event: Auth event forwarded by the dashboard

    Returns:
        AuthEventResponse saying whether anything was stored
    """
    if event.event != SIGNED_IN:
        logger.info(f"[TOKEN_STORE] Ignoring auth event {event.event} for user {user.user_id}")
        return AuthEventResponse(stored=False, event=event.event, message=f"Event {event.event} does not carry tokens")

    if not event.providerToken:
        logger.warning(f"[TOKEN_STORE] SIGNED_IN without provider token for user {user.user_id}")
        return AuthEventResponse(stored=False, event=event.event, message="No provider token in session")

    token_expires_at = None
    if event.expiresAt:
        token_expires_at = datetime.fromtimestamp(event.expiresAt, tz=timezone.utc).isoformat()

    payload = {
        "user_id": user.user_id,
        "email": user.email or "",
        "google_account_id": user.google_subject,
        "access_token": event.providerToken,
        "token_expires_at": token_expires_at,
        "updated_at": utc_now_iso()
    }
    if event.providerRefreshToken:
        payload["refresh_token"] = event.providerRefreshToken

    row = await upsert_google_account(supabase, payload)
    logger.info(f"[TOKEN_STORE] ✅ Stored Google tokens for user {user.user_id} (refresh token: {bool(event.providerRefreshToken)})")

    return AuthEventResponse(
        stored=True,
        event=event.event,
        accountId=row.get("id"),
        message="Google account tokens stored"
    )
