"""
Auth Event Routes
Receives Supabase auth state changes from the dashboard and stores Google tokens
"""
import logging
from fastapi import APIRouter, Depends
from supabase import Client

from bizpulse.core.dependencies import get_supabase
from bizpulse.core.security import get_current_user_context
from bizpulse.models.schemas import AuthEvent, AuthEventResponse, UserContext
from bizpulse.services.sync import handle_auth_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/events", response_model=AuthEventResponse)
async def auth_event(
    event: AuthEvent,
    user: UserContext = Depends(get_current_user_context),
    supabase: Client = Depends(get_supabase)
):
    """
    Forwarded onAuthStateChange event.

    SIGNED_IN with a provider token upserts the user's google_accounts row;
    every other event is acknowledged with stored=false.
    """
    logger.info(f"[AUTH_EVENT] {event.event} for user {user.user_id[:8]}...")
    return await handle_auth_event(supabase, user, event)
