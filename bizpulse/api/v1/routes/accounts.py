"""
Google Account Routes
Connection status for the dashboard's connect / reauthenticate button
"""
import logging
from fastapi import APIRouter, Depends
from supabase import Client

from bizpulse.core.dependencies import get_supabase
from bizpulse.core.security import get_current_user_context
from bizpulse.models.schemas import ConnectionStatusResponse, GoogleAccountSummary, UserContext
from bizpulse.services.sync.database import list_google_accounts

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/google", tags=["google"])


@router.get("/accounts", response_model=ConnectionStatusResponse)
async def google_accounts(
    user: UserContext = Depends(get_current_user_context),
    supabase: Client = Depends(get_supabase)
):
    """List linked Google accounts. Tokens are never returned."""
    rows = await list_google_accounts(supabase, user.user_id)

    accounts = [
        GoogleAccountSummary(
            id=str(row["id"]),
            email=row.get("email") or "",
            google_account_id=row.get("google_account_id") or "",
            has_refresh_token=bool(row.get("refresh_token")),
            token_expires_at=row.get("token_expires_at"),
            created_at=row.get("created_at")
        )
        for row in rows
    ]

    return ConnectionStatusResponse(connected=bool(accounts), accounts=accounts)
