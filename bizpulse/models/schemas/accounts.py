"""
Google Account Schemas
Connection status for the dashboard's connect / reauthenticate affordance
"""
from typing import List, Optional
from pydantic import BaseModel


class GoogleAccountSummary(BaseModel):
    """Linked Google account (tokens are never exposed)."""
    id: str
    email: str
    google_account_id: str
    has_refresh_token: bool
    token_expires_at: Optional[str] = None
    created_at: Optional[str] = None


class ConnectionStatusResponse(BaseModel):
    connected: bool
    accounts: List[GoogleAccountSummary] = []
