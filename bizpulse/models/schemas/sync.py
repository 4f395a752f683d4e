"""
Sync Schemas
Models for the Google Business Profile sync operation
"""
from typing import Optional
from pydantic import BaseModel, Field


class SyncRequest(BaseModel):
    """
    Request body for POST /sync/google-business.

    userId is informational: the authenticated session decides whose data syncs.
    """
    userId: Optional[str] = Field(None, description="User the dashboard believes is signed in")
    providerToken: Optional[str] = Field(None, description="Google access token from the current session (last-resort fallback)")


class SyncResult(BaseModel):
    """
    Successful sync outcome.
    Failures use the structured error payload from bizpulse.core.errors instead.
    """
    success: bool = True
    message: str
    timestamp: str
    accountsCount: int
    locationsCount: int  # Locations stored
    totalLocationsFound: int
    failedAccounts: int = 0
    reviewsCount: int = 0
    metricsCount: int = 0
    tokenSource: str
    note: Optional[str] = None
