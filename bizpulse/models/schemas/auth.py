"""
Auth Schemas
Authenticated request context and Supabase sign-in events
"""
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class UserContext(BaseModel):
    """
    Explicit per-request identity, produced by the auth dependency.
    Passed to every operation instead of a global "current user".
    """
    user_id: str
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def google_subject(self) -> str:
        """Google account id from identity metadata, falling back to the user id."""
        return self.user_metadata.get("sub") or self.user_id

    @property
    def metadata_provider_token(self) -> Optional[str]:
        """Provider token stashed in identity metadata by some sign-in flows."""
        return self.user_metadata.get("provider_token")


class AuthEvent(BaseModel):
    """
    Supabase auth state change forwarded by the dashboard.

    Mirrors onAuthStateChange(event, session): only SIGNED_IN events that carry
    a provider_token are persisted.
    """
    event: str = Field(..., description="Auth event name (SIGNED_IN, SIGNED_OUT, TOKEN_REFRESHED, ...)")
    providerToken: Optional[str] = Field(None, description="Google access token from the session")
    providerRefreshToken: Optional[str] = Field(None, description="Google refresh token from the session")
    expiresAt: Optional[int] = Field(None, description="Session expiry as epoch seconds")


class AuthEventResponse(BaseModel):
    """Outcome of handling an auth event."""
    stored: bool
    event: str
    accountId: Optional[str] = None
    message: str
