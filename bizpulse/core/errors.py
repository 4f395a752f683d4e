"""
Sync Error Taxonomy
Typed failures raised by auth, token resolution and Google fetches

Every error knows its HTTP status and wire code so the boundary can turn it
into a structured JSON payload without inspecting messages:

- MISSING_AUTHORIZATION (401)
- INVALID_SESSION (401)
- NO_LINKED_ACCOUNT (404)
- REAUTH_REQUIRED (401, requiresReauth)
- RATE_LIMIT_EXCEEDED (429, retryAfter)
- UPSTREAM_FETCH_FAILED (502)
- INTERNAL_ERROR (500)
"""
from typing import Any, Dict, Optional


class SyncError(Exception):
    """Base class for every failure the API reports as structured JSON."""

    code = "INTERNAL_ERROR"
    status_code = 500
    requires_reauth = False
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    @property
    def retry_after(self) -> Optional[int]:
        return None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": False,
            "error": self.message,
            "code": self.code,
            "requiresReauth": self.requires_reauth,
        }
        if self.retry_after is not None:
            payload["retryAfter"] = self.retry_after
        if self.details:
            payload["details"] = self.details
        return payload

    def headers(self) -> Dict[str, str]:
        if self.retry_after is not None:
            return {"Retry-After": str(self.retry_after)}
        return {}


class MissingAuthorizationError(SyncError):
    code = "MISSING_AUTHORIZATION"
    status_code = 401
    default_message = "No authorization provided"


class InvalidSessionError(SyncError):
    code = "INVALID_SESSION"
    status_code = 401
    default_message = "Invalid user token"


class NoLinkedAccountError(SyncError):
    code = "NO_LINKED_ACCOUNT"
    status_code = 404
    default_message = "No Google account found"


class NoUsableTokenError(SyncError):
    """No stored, refreshed or session token works. Client must sign in again."""

    code = "REAUTH_REQUIRED"
    status_code = 401
    requires_reauth = True
    default_message = (
        "No valid Google access token found. Please sign out and sign back in "
        "with Google to refresh your tokens."
    )


class RateLimitedError(SyncError):
    code = "RATE_LIMIT_EXCEEDED"
    status_code = 429
    default_message = "Google API rate limit exceeded. Please try again in a few minutes."

    def __init__(self, retry_after: int, message: Optional[str] = None, details: Optional[str] = None):
        self._retry_after = retry_after
        super().__init__(message, details)

    @property
    def retry_after(self) -> Optional[int]:
        return self._retry_after


class UpstreamFetchError(SyncError):
    code = "UPSTREAM_FETCH_FAILED"
    status_code = 502
    default_message = "Failed to fetch data from Google Business Profile"

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None, upstream_status: Optional[int] = None):
        self.upstream_status = upstream_status
        super().__init__(message, details)

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        if self.upstream_status is not None:
            payload["upstreamStatus"] = self.upstream_status
        return payload


class InternalSyncError(SyncError):
    code = "INTERNAL_ERROR"
    status_code = 500
