"""
Pydantic Schemas
All request/response models for API endpoints
"""

# Auth schemas (session context, sign-in events)
from .auth import UserContext, AuthEvent, AuthEventResponse

# Google account schemas
from .accounts import GoogleAccountSummary, ConnectionStatusResponse

# Sync schemas
from .sync import SyncRequest, SyncResult

# Dashboard schemas
from .dashboard import BusinessMetrics, RatingBucket, ReviewItem, DashboardMetricsResponse, ReviewsResponse

__all__ = [
    # Auth
    "UserContext",
    "AuthEvent",
    "AuthEventResponse",
    # Accounts
    "GoogleAccountSummary",
    "ConnectionStatusResponse",
    # Sync
    "SyncRequest",
    "SyncResult",
    # Dashboard
    "BusinessMetrics",
    "RatingBucket",
    "ReviewItem",
    "DashboardMetricsResponse",
    "ReviewsResponse",
]
