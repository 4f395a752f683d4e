"""
Google Business Profile Sync
Token resolution, Business Profile fetches and Supabase upserts
"""
from bizpulse.services.sync.orchestration.business_sync import (
    SyncOptions,
    SyncOutcome,
    run_google_business_sync,
    sync_google_business,
)
from bizpulse.services.sync.token_store import handle_auth_event
from bizpulse.services.sync.tokens import ResolvedToken, TokenSource, resolve_access_token

__all__ = [
    "SyncOptions",
    "SyncOutcome",
    "run_google_business_sync",
    "sync_google_business",
    "handle_auth_event",
    "ResolvedToken",
    "TokenSource",
    "resolve_access_token",
]
