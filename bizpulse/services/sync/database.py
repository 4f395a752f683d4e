"""
Database helper functions for Google Business Profile sync
Handles credential rows, location/review/metric upserts and dashboard reads

All access goes through the Supabase client passed in by the caller.
Single-row atomicity is the storage layer's; there are no cross-table transactions.
supabase-py calls block; these helpers run them inline, so each await holds the loop for one round trip.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from supabase import Client

logger = logging.getLogger(__name__)

GOOGLE_ACCOUNTS_TABLE = "google_accounts"
LOCATIONS_TABLE = "business_locations"
DAILY_METRICS_TABLE = "daily_metrics"
REVIEWS_TABLE = "reviews"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ============================================================================
# ACCOUNT CREDENTIALS
# ============================================================================

async def get_google_account(supabase: Client, user_id: str) -> Optional[Dict[str, Any]]:
    """
    Get the user's Google credential row.

    Multiple rows are possible; the most recently updated one wins.

    Returns:
        Credential row dict, or None if the user never linked Google
    """
    result = supabase.table(GOOGLE_ACCOUNTS_TABLE)\
        .select("*")\
        .eq("user_id", user_id)\
        .order("updated_at", desc=True)\
        .limit(1)\
        .execute()

    if result.data and len(result.data) > 0:
        return result.data[0]
    return None


async def list_google_accounts(supabase: Client, user_id: str) -> List[Dict[str, Any]]:
    """All credential rows linked to a user."""
    result = supabase.table(GOOGLE_ACCOUNTS_TABLE)\
        .select("*")\
        .eq("user_id", user_id)\
        .execute()
    return result.data or []


async def save_google_tokens(
    supabase: Client,
    account_id: str,
    access_token: str,
    expires_at: Optional[datetime] = None
):
    """
    Persist a refreshed or recovered access token on an existing credential row.

    Args:
        supabase: Supabase client
        account_id: google_accounts.id
        access_token: New Google access token
        expires_at: Token expiry (None leaves the column empty)
    """
    payload = {
        "access_token": access_token,
        "token_expires_at": expires_at.isoformat() if expires_at else None,
        "updated_at": utc_now_iso()
    }

    supabase.table(GOOGLE_ACCOUNTS_TABLE)\
        .update(payload)\
        .eq("id", account_id)\
        .execute()

    logger.info(f"✅ Saved Google access token for account {account_id}")


async def upsert_google_account(supabase: Client, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Insert-or-update the user's credential row (keyed by user_id).

    Used by the auth listener after a Google sign-in.

    Returns:
        The stored row
    """
    user_id = payload["user_id"]
    existing = await get_google_account(supabase, user_id)

    if existing:
        logger.info(f"[TOKEN_STORE] Updating existing Google account {existing['id']}")
        result = supabase.table(GOOGLE_ACCOUNTS_TABLE)\
            .update(payload)\
            .eq("id", existing["id"])\
            .execute()
    else:
        logger.info(f"[TOKEN_STORE] Creating Google account for user {user_id}")
        result = supabase.table(GOOGLE_ACCOUNTS_TABLE)\
            .insert(payload)\
            .execute()

    if not result.data:
        raise RuntimeError(f"Google account upsert returned no rows for user {user_id}")

    return result.data[0]


# ============================================================================
# LOCATIONS / REVIEWS / DAILY METRICS
# ============================================================================

async def upsert_location(supabase: Client, location: Dict[str, Any]) -> Dict[str, Any]:
    """
    Upsert a normalized location by its external location_id (last write wins).

    Returns:
        Stored row (includes the internal id used by reviews and daily_metrics)
    """
    result = supabase.table(LOCATIONS_TABLE)\
        .upsert(location, on_conflict="location_id")\
        .execute()

    if not result.data:
        raise RuntimeError(f"Location upsert returned no rows for {location.get('location_id')}")

    return result.data[0]


async def upsert_reviews(supabase: Client, reviews: List[Dict[str, Any]]) -> int:
    """Upsert normalized reviews by google_review_id. Returns rows written."""
    if not reviews:
        return 0

    result = supabase.table(REVIEWS_TABLE)\
        .upsert(reviews, on_conflict="google_review_id")\
        .execute()
    return len(result.data or [])


async def upsert_daily_metrics(supabase: Client, metrics: List[Dict[str, Any]]) -> int:
    """Upsert daily metric rows by (location_id, date). Returns rows written."""
    if not metrics:
        return 0

    result = supabase.table(DAILY_METRICS_TABLE)\
        .upsert(metrics, on_conflict="location_id,date")\
        .execute()
    return len(result.data or [])


# ============================================================================
# DASHBOARD READS
# ============================================================================

async def get_user_location_ids(supabase: Client, user_id: str) -> List[str]:
    """Internal ids of every location owned by the user's linked accounts."""
    accounts = await list_google_accounts(supabase, user_id)
    account_ids = [account["id"] for account in accounts]
    if not account_ids:
        return []

    result = supabase.table(LOCATIONS_TABLE)\
        .select("id")\
        .in_("google_account_id", account_ids)\
        .execute()
    return [row["id"] for row in (result.data or [])]


async def get_recent_daily_metrics(supabase: Client, location_ids: List[str], limit: int) -> List[Dict[str, Any]]:
    """Most recent daily metric rows across the given locations, newest first."""
    if not location_ids:
        return []

    result = supabase.table(DAILY_METRICS_TABLE)\
        .select("*")\
        .in_("location_id", location_ids)\
        .order("date", desc=True)\
        .limit(limit)\
        .execute()
    return result.data or []


async def get_reviews(supabase: Client, location_ids: List[str], limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Reviews across the given locations, newest first."""
    if not location_ids:
        return []

    query = supabase.table(REVIEWS_TABLE)\
        .select("*")\
        .in_("location_id", location_ids)\
        .order("review_date", desc=True)

    if limit:
        query = query.limit(limit)

    result = query.execute()
    return result.data or []
