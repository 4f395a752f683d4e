"""
Google Business Profile sync engine
Coordinates one sync invocation for one authenticated user

Flow (strictly sequential, paced by the injected sleep):
1. Load the user's credential row (none -> NO_LINKED_ACCOUNT)
2. Resolve a usable access token (stored -> refreshed -> session)
3. List business accounts
4. For each account, list locations (per-account failures are skipped)
5. Normalize + upsert each location (per-location failures are skipped)
6. Optionally upsert reviews and daily metrics for each stored location

run_google_business_sync() is the boundary: it never raises, it returns a
status code plus a structured JSON body.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import httpx
from supabase import Client

from bizpulse.core.config import settings
from bizpulse.core.errors import InternalSyncError, NoLinkedAccountError, SyncError, UpstreamFetchError
from bizpulse.core.retry import SleepFunc
from bizpulse.models.schemas import SyncResult, UserContext
from bizpulse.services.sync.database import get_google_account, upsert_daily_metrics, upsert_location, upsert_reviews
from bizpulse.services.sync.providers.business_profile import BusinessProfileClient
from bizpulse.services.sync.providers.normalizers import fold_daily_metrics, normalize_location, normalize_review
from bizpulse.services.sync.tokens import resolve_access_token

logger = logging.getLogger(__name__)

NO_LOCATIONS_NOTE = "No locations found. Make sure you have Google Business Profile locations set up."


@dataclass
class SyncOptions:
    """Pacing, retry and scope knobs for one sync run."""
    max_attempts: int = 3
    backoff_seconds: float = 2.0
    retry_after_default: int = 60
    initial_delay_seconds: float = 1.0
    account_delay_seconds: float = 1.5
    location_delay_seconds: float = 0.5
    sync_reviews: bool = True
    sync_metrics: bool = True
    metrics_lookback_days: int = 30

    @classmethod
    def from_settings(cls) -> "SyncOptions":
        return cls(
            max_attempts=settings.sync_max_attempts,
            backoff_seconds=settings.sync_backoff_seconds,
            retry_after_default=settings.rate_limit_retry_after_seconds,
            initial_delay_seconds=settings.sync_initial_delay_seconds,
            account_delay_seconds=settings.sync_account_delay_seconds,
            location_delay_seconds=settings.sync_location_delay_seconds,
            sync_reviews=settings.sync_reviews,
            sync_metrics=settings.sync_metrics,
            metrics_lookback_days=settings.metrics_lookback_days
        )


@dataclass
class SyncOutcome:
    """What the HTTP layer sends back: status, JSON body, extra headers."""
    status_code: int
    body: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)


# ============================================================================
# SYNC
# ============================================================================

async def sync_google_business(
    *,
    user: UserContext,
    supabase: Client,
    http_client: httpx.AsyncClient,
    sleep: SleepFunc = asyncio.sleep,
    session_token: Optional[str] = None,
    options: Optional[SyncOptions] = None,
    today: Optional[date] = None
) -> SyncResult:
    """
    Sync Google Business Profile data for one user.

    Args:
        user: Authenticated user context
        supabase: Supabase client
        http_client: Async HTTP client for Google
        sleep: Delay function for pacing and backoff
        session_token: Provider token from the current session (fallback only)
        options: Pacing/retry/scope knobs (defaults from settings)
        today: Anchor date for the metrics window (defaults to UTC today)

    Returns:
        SyncResult with counts

    Raises:
        SyncError subclasses (NO_LINKED_ACCOUNT, REAUTH_REQUIRED, RATE_LIMIT_EXCEEDED, UPSTREAM_FETCH_FAILED)
    """
    options = options or SyncOptions.from_settings()
    logger.info(f"Syncing Google Business data for user: {user.user_id}")

    account = await get_google_account(supabase, user.user_id)
    if not account:
        logger.error(f"No Google account found for user: {user.user_id}")
        raise NoLinkedAccountError()

    logger.info(f"Found Google account {account['id']} for user {user.user_id}")

    token = await resolve_access_token(
        http_client,
        supabase,
        account,
        session_token=session_token or user.metadata_provider_token
    )

    client = BusinessProfileClient(
        http_client,
        token.access_token,
        sleep=sleep,
        max_attempts=options.max_attempts,
        backoff_seconds=options.backoff_seconds,
        retry_after_default=options.retry_after_default
    )

    await sleep(options.initial_delay_seconds)
    accounts = await client.list_accounts()

    # Fetch locations account by account
    all_locations: List[Tuple[str, Dict[str, Any]]] = []
    failed_accounts = 0

    for business_account in accounts:
        account_name = business_account.get("name")
        if not account_name:
            logger.warning(f"Skipping Google Business account without a resource name: {business_account}")
            continue

        logger.info(f"Fetching locations for account: {account_name}")
        await sleep(options.account_delay_seconds)

        try:
            locations = await client.list_locations(account_name)
        except UpstreamFetchError as e:
            logger.error(f"Error fetching locations for account {account_name}: {e.message}")
            failed_accounts += 1
            continue

        all_locations.extend((account_name, location) for location in locations)

    logger.info(f"Total locations found: {len(all_locations)}")

    # Store locations (+ reviews, metrics) one by one
    stored_count = 0
    reviews_count = 0
    metrics_count = 0
    metrics_end = today or datetime.now(timezone.utc).date()
    metrics_start = metrics_end - timedelta(days=options.metrics_lookback_days - 1)

    for account_name, raw_location in all_locations:
        location_row = normalize_location(raw_location, account["id"])
        if not location_row["location_id"]:
            logger.warning(f"Skipping location without a resource name: {location_row['name']}")
            continue

        try:
            stored_location = await upsert_location(supabase, location_row)
        except Exception as e:
            logger.error(f"Error upserting location {location_row['location_id']}: {e}")
            continue

        stored_count += 1
        logger.info(f"Successfully stored location: {location_row['name']}")

        if options.sync_reviews:
            await sleep(options.location_delay_seconds)
            reviews_count += await _sync_location_reviews(
                client, supabase, account_name, location_row["location_id"], stored_location["id"]
            )

        if options.sync_metrics:
            await sleep(options.location_delay_seconds)
            metrics_count += await _sync_location_metrics(
                client, supabase, location_row["location_id"], stored_location["id"], metrics_start, metrics_end
            )

    return SyncResult(
        message=f"Successfully synced {stored_count} business locations from Google Business Profile",
        timestamp=datetime.now(timezone.utc).isoformat(),
        accountsCount=len(accounts),
        locationsCount=stored_count,
        totalLocationsFound=len(all_locations),
        failedAccounts=failed_accounts,
        reviewsCount=reviews_count,
        metricsCount=metrics_count,
        tokenSource=token.source.value,
        note=NO_LOCATIONS_NOTE if not all_locations else None
    )


async def _sync_location_reviews(
    client: BusinessProfileClient,
    supabase: Client,
    account_name: str,
    location_name: str,
    location_row_id: str
) -> int:
    try:
        raw_reviews = await client.list_reviews(account_name, location_name)
    except UpstreamFetchError as e:
        logger.error(f"Error fetching reviews for {location_name}: {e.message}")
        return 0

    rows = [row for row in (normalize_review(raw, location_row_id) for raw in raw_reviews) if row]

    try:
        return await upsert_reviews(supabase, rows)
    except Exception as e:
        logger.error(f"Error upserting reviews for {location_name}: {e}")
        return 0


async def _sync_location_metrics(
    client: BusinessProfileClient,
    supabase: Client,
    location_name: str,
    location_row_id: str,
    start: date,
    end: date
) -> int:
    try:
        series = await client.fetch_daily_metrics(location_name, start, end)
    except UpstreamFetchError as e:
        logger.error(f"Error fetching daily metrics for {location_name}: {e.message}")
        return 0

    rows = fold_daily_metrics(series, location_row_id)

    try:
        return await upsert_daily_metrics(supabase, rows)
    except Exception as e:
        logger.error(f"Error upserting daily metrics for {location_name}: {e}")
        return 0


# ============================================================================
# BOUNDARY
# ============================================================================

async def run_google_business_sync(**kwargs) -> SyncOutcome:
    """
    Run sync_google_business and convert every failure into a structured payload.

    Accepts the same keyword arguments as sync_google_business.
    """
    try:
        result = await sync_google_business(**kwargs)
    except SyncError as e:
        logger.warning(f"Google Business sync failed: {e.code} - {e.message}")
        return SyncOutcome(status_code=e.status_code, body=e.to_payload(), headers=e.headers())
    except Exception as e:
        logger.error("Error in Google Business sync", exc_info=True)
        error = InternalSyncError(details=str(e))
        return SyncOutcome(status_code=error.status_code, body=error.to_payload())

    logger.info(f"✅ {result.message}")
    return SyncOutcome(status_code=200, body=result.model_dump(exclude_none=True))
