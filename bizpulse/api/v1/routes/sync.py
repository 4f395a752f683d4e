"""
Sync Routes
Request-triggered Google Business Profile sync

SECURITY:
- Supabase session required (Authorization: Bearer <jwt>)
- Rate limited per user (settings.sync_rate_limit)
"""
import logging
import httpx
from typing import Optional
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from supabase import Client

from bizpulse.core.config import settings
from bizpulse.core.dependencies import get_http_client, get_sleep, get_supabase
from bizpulse.core.retry import SleepFunc
from bizpulse.core.security import get_current_user_context
from bizpulse.middleware.rate_limit import limiter
from bizpulse.models.schemas import SyncRequest, UserContext
from bizpulse.services.sync import run_google_business_sync

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync", tags=["sync"])


@router.post("/google-business")
@limiter.limit(settings.sync_rate_limit)
async def sync_google_business_route(
    request: Request,  # Required for rate limiting
    body: Optional[SyncRequest] = None,
    user: UserContext = Depends(get_current_user_context),
    supabase: Client = Depends(get_supabase),
    http_client: httpx.AsyncClient = Depends(get_http_client),
    sleep: SleepFunc = Depends(get_sleep)
):
    """
    Sync Google Business Profile accounts, locations, reviews and daily metrics.

    Flow:
    1. Load the user's google_accounts row
    2. Resolve a usable token (stored -> refreshed -> session)
    3. Fetch accounts, then locations per account (paced)
    4. Upsert locations, then reviews + daily metrics per location

    Returns:
        200 with counts, or a structured error payload
        (401 reauth, 404 no linked account, 429 rate limited, 502 upstream, 500)
    """
    body = body or SyncRequest()
    if body.userId and body.userId != user.user_id:
        logger.warning(f"Sync body userId {body.userId[:8]}... does not match session user {user.user_id[:8]}...; using session user")

    outcome = await run_google_business_sync(
        user=user,
        supabase=supabase,
        http_client=http_client,
        sleep=sleep,
        session_token=body.providerToken
    )

    return JSONResponse(status_code=outcome.status_code, content=outcome.body, headers=outcome.headers)
