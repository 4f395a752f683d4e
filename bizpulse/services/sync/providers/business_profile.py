"""
Google Business Profile API helpers
Handles account listing, per-account locations, per-location reviews and daily metrics

Every call goes through send_with_backoff (bounded 429 retry). Status mapping:
- 401 -> NoUsableTokenError (reauthenticate)
- 429 after retries -> RateLimitedError
- other non-2xx / transport errors -> UpstreamFetchError
"""
import asyncio
import logging
from datetime import date
from typing import Any, Dict, List, Optional

import httpx

from bizpulse.core.config import settings
from bizpulse.core.errors import NoUsableTokenError, UpstreamFetchError
from bizpulse.core.retry import SleepFunc, send_with_backoff

logger = logging.getLogger(__name__)

# Performance API series folded into one daily_metrics row
DAILY_METRICS = [
    "BUSINESS_IMPRESSIONS_DESKTOP_MAPS",
    "BUSINESS_IMPRESSIONS_DESKTOP_SEARCH",
    "BUSINESS_IMPRESSIONS_MOBILE_MAPS",
    "BUSINESS_IMPRESSIONS_MOBILE_SEARCH",
    "CALL_CLICKS",
    "BUSINESS_DIRECTION_REQUESTS",
    "WEBSITE_CLICKS",
]

MAX_PAGES = 50


class BusinessProfileClient:
    """
    Thin async client over the Business Profile REST APIs for one access token.

    Args:
        http_client: Async HTTP client instance
        access_token: Google access token (already resolved)
        sleep: Delay function used between rate-limit retries
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        access_token: str,
        *,
        sleep: SleepFunc = asyncio.sleep,
        max_attempts: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        retry_after_default: Optional[int] = None
    ):
        self.http_client = http_client
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }
        self.sleep = sleep
        self.max_attempts = max_attempts or settings.sync_max_attempts
        self.backoff_seconds = settings.sync_backoff_seconds if backoff_seconds is None else backoff_seconds
        self.retry_after_default = retry_after_default or settings.rate_limit_retry_after_seconds

    # ========================================================================
    # TRANSPORT
    # ========================================================================

    async def _get(self, url: str, params: Optional[Dict[str, Any]], description: str) -> Dict[str, Any]:
        async def send() -> httpx.Response:
            return await self.http_client.get(url, headers=self.headers, params=params)

        try:
            response = await send_with_backoff(
                send,
                max_attempts=self.max_attempts,
                backoff_seconds=self.backoff_seconds,
                retry_after_default=self.retry_after_default,
                sleep=self.sleep,
                description=description
            )
        except httpx.HTTPError as e:
            logger.error(f"❌ Transport error on {description}: {e}")
            raise UpstreamFetchError(f"Failed to reach Google for {description}", details=str(e))

        if response.status_code == 401:
            logger.error(f"❌ Google rejected the access token on {description}")
            raise NoUsableTokenError("Google API authentication failed. Please sign out and sign back in with Google.")

        if not response.is_success:
            error_text = response.text[:500]
            logger.error(f"❌ Google API error on {description}: {response.status_code} - {error_text}")
            raise UpstreamFetchError(
                f"Failed to fetch {description}",
                details=error_text,
                upstream_status=response.status_code
            )

        if not response.content:
            return {}

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamFetchError(f"Invalid JSON from Google for {description}", details=str(e))

    async def _get_paginated(self, url: str, params: Dict[str, Any], key: str, description: str) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        params = dict(params)

        for _ in range(MAX_PAGES):
            data = await self._get(url, params, description)
            items.extend(data.get(key) or [])

            next_page = data.get("nextPageToken")
            if not next_page:
                break
            params["pageToken"] = next_page
        else:
            logger.warning(f"Stopped paging {description} after {MAX_PAGES} pages")

        return items

    # ========================================================================
    # BUSINESS PROFILE ENDPOINTS
    # ========================================================================

    async def list_accounts(self) -> List[Dict[str, Any]]:
        """List the business accounts the token can see (may be empty)."""
        accounts = await self._get_paginated(
            settings.google_accounts_url,
            {},
            "accounts",
            "Google Business accounts"
        )
        logger.info(f"Retrieved {len(accounts)} Google Business accounts")
        return accounts

    async def list_locations(self, account_name: str) -> List[Dict[str, Any]]:
        """
        List locations for one account.

        Args:
            account_name: Resource name, e.g. "accounts/123"
        """
        url = f"{settings.google_business_info_base_url}/{account_name}/locations"
        locations = await self._get_paginated(
            url,
            {"readMask": settings.google_location_read_mask, "pageSize": 100},
            "locations",
            f"locations for {account_name}"
        )
        logger.info(f"Retrieved {len(locations)} locations for {account_name}")
        return locations

    async def list_reviews(self, account_name: str, location_name: str) -> List[Dict[str, Any]]:
        """
        List reviews for one location.

        Args:
            account_name: e.g. "accounts/123"
            location_name: e.g. "locations/456"
        """
        url = f"{settings.google_reviews_base_url}/{account_name}/{location_name}/reviews"
        reviews = await self._get_paginated(
            url,
            {"pageSize": 50},
            "reviews",
            f"reviews for {location_name}"
        )
        logger.info(f"Retrieved {len(reviews)} reviews for {location_name}")
        return reviews

    async def fetch_daily_metrics(self, location_name: str, start: date, end: date) -> List[Dict[str, Any]]:
        """
        Fetch daily metric time series for one location over [start, end].

        Returns:
            The multiDailyMetricTimeSeries list (one entry per metric group)
        """
        url = f"{settings.google_performance_base_url}/{location_name}:fetchMultiDailyMetricsTimeSeries"
        params = {
            "dailyMetrics": DAILY_METRICS,
            "dailyRange.startDate.year": start.year,
            "dailyRange.startDate.month": start.month,
            "dailyRange.startDate.day": start.day,
            "dailyRange.endDate.year": end.year,
            "dailyRange.endDate.month": end.month,
            "dailyRange.endDate.day": end.day,
        }
        data = await self._get(url, params, f"daily metrics for {location_name}")
        return data.get("multiDailyMetricTimeSeries") or []
