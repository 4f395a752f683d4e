from datetime import date

import httpx
import pytest

from bizpulse.core.errors import NoLinkedAccountError, NoUsableTokenError, RateLimitedError, UpstreamFetchError
from bizpulse.services.sync.orchestration.business_sync import (
    NO_LOCATIONS_NOTE,
    SyncOptions,
    run_google_business_sync,
    sync_google_business,
)
from tests.fakes import ACCOUNTS_URL, locations_url, metrics_url, reviews_url

pytestmark = pytest.mark.unit

TODAY = date(2024, 5, 31)

BAKERY = {
    "name": "locations/100",
    "title": "Downtown Bakery",
    "storefrontAddress": {"addressLines": ["1 Main St"], "locality": "Springfield"},
    "phoneNumbers": {"primaryPhone": "+1 555 0100"},
    "websiteUri": "https://bakery.example.com",
}
CAFE = {"name": "locations/200", "title": "Corner Cafe"}


def _review(review_id, stars, day):
    return {
        "reviewId": review_id,
        "reviewer": {"displayName": f"Reviewer {review_id}"},
        "starRating": stars,
        "comment": "ok",
        "createTime": f"2024-05-{day:02d}T12:00:00Z",
    }


def _metrics(calls):
    return {
        "multiDailyMetricTimeSeries": [
            {
                "dailyMetricTimeSeries": [
                    {
                        "dailyMetric": "CALL_CLICKS",
                        "timeSeries": {
                            "datedValues": [
                                {"date": {"year": 2024, "month": 5, "day": 30}, "value": str(calls)},
                                {"date": {"year": 2024, "month": 5, "day": 31}, "value": str(calls)},
                            ]
                        },
                    }
                ]
            }
        ]
    }


@pytest.fixture
def options() -> SyncOptions:
    return SyncOptions()


@pytest.fixture
def business(google):
    """One account with two locations, reviews and metrics; stored token is live."""
    google.live_tokens.add("stored-token")
    google.add_json(ACCOUNTS_URL, {"accounts": [{"name": "accounts/1", "accountName": "Bakery Group"}]})
    google.add_json(locations_url("accounts/1"), {"locations": [BAKERY, CAFE]})
    google.add_json(
        reviews_url("accounts/1", "locations/100"),
        {"reviews": [_review("r1", "FIVE", 3), _review("r2", "STAR_RATING_UNSPECIFIED", 4)]},
    )
    google.add_json(reviews_url("accounts/1", "locations/200"), {"reviews": [_review("r3", "THREE", 5)]})
    google.add_json(metrics_url("locations/100"), _metrics(2))
    google.add_json(metrics_url("locations/200"), _metrics(1))
    return google


async def _sync(user, supabase, http_client, sleep, options, **kwargs):
    return await sync_google_business(
        user=user, supabase=supabase, http_client=http_client, sleep=sleep, options=options, today=TODAY, **kwargs
    )


class TestSyncGoogleBusiness:
    async def test_full_sync(self, user, supabase, http_client, sleep, options, linked_account, business):
        result = await _sync(user, supabase, http_client, sleep, options)

        assert result.success is True
        assert result.accountsCount == 1
        assert result.totalLocationsFound == 2
        assert result.locationsCount == 2
        assert result.failedAccounts == 0
        assert result.reviewsCount == 2
        assert result.metricsCount == 4
        assert result.tokenSource == "stored"
        assert result.note is None
        assert result.message == "Successfully synced 2 business locations from Google Business Profile"

        locations = {row["location_id"]: row for row in supabase.rows("business_locations")}
        assert locations["locations/100"]["google_account_id"] == linked_account["id"]
        assert locations["locations/200"]["address"] == ""
        assert locations["locations/200"]["phone"] == ""
        assert locations["locations/200"]["website"] == ""
        assert {row["google_review_id"] for row in supabase.rows("reviews")} == {"r1", "r3"}

    async def test_pacing_goes_through_injected_sleep(self, user, supabase, http_client, sleep, linked_account, business):
        options = SyncOptions(sync_reviews=False, sync_metrics=False)

        await _sync(user, supabase, http_client, sleep, options)

        assert sleep.delays == [1.0, 1.5]

    async def test_sync_is_idempotent(self, user, supabase, http_client, sleep, options, linked_account, business):
        await _sync(user, supabase, http_client, sleep, options)
        snapshot = {table: [dict(row) for row in supabase.rows(table)] for table in ("business_locations", "reviews", "daily_metrics")}

        await _sync(user, supabase, http_client, sleep, options)

        for table, rows in snapshot.items():
            assert supabase.rows(table) == rows

    async def test_no_linked_account(self, user, supabase, http_client, sleep, options, google):
        with pytest.raises(NoLinkedAccountError):
            await _sync(user, supabase, http_client, sleep, options)

        assert google.requests == []

    async def test_zero_locations_reports_note(self, user, supabase, http_client, sleep, options, linked_account, google):
        google.live_tokens.add("stored-token")
        google.add_json(ACCOUNTS_URL, {"accounts": [{"name": "accounts/1"}]})
        google.add_json(locations_url("accounts/1"), {})

        result = await _sync(user, supabase, http_client, sleep, options)

        assert result.success is True
        assert result.locationsCount == 0
        assert result.note == NO_LOCATIONS_NOTE

    async def test_no_accounts_is_not_an_error(self, user, supabase, http_client, sleep, options, linked_account, google):
        google.live_tokens.add("stored-token")
        google.add_json(ACCOUNTS_URL, {})

        result = await _sync(user, supabase, http_client, sleep, options)

        assert result.accountsCount == 0
        assert result.locationsCount == 0
        assert result.note == NO_LOCATIONS_NOTE

    async def test_refresh_failure_makes_no_business_calls(self, user, supabase, http_client, sleep, options, linked_account, google):
        google.add_json(ACCOUNTS_URL, {"accounts": [{"name": "accounts/1"}]})

        with pytest.raises(NoUsableTokenError):
            await _sync(user, supabase, http_client, sleep, options)

        assert google.business_requests == []

    async def test_refreshed_token_is_used_for_business_calls(self, user, supabase, http_client, sleep, options, linked_account, business):
        business.live_tokens.discard("stored-token")
        business.refresh_response = httpx.Response(200, json={"access_token": "fresh-token", "expires_in": 3599})

        result = await _sync(user, supabase, http_client, sleep, options)

        assert result.tokenSource == "refreshed"
        assert business.requests_to(ACCOUNTS_URL)[0].headers["Authorization"] == "Bearer fresh-token"

    async def test_metadata_provider_token_is_last_resort(self, supabase, http_client, sleep, options, linked_account, business):
        from bizpulse.models.schemas import UserContext

        business.live_tokens.discard("stored-token")
        business.live_tokens.add("metadata-token")
        user = UserContext(user_id="user-1", user_metadata={"provider_token": "metadata-token"})

        result = await _sync(user, supabase, http_client, sleep, options)

        assert result.tokenSource == "session"

    async def test_failed_account_is_counted_and_skipped(self, user, supabase, http_client, sleep, options, linked_account, business):
        business.add_json(ACCOUNTS_URL, {"accounts": [{"name": "accounts/1"}, {"name": "accounts/2"}]})
        business.responses[ACCOUNTS_URL].pop(0)
        business.add_json(locations_url("accounts/2"), {"error": {"message": "boom"}}, status_code=500)

        result = await _sync(user, supabase, http_client, sleep, options)

        assert result.accountsCount == 2
        assert result.failedAccounts == 1
        assert result.locationsCount == 2

    async def test_partial_upsert_failure(self, user, supabase, http_client, sleep, options, linked_account, business):
        supabase.fail_when("business_locations", "upsert", lambda payload: payload["location_id"] == "locations/100")

        result = await _sync(user, supabase, http_client, sleep, options)

        assert result.totalLocationsFound == 2
        assert result.locationsCount == 1
        assert [row["location_id"] for row in supabase.rows("business_locations")] == ["locations/200"]
        assert business.requests_to(reviews_url("accounts/1", "locations/100")) == []

    async def test_review_fetch_failure_does_not_fail_sync(self, user, supabase, http_client, sleep, options, linked_account, business):
        business.responses[reviews_url("accounts/1", "locations/100")] = [httpx.Response(403, json={})]

        result = await _sync(user, supabase, http_client, sleep, options)

        assert result.locationsCount == 2
        assert result.reviewsCount == 1

    async def test_accounts_failure_raises_upstream(self, user, supabase, http_client, sleep, options, linked_account, google):
        google.live_tokens.add("stored-token")
        google.add_json(ACCOUNTS_URL, {"error": {"message": "backend"}}, status_code=503)

        with pytest.raises(UpstreamFetchError) as exc_info:
            await _sync(user, supabase, http_client, sleep, options)

        assert exc_info.value.upstream_status == 503

    async def test_locations_unauthorized_propagates(self, user, supabase, http_client, sleep, options, linked_account, google):
        google.live_tokens.add("stored-token")
        google.add_json(ACCOUNTS_URL, {"accounts": [{"name": "accounts/1"}]})
        google.add_json(locations_url("accounts/1"), {}, status_code=401)

        with pytest.raises(NoUsableTokenError):
            await _sync(user, supabase, http_client, sleep, options)

    async def test_rate_limited_locations_propagate(self, user, supabase, http_client, sleep, options, linked_account, google):
        google.live_tokens.add("stored-token")
        google.add_json(ACCOUNTS_URL, {"accounts": [{"name": "accounts/1"}]})
        google.add(locations_url("accounts/1"), httpx.Response(429, headers={"Retry-After": "30"}, json={}))

        with pytest.raises(RateLimitedError) as exc_info:
            await _sync(user, supabase, http_client, sleep, options)

        assert exc_info.value.retry_after == 30
        assert sleep.delays == [1.0, 1.5, 2.0, 4.0]

    async def test_metrics_window(self, user, supabase, http_client, sleep, linked_account, business):
        options = SyncOptions(sync_reviews=False, metrics_lookback_days=7)

        await _sync(user, supabase, http_client, sleep, options)

        params = business.requests_to(metrics_url("locations/100"))[0].url.params
        assert (params["dailyRange.startDate.month"], params["dailyRange.startDate.day"]) == ("5", "25")
        assert (params["dailyRange.endDate.month"], params["dailyRange.endDate.day"]) == ("5", "31")


class TestRunGoogleBusinessSync:
    async def test_success_outcome(self, user, supabase, http_client, sleep, options, linked_account, business):
        outcome = await run_google_business_sync(
            user=user, supabase=supabase, http_client=http_client, sleep=sleep, options=options, today=TODAY
        )

        assert outcome.status_code == 200
        assert outcome.body["success"] is True
        assert outcome.body["locationsCount"] == 2
        assert "note" not in outcome.body

    async def test_no_linked_account_outcome(self, user, supabase, http_client, sleep, options):
        outcome = await run_google_business_sync(user=user, supabase=supabase, http_client=http_client, sleep=sleep, options=options)

        assert outcome.status_code == 404
        assert outcome.body == {
            "success": False,
            "error": "No Google account found",
            "code": "NO_LINKED_ACCOUNT",
            "requiresReauth": False,
        }

    async def test_rate_limited_outcome_has_retry_after(self, user, supabase, http_client, sleep, options, linked_account, google):
        google.live_tokens.add("stored-token")
        google.add(ACCOUNTS_URL, httpx.Response(429, json={}))

        outcome = await run_google_business_sync(user=user, supabase=supabase, http_client=http_client, sleep=sleep, options=options)

        assert outcome.status_code == 429
        assert outcome.body["code"] == "RATE_LIMIT_EXCEEDED"
        assert outcome.body["retryAfter"] == 60
        assert outcome.headers == {"Retry-After": "60"}

    async def test_unexpected_error_becomes_internal(self, user, supabase, http_client, sleep, options, linked_account):
        supabase.fail_when("google_accounts", "select")

        outcome = await run_google_business_sync(user=user, supabase=supabase, http_client=http_client, sleep=sleep, options=options)

        assert outcome.status_code == 500
        assert outcome.body["code"] == "INTERNAL_ERROR"
        assert "simulated select failure" in outcome.body["details"]
