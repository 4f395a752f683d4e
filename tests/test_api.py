import httpx
import pytest

from tests.fakes import ACCOUNTS_URL, locations_url

pytestmark = pytest.mark.unit


class TestHealth:
    async def test_health(self, api):
        response = await api.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    async def test_root_lists_endpoints(self, api):
        response = await api.get("/")

        assert response.json()["endpoints"]["sync"] == "/sync/google-business"


class TestSyncEndpoint:
    async def test_success(self, api, auth_headers, google, linked_account, sleep):
        google.live_tokens.add("stored-token")
        google.add_json(ACCOUNTS_URL, {"accounts": [{"name": "accounts/1"}]})
        google.add_json(locations_url("accounts/1"), {})

        response = await api.post("/sync/google-business", json={"userId": "user-1"}, headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["locationsCount"] == 0
        assert body["tokenSource"] == "stored"
        assert body["note"].startswith("No locations found")
        assert sleep.delays[:2] == [1.0, 1.5]

    async def test_body_is_optional(self, api, auth_headers):
        response = await api.post("/sync/google-business", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["code"] == "NO_LINKED_ACCOUNT"

    async def test_reauth_required(self, api, auth_headers, google, linked_account):
        response = await api.post("/sync/google-business", json={}, headers=auth_headers)

        assert response.status_code == 401
        body = response.json()
        assert body["code"] == "REAUTH_REQUIRED"
        assert body["requiresReauth"] is True
        assert google.business_requests == []

    async def test_provider_token_in_body_is_a_fallback(self, api, auth_headers, google, linked_account):
        google.live_tokens.add("body-token")
        google.add_json(ACCOUNTS_URL, {})

        response = await api.post("/sync/google-business", json={"providerToken": "body-token"}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["tokenSource"] == "session"

    async def test_rate_limited(self, api, auth_headers, google, linked_account):
        google.live_tokens.add("stored-token")
        google.add(ACCOUNTS_URL, httpx.Response(429, headers={"Retry-After": "45"}, json={}))

        response = await api.post("/sync/google-business", json={}, headers=auth_headers)

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "45"
        assert response.json()["retryAfter"] == 45

    async def test_upstream_failure(self, api, auth_headers, google, linked_account):
        google.live_tokens.add("stored-token")
        google.add_json(ACCOUNTS_URL, {"error": {}}, status_code=500)

        response = await api.post("/sync/google-business", json={}, headers=auth_headers)

        assert response.status_code == 502
        assert response.json()["code"] == "UPSTREAM_FETCH_FAILED"

    async def test_requires_session(self, api):
        response = await api.post("/sync/google-business", json={})

        assert response.status_code == 401
        assert response.json()["code"] == "MISSING_AUTHORIZATION"


class TestAuthEventsEndpoint:
    async def test_sign_in_stores_tokens(self, api, auth_headers, supabase):
        response = await api.post(
            "/auth/events",
            json={"event": "SIGNED_IN", "providerToken": "access-1", "providerRefreshToken": "refresh-1"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["stored"] is True
        assert supabase.rows("google_accounts")[0]["access_token"] == "access-1"

    async def test_sign_out_is_acknowledged(self, api, auth_headers, supabase):
        response = await api.post("/auth/events", json={"event": "SIGNED_OUT"}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["stored"] is False


class TestAccountsEndpoint:
    async def test_connected_accounts_hide_tokens(self, api, auth_headers, linked_account):
        response = await api.get("/google/accounts", headers=auth_headers)

        body = response.json()
        assert body["connected"] is True
        (account,) = body["accounts"]
        assert account["has_refresh_token"] is True
        assert "access_token" not in account
        assert "refresh_token" not in account

    async def test_not_connected(self, api, auth_headers):
        response = await api.get("/google/accounts", headers=auth_headers)

        assert response.json() == {"connected": False, "accounts": []}


class TestDashboardEndpoints:
    async def test_metrics_without_data(self, api, auth_headers):
        response = await api.get("/dashboard/metrics", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["hasData"] is False
        assert body["lookbackDays"] == 30

    async def test_metrics_rejects_bad_lookback(self, api, auth_headers):
        response = await api.get("/dashboard/metrics", params={"lookbackDays": 0}, headers=auth_headers)

        assert response.status_code == 422

    async def test_reviews(self, api, auth_headers, supabase, linked_account):
        (location,) = supabase.seed(
            "business_locations", {"location_id": "locations/1", "google_account_id": linked_account["id"]}
        )
        supabase.seed(
            "reviews",
            {"google_review_id": "r1", "location_id": location["id"], "rating": 5, "review_date": "2024-05-01"},
        )

        response = await api.get("/dashboard/reviews", params={"limit": 10}, headers=auth_headers)

        body = response.json()
        assert body["total"] == 1
        assert body["reviews"][0]["rating"] == 5


class TestSyncRateLimit:
    @pytest.fixture
    def enforced_limiter(self, api):
        from bizpulse.middleware.rate_limit import limiter

        limiter.reset()
        limiter.enabled = True
        yield limiter
        limiter.enabled = False
        limiter.reset()

    async def test_limit_hit_uses_the_structured_rate_limit_payload(self, api, auth_headers, enforced_limiter):
        for _ in range(30):
            response = await api.post("/sync/google-business", json={}, headers=auth_headers)
            assert response.status_code == 404

        response = await api.post("/sync/google-business", json={}, headers=auth_headers)

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "3600"
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "RATE_LIMIT_EXCEEDED"
        assert body["retryAfter"] == 3600
        assert body["requiresReauth"] is False
