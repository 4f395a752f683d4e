"""Shared fixtures: environment, fake Supabase, fake Google, and the ASGI app."""

from __future__ import annotations

import os

# Settings are read at import time
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://project.supabase.test")
os.environ.setdefault("SUPABASE_ANON_KEY", "anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "service-key")
os.environ.setdefault("GOOGLE_CLIENT_ID", "client-id.apps.googleusercontent.com")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "client-secret")

from collections.abc import AsyncIterator  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402

from bizpulse.models.schemas import UserContext  # noqa: E402
from tests.fakes import SESSION_JWT, USER_ID, FakeGoogle, FakeSupabase, RecordingSleep  # noqa: E402


@pytest.fixture
def supabase() -> FakeSupabase:
    db = FakeSupabase()
    db.auth.add_user(SESSION_JWT, USER_ID, email="owner@example.com", user_metadata={"sub": "google-sub-1"})
    return db


@pytest.fixture
def google() -> FakeGoogle:
    return FakeGoogle()


@pytest.fixture
async def http_client(google: FakeGoogle) -> AsyncIterator[httpx.AsyncClient]:
    async with google.client() as client:
        yield client


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def user() -> UserContext:
    return UserContext(user_id=USER_ID, email="owner@example.com", user_metadata={"sub": "google-sub-1"})


@pytest.fixture
def linked_account(supabase: FakeSupabase) -> dict:
    """A credential row with a stored access token and a refresh token."""
    (row,) = supabase.seed(
        "google_accounts",
        {
            "user_id": USER_ID,
            "email": "owner@example.com",
            "google_account_id": "google-sub-1",
            "access_token": "stored-token",
            "refresh_token": "refresh-token",
            "token_expires_at": None,
            "updated_at": "2024-01-01T00:00:00+00:00",
        },
    )
    return row


@pytest.fixture
async def api(supabase: FakeSupabase, http_client: httpx.AsyncClient, sleep: RecordingSleep) -> AsyncIterator[httpx.AsyncClient]:
    """ASGI client for the app with storage, Google and the clock replaced."""
    from bizpulse.core.dependencies import get_http_client, get_sleep, get_supabase
    from bizpulse.middleware.rate_limit import limiter
    from main import app

    app.dependency_overrides[get_supabase] = lambda: supabase
    app.dependency_overrides[get_http_client] = lambda: http_client
    app.dependency_overrides[get_sleep] = lambda: sleep
    limiter.enabled = False

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
    limiter.enabled = True


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {SESSION_JWT}"}
