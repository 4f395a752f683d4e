#!/usr/bin/env python3
"""
End-to-End Smoke Test: Login → Connection status → Sync → Dashboard

Runs against a live server and a real Supabase project:
1. Sign in a test user with email/password (Supabase Auth)
2. Check /google/accounts (the user must have signed in with Google once)
3. Trigger POST /sync/google-business
4. Read /dashboard/metrics and /dashboard/reviews
5. Verify business_locations rows in Supabase

Usage:
    E2E_EMAIL=... E2E_PASSWORD=... python e2e_sync_flow.py
"""
import os
import sys
import json
import requests
from supabase import create_client
from dotenv import load_dotenv

# Load environment
load_dotenv()

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY")
API_BASE_URL = os.getenv("E2E_API_BASE_URL", "http://localhost:8080")

TEST_EMAIL = os.getenv("E2E_EMAIL")
TEST_PASSWORD = os.getenv("E2E_PASSWORD")
PROVIDER_TOKEN = os.getenv("E2E_PROVIDER_TOKEN")  # Optional Google token fallback

if not all([SUPABASE_URL, SUPABASE_ANON_KEY, SUPABASE_SERVICE_KEY, TEST_EMAIL, TEST_PASSWORD]):
    print("❌ Set SUPABASE_URL, SUPABASE_ANON_KEY, SUPABASE_SERVICE_KEY, E2E_EMAIL and E2E_PASSWORD")
    sys.exit(1)

print("=" * 80)
print("BizPulse End-to-End Sync Test")
print("=" * 80)

supabase_admin = create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY)
supabase = create_client(SUPABASE_URL, SUPABASE_ANON_KEY)

# ============================================================================
# STEP 1: Login and Get JWT Token
# ============================================================================
print("\n[1/5] Logging in to get JWT token...")

try:
    auth_result = supabase.auth.sign_in_with_password({
        "email": TEST_EMAIL,
        "password": TEST_PASSWORD
    })
    jwt_token = auth_result.session.access_token
    user_id = auth_result.user.id
    print("✅ Logged in successfully")
    print(f"   User ID: {user_id}")
except Exception as e:
    print(f"❌ Failed to login: {e}")
    sys.exit(1)

headers = {"Authorization": f"Bearer {jwt_token}"}

# ============================================================================
# STEP 2: Connection Status
# ============================================================================
print("\n[2/5] Checking Google connection...")

response = requests.get(f"{API_BASE_URL}/google/accounts", headers=headers, timeout=30)
if response.status_code != 200:
    print(f"❌ Connection check failed: {response.status_code} {response.text}")
    sys.exit(1)

status = response.json()
print(f"   Connected: {status['connected']} ({len(status['accounts'])} accounts)")
if not status["connected"]:
    print("⚠️  No Google account linked; expect NO_LINKED_ACCOUNT from sync")

# ============================================================================
# STEP 3: Trigger Sync
# ============================================================================
print("\n[3/5] Triggering Google Business sync...")

body = {"userId": user_id}
if PROVIDER_TOKEN:
    body["providerToken"] = PROVIDER_TOKEN

response = requests.post(f"{API_BASE_URL}/sync/google-business", json=body, headers=headers, timeout=300)
result = response.json()
print(f"   Status: {response.status_code}")
print(json.dumps(result, indent=2))

if response.status_code != 200:
    if result.get("requiresReauth"):
        print("❌ Reauthentication required: sign in with Google again")
    elif result.get("retryAfter"):
        print(f"❌ Rate limited: retry in {result['retryAfter']}s")
    sys.exit(1)

print(f"✅ Synced {result['locationsCount']}/{result['totalLocationsFound']} locations (token: {result['tokenSource']})")

# ============================================================================
# STEP 4: Dashboard Reads
# ============================================================================
print("\n[4/5] Reading dashboard metrics and reviews...")

metrics = requests.get(f"{API_BASE_URL}/dashboard/metrics", params={"lookbackDays": 30}, headers=headers, timeout=30).json()
reviews = requests.get(f"{API_BASE_URL}/dashboard/reviews", params={"limit": 5}, headers=headers, timeout=30).json()

print(f"   hasData: {metrics['hasData']}")
print(f"   Views: {metrics['metrics']['totalViews']}, Calls: {metrics['metrics']['totalCalls']}")
print(f"   Average rating: {metrics['metrics']['averageRating']} ({metrics['metrics']['totalReviews']} reviews)")
print(f"   Latest reviews returned: {reviews['total']}")

# ============================================================================
# STEP 5: Verify in Supabase
# ============================================================================
print("\n[5/5] Verifying business_locations in Supabase...")

accounts = supabase_admin.table("google_accounts").select("id").eq("user_id", user_id).execute()
account_ids = [row["id"] for row in accounts.data or []]
locations = supabase_admin.table("business_locations")\
    .select("location_id, name")\
    .in_("google_account_id", account_ids)\
    .execute() if account_ids else None

stored = locations.data if locations else []
print(f"   Stored locations: {len(stored)}")
for row in stored[:5]:
    print(f"   - {row['name']} ({row['location_id']})")

if len(stored) < result["locationsCount"]:
    print("❌ Fewer rows in Supabase than the sync reported")
    sys.exit(1)

print("\n" + "=" * 80)
print("✅ End-to-end sync test passed")
print("=" * 80)
