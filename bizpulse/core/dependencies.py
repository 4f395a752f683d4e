"""
Dependency Injection
Provides reusable dependencies for FastAPI routes

DEPENDENCIES:
- Supabase client (database + auth)
- HTTP client (Google APIs)
- Sleep function (pacing + backoff; swapped for a no-op in tests)
"""
import asyncio
import logging
from typing import AsyncGenerator

import httpx
from supabase import create_client, Client

from bizpulse.core.config import settings
from bizpulse.core.retry import SleepFunc

logger = logging.getLogger(__name__)

# ============================================================================
# GLOBAL CLIENTS (initialized once, reused across requests)
# ============================================================================

# Supabase client (singleton)
_supabase_client: Client = None


# ============================================================================
# INITIALIZATION (called on app startup)
# ============================================================================

async def initialize_clients():
    """
    Initialize all global clients on app startup.

    Called from main.py lifespan event.
    """
    global _supabase_client

    logger.info("Initializing global clients...")

    try:
        _supabase_client = create_client(
            settings.supabase_url,
            settings.supabase_service_key  # Backend uses service role
        )
        logger.info("✅ Supabase client initialized")
    except Exception as e:
        logger.error(f"❌ Failed to initialize Supabase: {e}")
        raise

    logger.info("✅ All clients initialized successfully")


async def shutdown_clients():
    """
    Shutdown all global clients on app shutdown.

    Called from main.py lifespan event.
    """
    global _supabase_client

    logger.info("Shutting down global clients...")

    # Supabase doesn't need explicit cleanup
    _supabase_client = None

    logger.info("✅ All clients shutdown complete")


# ============================================================================
# DEPENDENCY FUNCTIONS (injected into routes)
# ============================================================================

def get_supabase() -> Client:
    """
    Get Supabase client for dependency injection.

    Usage:
        @router.get("/example")
        async def example(supabase: Client = Depends(get_supabase)):
            result = supabase.table("business_locations").select("*").execute()
            return result.data

    Returns:
        Supabase client (service role)
    """
    if _supabase_client is None:
        logger.error("Supabase client not initialized")
        raise RuntimeError("Supabase client not initialized. Call initialize_clients() first.")

    return _supabase_client


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """
    Get HTTP client for Google API calls.

    Usage:
        @router.post("/external")
        async def external(http: httpx.AsyncClient = Depends(get_http_client)):
            response = await http.get("https://api.example.com")
            return response.json()

    Yields:
        httpx.AsyncClient (closed after the request)
    """
    async with httpx.AsyncClient(timeout=30.0) as client:
        yield client


def get_sleep() -> SleepFunc:
    """Delay function used for pacing and rate-limit backoff."""
    return asyncio.sleep
