"""
Health Check Routes
System status and diagnostics
"""
import logging
from fastapi import APIRouter

from bizpulse.core.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@router.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "BizPulse API",
        "version": "1.0.0",
        "description": "Google Business Profile sync and dashboard metrics",
        "environment": settings.environment,
        "endpoints": {
            "health": "/health",
            "auth_events": "/auth/events",
            "google_accounts": "/google/accounts",
            "sync": "/sync/google-business",
            "dashboard": {
                "metrics": "/dashboard/metrics",
                "reviews": "/dashboard/reviews"
            }
        }
    }
