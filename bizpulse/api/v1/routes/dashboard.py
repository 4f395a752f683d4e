"""
Dashboard Routes
Read-side aggregation for the metrics and reviews views
"""
import logging
from fastapi import APIRouter, Depends, Query
from supabase import Client

from bizpulse.core.dependencies import get_supabase
from bizpulse.core.security import get_current_user_context
from bizpulse.models.schemas import DashboardMetricsResponse, ReviewsResponse, UserContext
from bizpulse.services.dashboard import load_dashboard_metrics, load_reviews

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/metrics", response_model=DashboardMetricsResponse)
async def dashboard_metrics(
    lookbackDays: int = Query(30, ge=1, le=365, description="Most recent daily rows to sum (rows across all locations, not calendar days)"),
    user: UserContext = Depends(get_current_user_context),
    supabase: Client = Depends(get_supabase)
):
    """Totals, average rating and rating distribution for the user's locations."""
    return await load_dashboard_metrics(supabase, user.user_id, lookbackDays)


@router.get("/reviews", response_model=ReviewsResponse)
async def dashboard_reviews(
    limit: int = Query(50, ge=1, le=500),
    user: UserContext = Depends(get_current_user_context),
    supabase: Client = Depends(get_supabase)
):
    """The user's reviews, newest first."""
    return await load_reviews(supabase, user.user_id, limit)
