"""
Dashboard Metrics
Sums the most recent daily metric rows and summarizes review ratings
"""
import logging
from typing import Any, Dict, List

from supabase import Client

from bizpulse.models.schemas import (
    BusinessMetrics,
    DashboardMetricsResponse,
    RatingBucket,
    ReviewItem,
    ReviewsResponse,
)
from bizpulse.services.sync.database import get_recent_daily_metrics, get_reviews, get_user_location_ids

logger = logging.getLogger(__name__)


def _count(row: Dict[str, Any], column: str) -> int:
    return int(row.get(column) or 0)


def summarize_metrics(daily_rows: List[Dict[str, Any]], reviews: List[Dict[str, Any]]) -> BusinessMetrics:
    """
    Sum daily counters and compute review stats.

    Null counters count as 0. Average rating is rounded to 2 decimals (0 when
    there are no reviews).
    """
    ratings = [review["rating"] for review in reviews if review.get("rating")]
    average = round(sum(ratings) / len(ratings), 2) if ratings else 0.0

    return BusinessMetrics(
        totalViews=sum(_count(row, "views") for row in daily_rows),
        totalSearches=sum(_count(row, "searches") for row in daily_rows),
        totalActions=sum(_count(row, "actions") for row in daily_rows),
        totalCalls=sum(_count(row, "calls") for row in daily_rows),
        totalDirections=sum(_count(row, "direction_requests") for row in daily_rows),
        totalWebsiteClicks=sum(_count(row, "website_clicks") for row in daily_rows),
        averageRating=average,
        totalReviews=len(reviews)
    )


def rating_distribution(reviews: List[Dict[str, Any]]) -> List[RatingBucket]:
    """Count and percentage per star, 5 down to 1."""
    total = len(reviews)
    buckets = []

    for rating in range(5, 0, -1):
        count = sum(1 for review in reviews if review.get("rating") == rating)
        percentage = round(count / total * 100, 1) if total else 0.0
        buckets.append(RatingBucket(rating=rating, count=count, percentage=percentage))

    return buckets


async def load_dashboard_metrics(supabase: Client, user_id: str, lookback_days: int = 30) -> DashboardMetricsResponse:
    """
    Build the dashboard summary for one user.

    Args:
        supabase: Supabase client
        user_id: Authenticated user id
        lookback_days: Number of most recent daily rows to sum

    Returns:
        DashboardMetricsResponse (hasData=False and zeroed metrics without locations)
    """
    location_ids = await get_user_location_ids(supabase, user_id)

    if not location_ids:
        logger.info(f"No business locations for user {user_id}")
        return DashboardMetricsResponse(
            hasData=False,
            lookbackDays=lookback_days,
            locationsCount=0,
            metrics=BusinessMetrics(),
            ratingDistribution=rating_distribution([])
        )

    daily_rows = await get_recent_daily_metrics(supabase, location_ids, lookback_days)
    reviews = await get_reviews(supabase, location_ids)

    logger.info(
        f"Dashboard metrics for user {user_id}: {len(location_ids)} locations, "
        f"{len(daily_rows)} daily rows, {len(reviews)} reviews"
    )

    return DashboardMetricsResponse(
        hasData=True,
        lookbackDays=lookback_days,
        locationsCount=len(location_ids),
        metrics=summarize_metrics(daily_rows, reviews),
        ratingDistribution=rating_distribution(reviews)
    )


async def load_reviews(supabase: Client, user_id: str, limit: int = 50) -> ReviewsResponse:
    """The user's reviews, newest first."""
    location_ids = await get_user_location_ids(supabase, user_id)
    rows = await get_reviews(supabase, location_ids, limit=limit)

    reviews = [
        ReviewItem(
            id=str(row["id"]),
            author_name=row.get("author_name"),
            rating=row["rating"],
            comment=row.get("comment"),
            review_date=str(row["review_date"]),
            response_text=row.get("response_text"),
            response_date=row.get("response_date")
        )
        for row in rows
    ]
    return ReviewsResponse(reviews=reviews, total=len(reviews))
