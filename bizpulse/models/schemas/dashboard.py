"""
Dashboard Schemas
Aggregated metrics and reviews read by the dashboard views
"""
from typing import List, Optional
from pydantic import BaseModel


class BusinessMetrics(BaseModel):
    """Counter totals over the most recent lookbackDays daily rows (across all locations) plus review stats."""
    totalViews: int = 0
    totalSearches: int = 0
    totalActions: int = 0
    totalCalls: int = 0
    totalDirections: int = 0
    totalWebsiteClicks: int = 0
    averageRating: float = 0.0
    totalReviews: int = 0


class RatingBucket(BaseModel):
    rating: int
    count: int
    percentage: float


class ReviewItem(BaseModel):
    id: str
    author_name: Optional[str] = None
    rating: int
    comment: Optional[str] = None
    review_date: str
    response_text: Optional[str] = None
    response_date: Optional[str] = None


class DashboardMetricsResponse(BaseModel):
    hasData: bool
    lookbackDays: int
    locationsCount: int
    metrics: BusinessMetrics
    ratingDistribution: List[RatingBucket]


class ReviewsResponse(BaseModel):
    reviews: List[ReviewItem]
    total: int
