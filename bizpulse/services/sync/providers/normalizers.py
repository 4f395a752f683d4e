"""
Business Profile normalization
Maps raw Google payloads onto business_locations, reviews and daily_metrics rows
"""
import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

STAR_RATINGS = {
    "ONE": 1,
    "TWO": 2,
    "THREE": 3,
    "FOUR": 4,
    "FIVE": 5,
}

SEARCH_IMPRESSIONS = {
    "BUSINESS_IMPRESSIONS_DESKTOP_SEARCH",
    "BUSINESS_IMPRESSIONS_MOBILE_SEARCH",
}

SIMPLE_COUNTERS = {
    "CALL_CLICKS": "calls",
    "BUSINESS_DIRECTION_REQUESTS": "direction_requests",
    "WEBSITE_CLICKS": "website_clicks",
}


def normalize_location(raw_location: Dict[str, Any], google_account_id: str) -> Dict[str, Any]:
    """
    Normalize a Business Information location into our schema.

    Missing address/phone/website become empty strings; a missing title falls
    back to the last segment of the resource name.

    Args:
        raw_location: Location from the locations listing
        google_account_id: google_accounts.id owning this location

    Returns:
        business_locations row (location_id may be None if Google omitted the name)
    """
    resource_name = raw_location.get("name") or ""
    address = raw_location.get("storefrontAddress") or {}
    phone_numbers = raw_location.get("phoneNumbers") or {}

    display_name = (
        raw_location.get("title")
        or resource_name.split("/")[-1]
        or "Unknown Location"
    )

    return {
        "name": display_name,
        "location_id": resource_name or None,
        "address": " ".join(address.get("addressLines") or []),
        "city": address.get("locality") or "",
        "phone": phone_numbers.get("primaryPhone") or raw_location.get("primaryPhone") or "",
        "google_account_id": google_account_id,
        "website": raw_location.get("websiteUri") or "",
        "group_type": "business",
        "department": "main"
    }


def parse_star_rating(value: Any) -> Optional[int]:
    """ONE..FIVE (or 1..5) -> int; anything else -> None."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value if 1 <= value <= 5 else None
    if isinstance(value, str):
        return STAR_RATINGS.get(value.upper())
    return None


def normalize_review(raw_review: Dict[str, Any], location_row_id: str) -> Optional[Dict[str, Any]]:
    """
    Normalize a v4 review into our schema.

    Returns:
        reviews row, or None when the review has no id, no usable rating or no date
    """
    review_id = raw_review.get("reviewId") or (raw_review.get("name") or "").split("/")[-1]
    rating = parse_star_rating(raw_review.get("starRating"))
    review_date = raw_review.get("createTime") or raw_review.get("updateTime")

    if not review_id or rating is None or not review_date:
        logger.debug(f"Skipping review {review_id or '<no id>'}: rating={raw_review.get('starRating')}, date={review_date}")
        return None

    reviewer = raw_review.get("reviewer") or {}
    reply = raw_review.get("reviewReply") or {}

    return {
        "google_review_id": review_id,
        "location_id": location_row_id,
        "author_name": reviewer.get("displayName"),
        "rating": rating,
        "comment": raw_review.get("comment") or "",
        "review_date": review_date,
        "response_text": reply.get("comment"),
        "response_date": reply.get("updateTime")
    }


def _series_entries(multi_series: Iterable[Dict[str, Any]]) -> Iterable[Dict[str, Any]]:
    for group in multi_series:
        # Grouped form from fetchMultiDailyMetricsTimeSeries
        if "dailyMetricTimeSeries" in group:
            yield from group.get("dailyMetricTimeSeries") or []
        else:
            yield group


def _parse_date(raw_date: Dict[str, Any]) -> Optional[date]:
    try:
        return date(int(raw_date["year"]), int(raw_date["month"]), int(raw_date["day"]))
    except (KeyError, TypeError, ValueError):
        return None


def fold_daily_metrics(multi_series: List[Dict[str, Any]], location_row_id: str) -> List[Dict[str, Any]]:
    """
    Fold per-metric time series into one daily_metrics row per date.

    views  = every BUSINESS_IMPRESSIONS_* series
    searches = the *_SEARCH impression series
    actions  = calls + direction_requests + website_clicks

    Returns:
        Rows sorted by date ascending
    """
    rows: Dict[date, Dict[str, Any]] = {}

    for entry in _series_entries(multi_series):
        metric = entry.get("dailyMetric") or ""
        dated_values = (entry.get("timeSeries") or {}).get("datedValues") or []

        for dated_value in dated_values:
            day = _parse_date(dated_value.get("date") or {})
            if day is None:
                continue

            value = int(dated_value.get("value") or 0)
            row = rows.setdefault(day, {
                "location_id": location_row_id,
                "date": day.isoformat(),
                "views": 0,
                "searches": 0,
                "calls": 0,
                "direction_requests": 0,
                "website_clicks": 0,
                "actions": 0
            })

            if metric.startswith("BUSINESS_IMPRESSIONS_"):
                row["views"] += value
                if metric in SEARCH_IMPRESSIONS:
                    row["searches"] += value
            elif metric in SIMPLE_COUNTERS:
                row[SIMPLE_COUNTERS[metric]] += value

    for row in rows.values():
        row["actions"] = row["calls"] + row["direction_requests"] + row["website_clicks"]

    return [rows[day] for day in sorted(rows)]
