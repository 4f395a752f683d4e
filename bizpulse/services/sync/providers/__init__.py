"""
Data Source Providers
Google Business Profile client and normalization into the storage schema
"""
from bizpulse.services.sync.providers.business_profile import BusinessProfileClient
from bizpulse.services.sync.providers.normalizers import (
    fold_daily_metrics,
    normalize_location,
    normalize_review,
)

__all__ = [
    "BusinessProfileClient",
    "fold_daily_metrics",
    "normalize_location",
    "normalize_review",
]
