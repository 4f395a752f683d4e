"""
Dashboard Read Models
Aggregates synced Business Profile data for the dashboard views
"""
from bizpulse.services.dashboard.metrics import load_dashboard_metrics, load_reviews

__all__ = [
    "load_dashboard_metrics",
    "load_reviews",
]
