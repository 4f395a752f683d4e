"""
Unified Configuration
All environment variables and settings in one place

ARCHITECTURE:
- ONE Supabase project for auth + storage (google_accounts, business_locations,
  daily_metrics, reviews)
- Google OAuth client credentials used only for refresh-token exchange
- Google endpoint URLs are configurable so tests and sandboxes can point elsewhere

SECURITY:
- All secrets loaded from environment variables
- No hardcoded credentials
"""
from typing import List, Optional
import logging
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, model_validator

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Unified application settings.
    Validates all environment variables at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ============================================================================
    # SERVER
    # ============================================================================

    environment: str = Field(default="production", description="Environment: development/staging/production")
    port: int = Field(default=8080, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")

    # ============================================================================
    # DATABASE + AUTH (Supabase)
    # ============================================================================

    supabase_url: str = Field(description="Supabase project URL")
    supabase_anon_key: Optional[str] = Field(default=None, description="Supabase anonymous key (only the e2e smoke script signs in with it)")
    supabase_service_key: str = Field(description="Supabase service key (backend uses this)")

    # ============================================================================
    # GOOGLE OAUTH
    # ============================================================================

    google_client_id: Optional[str] = Field(default=None, description="Google OAuth client ID (refresh-token exchange)")
    google_client_secret: Optional[str] = Field(default=None, description="Google OAuth client secret")

    google_token_info_url: str = Field(
        default="https://www.googleapis.com/oauth2/v1/tokeninfo",
        description="Token liveness probe endpoint"
    )
    google_token_url: str = Field(
        default="https://oauth2.googleapis.com/token",
        description="Token refresh endpoint"
    )

    # ============================================================================
    # GOOGLE BUSINESS PROFILE APIS
    # ============================================================================

    google_accounts_url: str = Field(
        default="https://mybusinessaccountmanagement.googleapis.com/v1/accounts",
        description="Business accounts listing endpoint"
    )
    google_business_info_base_url: str = Field(
        default="https://mybusinessbusinessinformation.googleapis.com/v1",
        description="Base URL for per-account locations listing"
    )
    google_reviews_base_url: str = Field(
        default="https://mybusiness.googleapis.com/v4",
        description="Base URL for per-location reviews listing"
    )
    google_performance_base_url: str = Field(
        default="https://businessprofileperformance.googleapis.com/v1",
        description="Base URL for daily metrics time series"
    )
    google_location_read_mask: str = Field(
        default="name,title,storefrontAddress,phoneNumbers,websiteUri",
        description="readMask sent with locations listing"
    )

    # ============================================================================
    # SYNC TUNING
    # ============================================================================

    sync_max_attempts: int = Field(default=3, ge=1, description="Total attempts per Google call when rate limited")
    sync_backoff_seconds: float = Field(default=2.0, ge=0, description="Backoff step (delay grows 2s, 4s, ...)")
    sync_initial_delay_seconds: float = Field(default=1.0, ge=0, description="Pause before the first Google business call")
    sync_account_delay_seconds: float = Field(default=1.5, ge=0, description="Pause before each account's locations call")
    sync_location_delay_seconds: float = Field(default=0.5, ge=0, description="Pause before each location's reviews/metrics calls")
    rate_limit_retry_after_seconds: int = Field(default=60, description="Suggested retry delay after exhausting retries")

    sync_reviews: bool = Field(default=True, description="Also sync reviews for each stored location")
    sync_metrics: bool = Field(default=True, description="Also sync daily metrics for each stored location")
    metrics_lookback_days: int = Field(default=30, ge=1, description="Days of daily metrics to fetch per sync")

    sync_rate_limit: str = Field(default="30/hour", description="slowapi limit for the sync endpoint")

    # ============================================================================
    # PRODUCTION INFRASTRUCTURE
    # ============================================================================

    # Error tracking (Sentry)
    sentry_dsn: Optional[str] = Field(default=None, description="Sentry DSN for error tracking")

    # ============================================================================
    # CORS
    # ============================================================================

    cors_allowed_origins: str = Field(default="http://localhost:5173", description="Comma-separated list of allowed CORS origins")

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_allowed_origins.split(",") if origin.strip()]

    @model_validator(mode='after')
    def validate_settings(self):
        """
        Validate critical settings at startup.

        SECURITY CHECKS:
        - Warn if debug mode enabled in production
        - Warn if Google client credentials are missing (refresh will fail)
        """
        if self.environment == "production":
            if self.debug:
                logger.warning("⚠️  DEBUG MODE ENABLED IN PRODUCTION! This is insecure.")

            if not self.sentry_dsn:
                logger.warning("⚠️  Sentry not configured in production. Error tracking disabled.")

        if not self.google_client_id or not self.google_client_secret:
            logger.warning("⚠️  GOOGLE_CLIENT_ID/GOOGLE_CLIENT_SECRET not set. Token refresh will fail.")

        logger.info("=" * 80)
        logger.info("BizPulse Configuration Loaded")
        logger.info("=" * 80)
        logger.info(f"Environment: {self.environment}")
        logger.info(f"Debug: {self.debug}")
        logger.info(f"Supabase URL: {self.supabase_url}")
        logger.info(f"Google OAuth: {'✅ Configured' if self.google_client_id else '❌ Not configured'}")
        logger.info(f"Sentry: {'✅ Configured' if self.sentry_dsn else '❌ Not configured'}")
        logger.info(f"Reviews Sync: {'✅ Enabled' if self.sync_reviews else '❌ Disabled'}")
        logger.info(f"Metrics Sync: {'✅ Enabled' if self.sync_metrics else '❌ Disabled'}")
        logger.info("=" * 80)

        return self


# Global settings instance
settings = Settings()
