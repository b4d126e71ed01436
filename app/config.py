# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import get_settings
#   settings = get_settings()
#   print(settings.SUPABASE_URL)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
#
# Object storage credentials are only required by the jobs that upload or
# probe objects, so they are validated on demand via require_r2().
# =============================================================================

import logging
import re
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings are accessed via get_settings(), which parses the
    environment once per process.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------
    # These are required - nothing can run without the relational backend

    SUPABASE_URL: str = Field(
        ...,
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_ANON_KEY: str = Field(
        ...,
        description="Supabase anon/public API key (restricted client)"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    DOCUMENT_PAGE_SIZE: int = Field(
        default=1000,
        ge=1,
        le=10000,
        description="Rows fetched per page when reading a whole collection"
    )

    # -------------------------------------------------------------------------
    # Cloudflare R2 (S3-compatible object storage)
    # -------------------------------------------------------------------------

    CLOUDFLARE_R2_ACCOUNT_ID: str | None = Field(
        default=None,
        description="Cloudflare account id, used to build the R2 endpoint"
    )

    CLOUDFLARE_R2_ACCESS_KEY_ID: str | None = Field(
        default=None,
        description="R2 access key id"
    )

    CLOUDFLARE_R2_SECRET_ACCESS_KEY: str | None = Field(
        default=None,
        description="R2 secret access key"
    )

    CLOUDFLARE_R2_BUCKET_NAME: str | None = Field(
        default=None,
        description="Bucket that receives migrated assets"
    )

    CLOUDFLARE_R2_PUBLIC_URL: str = Field(
        default="https://cdn.tikprofil.com",
        description="Public CDN base URL for objects in the bucket"
    )

    # -------------------------------------------------------------------------
    # Legacy Storage Matching
    # -------------------------------------------------------------------------
    # A raw regex wins over the domain list when both are set

    LEGACY_STORAGE_REGEX: str | None = Field(
        default=None,
        description="Regular expression matching legacy-hosted asset URLs"
    )

    LEGACY_STORAGE_DOMAINS: str | None = Field(
        default=None,
        description="Comma-separated legacy storage hosts (e.g. firebasestorage.googleapis.com)"
    )

    # -------------------------------------------------------------------------
    # Verification
    # -------------------------------------------------------------------------

    VERIFY_CONCURRENCY: int = Field(
        default=20,
        ge=1,
        le=200,
        description="Number of concurrent existence probes"
    )

    VERIFY_SAMPLE_SIZE: int = Field(
        default=50,
        ge=0,
        description="Problem rows printed at the end of a verification run"
    )

    # -------------------------------------------------------------------------
    # Redis Configuration (for Celery)
    # -------------------------------------------------------------------------

    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for Celery broker"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Root log level for scripts and workers"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def canonical_base_url(self) -> str:
        """Public base URL without trailing slashes."""
        return self.CLOUDFLARE_R2_PUBLIC_URL.rstrip("/")

    @property
    def r2_endpoint_url(self) -> str:
        return f"https://{self.CLOUDFLARE_R2_ACCOUNT_ID}.r2.cloudflarestorage.com"

    @property
    def legacy_storage_pattern(self) -> re.Pattern[str] | None:
        """
        Compiled legacy URL matcher.

        Returns None when neither LEGACY_STORAGE_REGEX nor
        LEGACY_STORAGE_DOMAINS is set, which disables legacy matching.
        """
        return build_legacy_pattern(self.LEGACY_STORAGE_REGEX, self.LEGACY_STORAGE_DOMAINS)

    def require_r2(self) -> None:
        """
        Fail fast when object storage credentials are missing.

        Raises:
            ConfigurationError: Listing every missing variable
        """
        required = {
            "CLOUDFLARE_R2_ACCOUNT_ID": self.CLOUDFLARE_R2_ACCOUNT_ID,
            "CLOUDFLARE_R2_ACCESS_KEY_ID": self.CLOUDFLARE_R2_ACCESS_KEY_ID,
            "CLOUDFLARE_R2_SECRET_ACCESS_KEY": self.CLOUDFLARE_R2_SECRET_ACCESS_KEY,
            "CLOUDFLARE_R2_BUCKET_NAME": self.CLOUDFLARE_R2_BUCKET_NAME,
            "CLOUDFLARE_R2_PUBLIC_URL": self.CLOUDFLARE_R2_PUBLIC_URL,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ConfigurationError(missing)


def build_legacy_pattern(
    raw_regex: str | None,
    raw_domains: str | None,
) -> re.Pattern[str] | None:
    """
    Compile the legacy storage matcher.

    Example:
        build_legacy_pattern(None, "a.com, b.com")
        # -> re.compile(r"https?://(?:a\\.com|b\\.com)(?:/|$)", re.I)
    """
    raw_regex = (raw_regex or "").strip()
    if raw_regex:
        try:
            return re.compile(raw_regex, re.IGNORECASE)
        except re.error as e:
            logger.warning(f"Invalid LEGACY_STORAGE_REGEX: {e}")

    domains = [re.escape(d.strip()) for d in (raw_domains or "").split(",") if d.strip()]
    if not domains:
        return None
    return re.compile(rf"https?://(?:{'|'.join(domains)})(?:/|$)", re.IGNORECASE)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once,
    not on every access.
    """
    return Settings()
