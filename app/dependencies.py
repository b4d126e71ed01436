# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# Builds the collaborators each job needs from Settings. Entry points
# (scripts, Celery tasks) construct them once and pass them down; nothing
# below keeps module-level client state.
#
# Usage:
#   settings = get_settings()
#   store = build_store(settings)
#   migrator = build_migrator(settings, store)
# =============================================================================

import logging

from app.config import Settings
from core.services.asset_migrator import AssetMigrator
from core.services.consistency_verifier import ConsistencyVerifier
from core.services.document_store import DocumentStore
from core.services.reference_scanner import ReferenceClassifier, ReferenceScanner
from lib.http_fetch import AssetFetcher
from lib.r2_storage import R2Storage
from lib.supabase_client import ClientRole, SupabaseClient

logger = logging.getLogger(__name__)


def build_store(settings: Settings, role: ClientRole = "admin") -> DocumentStore:
    return DocumentStore(
        SupabaseClient.from_settings(settings, role=role),
        page_size=settings.DOCUMENT_PAGE_SIZE,
    )


def build_scanner(settings: Settings) -> ReferenceScanner:
    pattern = settings.legacy_storage_pattern
    if pattern is None:
        logger.warning(
            "No LEGACY_STORAGE_REGEX or LEGACY_STORAGE_DOMAINS set; legacy URLs will not be detected"
        )
    return ReferenceScanner(ReferenceClassifier(settings.canonical_base_url, pattern))


def build_migrator(
    settings: Settings,
    store: DocumentStore,
    fetcher: AssetFetcher | None = None,
) -> AssetMigrator:
    """
    Raises:
        ConfigurationError: If R2 credentials are missing
    """
    return AssetMigrator(
        store=store,
        storage=R2Storage.from_settings(settings),
        fetcher=fetcher or AssetFetcher(),
        scanner=build_scanner(settings),
    )


def build_verifier(
    settings: Settings,
    store: DocumentStore,
    fetcher: AssetFetcher | None = None,
) -> ConsistencyVerifier:
    """
    Raises:
        ConfigurationError: If R2 credentials are missing
    """
    return ConsistencyVerifier(
        store=store,
        storage=R2Storage.from_settings(settings),
        fetcher=fetcher or AssetFetcher(),
        scanner=build_scanner(settings),
        concurrency=settings.VERIFY_CONCURRENCY,
        sample_size=settings.VERIFY_SAMPLE_SIZE,
    )


def configure_logging(settings: Settings) -> None:
    """Root logging setup shared by scripts and workers."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # boto and httpx are chatty at INFO
    for noisy in ("botocore", "boto3", "urllib3", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
