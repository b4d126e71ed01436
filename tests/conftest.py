# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - Wires the real store, storage and fetcher classes to in-memory fakes
#   (tests/fakes.py) and an httpx.MockTransport
# =============================================================================

import itertools
import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# Settings are read from the environment the first time get_settings() runs

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("CLOUDFLARE_R2_PUBLIC_URL", "https://cdn.example.com")
os.environ.setdefault("LEGACY_STORAGE_DOMAINS", "legacy.example.com,firebasestorage.googleapis.com")

import httpx
import pytest

from app.config import build_legacy_pattern
from core.services.asset_migrator import AssetMigrator
from core.services.consistency_verifier import ConsistencyVerifier
from core.services.document_store import DocumentStore
from core.services.reference_scanner import ReferenceClassifier, ReferenceScanner
from lib.http_fetch import AssetFetcher
from lib.r2_storage import R2Storage
from lib.supabase_client import SupabaseClient
from tests.fakes import FakeS3, FakeSupabase

CANONICAL_BASE = "https://cdn.example.com"
BUCKET = "test-bucket"
LEGACY_DOMAINS = "legacy.example.com,firebasestorage.googleapis.com"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


# =============================================================================
# Relational Backend
# =============================================================================

@pytest.fixture
def fake_db():
    return FakeSupabase()


@pytest.fixture
def supabase_client(fake_db):
    return SupabaseClient("https://test-project.supabase.co", "test-service-key", client=fake_db)


@pytest.fixture
def store(supabase_client):
    return DocumentStore(supabase_client)


@pytest.fixture
def small_page_store(supabase_client):
    """Store with a tiny page size so pagination is exercised."""
    return DocumentStore(supabase_client, page_size=3)


# =============================================================================
# Object Storage
# =============================================================================

@pytest.fixture
def s3():
    return FakeS3()


@pytest.fixture
def storage(s3):
    return R2Storage(BUCKET, CANONICAL_BASE, client=s3)


# =============================================================================
# Scanning
# =============================================================================

@pytest.fixture
def classifier():
    return ReferenceClassifier(CANONICAL_BASE, build_legacy_pattern(None, LEGACY_DOMAINS))


@pytest.fixture
def scanner(classifier):
    return ReferenceScanner(classifier)


# =============================================================================
# Network
# =============================================================================

@pytest.fixture
def http_routes():
    """
    URL -> (status, body, content type) served by the mock transport.

    Tests add entries; unknown URLs answer 404.
    """
    return {}


@pytest.fixture
def fetcher(http_routes):
    def handler(request: httpx.Request) -> httpx.Response:
        status, body, content_type = http_routes.get(str(request.url), (404, b"", None))
        headers = {"content-type": content_type} if content_type else {}
        if request.method == "HEAD":
            return httpx.Response(status, headers=headers)
        return httpx.Response(status, content=body, headers=headers)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    yield AssetFetcher(client=client)
    client.close()


# =============================================================================
# Jobs
# =============================================================================

@pytest.fixture
def clock():
    """Strictly increasing millisecond clock."""
    ticks = itertools.count(1_700_000_000_000)
    return lambda: next(ticks)


@pytest.fixture
def migrator(store, storage, fetcher, scanner, clock):
    return AssetMigrator(store, storage, fetcher, scanner, clock=clock)


@pytest.fixture
def verifier(store, storage, fetcher, scanner):
    return ConsistencyVerifier(store, storage, fetcher, scanner, concurrency=4, sample_size=50)
