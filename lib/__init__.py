# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains clients for external services and small helpers:
# - supabase_client.py: Lazily-initialized Supabase handle (admin / public)
# - r2_storage.py: Cloudflare R2 object storage via boto3, object key naming
# - http_fetch.py: httpx downloads and HEAD probes
# - utils.py: Shared utilities (UUID normalization, timestamps)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.r2_storage import R2Storage, UploadResult, build_object_key
from lib.http_fetch import AssetFetcher, FetchedAsset
from lib.utils import normalize_uuid

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # Object storage
    "R2Storage",
    "UploadResult",
    "build_object_key",
    # HTTP
    "AssetFetcher",
    "FetchedAsset",
    # Utils
    "normalize_uuid",
]
