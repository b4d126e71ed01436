# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .document_store import DocumentStore
from .reference_scanner import ReferenceClassifier, ReferenceScanner
from .asset_migrator import AssetMigrator, FieldRole, MigrationTarget
from .consistency_verifier import ConsistencyVerifier

__all__ = [
    "DocumentStore",
    "ReferenceClassifier",
    "ReferenceScanner",
    "AssetMigrator",
    "FieldRole",
    "MigrationTarget",
    "ConsistencyVerifier",
]
