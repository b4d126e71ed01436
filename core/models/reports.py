# =============================================================================
# core/models/reports.py - Batch Job Result Schemas
# =============================================================================
# Counters produced by the migration, scan, and verification jobs.
# They are printed by core/services/reporting.py and returned as plain
# dicts (model_dump) from Celery tasks.
# =============================================================================

from pydantic import BaseModel, Field


# =============================================================================
# Migration
# =============================================================================

class CollectionStats(BaseModel):
    """
    Per-collection migration counters.

    processed == migrated + skipped + errors once the collection finishes.
    """

    collection: str
    processed: int = 0
    migrated: int = 0
    skipped: int = 0
    errors: int = 0

    # True when the collection could not be read at all
    failed: bool = False


class MigrationReport(BaseModel):
    """Aggregate of a migration run over several collections."""

    collections: list[CollectionStats] = Field(default_factory=list)

    @property
    def total_processed(self) -> int:
        return sum(c.processed for c in self.collections)

    @property
    def total_migrated(self) -> int:
        return sum(c.migrated for c in self.collections)

    @property
    def total_skipped(self) -> int:
        return sum(c.skipped for c in self.collections)

    @property
    def total_errors(self) -> int:
        return sum(c.errors for c in self.collections)

    @property
    def failed_collections(self) -> list[str]:
        return [c.collection for c in self.collections if c.failed]

    def get(self, collection: str) -> CollectionStats | None:
        return next((c for c in self.collections if c.collection == collection), None)


# =============================================================================
# Scanning
# =============================================================================

class ScanSample(BaseModel):
    collection: str
    document_id: str
    field_path: str
    reference: str
    kind: str


class ScanReport(BaseModel):
    """Result of a read-only reference scan."""

    collections_scanned: int = 0
    documents_scanned: int = 0
    total_hits: int = 0
    hits_by_collection: dict[str, int] = Field(default_factory=dict)
    hits_by_host: dict[str, int] = Field(default_factory=dict)
    samples: list[ScanSample] = Field(default_factory=list)


# =============================================================================
# Verification
# =============================================================================

class ProblemEntry(BaseModel):
    """One candidate that failed verification."""

    collection: str
    document_id: str
    field_path: str
    url: str
    key: str | None = None
    exists_in_storage: bool | None = None
    cdn_status: int | None = None
    error: str | None = None


class VerificationTotals(BaseModel):
    collections: int = 0
    documents: int = 0
    urls: int = 0
    legacy_urls: int = 0
    canonical_urls: int = 0
    inline_refs: int = 0
    unique_keys: int = 0
    missing_in_storage: int = 0
    cdn_404: int = 0
    probe_errors: int = 0


class VerificationReport(BaseModel):
    """Result of a verification pass."""

    canonical_base: str
    legacy_pattern: str | None = None
    check_cdn: bool = False
    totals: VerificationTotals = Field(default_factory=VerificationTotals)
    problems: list[ProblemEntry] = Field(default_factory=list)
    residual_samples: list[ProblemEntry] = Field(default_factory=list)
    failed_collections: list[str] = Field(default_factory=list)

    @property
    def has_residual_references(self) -> bool:
        return self.totals.legacy_urls > 0 or self.totals.inline_refs > 0

    @property
    def is_clean(self) -> bool:
        return (
            not self.has_residual_references
            and self.totals.missing_in_storage == 0
            and self.totals.cdn_404 == 0
            and self.totals.probe_errors == 0
        )
