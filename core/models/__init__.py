# =============================================================================
# core/models/ - Data Models
# =============================================================================
# - projectors.py: How a collection maps onto Supabase rows
# - references.py: Asset reference kinds and scan hits
# - reports.py: Pydantic schemas for job results
# =============================================================================

# -----------------------------------------------------------------------------
# Projectors - document <-> row mapping
# -----------------------------------------------------------------------------
from .projectors import (
    BusinessProjector,
    ColumnSpec,
    DocumentProjector,
    OwnerTableProjector,
    Projector,
    projector_for,
)

# -----------------------------------------------------------------------------
# References - scanner output
# -----------------------------------------------------------------------------
from .references import DataUri, ReferenceKind, ScanHit

# -----------------------------------------------------------------------------
# Reports - job results
# -----------------------------------------------------------------------------
from .reports import (
    CollectionStats,
    MigrationReport,
    ProblemEntry,
    ScanReport,
    ScanSample,
    VerificationReport,
    VerificationTotals,
)

__all__ = [
    # Projectors
    "BusinessProjector",
    "ColumnSpec",
    "DocumentProjector",
    "OwnerTableProjector",
    "Projector",
    "projector_for",
    # References
    "DataUri",
    "ReferenceKind",
    "ScanHit",
    # Reports
    "CollectionStats",
    "MigrationReport",
    "ProblemEntry",
    "ScanReport",
    "ScanSample",
    "VerificationReport",
    "VerificationTotals",
]
