# =============================================================================
# tests/test_reporting.py - Console Summary Tests
# =============================================================================
# Operators grep these labels; the tests pin them.
# =============================================================================

from __future__ import annotations

from core.models.reports import (
    CollectionStats,
    MigrationReport,
    ProblemEntry,
    ScanReport,
    VerificationReport,
    VerificationTotals,
)
from core.services.reporting import (
    format_migration_summary,
    format_scan_summary,
    format_verification_summary,
)


class TestMigrationSummary:
    def test_labels_and_totals(self):
        report = MigrationReport(collections=[
            CollectionStats(collection="businesses", processed=4, migrated=2, skipped=1, errors=1),
            CollectionStats(collection="ff_products", failed=True),
        ])

        text = format_migration_summary(report)

        assert "Total Processed: 4" in text
        assert "Success: 2" in text
        assert "Errors: 1" in text
        assert "Skipped: 1" in text
        assert "ff_products: processed=0 migrated=0 skipped=0 errors=0 (FAILED TO READ)" in text


class TestVerificationSummary:
    def _report(self, **totals) -> VerificationReport:
        return VerificationReport(
            canonical_base="https://cdn.example.com",
            legacy_pattern="https?://(?:legacy\\.example\\.com)(?:/|$)",
            totals=VerificationTotals(**totals),
        )

    def test_labels(self):
        text = format_verification_summary(self._report(documents=10, urls=7, legacy_urls=2, canonical_urls=5))

        for label in (
            "Documents scanned: 10",
            "URLs found: 7",
            "Legacy URLs found: 2",
            "Inline references found: 0",
            "Public (baseUrl) URLs found: 5",
            "Missing in R2 (HEAD failed): 0",
        ):
            assert label in text
        assert "CDN 404 (HEAD)" not in text
        assert "Result: PROBLEMS FOUND" in text

    def test_cdn_line_and_problem_rows(self):
        report = self._report(documents=1, urls=1, canonical_urls=1, cdn_404=1)
        report.check_cdn = True
        report.problems.append(ProblemEntry(
            collection="businesses",
            document_id="b1",
            field_path="logo",
            url="https://cdn.example.com/logos/b1/1_logo.png",
            key="logos/b1/1_logo.png",
            exists_in_storage=True,
            cdn_status=404,
        ))

        text = format_verification_summary(report)

        assert "CDN 404 (HEAD): 1" in text
        assert "businesses/b1 logo key=logos/b1/1_logo.png [CDN 404]" in text

    def test_clean(self):
        assert "Result: CLEAN" in format_verification_summary(self._report())


class TestScanSummary:
    def test_groups(self):
        report = ScanReport(
            collections_scanned=2,
            documents_scanned=9,
            total_hits=3,
            hits_by_collection={"ff_products": 3},
            hits_by_host={"data:image/png": 3},
        )

        text = format_scan_summary(report, "inline")

        assert "REFERENCE SCAN (inline)" in text
        assert "References found: 3" in text
        assert "  ff_products: 3" in text
        assert "  data:image/png: 3" in text
