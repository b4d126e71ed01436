# =============================================================================
# core/services/reporting.py - Console Summaries
# =============================================================================
# Plain-text summaries printed by the command scripts at the end of a run.
# Labels are stable so operators can grep job output.
# =============================================================================

from core.models.reports import MigrationReport, ScanReport, VerificationReport

RULE = "=" * 60


def format_migration_summary(report: MigrationReport, title: str = "MIGRATION SUMMARY") -> str:
    lines = [
        "",
        RULE,
        title,
        RULE,
        f"Total Processed: {report.total_processed}",
        f"Success: {report.total_migrated}",
        f"Errors: {report.total_errors}",
        f"Skipped: {report.total_skipped}",
        "",
        "Per collection:",
    ]
    for stats in report.collections:
        status = " (FAILED TO READ)" if stats.failed else ""
        lines.append(
            f"  {stats.collection}: processed={stats.processed} migrated={stats.migrated} "
            f"skipped={stats.skipped} errors={stats.errors}{status}"
        )
    lines.append(RULE)
    return "\n".join(lines)


def format_verification_summary(report: VerificationReport) -> str:
    totals = report.totals
    lines = [
        "",
        RULE,
        "VERIFICATION SUMMARY",
        RULE,
        f"Public base URL: {report.canonical_base}",
        f"Legacy pattern: {report.legacy_pattern or '(disabled)'}",
        f"Collections scanned: {totals.collections}",
        f"Documents scanned: {totals.documents}",
        f"URLs found: {totals.urls}",
        f"Legacy URLs found: {totals.legacy_urls}",
        f"Inline references found: {totals.inline_refs}",
        f"Public (baseUrl) URLs found: {totals.canonical_urls}",
        f"Unique keys checked: {totals.unique_keys}",
        f"Missing in R2 (HEAD failed): {totals.missing_in_storage}",
    ]
    if report.check_cdn:
        lines.append(f"CDN 404 (HEAD): {totals.cdn_404}")
    if totals.probe_errors:
        lines.append(f"Probe errors: {totals.probe_errors}")
    if report.failed_collections:
        lines.append(f"Unreadable collections: {', '.join(report.failed_collections)}")

    if report.residual_samples:
        lines += ["", "Sample residual references:"]
        for entry in report.residual_samples:
            lines.append(f"  - {entry.collection}/{entry.document_id} {entry.field_path}: {entry.url}")

    if report.problems:
        lines += ["", f"Sample problems (first {len(report.problems)}):"]
        for entry in report.problems:
            if entry.error:
                reason = f"ERR {entry.error}"
            elif entry.exists_in_storage is False:
                reason = "missing in R2"
            else:
                reason = f"CDN {entry.cdn_status}"
            lines.append(
                f"  - {entry.collection}/{entry.document_id} {entry.field_path} "
                f"key={entry.key} [{reason}] {entry.url}"
            )

    lines += ["", "Result: CLEAN" if report.is_clean else "Result: PROBLEMS FOUND", RULE]
    return "\n".join(lines)


def format_scan_summary(report: ScanReport, mode: str) -> str:
    lines = [
        "",
        RULE,
        f"REFERENCE SCAN ({mode})",
        RULE,
        f"Collections scanned: {report.collections_scanned}",
        f"Documents scanned: {report.documents_scanned}",
        f"References found: {report.total_hits}",
    ]
    if report.hits_by_collection:
        lines += ["", "By collection:"]
        lines += [f"  {name}: {count}" for name, count in report.hits_by_collection.items()]
    if report.hits_by_host:
        lines += ["", "By host:"]
        lines += [f"  {host}: {count}" for host, count in report.hits_by_host.items()]
    if report.samples:
        lines += ["", "Samples:"]
        for s in report.samples:
            lines.append(f"  - {s.collection}/{s.document_id} {s.field_path} [{s.kind}] {s.reference}")
    lines.append(RULE)
    return "\n".join(lines)
