# =============================================================================
# core/services/reference_scan.py - Read-Only Reference Scan Job
# =============================================================================
# Reports where asset references still live, without changing anything.
#
# Modes:
#   inline       - every inline data URI, in any field
#   interesting  - inline, legacy and canonical references under asset-like
#                  field names (logo, cover, image, ...), grouped by host
# =============================================================================

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from enum import Enum
from urllib.parse import urlsplit

from core.models.references import ReferenceKind, ScanHit
from core.models.reports import ScanReport, ScanSample
from core.registry import SCAN_COLLECTIONS
from core.services.document_store import DocumentStore
from core.services.reference_scanner import ReferenceScanner, inline_mime

logger = logging.getLogger(__name__)


class ScanMode(str, Enum):
    INLINE = "inline"
    INTERESTING = "interesting"


def host_bucket(hit: ScanHit) -> str:
    """Grouping label: the MIME type for inline hits, the host otherwise."""
    if hit.kind == ReferenceKind.INLINE:
        return f"data:{inline_mime(hit.reference) or 'unknown'}"
    try:
        return urlsplit(hit.reference).netloc.lower() or "(no host)"
    except ValueError:
        return "(unparseable)"


def scan_references(
    store: DocumentStore,
    scanner: ReferenceScanner,
    collections: Iterable[str] = SCAN_COLLECTIONS,
    mode: ScanMode = ScanMode.INLINE,
    sample_size: int = 50,
) -> ScanReport:
    """
    Scan collections and count references by collection and host.

    Collections that can't be read are logged and left out of the counts.
    """
    mode = ScanMode(mode)
    if mode == ScanMode.INLINE:
        kinds = {ReferenceKind.INLINE}
    else:
        kinds = {ReferenceKind.INLINE, ReferenceKind.LEGACY, ReferenceKind.CANONICAL}
    interesting_only = mode == ScanMode.INTERESTING

    report = ScanReport()
    by_host: Counter[str] = Counter()

    for collection in collections:
        try:
            documents = store.get_collection(collection)
        except Exception as e:
            logger.warning(f"Skipping {collection}: {e}")
            continue

        report.collections_scanned += 1
        report.documents_scanned += len(documents)
        found = 0

        for doc in documents:
            hits = scanner.scan_document(collection, doc, kinds=kinds, interesting_only=interesting_only)
            for hit in hits:
                found += 1
                by_host[host_bucket(hit)] += 1
                if len(report.samples) < sample_size:
                    report.samples.append(ScanSample(
                        collection=hit.collection,
                        document_id=hit.document_id,
                        field_path=hit.field_path,
                        reference=hit.reference[:80],
                        kind=hit.kind.value,
                    ))

        if found:
            report.hits_by_collection[collection] = found
            logger.info(f"{collection}: {found} references in {len(documents)} documents")

    report.total_hits = sum(report.hits_by_collection.values())
    report.hits_by_host = dict(by_host.most_common())
    return report
