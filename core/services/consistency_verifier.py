# =============================================================================
# core/services/consistency_verifier.py - Post-Migration Verification
# =============================================================================
# Re-scans collections after a migration and checks that every referenced
# object actually exists:
# - legacy and inline references still present are counted as residual
# - each distinct object key is probed once against R2 (HEAD object)
# - optionally, canonical URLs are HEAD-probed on the public CDN
#
# Probing runs on a fixed pool of worker threads. Workers share nothing but
# an itertools.count cursor into the candidate list and an append-only
# results list.
# =============================================================================

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

from app.exceptions import AssetPipelineError
from core.models.references import ReferenceKind, ScanHit
from core.models.reports import ProblemEntry, VerificationReport
from core.registry import SCAN_COLLECTIONS
from core.services.document_store import DocumentStore
from core.services.reference_scanner import ReferenceScanner
from lib.http_fetch import AssetFetcher
from lib.r2_storage import R2Storage

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 20
DEFAULT_SAMPLE_SIZE = 50
DEFAULT_LIMIT = 200


@dataclass(frozen=True)
class Candidate:
    """A unique object key to probe, with the first place it was seen."""
    collection: str
    document_id: str
    field_path: str
    url: str
    key: str
    kind: ReferenceKind


@dataclass(frozen=True)
class ProbeResult:
    position: int
    candidate: Candidate
    exists: bool | None
    cdn_status: int | None = None
    error: str | None = None


class ConsistencyVerifier:
    """
    Verification pass over migrated collections.

    Example:
        verifier = ConsistencyVerifier(store, storage, fetcher, scanner)
        report = verifier.run(["businesses"], scan_all=True)
        report.totals.missing_in_storage  # 0 when every object is present
    """

    def __init__(
        self,
        store: DocumentStore,
        storage: R2Storage,
        fetcher: AssetFetcher,
        scanner: ReferenceScanner,
        concurrency: int = DEFAULT_CONCURRENCY,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be positive")
        self.store = store
        self.storage = storage
        self.fetcher = fetcher
        self.scanner = scanner
        self.concurrency = concurrency
        self.sample_size = sample_size

    @property
    def classifier(self):
        return self.scanner.classifier

    # -------------------------------------------------------------------------
    # Scan
    # -------------------------------------------------------------------------

    def collect(
        self,
        collections: Iterable[str],
        report: VerificationReport,
        limit: int = DEFAULT_LIMIT,
        scan_all: bool = False,
    ) -> list[Candidate]:
        """Scan collections, fill in reference counters, return unique candidates."""
        totals = report.totals
        candidates: list[Candidate] = []
        seen_keys: set[str] = set()

        for collection in collections:
            totals.collections += 1
            try:
                documents = self.store.get_collection(collection)
            except Exception as e:
                logger.warning(f"Skipping {collection}, could not read it: {e}")
                report.failed_collections.append(collection)
                continue

            selected = documents if scan_all else documents[:max(1, limit)]
            totals.documents += len(selected)

            for doc in selected:
                for hit in self.scanner.scan_document(collection, doc):
                    candidate = self._account(hit, report)
                    if candidate is None or candidate.key in seen_keys:
                        continue
                    seen_keys.add(candidate.key)
                    candidates.append(candidate)

        totals.unique_keys = len(candidates)
        return candidates

    def _account(self, hit: ScanHit, report: VerificationReport) -> Candidate | None:
        totals = report.totals
        if hit.kind == ReferenceKind.INLINE:
            totals.inline_refs += 1
            self._add_residual(hit, report)
            return None

        totals.urls += 1
        if hit.kind == ReferenceKind.LEGACY:
            totals.legacy_urls += 1
            self._add_residual(hit, report)
        else:
            totals.canonical_urls += 1

        key = self.classifier.object_key_for(hit.reference, hit.kind)
        if not key:
            return None
        return Candidate(hit.collection, hit.document_id, hit.field_path, hit.reference, key, hit.kind)

    def _add_residual(self, hit: ScanHit, report: VerificationReport) -> None:
        if len(report.residual_samples) < self.sample_size:
            report.residual_samples.append(ProblemEntry(
                collection=hit.collection,
                document_id=hit.document_id,
                field_path=hit.field_path,
                url=hit.reference[:80],
            ))

    # -------------------------------------------------------------------------
    # Probe
    # -------------------------------------------------------------------------

    def probe(self, position: int, candidate: Candidate, check_cdn: bool) -> ProbeResult:
        """Check one candidate. Never raises for backend or network failures."""
        try:
            exists = self.storage.exists(candidate.key)
        except AssetPipelineError as e:
            return ProbeResult(position, candidate, exists=None, error=e.message)

        cdn_status = None
        if check_cdn and candidate.kind == ReferenceKind.CANONICAL:
            cdn_status = self.fetcher.head_status(candidate.url)
        return ProbeResult(position, candidate, exists=exists, cdn_status=cdn_status)

    def probe_all(self, candidates: list[Candidate], check_cdn: bool = False) -> list[ProbeResult]:
        """
        Probe candidates on a bounded pool of workers.

        Each worker takes the next index from a shared counter until the
        list is exhausted.
        """
        if not candidates:
            return []

        cursor = itertools.count()
        results: list[ProbeResult] = []

        def worker() -> None:
            while True:
                position = next(cursor)
                if position >= len(candidates):
                    return
                results.append(self.probe(position, candidates[position], check_cdn))

        workers = min(self.concurrency, len(candidates))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="verify") as pool:
            futures = [pool.submit(worker) for _ in range(workers)]
            for future in futures:
                future.result()

        results.sort(key=lambda r: r.position)
        return results

    # -------------------------------------------------------------------------
    # Run
    # -------------------------------------------------------------------------

    def run(
        self,
        collections: Iterable[str] = SCAN_COLLECTIONS,
        limit: int = DEFAULT_LIMIT,
        scan_all: bool = False,
        check_cdn: bool = False,
    ) -> VerificationReport:
        pattern = self.classifier.legacy_pattern
        report = VerificationReport(
            canonical_base=self.classifier.canonical_base,
            legacy_pattern=pattern.pattern if pattern is not None else None,
            check_cdn=check_cdn,
        )

        candidates = self.collect(collections, report, limit=limit, scan_all=scan_all)
        logger.info(f"Probing {len(candidates)} unique objects with {self.concurrency} workers")

        for result in self.probe_all(candidates, check_cdn=check_cdn):
            problem = self._problem_for(result, report)
            if problem is not None and len(report.problems) < self.sample_size:
                report.problems.append(problem)

        return report

    @staticmethod
    def _problem_for(result: ProbeResult, report: VerificationReport) -> ProblemEntry | None:
        totals = report.totals
        if result.error is not None:
            totals.probe_errors += 1
        if result.exists is False:
            totals.missing_in_storage += 1
        if result.cdn_status == 404:
            totals.cdn_404 += 1

        if result.error is None and result.exists and result.cdn_status != 404:
            return None
        c = result.candidate
        return ProblemEntry(
            collection=c.collection,
            document_id=c.document_id,
            field_path=c.field_path,
            url=c.url,
            key=c.key,
            exists_in_storage=result.exists,
            cdn_status=result.cdn_status,
            error=result.error,
        )


def summarize(report: VerificationReport) -> dict[str, Any]:
    """Plain dict of the headline numbers (task results, logs)."""
    return {
        **report.totals.model_dump(),
        "clean": report.is_clean,
        "failed_collections": report.failed_collections,
    }
