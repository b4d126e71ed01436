# =============================================================================
# core/services/asset_migrator.py - Asset Migrator
# =============================================================================
# Moves inline and legacy-hosted assets into R2 and rewrites the documents
# that reference them.
#
# Per reference (ScanHit):
#   1. resolve owner   - per-collection strategy; no owner -> skipped
#   2. obtain bytes    - decode inline payload or download legacy URL
#   3. derive key      - <module>/<owner>/<ts>_<label>[_<doc>][_<i>][_s<n>].<ext>
#   4. upload          - put into the bucket, get the public URL
#   5. rewrite         - replace the value at the hit's exact field path
#
# Keys are unique per migrator run: a name already issued gets a _s<n>
# suffix. If the rewrite fails, the document's fresh uploads are deleted.
#
# Documents are processed one at a time. A failing document is logged and
# counted; the batch keeps going. Canonical URLs are never selected, so a
# second run over migrated data only produces skips.
# =============================================================================

from __future__ import annotations

import copy
import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from app.exceptions import AssetPipelineError, ReferenceParseError
from core.models.references import ReferenceKind, ScanHit
from core.models.reports import CollectionStats, MigrationReport
from core.services.document_store import DocumentStore
from core.services.owner_resolvers import OwnerResolver
from core.services.reference_scanner import ReferenceScanner, parse_data_uri
from lib.http_fetch import AssetFetcher
from lib.r2_storage import R2Storage, UploadResult, build_object_key, extension_for_mime
from lib.utils import document_id_of, now_ms

logger = logging.getLogger(__name__)

MIGRATABLE_KINDS = frozenset({ReferenceKind.INLINE, ReferenceKind.LEGACY})

_PATH_TOKEN_RE = re.compile(r"\[(\d+)\]|\.?([^.\[\]]+)")


# =============================================================================
# Field Paths
# =============================================================================

def parse_field_path(path: str) -> list[str | int]:
    """
    Split a scanner field path into keys and indices.

    Example: "images[2].url" -> ["images", 2, "url"]
    """
    tokens: list[str | int] = []
    for index, key in _PATH_TOKEN_RE.findall(path):
        tokens.append(int(index) if index else key)
    return tokens


def set_at_path(tree: dict[str, Any], path: str, value: Any) -> None:
    """
    Replace the value at path inside tree, in place.

    Raises:
        KeyError / IndexError / TypeError: If the path doesn't exist in tree
    """
    tokens = parse_field_path(path)
    if not tokens:
        raise KeyError(path)
    node: Any = tree
    for token in tokens[:-1]:
        node = node[token]
    last = tokens[-1]
    if isinstance(last, int):
        if not isinstance(node, list):
            raise TypeError(f"Expected a list at {path}")
        node[last] = value
    else:
        if not isinstance(node, dict) or last not in node:
            raise KeyError(path)
        node[last] = value


def first_array_index(path: str) -> int | None:
    """Index of the outermost array element on the path, if any."""
    for token in parse_field_path(path):
        if isinstance(token, int):
            return token
    return None


# =============================================================================
# Targets
# =============================================================================

@dataclass(frozen=True)
class FieldRole:
    """
    What an asset field is, for key naming.

    module: top-level key prefix ("logos", "fastfood", ...)
    label: human-readable file label ("logo", "product", ...)
    include_document_id: append the document id to the file name
    """
    label: str
    module: str
    include_document_id: bool = True


@dataclass
class MigrationTarget:
    """One collection to migrate: which fields, and how to find the owner."""
    collection: str
    fields: dict[str, FieldRole]
    owner_of: OwnerResolver
    kinds: frozenset[ReferenceKind] = field(default=MIGRATABLE_KINDS)


class DocumentOutcome(str, Enum):
    MIGRATED = "migrated"
    SKIPPED = "skipped"
    ERROR = "error"


# =============================================================================
# Migrator
# =============================================================================

class AssetMigrator:
    """
    Batch driver for asset migration.

    Example:
        migrator = AssetMigrator(store, storage, fetcher, scanner)
        report = migrator.run(default_targets(store), only={"businesses"}, limit=10)
        print(report.total_migrated)
    """

    def __init__(
        self,
        store: DocumentStore,
        storage: R2Storage,
        fetcher: AssetFetcher,
        scanner: ReferenceScanner,
        clock: Callable[[], int] = now_ms,
    ):
        self.store = store
        self.storage = storage
        self.fetcher = fetcher
        self.scanner = scanner
        self.clock = clock
        self._issued_keys: set[str] = set()

    # -------------------------------------------------------------------------
    # Single Reference
    # -------------------------------------------------------------------------

    def obtain_bytes(self, hit: ScanHit) -> tuple[bytes, str]:
        """
        Get the asset bytes and MIME type for a hit.

        Raises:
            ReferenceParseError: Malformed inline payload
            AssetDownloadError: Legacy download failed
        """
        if hit.kind == ReferenceKind.INLINE:
            parsed = parse_data_uri(hit.reference)
            return parsed.data, parsed.mime
        if hit.kind == ReferenceKind.LEGACY:
            asset = self.fetcher.download(hit.reference)
            return asset.body, asset.content_type
        raise ReferenceParseError(hit.reference, f"{hit.kind.value} references are not migrated")

    def derive_key(self, role: FieldRole, owner_id: str, hit: ScanHit, mime: str) -> str:
        """
        Name the object for a hit, never reusing a key issued earlier in this run.

        Two hits can share every naming input (logo and logoUrl, or
        images[0].url and images[0].thumbnail) within one clock tick.
        """
        parts = dict(
            module=role.module,
            owner_id=owner_id,
            label=role.label,
            extension=extension_for_mime(mime),
            document_id=hit.document_id if role.include_document_id else None,
            index=first_array_index(hit.field_path),
            timestamp_ms=self.clock(),
        )
        key = build_object_key(**parts)
        sequence = 1
        while key in self._issued_keys:
            sequence += 1
            key = build_object_key(**parts, sequence=sequence)
        self._issued_keys.add(key)
        return key

    def migrate_hit(self, role: FieldRole, owner_id: str, hit: ScanHit) -> UploadResult:
        """
        Move one referenced asset into storage.

        Returns:
            The uploaded object's key and canonical public URL
        """
        body, mime = self.obtain_bytes(hit)
        key = self.derive_key(role, owner_id, hit, mime)
        content_type = mime.split(";", 1)[0].strip() or "application/octet-stream"
        return self.storage.put(key, body, content_type)

    def discard_uploads(self, keys: list[str]) -> None:
        """Delete objects whose document rewrite never landed."""
        for key in keys:
            try:
                self.storage.delete(key)
            except Exception as e:
                logger.error(f"Could not delete orphaned object {key}: {e}")

    # -------------------------------------------------------------------------
    # Single Document
    # -------------------------------------------------------------------------

    def select_hits(self, target: MigrationTarget, doc: dict[str, Any]) -> list[ScanHit]:
        hits = self.scanner.scan_document(target.collection, doc, kinds=target.kinds)
        return [hit for hit in hits if hit.top_field in target.fields]

    def migrate_document(self, target: MigrationTarget, doc: dict[str, Any]) -> DocumentOutcome:
        """
        Migrate every selected reference in one document.

        References that succeed are written back even if a sibling failed;
        the document then counts as an error.
        """
        doc_id = document_id_of(doc)
        if not doc_id:
            return DocumentOutcome.SKIPPED

        hits = self.select_hits(target, doc)
        if not hits:
            return DocumentOutcome.SKIPPED

        owner_id = target.owner_of(doc)
        if not owner_id:
            logger.debug(f"No owner for {target.collection}/{doc_id}, skipping")
            return DocumentOutcome.SKIPPED

        working = {hit.top_field: copy.deepcopy(doc[hit.top_field]) for hit in hits}
        changed: set[str] = set()
        uploaded: list[str] = []
        failed = False

        for hit in hits:
            role = target.fields[hit.top_field]
            try:
                result = self.migrate_hit(role, owner_id, hit)
            except ReferenceParseError as e:
                logger.warning(f"Skipping {target.collection}/{doc_id} {hit.field_path}: {e.message}")
                continue
            except AssetPipelineError as e:
                logger.error(f"Failed {target.collection}/{doc_id} {hit.field_path}: {e}")
                failed = True
                continue

            set_at_path(working, hit.field_path, result.url)
            changed.add(hit.top_field)
            uploaded.append(result.key)
            logger.info(f"Migrated {target.collection}/{doc_id} {hit.field_path} -> {result.url}")

        if changed:
            try:
                self.store.update(target.collection, doc_id, {f: working[f] for f in sorted(changed)})
            except Exception:
                self.discard_uploads(uploaded)
                raise

        if failed:
            return DocumentOutcome.ERROR
        return DocumentOutcome.MIGRATED if changed else DocumentOutcome.SKIPPED

    # -------------------------------------------------------------------------
    # Batch
    # -------------------------------------------------------------------------

    def run_collection(self, target: MigrationTarget, limit: int | None = None) -> CollectionStats:
        """
        Migrate one collection sequentially.

        A collection that can't be read is marked failed and left alone.
        """
        stats = CollectionStats(collection=target.collection)

        try:
            documents = self.store.get_collection(target.collection)
        except Exception as e:
            logger.error(f"Error reading {target.collection}, skipping collection: {e}")
            stats.failed = True
            return stats

        selected = documents[:limit] if limit and limit > 0 else documents
        suffix = f" (processing first {len(selected)})" if len(selected) < len(documents) else ""
        logger.info(f"Found {len(documents)} documents in {target.collection}{suffix}")

        for doc in selected:
            stats.processed += 1
            try:
                outcome = self.migrate_document(target, doc)
            except Exception as e:
                logger.error(f"Error migrating {target.collection}/{document_id_of(doc)}: {e}")
                stats.errors += 1
                continue

            if outcome == DocumentOutcome.MIGRATED:
                stats.migrated += 1
            elif outcome == DocumentOutcome.ERROR:
                stats.errors += 1
            else:
                stats.skipped += 1

        logger.info(
            f"{target.collection}: processed={stats.processed} migrated={stats.migrated} "
            f"skipped={stats.skipped} errors={stats.errors}"
        )
        return stats

    def run(
        self,
        targets: Iterable[MigrationTarget],
        only: Iterable[str] | None = None,
        limit: int | None = None,
    ) -> MigrationReport:
        """Run every target, optionally restricted to the collections in only."""
        selected = set(only) if only else None
        report = MigrationReport()
        for target in targets:
            if selected is not None and target.collection not in selected:
                continue
            report.collections.append(self.run_collection(target, limit=limit))
        return report
