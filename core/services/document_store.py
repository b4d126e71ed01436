# =============================================================================
# core/services/document_store.py - Document Store
# =============================================================================
# Collections of schema-less records on top of Supabase tables.
#
# Operations:
# - create / get / update / delete on single documents
# - get_collection: full read with sequential range pagination
# - delete_by_field / delete_by_owner / cascade_delete
#
# Updates are shallow merges against the stored record; nothing is ever
# overwritten wholesale. Where a collection lives (shared documents table,
# its own table, or the typed businesses table) is decided by a projector.
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any
from uuid import uuid4

from postgrest import CountMethod

from app.exceptions import DocumentNotFoundError, StoreError
from core.models.projectors import Projector, projector_for
from core.registry import OWNER_FIELDS, OWNER_SCOPED_COLLECTIONS
from lib.supabase_client import SupabaseClient
from lib.utils import document_id_of, normalize_uuid, utc_now_iso

logger = logging.getLogger(__name__)

PAGE_SIZE = 1000

# Keys callers may not change through update()
_IMMUTABLE_KEYS = ("id", "createdAt")


class DocumentStore:
    """
    CRUD over document collections.

    Example:
        store = DocumentStore(SupabaseClient.from_settings(settings))
        doc_id = store.create("ff_products", {"name": "Burger", "businessId": "b1"})
        store.update("ff_products", doc_id, {"price": 120})
        store.get("ff_products", doc_id)
        # -> {"id": ..., "name": "Burger", "businessId": "b1", "price": 120, ...}
    """

    def __init__(
        self,
        client: SupabaseClient,
        page_size: int = PAGE_SIZE,
        owner_scoped_collections: Iterable[str] = OWNER_SCOPED_COLLECTIONS,
    ):
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self.client = client
        self.page_size = page_size
        self.owner_scoped_collections = tuple(owner_scoped_collections)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def projector_for(collection: str) -> Projector:
        return projector_for(collection)

    def _execute(self, query, action: str, collection: str, **details: Any):
        """Run a query, wrapping backend failures in StoreError."""
        try:
            return query.execute()
        except Exception as e:
            raise StoreError(
                message=f"Failed to {action} in {collection}: {e}",
                code=f"{action.upper().replace(' ', '_')}_FAILED",
                suggestion="Check the Supabase connection and that the table exists",
                details={"collection": collection, **details},
            ) from e

    # -------------------------------------------------------------------------
    # Single Documents
    # -------------------------------------------------------------------------

    def create(
        self,
        collection: str,
        data: dict[str, Any],
        document_id: str | None = None,
    ) -> str:
        """
        Create (or upsert) a document.

        An explicit id that already exists is overwritten with the new data,
        keeping its original createdAt, so re-runs are idempotent.

        Returns:
            The document id
        """
        projector = self.projector_for(collection)
        explicit_id = normalize_uuid(document_id) if document_id else document_id_of(data)
        doc_id = explicit_id or str(uuid4())
        now = utc_now_iso()

        record = {k: v for k, v in data.items() if k != "id"}
        record["createdAt"] = now
        if explicit_id:
            existing = self.get(collection, doc_id)
            if existing is not None:
                record["createdAt"] = existing.get("createdAt") or now
                record["updatedAt"] = now

        row = projector.to_row(collection, doc_id, record)
        query = self.client.table(projector.table).upsert(row, on_conflict=projector.conflict_columns)
        self._execute(query, "create document", collection, document_id=doc_id)

        logger.debug(f"Created document {collection}/{doc_id}")
        return doc_id

    def get(self, collection: str, document_id: str) -> dict[str, Any] | None:
        """
        Fetch one document.

        Returns:
            The record including "id", or None if not found
        """
        projector = self.projector_for(collection)
        doc_id = normalize_uuid(document_id)
        query = projector.scope(
            self.client.table(projector.table).select("*").eq("id", doc_id),
            collection,
        ).limit(1)
        response = self._execute(query, "get document", collection, document_id=doc_id)

        rows = response.data or []
        return projector.from_row(rows[0]) if rows else None

    def update(self, collection: str, document_id: str, partial: dict[str, Any]) -> None:
        """
        Shallow-merge partial into the stored record.

        Fields absent from partial are preserved. updatedAt is always stamped.

        Raises:
            DocumentNotFoundError: If the document doesn't exist
        """
        projector = self.projector_for(collection)
        doc_id = normalize_uuid(document_id)

        existing = self.get(collection, doc_id)
        if existing is None:
            raise DocumentNotFoundError(collection, doc_id)

        changes = {k: v for k, v in partial.items() if k not in _IMMUTABLE_KEYS}
        merged = {**existing, **changes, "updatedAt": utc_now_iso()}
        row = projector.to_row(collection, doc_id, merged)

        query = projector.scope(
            self.client.table(projector.table).update(row).eq("id", doc_id),
            collection,
        )
        self._execute(query, "update document", collection, document_id=doc_id)
        logger.debug(f"Updated document {collection}/{doc_id}: {sorted(changes)}")

    def delete(self, collection: str, document_id: str) -> None:
        """Delete one document. Deleting a missing id is not an error."""
        projector = self.projector_for(collection)
        doc_id = normalize_uuid(document_id)
        query = projector.scope(
            self.client.table(projector.table).delete().eq("id", doc_id),
            collection,
        )
        self._execute(query, "delete document", collection, document_id=doc_id)

    # -------------------------------------------------------------------------
    # Collections
    # -------------------------------------------------------------------------

    def get_collection(self, collection: str) -> list[dict[str, Any]]:
        """
        Fetch every document in a collection.

        Pages of page_size rows are read one after another until a short
        page comes back, so large collections are never truncated.
        """
        projector = self.projector_for(collection)
        documents: list[dict[str, Any]] = []
        offset = 0

        while True:
            query = (
                projector.scope(self.client.table(projector.table).select("*"), collection)
                .order("id")
                .range(offset, offset + self.page_size - 1)
            )
            response = self._execute(query, "read collection", collection, offset=offset)
            rows = response.data or []

            documents.extend(projector.from_row(row) for row in rows)
            if len(rows) < self.page_size:
                break
            offset += self.page_size

        logger.debug(f"Fetched {len(documents)} documents from {collection}")
        return documents

    def delete_by_field(self, collection: str, field: str, value: Any) -> int:
        """
        Delete every document whose field equals value.

        Returns:
            Number of documents deleted
        """
        matching = [d for d in self.get_collection(collection) if d.get(field) == value]
        deleted = 0
        for doc in matching:
            doc_id = document_id_of(doc)
            if doc_id:
                self.delete(collection, doc_id)
                deleted += 1

        logger.info(f"Deleted {deleted} documents from {collection} where {field} matched")
        return deleted

    def delete_by_owner(self, collection: str, owner_id: str) -> int:
        """
        Delete every document owned by a business.

        Tables with an owner column get a single counted delete; everything
        else is scanned for either owner field spelling.

        Returns:
            Number of documents deleted
        """
        projector = self.projector_for(collection)

        if projector.owner_column:
            query = (
                self.client.table(projector.table)
                .delete(count=CountMethod.exact)
                .eq(projector.owner_column, owner_id)
            )
            response = self._execute(query, "delete by owner", collection, owner_id=owner_id)
            return response.count or 0

        matching = [
            d for d in self.get_collection(collection)
            if any(d.get(field) == owner_id for field in OWNER_FIELDS)
        ]
        deleted = 0
        for doc in matching:
            doc_id = document_id_of(doc)
            if doc_id:
                self.delete(collection, doc_id)
                deleted += 1
        return deleted

    def cascade_delete(self, owner_id: str) -> dict[str, int]:
        """
        Delete a business's data from every registered collection.

        A failure in one collection is logged and recorded as 0; the
        remaining collections still run.

        Returns:
            Mapping of collection name to number of documents deleted
        """
        results: dict[str, int] = {}
        for collection in self.owner_scoped_collections:
            try:
                results[collection] = self.delete_by_owner(collection, owner_id)
            except Exception as e:
                logger.error(f"Error deleting from {collection} for owner {owner_id}: {e}")
                results[collection] = 0

        total = sum(results.values())
        logger.info(f"Cascade delete for {owner_id} removed {total} documents")
        return results
