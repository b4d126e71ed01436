# =============================================================================
# core/models/projectors.py - Record <-> Row Projection
# =============================================================================
# A projector decides how a document record is laid out in the relational
# backend and how it is read back:
# - DocumentProjector: generic collections, one shared table, data as JSONB
# - OwnerTableProjector: collections with their own table and an indexed
#   business_id column
# - BusinessProjector: the businesses table, typed columns + raw snapshot
#
# The store never branches on collection names; it asks for a projector.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from core.registry import (
    BUSINESSES,
    DOCUMENTS_TABLE,
    OWNER_COLUMN,
    OWNER_COLUMN_TABLES,
    OWNER_FIELDS,
)

Record = dict[str, Any]


class Projector:
    """Identity layout: the record is stored verbatim in a JSONB column."""

    table: str = DOCUMENTS_TABLE
    conflict_columns: str = "id"
    owner_column: str | None = None

    def scope(self, query, collection: str):
        """Restrict a query to the rows of one collection."""
        return query

    def to_row(self, collection: str, document_id: str, record: Record) -> dict[str, Any]:
        payload = {k: v for k, v in record.items() if k != "id"}
        created_at = record.get("createdAt")
        return {
            "id": document_id,
            "data": payload,
            "created_at": created_at,
            "updated_at": record.get("updatedAt") or created_at,
        }

    def from_row(self, row: dict[str, Any]) -> Record:
        return {"id": row["id"], **(row.get("data") or {})}


class DocumentProjector(Projector):
    """Generic collections share app_documents, keyed by (collection, id)."""

    table = DOCUMENTS_TABLE
    conflict_columns = "collection,id"

    def scope(self, query, collection: str):
        return query.eq("collection", collection)

    def to_row(self, collection: str, document_id: str, record: Record) -> dict[str, Any]:
        return {"collection": collection, **super().to_row(collection, document_id, record)}


class OwnerTableProjector(Projector):
    """Dedicated table per collection with a first-class owner column."""

    owner_column = OWNER_COLUMN

    def __init__(self, table: str):
        self.table = table

    def to_row(self, collection: str, document_id: str, record: Record) -> dict[str, Any]:
        row = super().to_row(collection, document_id, record)
        owner = next((record[f] for f in OWNER_FIELDS if isinstance(record.get(f), str) and record[f]), None)
        row[OWNER_COLUMN] = owner
        return row


# =============================================================================
# Businesses
# =============================================================================

ColumnKind = Literal["text", "array", "bool", "int", "timestamp"]


@dataclass(frozen=True)
class ColumnSpec:
    """
    One typed column on the businesses table.

    keys lists the record keys that feed the column, primary spelling first.
    """
    column: str
    keys: tuple[str, ...]
    kind: ColumnKind = "text"

    def coerce(self, value: Any) -> Any:
        """Return value if it fits the column type, else None (snapshot keeps it)."""
        if value is None:
            return None
        if self.kind in ("text", "timestamp"):
            return value if isinstance(value, str) else None
        if self.kind == "array":
            if isinstance(value, list) and all(isinstance(item, str) for item in value):
                return value
            return None
        if self.kind == "bool":
            return value if isinstance(value, bool) else None
        if self.kind == "int":
            return value if isinstance(value, int) and not isinstance(value, bool) else None
        return None


BUSINESS_COLUMNS: tuple[ColumnSpec, ...] = (
    ColumnSpec("name", ("name",)),
    ColumnSpec("email", ("email",)),
    ColumnSpec("slug", ("slug",)),
    ColumnSpec("previous_slugs", ("previousSlugs",), "array"),
    ColumnSpec("phone", ("phone",)),
    ColumnSpec("whatsapp", ("whatsapp",)),
    ColumnSpec("status", ("status",)),
    ColumnSpec("package", ("package",)),
    ColumnSpec("modules", ("modules",), "array"),
    ColumnSpec("owner", ("owner",)),
    ColumnSpec("industry_id", ("industry_id", "industryId")),
    ColumnSpec("industry_label", ("industry_label", "industryLabel")),
    ColumnSpec("plan_id", ("plan_id", "planId")),
    ColumnSpec("logo", ("logo",)),
    ColumnSpec("cover", ("cover",)),
    ColumnSpec("slogan", ("slogan",)),
    ColumnSpec("about", ("about",)),
    ColumnSpec("subscription_status", ("subscriptionStatus",)),
    ColumnSpec("subscription_start_date", ("subscriptionStartDate",)),
    ColumnSpec("subscription_end_date", ("subscriptionEndDate",)),
    ColumnSpec("package_id", ("packageId",)),
    ColumnSpec("is_frozen", ("isFrozen",), "bool"),
    ColumnSpec("frozen_at", ("frozenAt",)),
    ColumnSpec("frozen_remaining_days", ("frozenRemainingDays",), "int"),
)

TIMESTAMP_COLUMNS = (
    ColumnSpec("created_at", ("createdAt",), "timestamp"),
    ColumnSpec("updated_at", ("updatedAt",), "timestamp"),
)


class BusinessProjector(Projector):
    """
    Businesses: queryable attributes in typed columns, full record in `data`.

    Writing derives every column from the merged record and stores the
    record itself as the snapshot. Reading starts from the snapshot and
    overlays non-null column values, so fields without a column survive
    through the snapshot alone.
    """

    table = BUSINESSES
    conflict_columns = "id"

    def to_row(self, collection: str, document_id: str, record: Record) -> dict[str, Any]:
        snapshot = {**record, "id": document_id}
        row: dict[str, Any] = {"id": document_id}
        for spec in BUSINESS_COLUMNS + TIMESTAMP_COLUMNS:
            value = next((record[k] for k in spec.keys if record.get(k) is not None), None)
            row[spec.column] = spec.coerce(value)
        if row["updated_at"] is None:
            row["updated_at"] = row["created_at"]
        row["data"] = snapshot
        return row

    def from_row(self, row: dict[str, Any]) -> Record:
        record: Record = dict(row.get("data") or {})
        for spec in BUSINESS_COLUMNS:
            value = row.get(spec.column)
            if value is None:
                continue
            key = next((k for k in spec.keys if k in record), spec.keys[0])
            record[key] = value
        # Timestamp columns come back reformatted by Postgres; the snapshot
        # string wins when present
        for spec in TIMESTAMP_COLUMNS:
            if row.get(spec.column) is not None:
                record.setdefault(spec.keys[0], row[spec.column])
        record["id"] = row["id"]
        return record


_DOCUMENT_PROJECTOR = DocumentProjector()
_BUSINESS_PROJECTOR = BusinessProjector()


def projector_for(collection: str) -> Projector:
    """Pick the storage layout for a collection."""
    if collection == BUSINESSES:
        return _BUSINESS_PROJECTOR
    if collection in OWNER_COLUMN_TABLES:
        return OwnerTableProjector(collection)
    return _DOCUMENT_PROJECTOR
