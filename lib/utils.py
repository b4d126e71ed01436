# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common utilities used across the store and the batch jobs.
# =============================================================================

import time
from datetime import datetime, timezone
from typing import Any
from uuid import UUID


# =============================================================================
# Identifier Utilities
# =============================================================================

def normalize_uuid(value: str | UUID) -> str:
    """
    Normalize a UUID to string format.

    Example:
        doc_id = normalize_uuid(uuid_obj)  # "550e8400-..."
        doc_id = normalize_uuid("550e8400-...")  # "550e8400-..."
    """
    return str(value) if isinstance(value, UUID) else value


def document_id_of(doc: dict[str, Any]) -> str:
    """Return a document's id as a string ("" when it has none)."""
    value = doc.get("id")
    if value is None:
        return ""
    return normalize_uuid(value) if isinstance(value, UUID) else str(value)


# =============================================================================
# Time Utilities
# =============================================================================

def utc_now_iso() -> str:
    """Current time as an ISO 8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def now_ms() -> int:
    """Current Unix time in milliseconds."""
    return int(time.time() * 1000)


# =============================================================================
# Parsing Utilities
# =============================================================================

def parse_csv_list(value: str | None) -> list[str]:
    """
    Split a comma-separated string, dropping blanks.

    Example: "ff_products, businesses," -> ["ff_products", "businesses"]
    """
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]
