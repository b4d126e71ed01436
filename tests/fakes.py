# =============================================================================
# tests/fakes.py - In-Memory Backends for Tests
# =============================================================================
# Stand-ins for the network services so tests never leave the process:
# - FakeSupabase: the subset of the PostgREST query builder the store uses
#   (select / upsert / update / delete, eq / order / range / limit, count)
# - FakeS3: put_object / head_object / delete_object with botocore errors
#
# Rows are deep-copied on the way in and out, like a JSON round trip.
# =============================================================================

from __future__ import annotations

import copy
import threading
from dataclasses import dataclass
from typing import Any

from botocore.exceptions import ClientError


# =============================================================================
# Supabase / PostgREST
# =============================================================================

@dataclass
class FakeResponse:
    data: list[dict[str, Any]]
    count: int | None = None


class FakeQuery:
    """One chained PostgREST request against a FakeSupabase table."""

    def __init__(self, db: FakeSupabase, table: str):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload: dict[str, Any] | None = None
        self.on_conflict = "id"
        self.count: Any = None
        self.filters: list[tuple[str, Any]] = []
        self.order_by: str | None = None
        self.bounds: tuple[int, int] | None = None
        self.max_rows: int | None = None

    # -- operations --------------------------------------------------------

    def select(self, columns: str = "*", count: Any = None):
        self.op = "select"
        self.count = count
        return self

    def upsert(self, row: dict[str, Any], on_conflict: str = "id"):
        self.op = "upsert"
        self.payload = copy.deepcopy(row)
        self.on_conflict = on_conflict
        return self

    def update(self, row: dict[str, Any]):
        self.op = "update"
        self.payload = copy.deepcopy(row)
        return self

    def delete(self, count: Any = None):
        self.op = "delete"
        self.count = count
        return self

    # -- modifiers ---------------------------------------------------------

    def eq(self, column: str, value: Any):
        self.filters.append((column, value))
        return self

    def order(self, column: str, desc: bool = False):
        self.order_by = column
        return self

    def range(self, start: int, end: int):
        self.bounds = (start, end)
        return self

    def limit(self, size: int):
        self.max_rows = size
        return self

    # -- execution ---------------------------------------------------------

    def _matches(self, row: dict[str, Any]) -> bool:
        return all(row.get(column) == value for column, value in self.filters)

    def execute(self) -> FakeResponse:
        self.db.calls.append((self.table, self.op, tuple(self.filters), self.bounds))
        if self.db.should_fail(self.table, self.filters):
            raise RuntimeError(f"backend unavailable for {self.table}")

        with self.db.lock:
            rows = self.db.tables.setdefault(self.table, [])

            if self.op == "upsert":
                keys = [c.strip() for c in self.on_conflict.split(",")]
                for existing in rows:
                    if all(existing.get(k) == self.payload.get(k) for k in keys):
                        existing.clear()
                        existing.update(self.payload)
                        break
                else:
                    rows.append(self.payload)
                return FakeResponse(data=[copy.deepcopy(self.payload)])

            if self.op == "update":
                updated = []
                for row in rows:
                    if self._matches(row):
                        row.update(copy.deepcopy(self.payload))
                        updated.append(copy.deepcopy(row))
                return FakeResponse(data=updated)

            if self.op == "delete":
                removed = [row for row in rows if self._matches(row)]
                self.db.tables[self.table] = [row for row in rows if not self._matches(row)]
                count = len(removed) if self.count is not None else None
                return FakeResponse(data=copy.deepcopy(removed), count=count)

            selected = [row for row in rows if self._matches(row)]
            if self.order_by:
                selected.sort(key=lambda r: str(r.get(self.order_by)))
            if self.bounds is not None:
                start, end = self.bounds
                selected = selected[start:end + 1]
            if self.max_rows is not None:
                selected = selected[:self.max_rows]
            count = len(selected) if self.count is not None else None
            return FakeResponse(data=copy.deepcopy(selected), count=count)


class FakeSupabase:
    """
    In-memory Supabase client.

    fail_tables / fail_collections make matching requests raise, to
    exercise the store's error isolation.
    """

    def __init__(self):
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.calls: list[tuple] = []
        self.fail_tables: set[str] = set()
        self.fail_collections: set[str] = set()
        self.lock = threading.Lock()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def should_fail(self, table: str, filters: list[tuple[str, Any]]) -> bool:
        if table in self.fail_tables:
            return True
        return any(column == "collection" and value in self.fail_collections for column, value in filters)

    def rows(self, table: str) -> list[dict[str, Any]]:
        return copy.deepcopy(self.tables.get(table, []))

    def page_reads(self, table: str) -> int:
        return sum(1 for call in self.calls if call[0] == table and call[1] == "select" and call[3] is not None)


# =============================================================================
# S3 / R2
# =============================================================================

def _client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class FakeS3:
    """Enough of a boto3 S3 client for R2Storage."""

    def __init__(self):
        self.objects: dict[tuple[str, str], dict[str, Any]] = {}
        self.head_calls: list[str] = []
        self.broken_keys: set[str] = set()
        self.fail_puts = False
        self.fail_deletes = False
        self.lock = threading.Lock()

    def put_object(self, Bucket: str, Key: str, Body: bytes, ContentType: str):
        if self.fail_puts:
            raise _client_error("AccessDenied", "PutObject")
        with self.lock:
            self.objects[(Bucket, Key)] = {"Body": Body, "ContentType": ContentType}
        return {"ETag": '"fake"'}

    def head_object(self, Bucket: str, Key: str):
        with self.lock:
            self.head_calls.append(Key)
        if Key in self.broken_keys:
            raise _client_error("InternalError", "HeadObject")
        if (Bucket, Key) not in self.objects:
            raise _client_error("404", "HeadObject")
        obj = self.objects[(Bucket, Key)]
        return {"ContentLength": len(obj["Body"]), "ContentType": obj["ContentType"]}

    def delete_object(self, Bucket: str, Key: str):
        if self.fail_deletes:
            raise _client_error("AccessDenied", "DeleteObject")
        with self.lock:
            self.objects.pop((Bucket, Key), None)
        return {}

    def keys(self, bucket: str) -> list[str]:
        return sorted(key for b, key in self.objects if b == bucket)
