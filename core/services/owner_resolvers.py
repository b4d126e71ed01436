# =============================================================================
# core/services/owner_resolvers.py - Owner Resolution Strategies
# =============================================================================
# Every migrated object lives under its owning business id. How that id is
# found differs per collection:
# - self_owner: the document is the business
# - field_owner: a single owner field
# - either_field_owner: either historical spelling (businessId / business_id)
# - GroupOwnerResolver: inherited from a parent group document, looked up
#   in a table built once per run
#
# Each strategy is a callable (document) -> owner id | None. None means
# "skip this document", never an error.
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from core.registry import OWNER_FIELDS
from lib.utils import document_id_of

if TYPE_CHECKING:
    from core.services.document_store import DocumentStore

logger = logging.getLogger(__name__)

OwnerResolver = Callable[[dict[str, Any]], "str | None"]


def _non_empty_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def self_owner(doc: dict[str, Any]) -> str | None:
    return document_id_of(doc) or None


def field_owner(field: str) -> OwnerResolver:
    """Owner id read from one field."""
    def resolve(doc: dict[str, Any]) -> str | None:
        return _non_empty_str(doc.get(field))
    return resolve


def either_field_owner(*fields: str) -> OwnerResolver:
    """Owner id read from the first of several fields that is set."""
    fields = fields or OWNER_FIELDS

    def resolve(doc: dict[str, Any]) -> str | None:
        for field in fields:
            owner = _non_empty_str(doc.get(field))
            if owner:
                return owner
        return None
    return resolve


class GroupOwnerResolver:
    """
    Owner id taken from the document, else from its parent group.

    The group -> owner table is loaded from the store on first use and
    reused for the rest of the run.

    Example:
        resolver = GroupOwnerResolver(store, "ff_extra_groups")
        resolver({"id": "x1", "groupId": "g1"})  # owner of group g1
    """

    def __init__(
        self,
        store: DocumentStore,
        group_collection: str,
        group_field: str = "groupId",
        owner_field: str = "businessId",
    ):
        self.store = store
        self.group_collection = group_collection
        self.group_field = group_field
        self.owner_field = owner_field
        self._direct = field_owner(owner_field)
        self._group_owners: dict[str, str] | None = None

    @property
    def group_owners(self) -> dict[str, str]:
        if self._group_owners is None:
            owners: dict[str, str] = {}
            for group in self.store.get_collection(self.group_collection):
                group_id = document_id_of(group)
                owner = _non_empty_str(group.get(self.owner_field))
                if group_id and owner:
                    owners[group_id] = owner
            logger.info(f"Loaded {len(owners)} group owners from {self.group_collection}")
            self._group_owners = owners
        return self._group_owners

    def __call__(self, doc: dict[str, Any]) -> str | None:
        direct = self._direct(doc)
        if direct:
            return direct
        group_id = _non_empty_str(doc.get(self.group_field))
        if not group_id:
            return None
        return self.group_owners.get(group_id)
