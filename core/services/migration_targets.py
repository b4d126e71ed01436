# =============================================================================
# core/services/migration_targets.py - Migration Target Registry
# =============================================================================
# Which collections hold migratable assets, which fields they live in, how
# each field is named in storage, and how each collection resolves its owner.
# =============================================================================

from __future__ import annotations

from collections.abc import Iterable

from core.models.references import ReferenceKind
from core.registry import BUSINESSES
from core.services.asset_migrator import MIGRATABLE_KINDS, FieldRole, MigrationTarget
from core.services.document_store import DocumentStore
from core.services.owner_resolvers import (
    GroupOwnerResolver,
    either_field_owner,
    self_owner,
)

LOGO = FieldRole(label="logo", module="logos", include_document_id=False)
COVER = FieldRole(label="cover", module="covers", include_document_id=False)


def default_targets(
    store: DocumentStore,
    kinds: Iterable[ReferenceKind] = MIGRATABLE_KINDS,
) -> list[MigrationTarget]:
    """
    Build the migration targets for one run.

    Owner strategies that need lookup tables (ff_extras -> ff_extra_groups)
    load them lazily, once per call to this function.
    """
    kinds = frozenset(kinds)
    by_business_id = either_field_owner("businessId", "business_id")
    extra_owner = GroupOwnerResolver(store, "ff_extra_groups", group_field="groupId")

    return [
        MigrationTarget(
            collection=BUSINESSES,
            fields={"logo": LOGO, "logoUrl": LOGO, "cover": COVER},
            owner_of=self_owner,
            kinds=kinds,
        ),
        MigrationTarget(
            collection="ff_products",
            fields={"imageUrl": FieldRole("product", "fastfood")},
            owner_of=by_business_id,
            kinds=kinds,
        ),
        MigrationTarget(
            collection="ff_extras",
            fields={"imageUrl": FieldRole("extra", "fastfood")},
            owner_of=extra_owner,
            kinds=kinds,
        ),
        MigrationTarget(
            collection="fb_products",
            fields={"image": FieldRole("product", "restaurant")},
            owner_of=by_business_id,
            kinds=kinds,
        ),
        MigrationTarget(
            collection="ec_products",
            fields={"imageUrl": FieldRole("product", "ecommerce")},
            owner_of=by_business_id,
            kinds=kinds,
        ),
        MigrationTarget(
            collection="ec_categories",
            fields={"image": FieldRole("category", "ecommerce")},
            owner_of=by_business_id,
            kinds=kinds,
        ),
        MigrationTarget(
            collection="em_properties",
            fields={"images": FieldRole("property", "emlak")},
            owner_of=by_business_id,
            kinds=kinds,
        ),
        MigrationTarget(
            collection="em_listings",
            fields={"images": FieldRole("listing", "emlak")},
            owner_of=by_business_id,
            kinds=kinds,
        ),
        MigrationTarget(
            collection="em_consultants",
            fields={"photoUrl": FieldRole("consultant", "emlak")},
            owner_of=by_business_id,
            kinds=kinds,
        ),
    ]


def target_collections() -> list[str]:
    """Collection names covered by default_targets, in run order."""
    return [
        BUSINESSES,
        "ff_products",
        "ff_extras",
        "fb_products",
        "ec_products",
        "ec_categories",
        "em_properties",
        "em_listings",
        "em_consultants",
    ]
