# =============================================================================
# workers/tasks.py - Celery Task Definitions
# =============================================================================
# Background versions of the batch jobs, for operators who enqueue work
# instead of running a script in a shell.
#
# Tasks:
# - run_asset_migration: migrate inline / legacy assets into R2
# - run_verification: post-migration consistency check
# - cascade_delete_business: remove every owner-scoped document of a business
# =============================================================================

import logging
from typing import Any

from celery import current_task, shared_task

from app.config import get_settings
from app.dependencies import build_migrator, build_store, build_verifier
from core.models.references import ReferenceKind
from core.models.reports import MigrationReport
from core.registry import SCAN_COLLECTIONS
from core.services.consistency_verifier import summarize
from core.services.migration_targets import default_targets

logger = logging.getLogger(__name__)

_KINDS = {
    "inline": {ReferenceKind.INLINE},
    "legacy": {ReferenceKind.LEGACY},
    "all": {ReferenceKind.INLINE, ReferenceKind.LEGACY},
}


# =============================================================================
# Task State Updates
# =============================================================================

def update_progress(current: int, total: int, message: str = "Processing..."):
    """
    Update task progress for polling.

    Args:
        current: Current step number
        total: Total steps
        message: Status message
    """
    if current_task:
        current_task.update_state(
            state="PROGRESS",
            meta={
                "current": current,
                "total": total,
                "percent": int((current / total) * 100) if total else 100,
                "message": message,
            }
        )


# =============================================================================
# Asset Migration Task
# =============================================================================

@shared_task(bind=True, name="workers.tasks.run_asset_migration")
def run_asset_migration(
    self,
    kind: str = "all",
    only: list[str] | None = None,
    limit: int | None = None,
) -> dict[str, Any]:
    """
    Migrate assets collection by collection, reporting progress after each.

    Args:
        kind: "inline", "legacy" or "all"
        only: Optional collection names to restrict the run to
        limit: Optional max documents per collection

    Returns:
        Dict with success flag, totals and per-collection counters
    """
    if kind not in _KINDS:
        return {"success": False, "error": f"Unknown kind: {kind}"}

    logger.info(f"Starting {kind} asset migration (only={only}, limit={limit})")

    try:
        settings = get_settings()
        store = build_store(settings)
        migrator = build_migrator(settings, store)
    except Exception as e:
        logger.exception(f"Migration setup failed: {e}")
        return {"success": False, "error": str(e)}

    targets = [
        t for t in default_targets(store, kinds=_KINDS[kind])
        if not only or t.collection in only
    ]
    report = MigrationReport()

    try:
        for position, target in enumerate(targets, start=1):
            update_progress(position - 1, len(targets), f"Migrating {target.collection}...")
            report.collections.append(migrator.run_collection(target, limit=limit))
        update_progress(len(targets), len(targets), "Complete!")
    finally:
        migrator.fetcher.close()

    return {
        "success": True,
        "processed": report.total_processed,
        "migrated": report.total_migrated,
        "skipped": report.total_skipped,
        "errors": report.total_errors,
        "failed_collections": report.failed_collections,
        "collections": [c.model_dump() for c in report.collections],
    }


# =============================================================================
# Verification Task
# =============================================================================

@shared_task(bind=True, name="workers.tasks.run_verification")
def run_verification(
    self,
    only: list[str] | None = None,
    limit: int = 200,
    scan_all: bool = False,
    check_cdn: bool = False,
) -> dict[str, Any]:
    """
    Verify migrated references.

    Returns:
        Dict with success flag, headline totals and the sampled problems
    """
    logger.info(f"Starting verification (scan_all={scan_all}, check_cdn={check_cdn})")

    try:
        settings = get_settings()
        store = build_store(settings)
        verifier = build_verifier(settings, store)
    except Exception as e:
        logger.exception(f"Verification setup failed: {e}")
        return {"success": False, "error": str(e)}

    update_progress(1, 2, "Scanning and probing...")
    try:
        report = verifier.run(
            only or SCAN_COLLECTIONS,
            limit=limit,
            scan_all=scan_all,
            check_cdn=check_cdn,
        )
    finally:
        verifier.fetcher.close()
    update_progress(2, 2, "Complete!")

    return {
        "success": True,
        **summarize(report),
        "problems": [p.model_dump() for p in report.problems],
    }


# =============================================================================
# Cascade Delete Task
# =============================================================================

@shared_task(bind=True, name="workers.tasks.cascade_delete_business")
def cascade_delete_business(self, owner_id: str) -> dict[str, Any]:
    """
    Delete every owner-scoped document of a business.

    Returns:
        Dict with success flag, per-collection counts and the total
    """
    logger.info(f"Cascade delete requested for {owner_id}")

    try:
        store = build_store(get_settings())
        results = store.cascade_delete(owner_id)
    except Exception as e:
        logger.exception(f"Cascade delete failed: {e}")
        return {"success": False, "error": str(e)}

    return {
        "success": True,
        "owner_id": owner_id,
        "deleted": results,
        "total": sum(results.values()),
    }
