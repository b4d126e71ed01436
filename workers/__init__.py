# =============================================================================
# workers/ - Celery Background Task Workers
# =============================================================================
# Celery configuration and task definitions for the batch jobs.
#
# Components:
# - celery_app.py: Celery application configuration
# - tasks.py: Task definitions (migration, verification, cascade delete)
# - config.py: Worker-specific settings
#
# Usage:
#   # Start worker
#   celery -A workers.celery_app worker --loglevel=info -Q default,migrations
#
#   # Submit task
#   from workers.tasks import run_asset_migration
#   result = run_asset_migration.delay(kind="legacy", only=["businesses"])
# =============================================================================

from .celery_app import celery_app
from . import tasks

__all__ = [
    "celery_app",
    "tasks",
]
