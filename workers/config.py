# =============================================================================
# workers/config.py - Celery Worker Configuration
# =============================================================================
# Settings specific to Celery workers.
# =============================================================================

from app.config import get_settings

_settings = get_settings()


class CeleryConfig:
    """
    Celery configuration settings.

    These are applied to the Celery app via app.config_from_object().
    """

    # -------------------------------------------------------------------------
    # Broker Settings (Redis)
    # -------------------------------------------------------------------------

    broker_url = _settings.REDIS_URL
    result_backend = _settings.REDIS_URL

    # -------------------------------------------------------------------------
    # Task Settings
    # -------------------------------------------------------------------------

    # Acknowledge after completion; a crashed worker's job is redelivered
    task_acks_late = True

    # Batch jobs are long; take one at a time
    worker_prefetch_multiplier = 1

    # Task results expire after 1 day
    result_expires = 86400

    # Full migrations walk every collection
    task_time_limit = 4 * 3600
    task_soft_time_limit = 4 * 3600 - 300

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    task_serializer = "json"
    result_serializer = "json"
    accept_content = ["json"]

    # -------------------------------------------------------------------------
    # Task Routing
    # -------------------------------------------------------------------------

    task_queues = {
        "default": {
            "exchange": "default",
            "routing_key": "default",
        },
        "migrations": {
            "exchange": "migrations",
            "routing_key": "migrations",
        },
    }

    # Long-running batch jobs get their own queue
    task_routes = {
        "workers.tasks.run_asset_migration": {"queue": "migrations"},
        "workers.tasks.run_verification": {"queue": "migrations"},
    }

    task_default_queue = "default"

    # -------------------------------------------------------------------------
    # Monitoring
    # -------------------------------------------------------------------------

    worker_send_task_events = True
    task_send_sent_event = True

    # -------------------------------------------------------------------------
    # Timezone
    # -------------------------------------------------------------------------

    timezone = "UTC"
    enable_utc = True
