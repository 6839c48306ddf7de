"""
Celery application configuration for background task processing.

This module provides a shared Celery instance configured with the Redis
broker. When SCHEDULE_BEAT_ENABLED is true, Celery beat runs the daily
ticket generation pass.
"""

import logging

from celery import Celery
from celery.schedules import crontab
from celery.signals import task_failure, task_postrun, task_prerun

from core.config import settings

# Create Celery instance
celery_app = Celery(
    "facilities_helpdesk",
    broker=settings.celery.broker_url,
    backend=settings.celery.result_backend,
)

# ============================================================================
# CELERY CONFIGURATION
# ============================================================================

celery_app.conf.update(
    # Timezone Settings
    # Beat crontabs are read in this zone, shared with the APScheduler trigger
    timezone=settings.schedule.timezone,
    enable_utc=settings.celery.enable_utc,

    # Task Serialization
    task_serializer=settings.celery.task_serializer,
    accept_content=settings.celery.accept_content,
    result_serializer=settings.celery.result_serializer,

    # Result Backend Settings
    result_expires=3600,

    # Task Execution Settings
    task_acks_late=True,  # Acknowledge after task completion
    task_reject_on_worker_lost=True,
    task_track_started=settings.celery.task_track_started,
    task_time_limit=settings.celery.task_time_limit,
    task_soft_time_limit=settings.celery.task_soft_time_limit,

    # Worker Settings
    worker_prefetch_multiplier=settings.celery.worker_prefetch_multiplier,
    worker_max_tasks_per_child=settings.celery.worker_max_tasks_per_child,

    # Broker Settings
    broker_connection_retry_on_startup=True,

    # Task Routing
    task_routes={
        "tasks.schedule_generation_tasks.*": {"queue": "celery"},
    },
)


def build_beat_schedule() -> dict:
    """Beat entries for periodic tasks, empty when beat generation is disabled."""
    if not settings.schedule.beat_enabled:
        return {}
    return {
        "generate-due-tickets-daily": {
            "task": "tasks.schedule_generation_tasks.generate_due_tickets_task",
            "schedule": crontab(
                hour=settings.schedule.cron_hour,
                minute=settings.schedule.cron_minute,
            ),
            "options": {"expires": 3600},
        },
    }


celery_app.conf.beat_schedule = build_beat_schedule()

# ============================================================================
# SIGNAL HANDLERS
# ============================================================================

logger = logging.getLogger(__name__)


@task_prerun.connect
def task_prerun_handler(task_id, task, args, kwargs, **extra):
    """Log when task starts."""
    logger.info(f"Task {task.name}[{task_id}] started")


@task_postrun.connect
def task_postrun_handler(task_id, task, args, kwargs, retval, **extra):
    """Log when task completes."""
    logger.info(f"Task {task.name}[{task_id}] finished")


@task_failure.connect
def task_failure_handler(task_id, exception, args, kwargs, traceback, einfo, **extra):
    """Log when task fails."""
    logger.error(f"Task {task_id} failed with exception: {exception}")


# ============================================================================
# MANUAL TASK IMPORTS (to register tasks with Celery)
# ============================================================================
# Imported last so configuration is complete before tasks register
from tasks import schedule_generation_tasks  # noqa: F401, E402
