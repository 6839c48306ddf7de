"""
In-process timer for the daily ticket generation pass.
Uses APScheduler to run the generation engine inside the API process.

Enabled with SCHEDULE_ENABLED=true. Deployments that run Celery beat
should leave it off and use the beat entry in celery_app instead.
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from api.services.schedule_generation_service import schedule_generation_service
from core.config import settings
from core.database import get_cleanup_session

logger = logging.getLogger(__name__)

GENERATION_JOB_ID = "generate_due_tickets"

# Global scheduler instance
scheduler: Optional[AsyncIOScheduler] = None


async def generate_due_tickets_job() -> Optional[int]:
    """
    Background job that runs one generation pass for today.
    Runs daily via APScheduler.
    """
    logger.info("Starting scheduled ticket generation job...")

    try:
        async with get_cleanup_session() as db:
            created = await schedule_generation_service.generate_due_tickets(
                db, trigger="apscheduler"
            )
        logger.info(f"Scheduled ticket generation completed: {created} ticket(s) created")
        return created
    except Exception as e:
        logger.error(f"Scheduled ticket generation job failed: {str(e)}", exc_info=True)
        return None


def build_generation_trigger() -> CronTrigger:
    """Daily trigger at the configured hour/minute and timezone."""
    return CronTrigger(
        hour=settings.schedule.cron_hour,
        minute=settings.schedule.cron_minute,
        timezone=settings.schedule.timezone,
    )


def start_scheduler() -> Optional[AsyncIOScheduler]:
    """Start the background scheduler if in-process generation is enabled."""
    global scheduler

    if not settings.schedule.enabled:
        logger.info("In-process ticket generation disabled (SCHEDULE_ENABLED=false)")
        return None

    logger.info("Starting APScheduler for ticket generation...")

    scheduler = AsyncIOScheduler(timezone=settings.schedule.timezone)
    scheduler.add_job(
        generate_due_tickets_job,
        trigger=build_generation_trigger(),
        id=GENERATION_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        name="Generate Due Tickets",
    )
    scheduler.start()

    logger.info(
        f"APScheduler started: ticket generation daily at "
        f"{settings.schedule.cron_hour:02d}:{settings.schedule.cron_minute:02d} "
        f"{settings.schedule.timezone}"
    )
    return scheduler


def shutdown_scheduler() -> None:
    """Shutdown the scheduler gracefully."""
    global scheduler

    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("APScheduler shut down successfully")
    scheduler = None
