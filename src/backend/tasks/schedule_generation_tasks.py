"""
Recurring ticket generation task.

Queue: celery (default)
Purpose: Run the daily generation pass from Celery beat, or on demand.
"""

import asyncio
import logging
from datetime import date
from typing import Optional

from api.services.schedule_generation_service import (
    schedule_generation_service,
    schedule_today,
)
from celery_app import celery_app
from tasks.base import BaseTask
from tasks.database import get_celery_session

logger = logging.getLogger(__name__)


def run_async(coro):
    """Run async coroutine in sync context.

    asyncio.run() creates a new event loop and closes it afterwards.
    """
    return asyncio.run(coro, debug=False)


async def _generate(as_of: date) -> int:
    async with get_celery_session() as db:
        return await schedule_generation_service.generate_due_tickets(
            db, as_of, trigger="celery"
        )


@celery_app.task(
    base=BaseTask,
    name="tasks.schedule_generation_tasks.generate_due_tickets_task",
    queue="celery",
    bind=True,
)
def generate_due_tickets_task(self, as_of_date: Optional[str] = None) -> dict:
    """
    Create tickets for every job schedule that has come due.

    Args:
        as_of_date: ISO date (YYYY-MM-DD) to evaluate against; defaults to today

    Returns:
        dict: as_of_date and tickets_created
    """
    as_of = date.fromisoformat(as_of_date) if as_of_date else schedule_today()
    logger.info(f"[Task {self.request.id}] Generating due tickets as of {as_of.isoformat()}")

    created = run_async(_generate(as_of))

    return {"as_of_date": as_of.isoformat(), "tickets_created": created}
