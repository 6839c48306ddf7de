"""
Prometheus metrics for recurring ticket generation.

Usage:
    from core.metrics import track_generation_run, track_ticket_generated

    async with track_generation_run(trigger="api"):
        ...
"""

from contextlib import asynccontextmanager
from time import time

from prometheus_client import Counter, Histogram

# ==============================================================================
# Generation Metrics
# ==============================================================================

scheduled_tickets_generated_total = Counter(
    'scheduled_tickets_generated_total',
    'Total tickets generated from job schedules',
    ['frequency_type']
)

schedule_firing_failures_total = Counter(
    'schedule_firing_failures_total',
    'Total schedule firings that failed and were skipped',
    ['reason']  # reason: duplicate, database, error
)

schedules_exhausted_total = Counter(
    'schedules_exhausted_total',
    'Total schedules deactivated after passing their end date'
)

schedule_generation_runs_total = Counter(
    'schedule_generation_runs_total',
    'Total generation passes',
    ['trigger', 'status']  # trigger: api, apscheduler, celery
)

schedule_generation_duration_seconds = Histogram(
    'schedule_generation_duration_seconds',
    'Duration of a generation pass in seconds',
    ['trigger'],
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30, 60, float('inf'))
)


# ==============================================================================
# Tracking Helpers
# ==============================================================================

@asynccontextmanager
async def track_generation_run(trigger: str):
    """
    Track one generation pass.

    Usage:
        async with track_generation_run("celery"):
            await engine.generate_due_tickets(db)
    """
    start_time = time()
    try:
        yield
        schedule_generation_runs_total.labels(trigger=trigger, status='success').inc()
    except Exception:
        schedule_generation_runs_total.labels(trigger=trigger, status='failure').inc()
        raise
    finally:
        schedule_generation_duration_seconds.labels(trigger=trigger).observe(
            time() - start_time
        )


def track_ticket_generated(frequency_type: str):
    """Track a successful schedule firing."""
    scheduled_tickets_generated_total.labels(frequency_type=frequency_type).inc()


def track_firing_failure(reason: str):
    """Track a skipped firing."""
    schedule_firing_failures_total.labels(reason=reason).inc()


def track_schedule_exhausted():
    """Track a schedule deactivated at its end date."""
    schedules_exhausted_total.inc()
