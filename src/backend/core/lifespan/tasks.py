"""
Lifespan startup and shutdown task functions.

Each function handles one step of the application startup or shutdown
sequence and logs its outcome.
"""

import logging


async def initialize_logging(settings, log_config):
    """Setup logging configuration."""
    from core.logging_config import setup_logging

    logger = logging.getLogger("main")
    setup_logging(log_config)
    logger.info(f"Starting {settings.api.app_name} {settings.api.app_version}...")


async def log_cors_configuration(settings, logger):
    """Log CORS configuration for debugging."""
    logger.info(f"CORS Allowed Origins: {settings.cors.origins}")


async def initialize_database():
    """Initialize database tables."""
    from core.database import init_db

    logger = logging.getLogger("main")
    await init_db()
    logger.info("Database initialized")


async def start_background_scheduler():
    """Start the in-process ticket generation timer (when enabled)."""
    from core.scheduler import start_scheduler

    logger = logging.getLogger("main")
    try:
        if start_scheduler() is not None:
            logger.info("Ticket generation scheduler started")
    except Exception as e:
        logger.warning(f"Scheduler initialization failed: {e}")


async def shutdown_scheduler_task():
    """Shutdown the in-process ticket generation timer."""
    from core.scheduler import shutdown_scheduler

    logger = logging.getLogger("main")
    try:
        shutdown_scheduler()
    except Exception as e:
        logger.warning(f"Scheduler shutdown error: {e}")


async def shutdown_database():
    """Close database connections."""
    from core.database import close_db

    logger = logging.getLogger("main")
    await close_db()
    logger.info("Database connections closed")
