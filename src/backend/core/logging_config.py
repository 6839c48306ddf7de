"""
Logging configuration for the facilities helpdesk backend.
Provides structured logging with different levels and formats.

File handlers are fed through a QueueHandler so log writes never block
the event loop; a QueueListener does the file I/O in its own thread.
"""

import atexit
import logging
import logging.handlers
import queue
import sys
from datetime import date
from pathlib import Path
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


# Global queue listener for cleanup
_queue_listener: Optional[logging.handlers.QueueListener] = None


class LogConfig(BaseModel):
    """Logging configuration settings."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    enable_file_logging: bool = True
    log_dir: str = "logs"
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5
    enable_console: bool = True


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for console output."""

    grey = "\x1b[38;21m"
    yellow = "\x1b[33;21m"
    red = "\x1b[31;21m"
    bold_red = "\x1b[31;1m"
    blue = "\x1b[34;21m"
    reset = "\x1b[0m"

    COLORS = {
        logging.DEBUG: grey,
        logging.INFO: blue,
        logging.WARNING: yellow,
        logging.ERROR: red,
        logging.CRITICAL: bold_red,
    }

    def format(self, record):
        color = self.COLORS.get(record.levelno, self.grey)
        # Work on a copy so queued file handlers don't receive escape codes
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname}{self.reset}"
        return f"{super().format(record)}{self.reset}"


class _ScheduleRecordFilter(logging.Filter):
    """Pass only records from the `schedule.*` logger namespace."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.name == "schedule" or record.name.startswith("schedule.")


def _rotating_handler(config: LogConfig, filename: str, formatter: logging.Formatter):
    handler = logging.handlers.RotatingFileHandler(
        Path(config.log_dir) / filename,
        maxBytes=config.max_file_size,
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    handler.setLevel(getattr(logging, config.level.upper()))
    handler.setFormatter(formatter)
    return handler


def setup_logging(config: Optional[LogConfig] = None) -> None:
    """Setup application logging with configuration.

    - Console handler writes directly (stdout is non-blocking)
    - app.log receives everything, schedule.log only the generation engine
    - Both file handlers sit behind a QueueListener
    """
    global _queue_listener

    if config is None:
        config = LogConfig()

    if _queue_listener:
        _queue_listener.stop()
        _queue_listener = None

    if config.enable_file_logging:
        Path(config.log_dir).mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.level.upper()))
    root_logger.handlers.clear()

    if config.enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, config.level.upper()))
        console_handler.setFormatter(
            ColoredFormatter(
                fmt="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
                datefmt=config.date_format,
            )
        )
        root_logger.addHandler(console_handler)

    file_handlers = []

    if config.enable_file_logging:
        file_formatter = logging.Formatter(
            fmt="%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s",
            datefmt=config.date_format,
        )

        file_handlers.append(_rotating_handler(config, "app.log", file_formatter))

        schedule_handler = _rotating_handler(config, "schedule.log", file_formatter)
        schedule_handler.addFilter(_ScheduleRecordFilter())
        file_handlers.append(schedule_handler)

    if file_handlers:
        log_queue = queue.Queue(-1)
        root_logger.addHandler(logging.handlers.QueueHandler(log_queue))

        # respect_handler_level=True ensures only relevant logs are processed
        _queue_listener = logging.handlers.QueueListener(
            log_queue,
            *file_handlers,
            respect_handler_level=True,
        )
        _queue_listener.start()
        atexit.register(stop_queue_listener)

    from .config import settings

    # SQL echo is driven by DATABASE_ECHO, keep the engine logger quiet otherwise
    sqlalchemy_logger = logging.getLogger("sqlalchemy.engine")
    if settings.database.echo:
        sqlalchemy_logger.setLevel(logging.INFO)
    else:
        sqlalchemy_logger.setLevel(logging.WARNING)

    # APScheduler logs every job run at INFO
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


def stop_queue_listener() -> None:
    """Stop the queue listener gracefully.

    Called automatically on exit via atexit.
    Can also be called manually during shutdown.
    """
    global _queue_listener

    if _queue_listener:
        _queue_listener.stop()
        _queue_listener = None


class ScheduleLogger:
    """Structured logger for the recurring ticket generation engine."""

    def __init__(self, name: str = "generation"):
        self.logger = logging.getLogger(f"schedule.{name}")

    def run_started(self, as_of: date, schedule_count: int) -> None:
        """Log the start of a generation pass."""
        self.logger.info(
            f"Generation run started | As of: {as_of.isoformat()} | "
            f"Active schedules: {schedule_count}"
        )

    def run_finished(
        self,
        as_of: date,
        generated: int,
        duration_seconds: float,
        skipped: int = 0,
        exhausted: int = 0,
        failed: int = 0,
    ) -> None:
        """Log the end of a generation pass with per-outcome counts."""
        self.logger.info(
            f"Generation run finished | As of: {as_of.isoformat()} | "
            f"Tickets generated: {generated} | Skipped: {skipped} | "
            f"Exhausted: {exhausted} | Failed: {failed} | "
            f"Duration: {duration_seconds:.2f}s"
        )

    def schedule_skipped(self, schedule_id: UUID, schedule_name: str, reason: str) -> None:
        """Log a due schedule that was left alone."""
        self.logger.warning(
            f"Schedule skipped | Schedule: {schedule_name} ({schedule_id}) | Reason: {reason}"
        )

    def ticket_generated(
        self,
        schedule_id: UUID,
        schedule_name: str,
        ticket_number: str,
        due_date: date,
        next_due_date: date,
    ) -> None:
        """Log a successful firing."""
        self.logger.info(
            f"Ticket generated | Schedule: {schedule_name} ({schedule_id}) | "
            f"Ticket: {ticket_number} | Due: {due_date.isoformat()} | "
            f"Next due: {next_due_date.isoformat()}"
        )

    def schedule_exhausted(
        self, schedule_id: UUID, schedule_name: str, next_due_date: date, end_date: date
    ) -> None:
        """Log when a schedule is deactivated because it ran past its end date."""
        self.logger.info(
            f"Schedule exhausted | Schedule: {schedule_name} ({schedule_id}) | "
            f"Next due: {next_due_date.isoformat()} | End date: {end_date.isoformat()}"
        )

    def duplicate_skipped(self, schedule_id: UUID, schedule_name: str, due_date: date) -> None:
        """Log when a firing is skipped because an instance already exists."""
        self.logger.debug(
            f"Duplicate firing skipped | Schedule: {schedule_name} ({schedule_id}) | "
            f"Due: {due_date.isoformat()}"
        )

    def firing_failed(
        self,
        schedule_id: UUID,
        schedule_name: Optional[str] = None,
        error: str = "",
    ) -> None:
        """Log a failed firing with context."""
        name = schedule_name or "unknown"
        self.logger.error(
            f"Firing failed | Schedule: {name} ({schedule_id}) | Error: {error}"
        )
