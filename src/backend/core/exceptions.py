"""
Domain exceptions for job templates, job schedules and ticket generation.

Services raise these; `register_exception_handlers` turns them into JSON
responses so the admin UI always sees a `detail` message.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class SchedulingError(Exception):
    """Base exception for the scheduling domain."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(SchedulingError):
    """Raised when input is malformed or inconsistent."""

    status_code = status.HTTP_400_BAD_REQUEST


class InvalidFrequencyValue(ValidationError):
    """Raised when a custom frequency has no usable month count."""

    pass


class NotFoundError(SchedulingError):
    """Raised when a template, schedule or instance id does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class PersistenceError(SchedulingError):
    """Raised when the underlying store fails during a write."""

    pass


class DuplicateFiringError(SchedulingError):
    """Raised when the (schedule, due date) uniqueness constraint rejects an instance.

    Only used inside the generation engine, which treats it as a skip.
    """

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, schedule_id, due_date):
        super().__init__(
            f"Schedule {schedule_id} already fired for due date {due_date}"
        )
        self.schedule_id = schedule_id
        self.due_date = due_date


async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    """Render a SchedulingError as `{"detail": ...}` with its status code."""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def register_exception_handlers(app: FastAPI) -> None:
    """Attach domain exception handlers to the application."""
    app.add_exception_handler(SchedulingError, scheduling_error_handler)
