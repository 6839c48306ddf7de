"""
Application factory for FastAPI.

This module provides the create_app() function that creates and configures
the FastAPI application instance.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from api.v1 import api_router
from api.v1.endpoints.scheduling.job_schedules import limiter
from app.routes import health_router, root_router
from core.config import settings
from core.exceptions import register_exception_handlers
from core.instrumentator import instrumentator
from core.lifespan import lifespan


def create_app() -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application with middleware,
    exception handlers, routes and instrumentation.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.api.app_name,
        version=settings.api.app_version,
        description="Facilities helpdesk: recurring job templates, schedules and ticket generation",
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    # Rate limiter shared with the endpoints that declare limits
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Accept", "Origin", "X-Requested-With"],
        expose_headers=["X-Total-Count"],
    )

    app.include_router(root_router)
    app.include_router(health_router)
    app.include_router(api_router, prefix=settings.api.api_v1_prefix)

    instrumentator.instrument(app)
    instrumentator.expose(app, endpoint="/metrics")

    return app
