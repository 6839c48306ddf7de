"""
Health check endpoint handler.
"""

from fastapi import APIRouter, Response, status

from core.database import check_database

router = APIRouter()


@router.get("/health")
async def health_check(response: Response):
    """
    Health check endpoint for monitoring.
    Checks database connectivity.
    """
    database_healthy = await check_database()

    health_status = {
        "status": "healthy" if database_healthy else "unhealthy",
        "services": {
            "database": {"status": "healthy" if database_healthy else "unhealthy"},
        },
    }

    if not database_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return health_status
