"""Health check and monitoring API endpoints."""

import time
from datetime import datetime

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..config import get_settings
from ..models.response import HealthResponse

router = APIRouter(prefix="/api/v1", tags=["health"])
settings = get_settings()

# Import the global workbook session instance
from ..session_instance import workbook_session

# Track application start time
app_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check the health status of the search service"
)
async def health_check() -> HealthResponse:
    """
    Perform a health check on the search service.

    Runs an empty search against the current record set, which exercises
    the engine without depending on what is loaded.
    """
    dependencies = {
        "search_engine": "healthy",
        "workbook": "loaded" if workbook_session.file_name else "empty"
    }

    try:
        workbook_session.engine.search([], "")
    except Exception:
        dependencies["search_engine"] = "unhealthy"

    status = "unhealthy" if dependencies["search_engine"] == "unhealthy" else "healthy"

    return HealthResponse(
        status=status,
        version=settings.app_version,
        uptime=time.time() - app_start_time,
        dependencies=dependencies
    )


@router.get(
    "/health/live",
    summary="Liveness check",
    description="Check if the service is alive and responding"
)
async def liveness_check() -> JSONResponse:
    """Check if the service process is running and responsive."""
    return JSONResponse(
        status_code=200,
        content={
            "status": "alive",
            "timestamp": datetime.utcnow().isoformat(),
            "uptime": time.time() - app_start_time
        }
    )


@router.get(
    "/status",
    summary="Service status",
    description="Get detailed status information about the service"
)
async def service_status() -> JSONResponse:
    """
    Get detailed status information about the service.

    Includes engine statistics, index cache statistics and the
    search configuration.
    """
    config_info = {
        "default_fuzziness": settings.default_fuzziness,
        "min_match_char_length": settings.min_match_char_length,
        "ignore_diacritics": settings.ignore_diacritics,
        "extended_search": settings.extended_search,
        "drop_leading_column": settings.drop_leading_column,
        "max_query_length": settings.max_query_length,
        "debug": settings.debug
    }

    return JSONResponse(
        status_code=200,
        content={
            "service": {
                "name": settings.app_name,
                "version": settings.app_version,
                "status": "running",
                "uptime": time.time() - app_start_time,
                "start_time": datetime.fromtimestamp(app_start_time).isoformat()
            },
            "workbook": {
                "file_name": workbook_session.file_name,
                "selected_sheet": workbook_session.selected_sheet,
                "total_rows": len(workbook_session.records)
            },
            "configuration": config_info,
            "statistics": workbook_session.engine.get_stats(),
            "timestamp": datetime.utcnow().isoformat()
        }
    )
