"""
Health check and Prometheus metrics endpoints
"""
from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from clanchain.core.config import get_settings
from clanchain.core.database import get_db
from clanchain.core.logging_config import LoggingConfig
from clanchain.core.metrics import get_metrics_response
from clanchain.services.platform_analytics import PlatformAnalyticsService
from clanchain.utils.datetime_utils import utc_now_iso

logger = LoggingConfig.get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """
    Basic health check endpoint

    Returns:
        dict: Health status
    """
    return {
        "status": "healthy",
        "timestamp": utc_now_iso(),
        "service": get_settings().app_name,
    }


@router.get("/health/detailed")
async def detailed_health_check(db: Session = Depends(get_db)):
    """Health status including a database round trip"""
    settings = get_settings()
    database = PlatformAnalyticsService(db).database_health()
    return {
        "status": "healthy" if database["status"] == "healthy" else "degraded",
        "timestamp": utc_now_iso(),
        "service": settings.app_name,
        "environment": settings.app_env,
        "components": {"database": database},
    }


@router.get("/metrics")
async def metrics():
    """
    Prometheus metrics endpoint

    Returns metrics in Prometheus text format
    """
    content, content_type = get_metrics_response()
    return Response(content=content, media_type=content_type)
