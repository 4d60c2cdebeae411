"""Health check endpoints."""
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session
from app.api.deps import get_db, get_authorization_service
from app.core.logging_config import logger
from app.services.authorization import RemoteAuthorizationService

SERVICE_NAME = "Remote Authorization Cache"
SERVICE_VERSION = "1.0.0"

router = APIRouter()


@router.get("/")
def read_root():
    """Basic health check endpoint."""
    return {"status": f"{SERVICE_NAME} is Operational", "docs": "/docs"}


@router.get("/health", status_code=status.HTTP_200_OK)
def health_check(
    db: Session = Depends(get_db),
    service: RemoteAuthorizationService = Depends(get_authorization_service)
):
    """Database and decision cache status. The remote authority is not probed."""
    health_status = {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "checks": {}
    }

    try:
        db.execute(text("SELECT 1"))
        health_status["checks"]["database"] = {
            "status": "healthy",
            "message": "Database connection successful"
        }
    except Exception as e:
        health_status["status"] = "degraded"
        health_status["checks"]["database"] = {
            "status": "unhealthy",
            "message": f"Database connection failed: {str(e)}"
        }
        logger.error(f"Database health check failed: {e}")

    # A broken cache only costs latency, so it never degrades the service
    health_status["checks"]["cache"] = {
        "status": "healthy",
        "message": "Cache operational",
        **service.cache.stats()
    }
    health_status["checks"]["remote_authority"] = {
        "status": "configured",
        "url": service.url
    }

    status_code = status.HTTP_200_OK
    if health_status["status"] == "degraded":
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(content=health_status, status_code=status_code)
