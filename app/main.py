"""FastAPI application entry point."""
from fastapi import FastAPI
from app.core.database import engine, Base
from app.core.exceptions import InitializationError
from app.core.logging_config import logger
from app.api.deps import get_authorization_service
from app.api.v1.router import api_router
from app.api.v1.routes.health import SERVICE_NAME, SERVICE_VERSION

logger.info(f"Starting {SERVICE_NAME}")

# Create decision log tables
try:
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables initialized successfully")
except Exception as e:
    logger.error(f"Failed to initialize database tables: {e}")
    raise

app = FastAPI(
    title=SERVICE_NAME,
    description="Caches access decisions rendered by a remote authorization server",
    version=SERVICE_VERSION
)

app.include_router(api_router)
logger.info("API routes registered successfully")


@app.on_event("startup")
async def startup_event():
    """Builds the authorization service; bad configuration stops the app here."""
    try:
        get_authorization_service()
    except InitializationError as e:
        logger.error(f"Authorization service failed to initialize: {e}")
        raise
    logger.info("Application startup complete")


@app.on_event("shutdown")
async def shutdown_event():
    """Releases the HTTP client held by the authorization service."""
    if get_authorization_service.cache_info().currsize:
        get_authorization_service().close()
    logger.info("Application shutting down")
