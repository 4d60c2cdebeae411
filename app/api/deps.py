"""API dependencies."""
from functools import lru_cache
from app.core.database import get_db
from app.services.authorization import RemoteAuthorizationService


@lru_cache(maxsize=1)
def get_authorization_service() -> RemoteAuthorizationService:
    """Process-wide service; the decision cache lives as long as it does."""
    return RemoteAuthorizationService.from_config()


__all__ = ["get_db", "get_authorization_service"]
