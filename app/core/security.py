"""Admin authentication for the management endpoints."""
import secrets

from fastapi import Security, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.core.config import ADMIN_API_KEY

# auto_error=False so a missing header is a 403 like a wrong key
security_scheme = HTTPBearer(auto_error=False)


def verify_admin_key(credentials: HTTPAuthorizationCredentials = Security(security_scheme)):
    """Checks the bearer token against ADMIN_API_KEY."""
    if credentials is None or not secrets.compare_digest(credentials.credentials, ADMIN_API_KEY):
        raise HTTPException(
            status_code=403,
            detail="Invalid or missing API Key for cache management access."
        )
    return True
