"""Access check API endpoints."""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app import schemas
from app.api.deps import get_db, get_authorization_service
from app.services.authorization import RemoteAuthorizationService, authorize_request

router = APIRouter()


@router.post("/access", response_model=schemas.AccessCheckResponse)
def check_access(
    request: schemas.AccessCheckRequest,
    db: Session = Depends(get_db),
    service: RemoteAuthorizationService = Depends(get_authorization_service)
):
    """Granted, denied, or no opinion (decision is null)."""
    return authorize_request(request, service, db)


@router.post("/access/batch", response_model=List[schemas.AccessCheckResponse])
def check_access_batch(
    requests: List[schemas.AccessCheckRequest],
    db: Session = Depends(get_db),
    service: RemoteAuthorizationService = Depends(get_authorization_service)
):
    """Runs several access checks in order; each one may hit the cache."""
    return [authorize_request(req, service, db) for req in requests]
