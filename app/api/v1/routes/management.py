"""Management API endpoints (cache inspection and decision log)."""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from app import schemas
from app import crud
from app.api.deps import get_db, get_authorization_service
from app.core.logging_config import logger
from app.core.security import verify_admin_key
from app.services.authorization import RemoteAuthorizationService

router = APIRouter()


@router.get("/cache/stats", response_model=schemas.CacheStatsResponse)
def cache_stats_api(
    service: RemoteAuthorizationService = Depends(get_authorization_service),
    verified: bool = Depends(verify_admin_key)
):
    """Backend, size and TTL settings of the decision cache. Requires Admin API Key."""
    return service.cache.stats()


@router.delete("/cache", status_code=status.HTTP_204_NO_CONTENT)
def flush_cache_api(
    service: RemoteAuthorizationService = Depends(get_authorization_service),
    verified: bool = Depends(verify_admin_key)
):
    """Drops every cached decision. Requires Admin API Key."""
    service.cache.clear()
    logger.warning("Decision cache flushed via management API")


@router.get("/cache/entries/{key:path}", response_model=schemas.CacheEntryResponse)
def get_cache_entry_api(
    key: str,
    service: RemoteAuthorizationService = Depends(get_authorization_service),
    verified: bool = Depends(verify_admin_key)
):
    """Looks up one ``username::access::patient_id`` key. Requires Admin API Key."""
    value = service.cache.peek(key)
    if value is None:
        raise HTTPException(status_code=404, detail="Cache entry not found")
    return {"key": key, "value": value}


@router.delete("/cache/entries/{key:path}", status_code=status.HTTP_204_NO_CONTENT)
def delete_cache_entry_api(
    key: str,
    service: RemoteAuthorizationService = Depends(get_authorization_service),
    verified: bool = Depends(verify_admin_key)
):
    """Forgets one cached decision; deleting a missing key is fine. Requires Admin API Key."""
    service.cache.remove(key)
    logger.info(f"Cache entry removed via management API: {key}")


@router.get("/decision-logs", response_model=List[schemas.DecisionLogResponse])
def list_decision_logs_api(
    username: Optional[str] = None,
    patient_id: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    verified: bool = Depends(verify_admin_key)
):
    """Recent decisions, newest first. Requires Admin API Key."""
    return crud.get_decision_logs(db, username=username, patient_id=patient_id, skip=skip, limit=limit)


@router.get("/decision-logs/{log_id}", response_model=schemas.DecisionLogResponse)
def get_decision_log_api(
    log_id: int,
    db: Session = Depends(get_db),
    verified: bool = Depends(verify_admin_key)
):
    """One decision by trace id. Requires Admin API Key."""
    db_log = crud.get_decision_log(db, log_id)
    if not db_log:
        raise HTTPException(status_code=404, detail="Decision log not found")
    return db_log
