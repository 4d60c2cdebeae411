"""Pydantic schemas."""
from app.schemas.schemas import (
    AuthorizationDecision, AuthorizationRequest,
    AccessCheckRequest, AccessCheckResponse,
    CacheStatsResponse, CacheEntryResponse,
    DecisionLogResponse
)

__all__ = [
    "AuthorizationDecision", "AuthorizationRequest",
    "AccessCheckRequest", "AccessCheckResponse",
    "CacheStatsResponse", "CacheEntryResponse",
    "DecisionLogResponse"
]
