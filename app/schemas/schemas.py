"""Pydantic schemas for the authorization wire format and the service API."""
from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from datetime import datetime


# --- Decisions ---
class AuthorizationDecision(str, Enum):
    """Tri-state answer of the remote authority.

    UNKNOWN means "no opinion": the caller should fall back to its own
    rights checking. It is never cached.
    """
    GRANTED = "granted"
    DENIED = "denied"
    UNKNOWN = "unknown"

    def as_bool(self) -> Optional[bool]:
        if self is AuthorizationDecision.GRANTED:
            return True
        if self is AuthorizationDecision.DENIED:
            return False
        return None

    @classmethod
    def from_bool(cls, value: Optional[bool]) -> "AuthorizationDecision":
        if value is None:
            return cls.UNKNOWN
        return cls.GRANTED if value else cls.DENIED


# --- Remote authority request (The Wire Format) ---
class AuthorizationRequest(BaseModel):
    """One access check, as sent to the remote authority.

    The JSON body is exactly::

        {"access": "view", "username": "jdoe",
         "patient-id": "P0123456", "patient-eid": "PATIENT_1234"}
    """
    access: str
    username: str
    patient_id: str = Field(alias="patient-id")
    patient_eid: Optional[str] = Field(default=None, alias="patient-eid")

    class Config:
        frozen = True
        populate_by_name = True

    def to_payload(self) -> Dict[str, Any]:
        """Serializes the request with exactly the four wire keys."""
        return {
            "access": self.access,
            "username": self.username,
            "patient-id": self.patient_id,
            "patient-eid": self.patient_eid,
        }


# --- Service API Schemas ---
class AccessCheckRequest(AuthorizationRequest):
    dry_run: bool = False  # Skip the decision log

    def to_authorization_request(self) -> AuthorizationRequest:
        return AuthorizationRequest(
            access=self.access,
            username=self.username,
            patient_id=self.patient_id,
            patient_eid=self.patient_eid,
        )


class AccessCheckResponse(BaseModel):
    decision: Optional[bool]  # None = indeterminate, apply local fallback
    outcome: AuthorizationDecision
    cached: bool = False
    reason: str
    trace_id: Optional[int] = None


class CacheStatsResponse(BaseModel):
    backend: str
    size: int
    max_size: Optional[int] = None
    default_ttl: int


class CacheEntryResponse(BaseModel):
    key: str
    value: bool


class DecisionLogResponse(BaseModel):
    id: int
    username: str
    access: str
    patient_id: str
    patient_eid: Optional[str] = None
    decision: Optional[bool] = None
    source: str
    explanation: Optional[str] = None
    timestamp: Optional[datetime] = None

    class Config:
        from_attributes = True
