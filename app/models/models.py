"""SQLAlchemy database models."""
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from app.core.database import Base


# One row per access check served through the API.
# Fields:
# 1. username / access / patient_id / patient_eid: the check as received
# 2. decision: True (granted), False (denied) or NULL (no opinion)
# 3. source: "cache", "remote" or "none" (request never reached either)
class DecisionLog(Base):
    __tablename__ = "decision_logs"
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, nullable=False, index=True)
    access = Column(String, nullable=False)
    patient_id = Column(String, nullable=False, index=True)
    patient_eid = Column(String, nullable=True)
    decision = Column(Boolean, nullable=True)
    source = Column(String, nullable=False)
    explanation = Column(String, nullable=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now())
