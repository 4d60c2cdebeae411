"""Database CRUD operations for the decision log."""
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import desc
from app.models import DecisionLog
from app.core.logging_config import logger


def create_decision_log(db: Session, log: dict):
    """Create a decision log entry."""
    db_log = DecisionLog(**log)
    db.add(db_log)
    db.commit()
    db.refresh(db_log)
    logger.debug(f"Decision log created: trace_id={db_log.id}")
    return db_log


def get_decision_log(db: Session, log_id: int):
    """Retrieve a single decision log entry by ID."""
    return db.query(DecisionLog).filter(DecisionLog.id == log_id).first()


def get_decision_logs(
    db: Session,
    username: Optional[str] = None,
    patient_id: Optional[str] = None,
    skip: int = 0,
    limit: int = 100
):
    """Retrieve decision log entries, newest first, optionally filtered."""
    query = db.query(DecisionLog)
    if username is not None:
        query = query.filter(DecisionLog.username == username)
    if patient_id is not None:
        query = query.filter(DecisionLog.patient_id == patient_id)
    return query.order_by(desc(DecisionLog.id)).offset(skip).limit(limit).all()
