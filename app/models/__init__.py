"""SQLAlchemy models."""
from app.models.models import DecisionLog
from app.core.database import Base

__all__ = ["DecisionLog", "Base"]
