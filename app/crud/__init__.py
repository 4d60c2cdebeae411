"""Database CRUD operations."""
from app.crud.crud import (
    create_decision_log,
    get_decision_log,
    get_decision_logs
)

__all__ = [
    "create_decision_log",
    "get_decision_log",
    "get_decision_logs"
]
