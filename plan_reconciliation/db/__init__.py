"""Database module for the plan reconciliation engine."""

from .database import Database, get_db, close_db
from .repository import PlanRepository

__all__ = ["Database", "get_db", "close_db", "PlanRepository"]
