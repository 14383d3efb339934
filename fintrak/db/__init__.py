"""
Database configuration and models.
"""

from fintrak.db.database import engine, SessionLocal, get_db, init_db
from fintrak.db.models import Base

__all__ = ["engine", "SessionLocal", "get_db", "init_db", "Base"]
