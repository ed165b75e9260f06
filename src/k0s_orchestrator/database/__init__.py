"""Database package: connection handling and alembic management."""

from .alembic_utils import AlembicManager
from .connection import borrow_db_session, create_session, dispose_db, get_engine

__all__ = [
    "AlembicManager",
    "borrow_db_session",
    "create_session",
    "dispose_db",
    "get_engine",
]
