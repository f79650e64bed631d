"""
Database module - engine, sessions and table definitions.
"""
from tus_guide.db.database import get_db, get_db_session, check_db_connection
from tus_guide.db.schema import init_schema

__all__ = [
    "get_db",
    "get_db_session",
    "check_db_connection",
    "init_schema",
]
