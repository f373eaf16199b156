"""Database package for the library server.

Re-exports the engine and session helpers from ``connection``.
"""

from .connection import borrow_db_session, dispose_db, get_db_session, get_engine, init_db

__all__ = [
    "borrow_db_session",
    "get_db_session",
    "get_engine",
    "init_db",
    "dispose_db",
]
