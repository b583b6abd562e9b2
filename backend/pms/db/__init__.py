"""Database package with engine and session management."""

from pms.db.session import async_session_maker, dispose_engine, engine, get_session, init_db

__all__ = ["async_session_maker", "dispose_engine", "engine", "get_session", "init_db"]
