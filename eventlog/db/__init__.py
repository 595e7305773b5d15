"""Database connection, session management and the log store."""

from eventlog.db.session import close_db, get_db, get_log_store, init_db
from eventlog.db.sqlalchemy_store import SqlAlchemyLogStore
from eventlog.db.store import LogStore

__all__ = ["get_db", "get_log_store", "init_db", "close_db", "LogStore", "SqlAlchemyLogStore"]
