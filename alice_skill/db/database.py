from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool
from fastapi import Request

Base = declarative_base()

MEMORY_URI = "memory://"


def make_engine(url: str) -> Engine:
    """Create an engine for ``url``.

    SQLite gets explicit BEGIN statements so that DDL takes part in
    transactions the same way it does on PostgreSQL.
    """
    db_url = make_url(url)
    if db_url.get_backend_name() != "sqlite":
        return create_engine(url, pool_pre_ping=True)

    database = db_url.database or ""
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(url, connect_args={"check_same_thread": False})
    else:
        # in-memory: every connection must share the same database
        engine = create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_conn, connection_record):
        dbapi_conn.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def build_store(url: str):
    """Pick the store implementation matching ``url``."""
    if url == MEMORY_URI:
        from .memory_store import MemoryStore
        # a new process-local store is always empty, so provision it right away
        store = MemoryStore()
        store.bootstrap()
        return store

    from .sql_store import SQLStore
    return SQLStore(make_engine(url))


def get_store(request: Request):
    """FastAPI dependency returning the store bound to the application."""
    return request.app.state.store
