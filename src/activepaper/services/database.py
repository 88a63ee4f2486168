"""Async SQLite engine construction and the store clock.

Uses SQLAlchemy's native async support with aiosqlite. Every pooled connection
enforces foreign keys, and the driver's implicit transaction handling is
replaced with an explicit ``BEGIN`` so that DDL inside migrations is
transactional too. File databases take the write lock up front with
``BEGIN IMMEDIATE``, so overlapping transactions wait on the busy timeout.
"""

import time
from typing import Any, Callable

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

Clock = Callable[[], int]

DAY_MS = 24 * 60 * 60 * 1000


def current_time_ms() -> int:
    """Milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def create_async_engine_from_path(db_path: str) -> AsyncEngine:
    """Create an async SQLAlchemy engine for the given database path.

    Args:
        db_path: Path to SQLite database file, or ":memory:" for in-memory.

    Returns:
        AsyncEngine instance configured for aiosqlite.
    """
    in_memory = db_path == ":memory:"
    if in_memory:
        # aiosqlite serves :memory: through a StaticPool, so every session
        # shares the one connection (and the one database)
        url = "sqlite+aiosqlite:///:memory:"
    else:
        url = f"sqlite+aiosqlite:///{db_path}"
    engine = create_async_engine(url)
    _install_connection_hooks(engine, file_backed=not in_memory)
    return engine


def _install_connection_hooks(engine: AsyncEngine, file_backed: bool) -> None:
    begin_statement = "BEGIN IMMEDIATE" if file_backed else "BEGIN"

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        # hand transaction control to the "begin" hook below
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        if file_backed:
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql(begin_statement)
