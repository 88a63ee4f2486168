"""Factory functions for creating reading stores.

Provides a production factory backed by a SQLite file and a test factory
backed by an in-memory database for fast, isolated testing.
"""

from pathlib import Path

import structlog

from activepaper.services.database import Clock, create_async_engine_from_path
from activepaper.services.store import ReadingStore

DEFAULT_DB_FILENAME = "activepaper.db"


def create_store(db_path: Path, clock: Clock | None = None) -> ReadingStore:
    """Create a ReadingStore persisted to ``db_path``.

    The parent directory is created if needed; the database file itself is
    created when the store is first opened.

    Args:
        db_path: Location of the SQLite database file.
        clock: Millisecond clock; defaults to wall-clock time.

    Returns:
        ReadingStore, not yet opened.
    """
    logger = structlog.get_logger(__name__)

    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_async_engine_from_path(str(db_path))
    return ReadingStore(engine=engine, clock=clock, logger=logger)


def create_test_store(clock: Clock | None = None) -> ReadingStore:
    """Create a ReadingStore over a private in-memory database.

    Each call creates independent storage, so tests don't interfere.
    """
    logger = structlog.get_logger(__name__)

    engine = create_async_engine_from_path(":memory:")
    return ReadingStore(engine=engine, clock=clock, logger=logger)
