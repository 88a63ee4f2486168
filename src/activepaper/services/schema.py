"""Schema lifecycle management: versioned migrations and self-healing repair.

Two independent operations keep the store in shape:

* ``migrate()`` walks a store from its recorded version to ``SCHEMA_VERSION``
  inside a single transaction.
* ``reconcile()`` re-creates any required table, or full-text index, that has
  gone missing without touching the data in tables that still exist.

``run()`` ties them together for repositories: it executes an operation and,
when SQLite reports a missing table, reconciles once and retries once.
"""

from typing import Awaitable, Callable, TypeVar

import structlog
from pydantic import BaseModel, Field
from sqlalchemy import Connection, delete, func, insert, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import SQLModel

from activepaper.models import tables
from activepaper.models.preferences import AIPreferences
from activepaper.services.database import Clock, current_time_ms

T = TypeVar("T")

SCHEMA_VERSION = 3

CORE_TABLES = (
    "documents",
    "interactions",
    "concepts",
    "interaction_concepts",
    "document_concepts",
    "review_cards",
)
ANNOTATION_TABLES = (
    "highlights",
    "bookmarks",
    "conversations",
    "conversation_messages",
)
PREFERENCE_TABLES = (
    "ai_preferences",
    "custom_actions",
    "document_ai_context",
)

# Creation order respects foreign keys.
REQUIRED_TABLES = ("schema_version", *CORE_TABLES, *ANNOTATION_TABLES, *PREFERENCE_TABLES)


class FtsIndex(BaseModel):
    """An external-content FTS5 table kept in sync with its source by triggers."""

    name: str
    content_table: str
    columns: tuple[str, ...]

    model_config = {"frozen": True}

    @property
    def trigger_names(self) -> tuple[str, str, str]:
        return (f"{self.name}_ai", f"{self.name}_ad", f"{self.name}_au")

    def create_table_sql(self) -> str:
        return (
            f"CREATE VIRTUAL TABLE IF NOT EXISTS {self.name} USING fts5("
            f"{', '.join(self.columns)}, content='{self.content_table}', content_rowid='rowid')"
        )

    def trigger_sql(self) -> list[str]:
        column_list = ", ".join(self.columns)
        new_values = ", ".join(f"new.{column}" for column in self.columns)
        old_values = ", ".join(f"old.{column}" for column in self.columns)
        insert_new = f"INSERT INTO {self.name}(rowid, {column_list}) VALUES (new.rowid, {new_values});"
        delete_old = (
            f"INSERT INTO {self.name}({self.name}, rowid, {column_list}) "
            f"VALUES ('delete', old.rowid, {old_values});"
        )
        after_insert, after_delete, after_update = self.trigger_names
        return [
            f"CREATE TRIGGER {after_insert} AFTER INSERT ON {self.content_table} BEGIN {insert_new} END",
            f"CREATE TRIGGER {after_delete} AFTER DELETE ON {self.content_table} BEGIN {delete_old} END",
            f"CREATE TRIGGER {after_update} AFTER UPDATE OF {column_list} ON {self.content_table} "
            f"BEGIN {delete_old} {insert_new} END",
        ]

    def rebuild_sql(self) -> str:
        return f"INSERT INTO {self.name}({self.name}) VALUES ('rebuild')"


FTS_INDEXES = (
    FtsIndex(name="documents_fts", content_table="documents", columns=("filename",)),
    FtsIndex(name="interactions_fts", content_table="interactions", columns=("selected_text", "response")),
    FtsIndex(name="concepts_fts", content_table="concepts", columns=("name",)),
)

_TABLES_BY_VERSION = {
    1: CORE_TABLES,
    2: ANNOTATION_TABLES + tuple(index.name for index in FTS_INDEXES),
    3: PREFERENCE_TABLES,
}


def required_tables(version: int = SCHEMA_VERSION) -> list[str]:
    """Tables and virtual tables a store at ``version`` must contain."""
    names: list[str] = []
    for step in range(1, version + 1):
        names.extend(_TABLES_BY_VERSION[step])
    return names


def is_missing_table_error(error: BaseException) -> bool:
    """True for SQLite's "no such table" failure, including ones raised inside triggers."""
    if not isinstance(error, OperationalError):
        return False
    return "no such table" in str(error.orig)


class ReconcileResult(BaseModel):
    repaired: bool
    repaired_tables: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class SchemaStatus(BaseModel):
    version: int = Field(ge=0)
    reconcile: ReconcileResult

    model_config = {"frozen": True}


class SchemaManager:
    """Creates, upgrades and repairs the store schema.

    Holds no connection of its own; every call runs in a fresh transaction on
    the injected engine.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        clock: Clock | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._engine = engine
        self._clock = clock or current_time_ms
        self._logger = logger or structlog.get_logger(__name__)
        self._migrations: list[Callable[[Connection], None]] = [
            self._create_core_tables,
            self._create_annotation_tables,
            self._create_preference_tables,
        ]

    async def migrate(self) -> int:
        """Apply every missing migration step in one transaction.

        Returns:
            The schema version recorded after the call.
        """
        async with self._engine.begin() as conn:
            return await conn.run_sync(self._migrate)

    async def reconcile(self, reason: str = "manual") -> ReconcileResult:
        """Re-create required tables and full-text indexes that are missing.

        Existing tables are never dropped or truncated, so calling this on a
        complete schema is a no-op.

        Args:
            reason: Why the repair was requested; only used for logging.

        Returns:
            ReconcileResult listing the tables that had to be re-created.
        """
        async with self._engine.begin() as conn:
            repaired_tables = await conn.run_sync(self._reconcile)
        result = ReconcileResult(repaired=bool(repaired_tables), repaired_tables=repaired_tables)
        if result.repaired:
            self._logger.warning(
                "schema_repaired",
                reason=reason,
                repaired_tables=repaired_tables,
            )
        return result

    async def current_version(self) -> int:
        async with self._engine.connect() as conn:
            return await conn.run_sync(self._read_version)

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Execute ``operation``, repairing the schema and retrying once on a missing table.

        Any other failure, and a failure of the retry itself, propagates unchanged.
        """
        try:
            return await operation()
        except OperationalError as exc:
            if not is_missing_table_error(exc):
                raise
            self._logger.warning("schema_fault_detected", error=str(exc.orig))
            await self.reconcile(reason="retry")
        return await operation()

    def _migrate(self, conn: Connection) -> int:
        tables.SchemaVersionRecord.__table__.create(conn, checkfirst=True)
        current = self._read_version(conn)
        if current > SCHEMA_VERSION:
            self._logger.warning(
                "schema_version_newer_than_supported",
                version=current,
                supported=SCHEMA_VERSION,
            )
            return current
        if current == SCHEMA_VERSION:
            return current

        for step in self._migrations[current:]:
            step(conn)

        version_table = tables.SchemaVersionRecord.__table__
        conn.execute(delete(version_table))
        conn.execute(insert(version_table).values(version=SCHEMA_VERSION))
        self._logger.info("schema_migrated", from_version=current, to_version=SCHEMA_VERSION)
        return SCHEMA_VERSION

    def _reconcile(self, conn: Connection) -> list[str]:
        existing = self._existing_objects(conn)
        repaired: list[str] = []
        for name in REQUIRED_TABLES:
            if name not in existing:
                SQLModel.metadata.tables[name].create(conn, checkfirst=True)
                repaired.append(name)

        # a re-created content table comes back without its sync triggers
        existing = self._existing_objects(conn)
        for index in FTS_INDEXES:
            objects = (index.name, *index.trigger_names)
            if any(name not in existing for name in objects):
                self._install_fts_index(conn, index)
                repaired.append(index.name)
        return repaired

    def _read_version(self, conn: Connection) -> int:
        if "schema_version" not in self._existing_objects(conn):
            return 0
        version_column = tables.SchemaVersionRecord.__table__.c.version
        return conn.execute(select(func.max(version_column))).scalar() or 0

    def _existing_objects(self, conn: Connection) -> set[str]:
        result = conn.exec_driver_sql("SELECT name FROM sqlite_master WHERE type IN ('table', 'view', 'trigger')")
        return {row[0] for row in result}

    def _create_tables(self, conn: Connection, names: tuple[str, ...]) -> None:
        for name in names:
            SQLModel.metadata.tables[name].create(conn, checkfirst=True)

    def _install_fts_index(self, conn: Connection, index: FtsIndex) -> None:
        for trigger in index.trigger_names:
            conn.exec_driver_sql(f"DROP TRIGGER IF EXISTS {trigger}")
        conn.exec_driver_sql(index.create_table_sql())
        for statement in index.trigger_sql():
            conn.exec_driver_sql(statement)
        conn.exec_driver_sql(index.rebuild_sql())

    def _create_core_tables(self, conn: Connection) -> None:
        self._create_tables(conn, CORE_TABLES)

    def _create_annotation_tables(self, conn: Connection) -> None:
        self._create_tables(conn, ANNOTATION_TABLES)
        for index in FTS_INDEXES:
            self._install_fts_index(conn, index)

    def _create_preference_tables(self, conn: Connection) -> None:
        self._create_tables(conn, PREFERENCE_TABLES)
        now = self._clock()
        defaults = AIPreferences(created_at=now, updated_at=now).to_record()
        conn.execute(sqlite_insert(tables.AIPreferencesRecord.__table__).values(**defaults).on_conflict_do_nothing())
