"""Unit tests for schema migration, reconciliation and repair-and-retry."""

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError

from activepaper.models.annotation import HighlightCreate
from activepaper.models.interaction import InteractionCreate
from activepaper.services.database import create_async_engine_from_path
from activepaper.services.schema import (
    FTS_INDEXES,
    REQUIRED_TABLES,
    SCHEMA_VERSION,
    SchemaManager,
    required_tables,
)


async def _existing_objects(engine) -> set[str]:
    async with engine.connect() as conn:
        result = await conn.execute(text("SELECT name FROM sqlite_master WHERE type IN ('table', 'trigger')"))
        return {row[0] for row in result}


async def _drop(engine, statement: str) -> None:
    async with engine.begin() as conn:
        await conn.execute(text(statement))


@pytest.fixture
async def engine():
    engine = create_async_engine_from_path(":memory:")
    yield engine
    await engine.dispose()


@pytest.fixture
def schema(engine, clock) -> SchemaManager:
    return SchemaManager(engine, clock=clock)


def test_required_tables_grow_with_each_version() -> None:
    v1 = set(required_tables(1))
    v2 = set(required_tables(2))
    v3 = set(required_tables(3))

    assert v1 < v2 < v3
    assert "highlights" not in v1
    assert "interactions_fts" in v2
    assert "ai_preferences" in v3


async def test_fresh_store_reports_version_zero(schema: SchemaManager) -> None:
    assert await schema.current_version() == 0


async def test_migrate_creates_every_required_object(schema: SchemaManager, engine) -> None:
    version = await schema.migrate()

    existing = await _existing_objects(engine)
    assert version == SCHEMA_VERSION
    assert await schema.current_version() == SCHEMA_VERSION
    assert set(REQUIRED_TABLES) <= existing
    for index in FTS_INDEXES:
        assert index.name in existing
        assert set(index.trigger_names) <= existing


async def test_migrate_writes_a_single_version_row(schema: SchemaManager, engine) -> None:
    await schema.migrate()
    await schema.migrate()

    async with engine.connect() as conn:
        rows = (await conn.execute(text("SELECT version FROM schema_version"))).all()
    assert rows == [(SCHEMA_VERSION,)]


async def test_migrate_seeds_default_preferences(schema: SchemaManager, engine) -> None:
    await schema.migrate()

    async with engine.connect() as conn:
        rows = (await conn.execute(text("SELECT id, tone FROM ai_preferences"))).all()
    assert rows == [("default", "standard")]


async def test_migrate_upgrades_from_version_one(schema: SchemaManager, engine) -> None:
    await schema.migrate()
    await _drop(engine, "DROP TABLE highlights")
    await _drop(engine, "UPDATE schema_version SET version = 1")

    assert await schema.migrate() == SCHEMA_VERSION
    assert "highlights" in await _existing_objects(engine)


async def test_failed_migration_leaves_no_partial_schema(schema: SchemaManager, engine) -> None:
    def explode(conn) -> None:
        raise RuntimeError("step failed")

    schema._migrations[1] = explode

    with pytest.raises(RuntimeError):
        await schema.migrate()

    existing = await _existing_objects(engine)
    assert "documents" not in existing
    assert "schema_version" not in existing
    assert await schema.current_version() == 0


async def test_reconcile_on_complete_schema_is_noop(schema: SchemaManager) -> None:
    await schema.migrate()

    result = await schema.reconcile()

    assert not result.repaired
    assert result.repaired_tables == []


async def test_reconcile_recreates_dropped_tables(schema: SchemaManager, engine) -> None:
    await schema.migrate()
    await _drop(engine, "DROP TABLE bookmarks")
    await _drop(engine, "DROP TABLE concepts_fts")

    result = await schema.reconcile()

    assert result.repaired
    assert set(result.repaired_tables) == {"bookmarks", "concepts_fts"}
    assert not (await schema.reconcile()).repaired


async def test_reconcile_keeps_existing_rows(store) -> None:
    document = await store.documents.get_or_create_document("paper.pdf", "/paper.pdf")
    await _drop(store.engine, "DROP TABLE highlights")

    await store.schema.reconcile()

    assert await store.documents.get_document(document.id) == document


async def test_reconcile_backfills_rebuilt_fts_index(store) -> None:
    await store.documents.get_or_create_document("thermodynamics.pdf", "/thermodynamics.pdf")
    await _drop(store.engine, "DROP TABLE documents_fts")

    result = await store.schema.reconcile()
    hits = await store.search.search_documents("thermo")

    assert result.repaired_tables == ["documents_fts"]
    assert [hit.filename for hit in hits] == ["thermodynamics.pdf"]


async def test_operation_is_retried_after_repair(store, document) -> None:
    await _drop(store.engine, "DROP TABLE highlights")

    highlight = await store.highlights.create_highlight(
        HighlightCreate(document_id=document.id, page_number=1, start_offset=0, end_offset=4, selected_text="heat")
    )

    assert await store.highlights.get_highlight(highlight.id) == highlight


async def test_missing_fts_table_behind_trigger_is_repaired(store, document) -> None:
    await _drop(store.engine, "DROP TABLE interactions_fts")

    interaction = await store.interactions.save_interaction(
        InteractionCreate(document_id=document.id, action_type="explain", selected_text="heat", response="energy")
    )
    hits = await store.search.search_interactions("heat")

    assert [hit.id for hit in hits] == [interaction.id]


async def test_run_retries_exactly_once(schema: SchemaManager) -> None:
    await schema.migrate()
    calls = 0

    async def always_missing():
        nonlocal calls
        calls += 1
        async with schema._engine.connect() as conn:
            await conn.execute(text("SELECT * FROM nowhere"))

    with pytest.raises(OperationalError):
        await schema.run(always_missing)
    assert calls == 2


async def test_run_does_not_retry_other_errors(store) -> None:
    with pytest.raises(IntegrityError):
        await store.interactions.save_interaction(
            InteractionCreate(document_id="missing", action_type="explain", selected_text="x", response="y")
        )
