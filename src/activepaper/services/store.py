"""The reading store: one engine, one schema manager, every repository wired to them."""

from types import TracebackType

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine

from activepaper.services.annotations import BookmarkRepository, HighlightRepository
from activepaper.services.concept_graph import ConceptGraphBuilder
from activepaper.services.concepts import ConceptRepository
from activepaper.services.conversations import ConversationRepository
from activepaper.services.database import Clock, current_time_ms
from activepaper.services.documents import DocumentRepository
from activepaper.services.interactions import InteractionRepository
from activepaper.services.preferences import PreferencesRepository
from activepaper.services.reviews import ReviewCardRepository
from activepaper.services.schema import SchemaManager, SchemaStatus
from activepaper.services.search import SearchIndex


class ReadingStore:
    """Explicitly constructed handle over one SQLite store.

    Use as an async context manager; entering migrates the schema and repairs
    anything missing, leaving disposes the engine.

    Example:
        async with create_store(path) as store:
            document = await store.documents.get_or_create_document("a.pdf", path)
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
        self.schema = SchemaManager(engine, clock=self._clock, logger=self._logger)

        wiring = {"engine": engine, "schema": self.schema, "clock": self._clock, "logger": self._logger}
        self.documents = DocumentRepository(**wiring)
        self.interactions = InteractionRepository(**wiring)
        self.concepts = ConceptRepository(**wiring)
        self.reviews = ReviewCardRepository(**wiring)
        self.highlights = HighlightRepository(**wiring)
        self.bookmarks = BookmarkRepository(**wiring)
        self.conversations = ConversationRepository(**wiring)
        self.preferences = PreferencesRepository(**wiring)
        self.search = SearchIndex(**wiring)
        self.graph = ConceptGraphBuilder(**wiring)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def open(self) -> SchemaStatus:
        """Bring the schema to the current version, then repair any missing structure."""
        version = await self.schema.migrate()
        reconcile = await self.schema.reconcile(reason="startup")
        self._logger.info("store_opened", version=version, repaired=reconcile.repaired)
        return SchemaStatus(version=version, reconcile=reconcile)

    async def close(self) -> None:
        await self._engine.dispose()
        self._logger.debug("store_closed")

    async def __aenter__(self) -> "ReadingStore":
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.close()
