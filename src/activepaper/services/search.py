"""Full-text search over documents, interactions and concepts.

Queries run against the external-content FTS5 tables kept in sync by the
schema's triggers. User input never reaches FTS5 verbatim: it is reduced to
word tokens, each matched as a quoted prefix term, so no input can produce a
malformed MATCH expression.
"""

import re

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from activepaper.models.search import (
    ConceptSearchResult,
    DocumentSearchResult,
    InteractionSearchResult,
    SearchResults,
)
from activepaper.services.base import Repository

_TOKEN_PATTERN = re.compile(r"\w+", re.UNICODE)

HIGHLIGHT_OPEN = "<mark>"
HIGHLIGHT_CLOSE = "</mark>"
SNIPPET_ELLIPSIS = "..."
SNIPPET_TOKENS = 32

_DOCUMENTS_SQL = text(
    """
    SELECT
        d.id, d.filename, d.filepath, d.last_opened_at, d.scroll_position, d.total_pages, d.created_at,
        bm25(documents_fts) AS rank
    FROM documents_fts
    JOIN documents d ON d.rowid = documents_fts.rowid
    WHERE documents_fts MATCH :query
    ORDER BY rank
    LIMIT :limit
    """
)

_INTERACTION_COLUMNS = f"""
    i.id, i.document_id, i.action_type, i.selected_text, i.page_context, i.response,
    i.page_number, i.scroll_position, i.created_at,
    d.filename, d.filepath,
    snippet(interactions_fts, -1, '{HIGHLIGHT_OPEN}', '{HIGHLIGHT_CLOSE}', '{SNIPPET_ELLIPSIS}', {SNIPPET_TOKENS})
        AS snippet,
    bm25(interactions_fts) AS rank
"""

_INTERACTIONS_SQL = text(
    f"""
    SELECT {_INTERACTION_COLUMNS}
    FROM interactions_fts
    JOIN interactions i ON i.rowid = interactions_fts.rowid
    JOIN documents d ON d.id = i.document_id
    WHERE interactions_fts MATCH :query
    ORDER BY rank
    LIMIT :limit
    """
)

_INTERACTIONS_IN_DOCUMENT_SQL = text(
    f"""
    SELECT {_INTERACTION_COLUMNS}
    FROM interactions_fts
    JOIN interactions i ON i.rowid = interactions_fts.rowid
    JOIN documents d ON d.id = i.document_id
    WHERE interactions_fts MATCH :query AND i.document_id = :document_id
    ORDER BY rank
    LIMIT :limit
    """
)

_CONCEPTS_SQL = text(
    """
    SELECT c.id, c.name, c.created_at, bm25(concepts_fts) AS rank
    FROM concepts_fts
    JOIN concepts c ON c.rowid = concepts_fts.rowid
    WHERE concepts_fts MATCH :query
    ORDER BY rank
    LIMIT :limit
    """
)


def sanitize_query(query: str) -> str | None:
    """Convert free text into a safe FTS5 expression.

    Every word token becomes a quoted prefix term and terms are AND-ed, so
    ``"neural net"`` matches rows containing a token starting with ``neural``
    and one starting with ``net``.

    Returns:
        The MATCH expression, or None when the input holds no word tokens.
    """
    tokens = _TOKEN_PATTERN.findall(query)
    if not tokens:
        return None
    return " AND ".join(f'"{token}"*' for token in tokens)


class SearchIndex(Repository):
    """Ranked lexical search; lower ``rank`` is a better match."""

    async def search_documents(self, query: str, limit: int = 20) -> list[DocumentSearchResult]:
        """Documents whose filename matches ``query``."""
        match = sanitize_query(query)
        if match is None:
            return []
        return await self._run(self._documents, match, limit)

    async def search_interactions(self, query: str, limit: int = 50) -> list[InteractionSearchResult]:
        """Interactions whose selected text or response matches, with a highlighted snippet."""
        match = sanitize_query(query)
        if match is None:
            return []
        return await self._run(self._interactions, match, limit)

    async def search_interactions_in_document(
        self,
        document_id: str,
        query: str,
        limit: int = 50,
    ) -> list[InteractionSearchResult]:
        """Like ``search_interactions`` but restricted to one document."""
        match = sanitize_query(query)
        if match is None:
            return []
        return await self._run(self._interactions_in_document, document_id, match, limit)

    async def search_concepts(self, query: str, limit: int = 20) -> list[ConceptSearchResult]:
        match = sanitize_query(query)
        if match is None:
            return []
        return await self._run(self._concepts, match, limit)

    async def search_all(self, query: str, limit_per_type: int = 10) -> SearchResults:
        """Run the document, interaction and concept searches with an independent limit each."""
        match = sanitize_query(query)
        if match is None:
            return SearchResults()
        results = await self._run(self._all, match, limit_per_type)
        self._logger.debug(
            "search_completed",
            query=query,
            documents=len(results.documents),
            interactions=len(results.interactions),
            concepts=len(results.concepts),
        )
        return results

    async def _documents(self, session: AsyncSession, match: str, limit: int) -> list[DocumentSearchResult]:
        result = await session.execute(_DOCUMENTS_SQL, {"query": match, "limit": limit})
        return [DocumentSearchResult.model_validate(dict(row)) for row in result.mappings()]

    async def _interactions(self, session: AsyncSession, match: str, limit: int) -> list[InteractionSearchResult]:
        result = await session.execute(_INTERACTIONS_SQL, {"query": match, "limit": limit})
        return [InteractionSearchResult.model_validate(dict(row)) for row in result.mappings()]

    async def _interactions_in_document(
        self,
        session: AsyncSession,
        document_id: str,
        match: str,
        limit: int,
    ) -> list[InteractionSearchResult]:
        params = {"query": match, "document_id": document_id, "limit": limit}
        result = await session.execute(_INTERACTIONS_IN_DOCUMENT_SQL, params)
        return [InteractionSearchResult.model_validate(dict(row)) for row in result.mappings()]

    async def _concepts(self, session: AsyncSession, match: str, limit: int) -> list[ConceptSearchResult]:
        result = await session.execute(_CONCEPTS_SQL, {"query": match, "limit": limit})
        return [ConceptSearchResult.model_validate(dict(row)) for row in result.mappings()]

    async def _all(self, session: AsyncSession, match: str, limit: int) -> SearchResults:
        return SearchResults(
            documents=await self._documents(session, match, limit),
            interactions=await self._interactions(session, match, limit),
            concepts=await self._concepts(session, match, limit),
        )
