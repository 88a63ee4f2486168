"""Interaction repository: the append-only log of AI exchanges."""

from sqlalchemy import desc, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from activepaper.models.enums import ActionType
from activepaper.models.interaction import (
    CompletionRecord,
    DailyActivity,
    DocumentActivity,
    Interaction,
    InteractionCreate,
    InteractionWithDocument,
)
from activepaper.models.tables import DocumentRecord, InteractionRecord
from activepaper.services.base import Repository, new_id, to_model
from activepaper.services.concepts import save_concept_links
from activepaper.services.database import DAY_MS


def _action_count_columns(column: str) -> str:
    """One ``<action>_count`` sum per built-in action type."""
    return ",\n".join(
        f"SUM(CASE WHEN {column} = '{action.value}' THEN 1 ELSE 0 END) AS {action.value}_count"
        for action in ActionType
    )


_ACTIVITY_BY_DAY_SQL = text(
    f"""
    SELECT
        date(created_at / 1000, 'unixepoch', 'localtime') AS date,
        {_action_count_columns("action_type")}
    FROM interactions
    WHERE created_at >= :since
    GROUP BY date
    ORDER BY date ASC
    """
)

_DOCUMENT_ACTIVITY_SQL = text(
    f"""
    SELECT
        d.id AS document_id,
        d.filename AS filename,
        COUNT(i.id) AS total_interactions,
        {_action_count_columns("i.action_type")},
        MAX(i.created_at) AS last_interaction_at
    FROM documents d
    JOIN interactions i ON i.document_id = d.id
    GROUP BY d.id
    ORDER BY last_interaction_at DESC
    """
)


class InteractionRepository(Repository):
    """Persists AI interactions and wires up the concepts extracted from them."""

    async def save_interaction(self, data: InteractionCreate) -> Interaction:
        """Append one interaction.

        Raises:
            sqlalchemy.exc.IntegrityError: If ``data.document_id`` names no document.
        """
        return await self._run(self._insert, data)

    async def record_completion(self, completion: CompletionRecord) -> Interaction:
        """Persist a finished AI completion and link its extracted concepts.

        The interaction and every concept link are written in one transaction.
        """
        return await self._run(self._record_completion, completion)

    async def get_interaction(self, interaction_id: str) -> Interaction | None:
        return await self._run(self._get_by_id, interaction_id)

    async def get_interactions_by_document(self, document_id: str, limit: int = 100) -> list[Interaction]:
        """Interactions on one document, newest first."""
        return await self._run(self._by_document, document_id, limit)

    async def get_recent_interactions(self, limit: int = 50) -> list[InteractionWithDocument]:
        """Newest interactions across all documents, with the document's name and path."""
        return await self._run(self._recent, limit)

    async def get_activity_by_day(self, days: int = 90) -> list[DailyActivity]:
        """Per-day counts of the built-in action types over the last ``days`` days."""
        return await self._run(self._activity_by_day, days)

    async def get_document_activity_stats(self) -> list[DocumentActivity]:
        return await self._run(self._document_activity)

    async def _insert(self, session: AsyncSession, data: InteractionCreate) -> Interaction:
        record = InteractionRecord(
            id=new_id(),
            document_id=data.document_id,
            action_type=data.action_type,
            selected_text=data.selected_text,
            page_context=data.page_context,
            response=data.response,
            page_number=data.page_number,
            scroll_position=data.scroll_position,
            created_at=self._clock(),
        )
        session.add(record)
        await session.flush()
        self._logger.debug(
            "interaction_saved",
            interaction_id=record.id,
            document_id=record.document_id,
            action_type=record.action_type,
        )
        return to_model(Interaction, record)

    async def _record_completion(self, session: AsyncSession, completion: CompletionRecord) -> Interaction:
        interaction = await self._insert(session, completion.to_interaction())
        concepts = await save_concept_links(
            session,
            completion.concept_names,
            interaction.id,
            interaction.document_id,
            interaction.created_at,
        )
        self._logger.info(
            "completion_recorded",
            interaction_id=interaction.id,
            document_id=interaction.document_id,
            concept_count=len(concepts),
        )
        return interaction

    async def _get_by_id(self, session: AsyncSession, interaction_id: str) -> Interaction | None:
        record = await session.get(InteractionRecord, interaction_id)
        if record is None:
            return None
        return to_model(Interaction, record)

    async def _by_document(self, session: AsyncSession, document_id: str, limit: int) -> list[Interaction]:
        statement = (
            select(InteractionRecord)
            .where(InteractionRecord.document_id == document_id)
            .order_by(desc(InteractionRecord.created_at))
            .limit(limit)
        )
        result = await session.execute(statement)
        return [to_model(Interaction, record) for record in result.scalars()]

    async def _recent(self, session: AsyncSession, limit: int) -> list[InteractionWithDocument]:
        statement = (
            select(InteractionRecord, DocumentRecord.filename, DocumentRecord.filepath)
            .join(DocumentRecord, InteractionRecord.document_id == DocumentRecord.id)
            .order_by(desc(InteractionRecord.created_at))
            .limit(limit)
        )
        result = await session.execute(statement)
        return [
            to_model(InteractionWithDocument, record, filename=filename, filepath=filepath)
            for record, filename, filepath in result.all()
        ]

    async def _activity_by_day(self, session: AsyncSession, days: int) -> list[DailyActivity]:
        since = self._clock() - days * DAY_MS
        result = await session.execute(_ACTIVITY_BY_DAY_SQL, {"since": since})
        return [DailyActivity.model_validate(dict(row)) for row in result.mappings()]

    async def _document_activity(self, session: AsyncSession) -> list[DocumentActivity]:
        result = await session.execute(_DOCUMENT_ACTIVITY_SQL)
        return [DocumentActivity.model_validate(dict(row)) for row in result.mappings()]
