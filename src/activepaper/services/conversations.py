"""Conversation repository: threaded follow-up chats anchored to a document."""

from sqlalchemy import delete, literal_column, select, text, update
from sqlalchemy.ext.asyncio import AsyncSession

from activepaper.models.base import patch_assignments
from activepaper.models.conversation import (
    Conversation,
    ConversationCreate,
    ConversationMessage,
    ConversationPatch,
    ConversationSummary,
    ConversationWithMessages,
)
from activepaper.models.enums import MessageRole
from activepaper.models.tables import ConversationMessageRecord, ConversationRecord
from activepaper.services.base import Repository, new_id, to_model

_SUMMARY_COLUMNS = """
    c.id, c.document_id, c.highlight_id, c.selected_text, c.page_context, c.page_number,
    c.title, c.created_at, c.updated_at,
    (SELECT COUNT(*) FROM conversation_messages m WHERE m.conversation_id = c.id) AS message_count,
    (
        SELECT m.content FROM conversation_messages m
        WHERE m.conversation_id = c.id
        ORDER BY m.created_at DESC, m.rowid DESC
        LIMIT 1
    ) AS last_message_preview
"""

_SUMMARIES_BY_DOCUMENT_SQL = text(
    f"""
    SELECT {_SUMMARY_COLUMNS}
    FROM conversations c
    WHERE c.document_id = :document_id
    ORDER BY c.updated_at DESC, c.rowid DESC
    """
)

_RECENT_SUMMARIES_SQL = text(
    f"""
    SELECT {_SUMMARY_COLUMNS}
    FROM conversations c
    ORDER BY c.updated_at DESC, c.rowid DESC
    LIMIT :limit
    """
)


class ConversationRepository(Repository):
    """Persists conversations and their ordered messages.

    Appending a message and refreshing the conversation's ``updated_at`` happen
    in the same transaction; deleting a conversation removes its messages.
    """

    async def create_conversation(self, data: ConversationCreate) -> Conversation:
        return await self._run(self._create, data)

    async def add_message(
        self,
        conversation_id: str,
        role: MessageRole | str,
        content: str,
        action_type: str | None = None,
    ) -> ConversationMessage:
        """Append a message to a conversation.

        Raises:
            sqlalchemy.exc.IntegrityError: If the conversation does not exist.
        """
        return await self._run(self._add_message, conversation_id, MessageRole(role), content, action_type)

    async def update_conversation(self, conversation_id: str, patch: ConversationPatch) -> Conversation | None:
        return await self._run(self._update, conversation_id, patch)

    async def update_conversation_title(self, conversation_id: str, title: str | None) -> Conversation | None:
        return await self.update_conversation(conversation_id, ConversationPatch(title=title))

    async def delete_conversation(self, conversation_id: str) -> bool:
        """Delete a conversation together with all of its messages."""
        return await self._run(self._delete, conversation_id)

    async def get_conversation(self, conversation_id: str) -> Conversation | None:
        return await self._run(self._get_by_id, conversation_id)

    async def get_conversation_with_messages(self, conversation_id: str) -> ConversationWithMessages | None:
        return await self._run(self._get_with_messages, conversation_id)

    async def get_conversations_by_document(self, document_id: str) -> list[ConversationSummary]:
        """Conversation summaries for a document, most recently updated first."""
        return await self._run(self._summaries, _SUMMARIES_BY_DOCUMENT_SQL, {"document_id": document_id})

    async def get_recent_conversations(self, limit: int = 10) -> list[ConversationSummary]:
        return await self._run(self._summaries, _RECENT_SUMMARIES_SQL, {"limit": limit})

    async def get_conversation_messages(self, conversation_id: str) -> list[ConversationMessage]:
        """Messages in the order they were added."""
        return await self._run(self._messages, conversation_id)

    async def _create(self, session: AsyncSession, data: ConversationCreate) -> Conversation:
        now = self._clock()
        record = ConversationRecord(id=new_id(), created_at=now, updated_at=now, **data.model_dump())
        session.add(record)
        await session.flush()
        self._logger.debug("conversation_created", conversation_id=record.id, document_id=record.document_id)
        return to_model(Conversation, record)

    async def _add_message(
        self,
        session: AsyncSession,
        conversation_id: str,
        role: MessageRole,
        content: str,
        action_type: str | None,
    ) -> ConversationMessage:
        now = self._clock()
        record = ConversationMessageRecord(
            id=new_id(),
            conversation_id=conversation_id,
            role=role.value,
            content=content,
            action_type=action_type,
            created_at=now,
        )
        session.add(record)
        await session.flush()
        await session.execute(
            update(ConversationRecord).where(ConversationRecord.id == conversation_id).values(updated_at=now)
        )
        return to_model(ConversationMessage, record)

    async def _update(
        self,
        session: AsyncSession,
        conversation_id: str,
        patch: ConversationPatch,
    ) -> Conversation | None:
        record = await session.get(ConversationRecord, conversation_id)
        if record is None:
            return None
        if not patch.is_empty():
            for column, value in [*patch_assignments(patch), ("updated_at", self._clock())]:
                setattr(record, column, value)
            await session.flush()
        return to_model(Conversation, record)

    async def _delete(self, session: AsyncSession, conversation_id: str) -> bool:
        await session.execute(
            delete(ConversationMessageRecord).where(ConversationMessageRecord.conversation_id == conversation_id)
        )
        result = await session.execute(delete(ConversationRecord).where(ConversationRecord.id == conversation_id))
        deleted = result.rowcount > 0
        if deleted:
            self._logger.debug("conversation_deleted", conversation_id=conversation_id)
        return deleted

    async def _get_by_id(self, session: AsyncSession, conversation_id: str) -> Conversation | None:
        record = await session.get(ConversationRecord, conversation_id)
        if record is None:
            return None
        return to_model(Conversation, record)

    async def _get_with_messages(
        self,
        session: AsyncSession,
        conversation_id: str,
    ) -> ConversationWithMessages | None:
        record = await session.get(ConversationRecord, conversation_id)
        if record is None:
            return None
        messages = await self._messages(session, conversation_id)
        return to_model(ConversationWithMessages, record, messages=messages)

    async def _summaries(self, session: AsyncSession, statement, params: dict) -> list[ConversationSummary]:
        result = await session.execute(statement, params)
        return [ConversationSummary.model_validate(dict(row)) for row in result.mappings()]

    async def _messages(self, session: AsyncSession, conversation_id: str) -> list[ConversationMessage]:
        statement = (
            select(ConversationMessageRecord)
            .where(ConversationMessageRecord.conversation_id == conversation_id)
            .order_by(ConversationMessageRecord.created_at, literal_column("conversation_messages.rowid"))
        )
        result = await session.execute(statement)
        return [to_model(ConversationMessage, record) for record in result.scalars()]
