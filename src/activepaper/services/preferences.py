"""AI response preferences, custom actions and per-document AI context."""

from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from activepaper.models.base import ensure_non_empty_text, patch_assignments
from activepaper.models.preferences import (
    DEFAULT_PREFERENCES_ID,
    AIPreferences,
    AIPreferencesPatch,
    CustomAction,
    CustomActionCreate,
    CustomActionPatch,
    DocumentAIContext,
)
from activepaper.models.tables import AIPreferencesRecord, CustomActionRecord, DocumentAIContextRecord
from activepaper.services.base import Repository, new_id, to_model


class PreferencesRepository(Repository):
    """Persists the settings the AI completion layer reads when building prompts."""

    async def get_ai_preferences(self) -> AIPreferences:
        """Return the preferences row, creating it with defaults if it is missing."""
        return await self._run(self._get_preferences)

    async def update_ai_preferences(self, patch: AIPreferencesPatch) -> AIPreferences:
        return await self._run(self._update_preferences, patch)

    async def get_custom_actions(self) -> list[CustomAction]:
        """Enabled custom actions in display order."""
        return await self._run(self._list_actions, True)

    async def get_all_custom_actions(self) -> list[CustomAction]:
        return await self._run(self._list_actions, False)

    async def get_custom_action(self, action_id: str) -> CustomAction | None:
        return await self._run(self._get_action, action_id)

    async def create_custom_action(self, data: CustomActionCreate) -> CustomAction:
        return await self._run(self._create_action, data)

    async def update_custom_action(self, action_id: str, patch: CustomActionPatch) -> CustomAction | None:
        return await self._run(self._update_action, action_id, patch)

    async def delete_custom_action(self, action_id: str) -> bool:
        return await self._run(self._delete_action, action_id)

    async def get_document_ai_context(self, document_id: str) -> DocumentAIContext | None:
        return await self._run(self._get_context, document_id)

    async def set_document_ai_context(
        self,
        document_id: str,
        context_instructions: str,
        enabled: bool = True,
    ) -> DocumentAIContext:
        """Create or replace the AI instructions attached to one document."""
        ensure_non_empty_text(context_instructions, "context_instructions")
        return await self._run(self._set_context, document_id, context_instructions, enabled)

    async def delete_document_ai_context(self, document_id: str) -> bool:
        return await self._run(self._delete_context, document_id)

    async def _load_preferences(self, session: AsyncSession) -> AIPreferencesRecord:
        record = await session.get(AIPreferencesRecord, DEFAULT_PREFERENCES_ID)
        if record is not None:
            return record
        now = self._clock()
        record = AIPreferencesRecord(**AIPreferences(created_at=now, updated_at=now).to_record())
        session.add(record)
        await session.flush()
        self._logger.info("ai_preferences_initialized")
        return record

    async def _get_preferences(self, session: AsyncSession) -> AIPreferences:
        return to_model(AIPreferences, await self._load_preferences(session))

    async def _update_preferences(self, session: AsyncSession, patch: AIPreferencesPatch) -> AIPreferences:
        record = await self._load_preferences(session)
        if not patch.is_empty():
            for column, value in [*patch_assignments(patch), ("updated_at", self._clock())]:
                setattr(record, column, value)
            await session.flush()
        return to_model(AIPreferences, record)

    async def _list_actions(self, session: AsyncSession, enabled_only: bool) -> list[CustomAction]:
        statement = select(CustomActionRecord)
        if enabled_only:
            statement = statement.where(CustomActionRecord.enabled.is_(True))
        statement = statement.order_by(CustomActionRecord.sort_order, CustomActionRecord.created_at)
        result = await session.execute(statement)
        return [to_model(CustomAction, record) for record in result.scalars()]

    async def _get_action(self, session: AsyncSession, action_id: str) -> CustomAction | None:
        record = await session.get(CustomActionRecord, action_id)
        if record is None:
            return None
        return to_model(CustomAction, record)

    async def _create_action(self, session: AsyncSession, data: CustomActionCreate) -> CustomAction:
        now = self._clock()
        record = CustomActionRecord(id=new_id(), enabled=True, created_at=now, updated_at=now, **data.model_dump())
        session.add(record)
        await session.flush()
        self._logger.debug("custom_action_created", action_id=record.id, name=record.name)
        return to_model(CustomAction, record)

    async def _update_action(
        self,
        session: AsyncSession,
        action_id: str,
        patch: CustomActionPatch,
    ) -> CustomAction | None:
        record = await session.get(CustomActionRecord, action_id)
        if record is None:
            return None
        if not patch.is_empty():
            for column, value in [*patch_assignments(patch), ("updated_at", self._clock())]:
                setattr(record, column, value)
            await session.flush()
        return to_model(CustomAction, record)

    async def _delete_action(self, session: AsyncSession, action_id: str) -> bool:
        result = await session.execute(delete(CustomActionRecord).where(CustomActionRecord.id == action_id))
        return result.rowcount > 0

    async def _get_context(self, session: AsyncSession, document_id: str) -> DocumentAIContext | None:
        record = await session.get(DocumentAIContextRecord, document_id)
        if record is None:
            return None
        return to_model(DocumentAIContext, record)

    async def _set_context(
        self,
        session: AsyncSession,
        document_id: str,
        context_instructions: str,
        enabled: bool,
    ) -> DocumentAIContext:
        now = self._clock()
        statement = sqlite_insert(DocumentAIContextRecord).values(
            document_id=document_id,
            context_instructions=context_instructions,
            enabled=enabled,
            created_at=now,
            updated_at=now,
        )
        statement = statement.on_conflict_do_update(
            index_elements=["document_id"],
            set_={
                "context_instructions": statement.excluded.context_instructions,
                "enabled": statement.excluded.enabled,
                "updated_at": statement.excluded.updated_at,
            },
        )
        await session.execute(statement)
        result = await session.execute(
            select(DocumentAIContextRecord).where(DocumentAIContextRecord.document_id == document_id)
        )
        return to_model(DocumentAIContext, result.scalar_one())

    async def _delete_context(self, session: AsyncSession, document_id: str) -> bool:
        result = await session.execute(
            delete(DocumentAIContextRecord).where(DocumentAIContextRecord.document_id == document_id)
        )
        return result.rowcount > 0
