"""Unit tests for the PreferencesRepository."""

import pytest
from pydantic import ValidationError
from sqlalchemy import text

from activepaper.models.enums import ResponseFormat, ResponseLength, ResponseTone
from activepaper.models.preferences import DEFAULT_ACTION_EMOJI, AIPreferencesPatch, CustomActionCreate, CustomActionPatch


class TestAIPreferences:
    async def test_defaults_are_seeded(self, store) -> None:
        preferences = await store.preferences.get_ai_preferences()

        assert preferences.id == "default"
        assert preferences.tone is ResponseTone.STANDARD
        assert preferences.response_length is ResponseLength.STANDARD
        assert preferences.response_format is ResponseFormat.PROSE
        assert not preferences.custom_system_prompt_enabled

    async def test_missing_row_is_recreated(self, store) -> None:
        async with store.engine.begin() as conn:
            await conn.execute(text("DELETE FROM ai_preferences"))

        preferences = await store.preferences.get_ai_preferences()

        assert preferences.tone is ResponseTone.STANDARD

    async def test_update_merges_fields(self, store) -> None:
        before = await store.preferences.get_ai_preferences()

        updated = await store.preferences.update_ai_preferences(
            AIPreferencesPatch(tone=ResponseTone.ELI5, temperature=0.3)
        )

        assert updated.tone is ResponseTone.ELI5
        assert updated.temperature == 0.3
        assert updated.response_format is ResponseFormat.PROSE
        assert updated.updated_at > before.updated_at
        assert await store.preferences.get_ai_preferences() == updated

    def test_patch_validates_ranges(self) -> None:
        with pytest.raises(ValidationError):
            AIPreferencesPatch(temperature=3.0)
        with pytest.raises(ValidationError):
            AIPreferencesPatch(max_tokens=0)


class TestCustomActions:
    async def test_create_uses_defaults(self, store) -> None:
        action = await store.preferences.create_custom_action(
            CustomActionCreate(name="Translate", prompt_template="Translate: {text}")
        )

        assert action.emoji == DEFAULT_ACTION_EMOJI
        assert action.enabled
        assert await store.preferences.get_custom_action(action.id) == action

    async def test_listings_respect_order_and_enabled(self, store) -> None:
        later = await store.preferences.create_custom_action(
            CustomActionCreate(name="Later", prompt_template="{text}", sort_order=2)
        )
        first = await store.preferences.create_custom_action(
            CustomActionCreate(name="First", prompt_template="{text}", sort_order=1)
        )
        hidden = await store.preferences.create_custom_action(
            CustomActionCreate(name="Hidden", prompt_template="{text}", sort_order=0)
        )
        await store.preferences.update_custom_action(hidden.id, CustomActionPatch(enabled=False))

        enabled = await store.preferences.get_custom_actions()
        everything = await store.preferences.get_all_custom_actions()

        assert [action.id for action in enabled] == [first.id, later.id]
        assert [action.id for action in everything] == [hidden.id, first.id, later.id]

    async def test_update_and_delete(self, store) -> None:
        action = await store.preferences.create_custom_action(
            CustomActionCreate(name="Translate", prompt_template="{text}")
        )

        renamed = await store.preferences.update_custom_action(action.id, CustomActionPatch(name="Translate to French"))

        assert renamed is not None
        assert renamed.name == "Translate to French"
        assert await store.preferences.update_custom_action("missing", CustomActionPatch(name="x")) is None
        assert await store.preferences.delete_custom_action(action.id)
        assert not await store.preferences.delete_custom_action(action.id)


class TestDocumentAIContext:
    async def test_set_is_an_upsert(self, store, document) -> None:
        created = await store.preferences.set_document_ai_context(document.id, "Focus on proofs.")
        replaced = await store.preferences.set_document_ai_context(document.id, "Explain simply.", enabled=False)

        assert replaced.context_instructions == "Explain simply."
        assert not replaced.enabled
        assert replaced.created_at == created.created_at
        assert replaced.updated_at > created.updated_at
        assert await store.preferences.get_document_ai_context(document.id) == replaced

    async def test_delete(self, store, document) -> None:
        await store.preferences.set_document_ai_context(document.id, "Focus on proofs.")

        assert await store.preferences.delete_document_ai_context(document.id)
        assert await store.preferences.get_document_ai_context(document.id) is None
        assert not await store.preferences.delete_document_ai_context(document.id)

    async def test_rejects_blank_instructions(self, store, document) -> None:
        with pytest.raises(ValueError):
            await store.preferences.set_document_ai_context(document.id, "  ")
