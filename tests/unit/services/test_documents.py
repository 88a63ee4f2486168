"""Unit tests for the DocumentRepository."""

import pytest
from pydantic import ValidationError

from activepaper.models.document import DocumentPatch


class TestGetOrCreateDocument:
    async def test_creates_document_on_first_open(self, store) -> None:
        document = await store.documents.get_or_create_document("paper.pdf", "/library/paper.pdf", total_pages=10)

        assert document.filename == "paper.pdf"
        assert document.total_pages == 10
        assert document.scroll_position == 0.0
        assert document.last_opened_at == document.created_at

    async def test_same_path_returns_same_document(self, store) -> None:
        first = await store.documents.get_or_create_document("paper.pdf", "/library/paper.pdf")
        second = await store.documents.get_or_create_document("paper.pdf", "/library/paper.pdf")

        assert second.id == first.id
        assert second.created_at == first.created_at
        assert second.last_opened_at > first.last_opened_at
        assert len(await store.documents.get_recent_documents(limit=10)) == 1

    async def test_rejects_blank_filepath(self, store) -> None:
        with pytest.raises(ValidationError):
            await store.documents.get_or_create_document("paper.pdf", "   ")


class TestGetDocument:
    async def test_returns_none_for_unknown_id(self, store) -> None:
        assert await store.documents.get_document("missing") is None

    async def test_finds_by_filepath(self, store, document) -> None:
        assert await store.documents.get_document_by_filepath(document.filepath) == document
        assert await store.documents.get_document_by_filepath("/nowhere.pdf") is None


class TestUpdateDocument:
    async def test_writes_only_patched_fields(self, store, document) -> None:
        updated = await store.documents.update_document(document.id, DocumentPatch(scroll_position=0.4))

        assert updated is not None
        assert updated.scroll_position == 0.4
        assert updated.total_pages == document.total_pages
        assert await store.documents.get_document(document.id) == updated

    async def test_can_clear_total_pages(self, store, document) -> None:
        updated = await store.documents.update_document(document.id, DocumentPatch(total_pages=None))

        assert updated is not None
        assert updated.total_pages is None

    async def test_returns_none_for_unknown_id(self, store) -> None:
        assert await store.documents.update_document("missing", DocumentPatch(total_pages=3)) is None


async def test_recent_documents_are_ordered_by_last_open(store) -> None:
    a = await store.documents.get_or_create_document("a.pdf", "/a.pdf")
    b = await store.documents.get_or_create_document("b.pdf", "/b.pdf")
    c = await store.documents.get_or_create_document("c.pdf", "/c.pdf")
    await store.documents.get_or_create_document("a.pdf", "/a.pdf")

    recent = await store.documents.get_recent_documents()

    assert [document.id for document in recent] == [a.id, c.id, b.id]
