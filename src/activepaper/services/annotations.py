"""Highlight and bookmark repositories: page-anchored annotations on a document."""

from sqlalchemy import delete, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from activepaper.models.annotation import (
    Bookmark,
    BookmarkCreate,
    BookmarkPatch,
    Highlight,
    HighlightCreate,
    HighlightPatch,
)
from activepaper.models.base import patch_assignments
from activepaper.models.tables import BookmarkRecord, HighlightRecord
from activepaper.services.base import Repository, new_id, to_model


class HighlightRepository(Repository):
    async def create_highlight(self, data: HighlightCreate) -> Highlight:
        return await self._run(self._create, data)

    async def get_highlight(self, highlight_id: str) -> Highlight | None:
        return await self._run(self._get_by_id, highlight_id)

    async def update_highlight(self, highlight_id: str, patch: HighlightPatch) -> Highlight | None:
        """Change color and/or note; returns None if the highlight does not exist."""
        return await self._run(self._update, highlight_id, patch)

    async def delete_highlight(self, highlight_id: str) -> bool:
        return await self._run(self._delete, highlight_id)

    async def get_highlights_by_document(self, document_id: str) -> list[Highlight]:
        """Highlights in reading order (page, then offset)."""
        return await self._run(self._list, document_id, None, False)

    async def get_highlights_by_page(self, document_id: str, page_number: int) -> list[Highlight]:
        return await self._run(self._list, document_id, page_number, False)

    async def get_highlights_with_notes(self, document_id: str) -> list[Highlight]:
        return await self._run(self._list, document_id, None, True)

    async def _create(self, session: AsyncSession, data: HighlightCreate) -> Highlight:
        now = self._clock()
        record = HighlightRecord(id=new_id(), created_at=now, updated_at=now, **data.model_dump())
        session.add(record)
        await session.flush()
        self._logger.debug("highlight_created", highlight_id=record.id, document_id=record.document_id)
        return to_model(Highlight, record)

    async def _get_by_id(self, session: AsyncSession, highlight_id: str) -> Highlight | None:
        record = await session.get(HighlightRecord, highlight_id)
        if record is None:
            return None
        return to_model(Highlight, record)

    async def _update(self, session: AsyncSession, highlight_id: str, patch: HighlightPatch) -> Highlight | None:
        record = await session.get(HighlightRecord, highlight_id)
        if record is None:
            return None
        if not patch.is_empty():
            for column, value in [*patch_assignments(patch), ("updated_at", self._clock())]:
                setattr(record, column, value)
            await session.flush()
        return to_model(Highlight, record)

    async def _delete(self, session: AsyncSession, highlight_id: str) -> bool:
        result = await session.execute(delete(HighlightRecord).where(HighlightRecord.id == highlight_id))
        return result.rowcount > 0

    async def _list(
        self,
        session: AsyncSession,
        document_id: str,
        page_number: int | None,
        with_notes_only: bool,
    ) -> list[Highlight]:
        statement = select(HighlightRecord).where(HighlightRecord.document_id == document_id)
        if page_number is not None:
            statement = statement.where(HighlightRecord.page_number == page_number)
        if with_notes_only:
            statement = statement.where(HighlightRecord.note.is_not(None))
        statement = statement.order_by(HighlightRecord.page_number, HighlightRecord.start_offset)
        result = await session.execute(statement)
        return [to_model(Highlight, record) for record in result.scalars()]


class BookmarkRepository(Repository):
    async def toggle_bookmark(self, data: BookmarkCreate) -> Bookmark | None:
        """Bookmark a page, or remove the bookmark if the page already has one.

        Returns:
            The new Bookmark, or None when an existing bookmark was removed.
        """
        return await self._run(self._toggle, data)

    async def get_bookmark(self, bookmark_id: str) -> Bookmark | None:
        return await self._run(self._get_by_id, bookmark_id)

    async def update_bookmark(self, bookmark_id: str, patch: BookmarkPatch) -> Bookmark | None:
        return await self._run(self._update, bookmark_id, patch)

    async def delete_bookmark(self, bookmark_id: str) -> bool:
        return await self._run(self._delete, bookmark_id)

    async def get_bookmarks_by_document(self, document_id: str) -> list[Bookmark]:
        return await self._run(self._by_document, document_id)

    async def is_page_bookmarked(self, document_id: str, page_number: int) -> bool:
        return await self._run(self._is_bookmarked, document_id, page_number)

    async def _toggle(self, session: AsyncSession, data: BookmarkCreate) -> Bookmark | None:
        statement = select(BookmarkRecord).where(
            BookmarkRecord.document_id == data.document_id,
            BookmarkRecord.page_number == data.page_number,
        )
        result = await session.execute(statement)
        existing = result.scalar_one_or_none()
        if existing is not None:
            await session.delete(existing)
            await session.flush()
            self._logger.debug("bookmark_removed", bookmark_id=existing.id, page_number=data.page_number)
            return None

        record = BookmarkRecord(id=new_id(), created_at=self._clock(), **data.model_dump())
        session.add(record)
        await session.flush()
        self._logger.debug("bookmark_created", bookmark_id=record.id, page_number=record.page_number)
        return to_model(Bookmark, record)

    async def _get_by_id(self, session: AsyncSession, bookmark_id: str) -> Bookmark | None:
        record = await session.get(BookmarkRecord, bookmark_id)
        if record is None:
            return None
        return to_model(Bookmark, record)

    async def _update(self, session: AsyncSession, bookmark_id: str, patch: BookmarkPatch) -> Bookmark | None:
        record = await session.get(BookmarkRecord, bookmark_id)
        if record is None:
            return None
        for column, value in patch_assignments(patch):
            setattr(record, column, value)
        await session.flush()
        return to_model(Bookmark, record)

    async def _delete(self, session: AsyncSession, bookmark_id: str) -> bool:
        result = await session.execute(delete(BookmarkRecord).where(BookmarkRecord.id == bookmark_id))
        return result.rowcount > 0

    async def _by_document(self, session: AsyncSession, document_id: str) -> list[Bookmark]:
        statement = (
            select(BookmarkRecord)
            .where(BookmarkRecord.document_id == document_id)
            .order_by(BookmarkRecord.page_number)
        )
        result = await session.execute(statement)
        return [to_model(Bookmark, record) for record in result.scalars()]

    async def _is_bookmarked(self, session: AsyncSession, document_id: str, page_number: int) -> bool:
        condition = exists().where(
            BookmarkRecord.document_id == document_id,
            BookmarkRecord.page_number == page_number,
        )
        result = await session.execute(select(condition))
        return bool(result.scalar())
