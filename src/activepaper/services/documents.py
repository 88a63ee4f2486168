"""Document repository: one row per opened file, keyed by its path."""

from sqlalchemy import desc, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from activepaper.models.base import patch_assignments
from activepaper.models.document import Document, DocumentCreate, DocumentPatch
from activepaper.models.tables import DocumentRecord
from activepaper.services.base import Repository, new_id, to_model


class DocumentRepository(Repository):
    """Persists opened documents.

    Documents are created on first open and never deleted here; reopening a
    known path only refreshes ``last_opened_at``.
    """

    async def get_or_create_document(
        self,
        filename: str,
        filepath: str,
        total_pages: int | None = None,
    ) -> Document:
        """Return the document stored for ``filepath``, creating it on first open.

        Args:
            filename: Display name of the file.
            filepath: Absolute path; the document's identity.
            total_pages: Page count, when known.

        Returns:
            The stored Document with ``last_opened_at`` set to now.
        """
        data = DocumentCreate(filename=filename, filepath=filepath, total_pages=total_pages)
        return await self._run(self._get_or_create, data)

    async def get_document(self, document_id: str) -> Document | None:
        return await self._run(self._get_by_id, document_id)

    async def get_document_by_filepath(self, filepath: str) -> Document | None:
        return await self._run(self._get_by_filepath, filepath)

    async def update_document(self, document_id: str, patch: DocumentPatch) -> Document | None:
        """Write the fields set on ``patch``.

        Returns:
            The merged Document, or None if no document has that id.
        """
        return await self._run(self._update, document_id, patch)

    async def get_recent_documents(self, limit: int = 3) -> list[Document]:
        """Most recently opened documents first."""
        return await self._run(self._recent, limit)

    async def _get_or_create(self, session: AsyncSession, data: DocumentCreate) -> Document:
        now = self._clock()
        document_id = new_id()
        statement = sqlite_insert(DocumentRecord).values(
            id=document_id,
            filename=data.filename,
            filepath=data.filepath,
            last_opened_at=now,
            scroll_position=0.0,
            total_pages=data.total_pages,
            created_at=now,
        )
        statement = statement.on_conflict_do_update(
            index_elements=["filepath"],
            set_={"last_opened_at": statement.excluded.last_opened_at},
        )
        await session.execute(statement)

        record = await self._find_by_filepath(session, data.filepath)
        if record.id == document_id:
            self._logger.info("document_created", document_id=record.id, filepath=record.filepath)
        else:
            self._logger.debug("document_reopened", document_id=record.id, filepath=record.filepath)
        return to_model(Document, record)

    async def _get_by_id(self, session: AsyncSession, document_id: str) -> Document | None:
        record = await session.get(DocumentRecord, document_id)
        if record is None:
            return None
        return to_model(Document, record)

    async def _get_by_filepath(self, session: AsyncSession, filepath: str) -> Document | None:
        record = await self._find_by_filepath(session, filepath)
        if record is None:
            return None
        return to_model(Document, record)

    async def _find_by_filepath(self, session: AsyncSession, filepath: str) -> DocumentRecord | None:
        statement = select(DocumentRecord).where(DocumentRecord.filepath == filepath)
        result = await session.execute(statement)
        return result.scalar_one_or_none()

    async def _update(self, session: AsyncSession, document_id: str, patch: DocumentPatch) -> Document | None:
        record = await session.get(DocumentRecord, document_id)
        if record is None:
            return None
        for column, value in patch_assignments(patch):
            setattr(record, column, value)
        await session.flush()
        return to_model(Document, record)

    async def _recent(self, session: AsyncSession, limit: int) -> list[Document]:
        statement = select(DocumentRecord).order_by(desc(DocumentRecord.last_opened_at)).limit(limit)
        result = await session.execute(statement)
        return [to_model(Document, record) for record in result.scalars()]
