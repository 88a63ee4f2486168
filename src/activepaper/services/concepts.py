"""Concept repository and the concept-link bookkeeping shared with interactions.

Concepts are deduplicated on their trimmed, case-folded name. Linking a concept
to an interaction is idempotent; linking it to a document increments that
document's occurrence count in place.
"""

from sqlalchemy import desc, func, literal, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from activepaper.models.base import ensure_trimmed_text
from activepaper.models.concept import Concept, ConceptDocumentUsage, ConceptWithOccurrences
from activepaper.models.tables import (
    ConceptRecord,
    DocumentConceptRecord,
    DocumentRecord,
    InteractionConceptRecord,
)
from activepaper.services.base import Repository, new_id, to_model


def normalize_concept_name(name: str) -> str:
    return name.strip().casefold()


async def find_or_create_concept(session: AsyncSession, name: str, now: int) -> ConceptRecord:
    """Return the concept whose name matches ``name`` ignoring case and surrounding whitespace."""
    trimmed = ensure_trimmed_text(name, "name")
    key = normalize_concept_name(trimmed)
    statement = select(ConceptRecord).where(ConceptRecord.name_key == key)
    result = await session.execute(statement)
    record = result.scalar_one_or_none()
    if record is not None:
        return record

    record = ConceptRecord(id=new_id(), name=trimmed, name_key=key, created_at=now)
    session.add(record)
    await session.flush()
    return record


async def link_to_interaction(session: AsyncSession, concept_id: str, interaction_id: str) -> None:
    statement = (
        sqlite_insert(InteractionConceptRecord)
        .values(interaction_id=interaction_id, concept_id=concept_id)
        .on_conflict_do_nothing()
    )
    await session.execute(statement)


async def link_to_document(session: AsyncSession, concept_id: str, document_id: str) -> None:
    statement = sqlite_insert(DocumentConceptRecord).values(
        document_id=document_id,
        concept_id=concept_id,
        occurrence_count=1,
    )
    statement = statement.on_conflict_do_update(
        index_elements=["document_id", "concept_id"],
        set_={"occurrence_count": DocumentConceptRecord.occurrence_count + 1},
    )
    await session.execute(statement)


async def save_concept_links(
    session: AsyncSession,
    names: list[str],
    interaction_id: str,
    document_id: str,
    now: int,
) -> list[ConceptRecord]:
    """Resolve ``names`` to concepts and link each to the interaction and document.

    Blank names are skipped. Names that normalize to the same concept within
    one call produce a single link event.
    """
    records: list[ConceptRecord] = []
    seen: set[str] = set()
    for name in names:
        if not name.strip():
            continue
        key = normalize_concept_name(name)
        if key in seen:
            continue
        seen.add(key)
        records.append(await find_or_create_concept(session, name, now))

    for record in records:
        await link_to_interaction(session, record.id, interaction_id)
        await link_to_document(session, record.id, document_id)
    return records


async def fetch_concept_nodes(session: AsyncSession) -> list[ConceptWithOccurrences]:
    """Every concept with its occurrence total across documents, highest first."""
    total = func.coalesce(func.sum(DocumentConceptRecord.occurrence_count), 0).label("total_occurrences")
    document_count = func.count(func.distinct(DocumentConceptRecord.document_id)).label("document_count")
    statement = (
        select(ConceptRecord.id, ConceptRecord.name, ConceptRecord.created_at, total, document_count)
        .outerjoin(DocumentConceptRecord, DocumentConceptRecord.concept_id == ConceptRecord.id)
        .group_by(ConceptRecord.id)
        .order_by(desc("total_occurrences"), ConceptRecord.name)
    )
    result = await session.execute(statement)
    return [ConceptWithOccurrences.model_validate(dict(row)) for row in result.mappings()]


class ConceptRepository(Repository):
    """Persists concepts and their links to interactions and documents."""

    async def get_or_create_concept(self, name: str) -> Concept:
        """Return the concept named ``name`` (case- and whitespace-insensitive), creating it if new."""
        return await self._run(self._get_or_create, name)

    async def get_concept(self, concept_id: str) -> Concept | None:
        return await self._run(self._get_by_id, concept_id)

    async def link_concept_to_interaction(self, concept_id: str, interaction_id: str) -> None:
        """Record that a concept surfaced in an interaction; repeated calls are no-ops."""
        await self._run(link_to_interaction, concept_id, interaction_id)

    async def link_concept_to_document(self, concept_id: str, document_id: str) -> None:
        """Count one more occurrence of a concept in a document."""
        await self._run(link_to_document, concept_id, document_id)

    async def save_concepts_for_interaction(
        self,
        names: list[str],
        interaction_id: str,
        document_id: str,
    ) -> list[Concept]:
        """Create missing concepts and link all of them in one transaction.

        Args:
            names: Concept names extracted from an AI response.
            interaction_id: Interaction the names were extracted from.
            document_id: Document that interaction belongs to.

        Returns:
            The linked concepts, in input order without duplicates.
        """
        return await self._run(self._save_for_interaction, names, interaction_id, document_id)

    async def get_all_concepts(self) -> list[ConceptWithOccurrences]:
        return await self._run(fetch_concept_nodes)

    async def get_concepts_for_document(self, document_id: str) -> list[ConceptWithOccurrences]:
        """Concepts linked to one document, counted for that document only."""
        return await self._run(self._for_document, document_id)

    async def get_documents_for_concept(self, concept_id: str) -> list[ConceptDocumentUsage]:
        return await self._run(self._documents_for_concept, concept_id)

    async def _get_or_create(self, session: AsyncSession, name: str) -> Concept:
        record = await find_or_create_concept(session, name, self._clock())
        return to_model(Concept, record)

    async def _get_by_id(self, session: AsyncSession, concept_id: str) -> Concept | None:
        record = await session.get(ConceptRecord, concept_id)
        if record is None:
            return None
        return to_model(Concept, record)

    async def _save_for_interaction(
        self,
        session: AsyncSession,
        names: list[str],
        interaction_id: str,
        document_id: str,
    ) -> list[Concept]:
        records = await save_concept_links(session, names, interaction_id, document_id, self._clock())
        self._logger.debug(
            "concepts_saved",
            interaction_id=interaction_id,
            document_id=document_id,
            concept_count=len(records),
        )
        return [to_model(Concept, record) for record in records]

    async def _for_document(self, session: AsyncSession, document_id: str) -> list[ConceptWithOccurrences]:
        statement = (
            select(
                ConceptRecord.id,
                ConceptRecord.name,
                ConceptRecord.created_at,
                DocumentConceptRecord.occurrence_count.label("total_occurrences"),
                literal(1).label("document_count"),
            )
            .join(DocumentConceptRecord, DocumentConceptRecord.concept_id == ConceptRecord.id)
            .where(DocumentConceptRecord.document_id == document_id)
            .order_by(desc(DocumentConceptRecord.occurrence_count), ConceptRecord.name)
        )
        result = await session.execute(statement)
        return [ConceptWithOccurrences.model_validate(dict(row)) for row in result.mappings()]

    async def _documents_for_concept(self, session: AsyncSession, concept_id: str) -> list[ConceptDocumentUsage]:
        statement = (
            select(
                DocumentRecord.id.label("document_id"),
                DocumentRecord.filename,
                DocumentConceptRecord.occurrence_count,
            )
            .join(DocumentConceptRecord, DocumentConceptRecord.document_id == DocumentRecord.id)
            .where(DocumentConceptRecord.concept_id == concept_id)
            .order_by(desc(DocumentConceptRecord.occurrence_count))
        )
        result = await session.execute(statement)
        return [ConceptDocumentUsage.model_validate(dict(row)) for row in result.mappings()]
