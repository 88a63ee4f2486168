"""Unit tests for the ConceptRepository and its linking helpers."""

from sqlalchemy import text

from activepaper.models.interaction import InteractionCreate
from activepaper.services.concepts import normalize_concept_name


async def _save_interaction(store, document_id: str):
    return await store.interactions.save_interaction(
        InteractionCreate(document_id=document_id, action_type="explain", selected_text="x", response="y")
    )


def test_normalize_concept_name() -> None:
    assert normalize_concept_name("  Machine Learning ") == "machine learning"
    assert normalize_concept_name("Ärger") == normalize_concept_name("ärger")
    assert normalize_concept_name("Straße") == normalize_concept_name("STRASSE")


class TestGetOrCreateConcept:
    async def test_stores_trimmed_name(self, store) -> None:
        concept = await store.concepts.get_or_create_concept("  Entropy  ")

        assert concept.name == "Entropy"
        assert await store.concepts.get_concept(concept.id) == concept

    async def test_matches_case_insensitively(self, store) -> None:
        first = await store.concepts.get_or_create_concept("Machine Learning")
        second = await store.concepts.get_or_create_concept("machine learning")
        third = await store.concepts.get_or_create_concept("  MACHINE LEARNING ")

        assert first.id == second.id == third.id
        assert len(await store.concepts.get_all_concepts()) == 1

    async def test_matches_non_ascii_case_insensitively(self, store) -> None:
        upper = await store.concepts.get_or_create_concept("Ärger")
        lower = await store.concepts.get_or_create_concept("ärger")
        sigma = await store.concepts.get_or_create_concept("ΣΟΦΙΑ")
        sigma_lower = await store.concepts.get_or_create_concept("σοφια")

        assert upper.id == lower.id
        assert lower.name == "Ärger"
        assert sigma.id == sigma_lower.id
        assert len(await store.concepts.get_all_concepts()) == 2

    async def test_unknown_id_returns_none(self, store) -> None:
        assert await store.concepts.get_concept("missing") is None


class TestLinks:
    async def test_interaction_link_is_idempotent(self, store, document) -> None:
        interaction = await _save_interaction(store, document.id)
        concept = await store.concepts.get_or_create_concept("Entropy")

        await store.concepts.link_concept_to_interaction(concept.id, interaction.id)
        await store.concepts.link_concept_to_interaction(concept.id, interaction.id)

        async with store.engine.connect() as conn:
            count = (await conn.execute(text("SELECT COUNT(*) FROM interaction_concepts"))).scalar()
        assert count == 1

    async def test_document_link_accumulates_occurrences(self, store, document) -> None:
        concept = await store.concepts.get_or_create_concept("Entropy")

        for _ in range(3):
            await store.concepts.link_concept_to_document(concept.id, document.id)

        usage = await store.concepts.get_documents_for_concept(concept.id)
        assert [(row.document_id, row.occurrence_count) for row in usage] == [(document.id, 3)]


class TestSaveConceptsForInteraction:
    async def test_occurrences_accumulate_across_interactions(self, store, document) -> None:
        first = await _save_interaction(store, document.id)
        second = await _save_interaction(store, document.id)

        await store.concepts.save_concepts_for_interaction(["ML"], first.id, document.id)
        await store.concepts.save_concepts_for_interaction(["ML"], second.id, document.id)

        concepts = await store.concepts.get_concepts_for_document(document.id)
        assert [(concept.name, concept.total_occurrences) for concept in concepts] == [("ML", 2)]

    async def test_skips_blank_and_duplicate_names(self, store, document) -> None:
        interaction = await _save_interaction(store, document.id)

        saved = await store.concepts.save_concepts_for_interaction(
            ["Entropy", "", "  ", "entropy ", "Heat"],
            interaction.id,
            document.id,
        )

        assert [concept.name for concept in saved] == ["Entropy", "Heat"]
        concepts = await store.concepts.get_concepts_for_document(document.id)
        assert {concept.name: concept.total_occurrences for concept in concepts} == {"Entropy": 1, "Heat": 1}

    async def test_non_ascii_names_share_one_concept(self, store, document) -> None:
        first = await _save_interaction(store, document.id)
        second = await _save_interaction(store, document.id)

        saved = await store.concepts.save_concepts_for_interaction(["Ärger", "ärger"], first.id, document.id)
        await store.concepts.save_concepts_for_interaction(["ÄRGER"], second.id, document.id)

        assert [concept.name for concept in saved] == ["Ärger"]
        concepts = await store.concepts.get_concepts_for_document(document.id)
        assert [(concept.name, concept.total_occurrences) for concept in concepts] == [("Ärger", 2)]


class TestConceptListings:
    async def test_all_concepts_sum_across_documents(self, store, document) -> None:
        other = await store.documents.get_or_create_document("other.pdf", "/other.pdf")
        entropy = await store.concepts.get_or_create_concept("Entropy")
        heat = await store.concepts.get_or_create_concept("Heat")
        await store.concepts.get_or_create_concept("Unused")
        await store.concepts.link_concept_to_document(entropy.id, document.id)
        await store.concepts.link_concept_to_document(entropy.id, document.id)
        await store.concepts.link_concept_to_document(entropy.id, other.id)
        await store.concepts.link_concept_to_document(heat.id, other.id)

        nodes = await store.concepts.get_all_concepts()

        summary = [(node.name, node.total_occurrences, node.document_count) for node in nodes]
        assert summary == [("Entropy", 3, 2), ("Heat", 1, 1), ("Unused", 0, 0)]

    async def test_document_listing_uses_per_document_count(self, store, document) -> None:
        other = await store.documents.get_or_create_document("other.pdf", "/other.pdf")
        entropy = await store.concepts.get_or_create_concept("Entropy")
        await store.concepts.link_concept_to_document(entropy.id, document.id)
        await store.concepts.link_concept_to_document(entropy.id, other.id)
        await store.concepts.link_concept_to_document(entropy.id, other.id)

        concepts = await store.concepts.get_concepts_for_document(document.id)

        assert [concept.total_occurrences for concept in concepts] == [1]

    async def test_documents_for_concept_ordered_by_count(self, store, document) -> None:
        other = await store.documents.get_or_create_document("other.pdf", "/other.pdf")
        entropy = await store.concepts.get_or_create_concept("Entropy")
        await store.concepts.link_concept_to_document(entropy.id, document.id)
        await store.concepts.link_concept_to_document(entropy.id, other.id)
        await store.concepts.link_concept_to_document(entropy.id, other.id)

        usage = await store.concepts.get_documents_for_concept(entropy.id)

        assert [(row.filename, row.occurrence_count) for row in usage] == [("other.pdf", 2), ("paper.pdf", 1)]
