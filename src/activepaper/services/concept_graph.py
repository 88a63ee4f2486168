"""Concept co-occurrence graph, recomputed on demand from the link tables."""

from collections import Counter, defaultdict
from itertools import combinations
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from activepaper.models.concept import ConceptGraph, ConceptLink
from activepaper.models.tables import InteractionConceptRecord
from activepaper.services.base import Repository
from activepaper.services.concepts import fetch_concept_nodes


def build_cooccurrence_edges(links: Iterable[tuple[str, str]]) -> list[ConceptLink]:
    """Weight every concept pair by the number of interactions they share.

    Args:
        links: ``(interaction_id, concept_id)`` pairs.

    Returns:
        One edge per unordered pair, ``source < target``, heaviest first.
    """
    concepts_by_interaction: dict[str, set[str]] = defaultdict(set)
    for interaction_id, concept_id in links:
        concepts_by_interaction[interaction_id].add(concept_id)

    weights: Counter[tuple[str, str]] = Counter()
    for concept_ids in concepts_by_interaction.values():
        for pair in combinations(sorted(concept_ids), 2):
            weights[pair] += 1

    edges = [ConceptLink(source=source, target=target, weight=weight) for (source, target), weight in weights.items()]
    edges.sort(key=lambda edge: (-edge.weight, edge.source, edge.target))
    return edges


class ConceptGraphBuilder(Repository):
    async def get_concept_graph(self) -> ConceptGraph:
        """Nodes with occurrence totals and weighted co-occurrence edges."""
        graph = await self._run(self._build)
        self._logger.debug("concept_graph_built", nodes=len(graph.nodes), links=len(graph.links))
        return graph

    async def _build(self, session: AsyncSession) -> ConceptGraph:
        nodes = await fetch_concept_nodes(session)
        result = await session.execute(
            select(InteractionConceptRecord.interaction_id, InteractionConceptRecord.concept_id)
        )
        return ConceptGraph(nodes=nodes, links=build_cooccurrence_edges(result.tuples()))
