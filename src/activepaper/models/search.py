from pydantic import Field

from activepaper.models.base import RecordModel
from activepaper.models.concept import Concept
from activepaper.models.document import Document
from activepaper.models.interaction import InteractionWithDocument


class DocumentSearchResult(Document):
    rank: float


class InteractionSearchResult(InteractionWithDocument):
    snippet: str
    rank: float


class ConceptSearchResult(Concept):
    rank: float


class SearchResults(RecordModel):
    """Per-type result lists of an aggregated search."""

    documents: list[DocumentSearchResult] = Field(default_factory=list)
    interactions: list[InteractionSearchResult] = Field(default_factory=list)
    concepts: list[ConceptSearchResult] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.documents or self.interactions or self.concepts)


__all__ = ["DocumentSearchResult", "InteractionSearchResult", "ConceptSearchResult", "SearchResults"]
