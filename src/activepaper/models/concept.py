from pydantic import Field, model_validator

from activepaper.models.base import RecordModel


class Concept(RecordModel):
    id: str
    name: str
    created_at: int = Field(ge=0)


class ConceptWithOccurrences(Concept):
    """Graph node: a concept with its occurrence totals."""

    total_occurrences: int = Field(ge=0)
    document_count: int = Field(ge=0)


class ConceptLink(RecordModel):
    """Undirected co-occurrence edge; ``source`` sorts before ``target``."""

    source: str
    target: str
    weight: int = Field(ge=1)

    @model_validator(mode="after")
    def _validate_ordering(self) -> "ConceptLink":
        if self.source >= self.target:
            raise ValueError("source must sort strictly before target")
        return self


class ConceptGraph(RecordModel):
    nodes: list[ConceptWithOccurrences] = Field(default_factory=list)
    links: list[ConceptLink] = Field(default_factory=list)


class ConceptDocumentUsage(RecordModel):
    document_id: str
    filename: str
    occurrence_count: int = Field(ge=1)
