from pydantic import Field, ValidationInfo, field_validator

from activepaper.models.base import InputModel, RecordModel, ensure_non_empty_text, ensure_trimmed_text


class Interaction(RecordModel):
    """One AI exchange about a text selection in a document."""

    id: str
    document_id: str
    action_type: str
    selected_text: str
    page_context: str | None = None
    response: str
    page_number: int | None = None
    scroll_position: float | None = None
    created_at: int = Field(ge=0)


class InteractionWithDocument(Interaction):
    filename: str
    filepath: str


class InteractionCreate(InputModel):
    document_id: str
    action_type: str
    selected_text: str
    response: str
    page_context: str | None = None
    page_number: int | None = Field(default=None, ge=0)
    scroll_position: float | None = None

    @field_validator("document_id", "selected_text", "response")
    @classmethod
    def _ensure_non_empty(cls, value: str, info: ValidationInfo) -> str:
        return ensure_non_empty_text(value, info.field_name or "value")

    @field_validator("action_type")
    @classmethod
    def _normalize_action_type(cls, value: str) -> str:
        return ensure_trimmed_text(value, "action_type")


class CompletionRecord(InteractionCreate):
    """What the AI completion layer hands over after a finished response."""

    concept_names: list[str] = Field(default_factory=list)

    def to_interaction(self) -> InteractionCreate:
        return InteractionCreate.model_validate(self.model_dump(exclude={"concept_names"}))


class DailyActivity(RecordModel):
    date: str
    explain_count: int = Field(ge=0)
    summarize_count: int = Field(ge=0)
    define_count: int = Field(ge=0)


class DocumentActivity(RecordModel):
    document_id: str
    filename: str
    total_interactions: int = Field(ge=0)
    explain_count: int = Field(ge=0)
    summarize_count: int = Field(ge=0)
    define_count: int = Field(ge=0)
    last_interaction_at: int
