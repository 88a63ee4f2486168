from pydantic import Field, ValidationInfo, field_validator

from activepaper.models.base import InputModel, RecordModel, ensure_non_empty_text

MIN_EASE_FACTOR = 1.3


class ReviewCard(RecordModel):
    id: str
    interaction_id: str
    question: str
    answer: str
    next_review_at: int
    interval_days: int = Field(ge=1)
    ease_factor: float = Field(ge=MIN_EASE_FACTOR)
    review_count: int = Field(ge=0)
    created_at: int = Field(ge=0)


class ReviewCardWithContext(ReviewCard):
    selected_text: str
    action_type: str
    document_filename: str


class ReviewCardCreate(InputModel):
    interaction_id: str
    question: str
    answer: str

    @field_validator("interaction_id", "question", "answer")
    @classmethod
    def _ensure_non_empty(cls, value: str, info: ValidationInfo) -> str:
        return ensure_non_empty_text(value, info.field_name or "value")


class ReviewSchedule(RecordModel):
    """Scheduling state produced by one review."""

    interval_days: int = Field(ge=1)
    ease_factor: float = Field(ge=MIN_EASE_FACTOR)
    review_count: int = Field(ge=0)
