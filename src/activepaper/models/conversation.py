from pydantic import Field, ValidationInfo, field_validator

from activepaper.models.base import InputModel, PatchModel, RecordModel, ensure_non_empty_text
from activepaper.models.enums import MessageRole


class Conversation(RecordModel):
    id: str
    document_id: str
    highlight_id: str | None = None
    selected_text: str
    page_context: str | None = None
    page_number: int | None = None
    title: str | None = None
    created_at: int
    updated_at: int


class ConversationMessage(RecordModel):
    id: str
    conversation_id: str
    role: MessageRole
    content: str
    action_type: str | None = None
    created_at: int


class ConversationWithMessages(Conversation):
    messages: list[ConversationMessage] = Field(default_factory=list)


class ConversationSummary(Conversation):
    message_count: int = Field(ge=0)
    last_message_preview: str | None = None


class ConversationCreate(InputModel):
    document_id: str
    selected_text: str
    highlight_id: str | None = None
    page_context: str | None = None
    page_number: int | None = Field(default=None, ge=0)
    title: str | None = None

    @field_validator("document_id", "selected_text")
    @classmethod
    def _ensure_non_empty(cls, value: str, info: ValidationInfo) -> str:
        return ensure_non_empty_text(value, info.field_name or "value")


class ConversationPatch(PatchModel):
    title: str | None = None
