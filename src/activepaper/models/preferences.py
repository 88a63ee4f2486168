from pydantic import Field, ValidationInfo, field_validator

from activepaper.models.base import InputModel, PatchModel, RecordModel, ensure_non_empty_text
from activepaper.models.enums import ResponseFormat, ResponseLength, ResponseTone

DEFAULT_PREFERENCES_ID = "default"
DEFAULT_ACTION_EMOJI = "\U0001f527"


class AIPreferences(RecordModel):
    id: str = DEFAULT_PREFERENCES_ID
    tone: ResponseTone = ResponseTone.STANDARD
    response_length: ResponseLength = ResponseLength.STANDARD
    response_format: ResponseFormat = ResponseFormat.PROSE
    custom_system_prompt: str | None = None
    custom_system_prompt_enabled: bool = False
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, gt=0)
    model_openai: str | None = None
    model_anthropic: str | None = None
    model_gemini: str | None = None
    model_ollama: str | None = None
    created_at: int
    updated_at: int


class AIPreferencesPatch(PatchModel):
    tone: ResponseTone | None = None
    response_length: ResponseLength | None = None
    response_format: ResponseFormat | None = None
    custom_system_prompt: str | None = None
    custom_system_prompt_enabled: bool | None = None
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, gt=0)
    model_openai: str | None = None
    model_anthropic: str | None = None
    model_gemini: str | None = None
    model_ollama: str | None = None


class CustomAction(RecordModel):
    id: str
    name: str
    emoji: str
    prompt_template: str
    sort_order: int = 0
    enabled: bool = True
    created_at: int
    updated_at: int


class CustomActionCreate(InputModel):
    name: str
    prompt_template: str
    emoji: str = DEFAULT_ACTION_EMOJI
    sort_order: int = 0

    @field_validator("name", "prompt_template")
    @classmethod
    def _ensure_non_empty(cls, value: str, info: ValidationInfo) -> str:
        return ensure_non_empty_text(value, info.field_name or "value")


class CustomActionPatch(PatchModel):
    name: str | None = None
    emoji: str | None = None
    prompt_template: str | None = None
    sort_order: int | None = None
    enabled: bool | None = None


class DocumentAIContext(RecordModel):
    document_id: str
    context_instructions: str
    enabled: bool = True
    created_at: int
    updated_at: int
