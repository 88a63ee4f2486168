from pydantic import Field, ValidationInfo, field_validator

from activepaper.models.base import InputModel, PatchModel, RecordModel, ensure_non_empty_text


class Document(RecordModel):
    id: str
    filename: str
    filepath: str
    last_opened_at: int = Field(ge=0)
    scroll_position: float = 0.0
    total_pages: int | None = Field(default=None, ge=0)
    created_at: int = Field(ge=0)


class DocumentCreate(InputModel):
    filename: str
    filepath: str
    total_pages: int | None = Field(default=None, ge=0)

    @field_validator("filename", "filepath")
    @classmethod
    def _ensure_non_empty(cls, value: str, info: ValidationInfo) -> str:
        return ensure_non_empty_text(value, info.field_name or "value")


class DocumentPatch(PatchModel):
    scroll_position: float | None = None
    total_pages: int | None = Field(default=None, ge=0)
