from pydantic import Field, ValidationInfo, field_validator, model_validator

from activepaper.models.base import InputModel, PatchModel, RecordModel, ensure_non_empty_text

DEFAULT_HIGHLIGHT_COLOR = "yellow"


class Highlight(RecordModel):
    id: str
    document_id: str
    page_number: int
    start_offset: int = Field(ge=0)
    end_offset: int = Field(ge=0)
    selected_text: str
    color: str = DEFAULT_HIGHLIGHT_COLOR
    note: str | None = None
    created_at: int
    updated_at: int


class HighlightCreate(InputModel):
    document_id: str
    page_number: int = Field(ge=0)
    start_offset: int = Field(ge=0)
    end_offset: int = Field(ge=0)
    selected_text: str
    color: str = DEFAULT_HIGHLIGHT_COLOR
    note: str | None = None

    @field_validator("document_id", "selected_text", "color")
    @classmethod
    def _ensure_non_empty(cls, value: str, info: ValidationInfo) -> str:
        return ensure_non_empty_text(value, info.field_name or "value")

    @model_validator(mode="after")
    def _validate_offsets(self) -> "HighlightCreate":
        if self.end_offset < self.start_offset:
            raise ValueError("end_offset must be greater than or equal to start_offset")
        return self


class HighlightPatch(PatchModel):
    color: str | None = None
    note: str | None = None

    @field_validator("color")
    @classmethod
    def _ensure_color(cls, value: str | None) -> str | None:
        if value is None:
            raise ValueError("color cannot be cleared")
        return ensure_non_empty_text(value, "color")


class Bookmark(RecordModel):
    id: str
    document_id: str
    page_number: int
    label: str | None = None
    created_at: int


class BookmarkCreate(InputModel):
    document_id: str
    page_number: int = Field(ge=0)
    label: str | None = None

    @field_validator("document_id")
    @classmethod
    def _ensure_document_id(cls, value: str) -> str:
        return ensure_non_empty_text(value, "document_id")


class BookmarkPatch(PatchModel):
    label: str | None = None
