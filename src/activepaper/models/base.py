from typing import Any, Mapping, Type, TypeVar

from pydantic import BaseModel, ConfigDict

T_Model = TypeVar("T_Model", bound="RecordModel")


class RecordModel(BaseModel):
    """Immutable domain model with serialization helpers for storage adapters."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_record(cls: Type[T_Model], data: Mapping[str, Any] | BaseModel) -> T_Model:
        if isinstance(data, BaseModel):
            data = data.model_dump()
        return cls.model_validate(dict(data))


class InputModel(BaseModel):
    """Validated caller input for create operations."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class PatchModel(BaseModel):
    """Sparse update: every field is optional and only fields set by the caller are written.

    Field names must match the column names of the table being updated.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    def is_empty(self) -> bool:
        return not self.model_fields_set


def patch_assignments(patch: PatchModel) -> list[tuple[str, Any]]:
    """Map a patch to the (column, value) pairs it sets.

    Explicitly set ``None`` values are kept so callers can clear nullable columns.
    """
    return list(patch.model_dump(mode="json", exclude_unset=True).items())


def ensure_non_empty_text(value: str, field_name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{field_name} must be a string")
    if not value.strip():
        raise ValueError(f"{field_name} cannot be empty")
    return value


def ensure_trimmed_text(value: str, field_name: str) -> str:
    return ensure_non_empty_text(value, field_name).strip()
