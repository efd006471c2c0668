from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from .errors import InvalidInputError
from .models import TodoEntity


def _clean_text(value: str) -> str:
    """
    Internal helper shared by the create and update schemas.
    Strip surrounding whitespace and reject what is left if it is empty.
    Text that cannot be stored as UTF-8 (lone surrogates from undecodable
    argv bytes) is rejected too.
    """
    s = value.strip()
    if not s:
        raise ValueError("text must not be empty")
    try:
        s.encode("utf-8")
    except UnicodeEncodeError as e:
        raise ValueError("text must be valid UTF-8") from e
    return s


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a new todo.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"text": "buy milk"}})

    text: str = Field(..., description="Text of the todo item")

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        """
        Strip whitespace and require at least one character.
        """
        return _clean_text(v)


# PUBLIC_INTERFACE
class TodoUpdate(BaseModel):
    """
    Patch applied to an existing todo.
    Only fields explicitly set are applied; see model_fields_set.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"text": "buy oat milk", "is_completed": True}}
    )

    text: Optional[str] = Field(default=None, description="Replacement text")
    is_completed: Optional[bool] = Field(default=None, description="Completion status flag")

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: Optional[str]) -> Optional[str]:
        """
        If text is provided, strip whitespace and require at least one character.
        """
        if v is None:
            raise ValueError("text must not be empty")
        return _clean_text(v)

    @field_validator("is_completed")
    @classmethod
    def validate_is_completed(cls, v: Optional[bool]) -> bool:
        if v is None:
            raise ValueError("is_completed must be true or false")
        return v


# PUBLIC_INTERFACE
class TodoRecord(BaseModel):
    """
    On-disk and JSON-output representation of a todo.

    Files written by older versions of the tool stored the creation time
    under "date" and had no updated_at; both are accepted on load.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "a1b2c3d4e5f6",
                "text": "buy milk",
                "is_completed": False,
                "created_at": "2025-01-25T10:15:30.123456",
                "updated_at": "2025-01-26T09:00:00.000001",
            }
        }
    )

    id: str = Field(..., min_length=1, description="Unique identifier of the todo")
    text: str = Field(..., min_length=1, description="Text of the todo")
    is_completed: bool = Field(default=False, description="Completion status flag")
    created_at: datetime = Field(
        ...,
        validation_alias=AliasChoices("created_at", "date"),
        description="Creation timestamp",
    )
    updated_at: Optional[datetime] = Field(default=None, description="Last update timestamp")

    @model_validator(mode="after")
    def default_updated_at(self) -> "TodoRecord":
        if self.updated_at is None:
            self.updated_at = self.created_at
        return self

    @classmethod
    def from_entity(cls, entity: TodoEntity) -> "TodoRecord":
        return cls(
            id=entity["id"],
            text=entity["text"],
            is_completed=entity["is_completed"],
            created_at=entity["created_at"],
            updated_at=entity["updated_at"],
        )

    def to_entity(self) -> TodoEntity:
        return {
            "id": self.id,
            "text": self.text,
            "is_completed": self.is_completed,
            "created_at": self.created_at,
            "updated_at": self.updated_at or self.created_at,
            "deleted_at": None,
        }


TodoRecordList = TypeAdapter(List[TodoRecord])


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    if errors[0].get("type") == "string_unicode":
        return "text must be valid UTF-8"
    msg = str(errors[0].get("msg", exc))
    # pydantic prefixes messages raised from validators with "Value error, "
    return msg.split(", ", 1)[1] if msg.startswith("Value error, ") else msg


# PUBLIC_INTERFACE
def parse_create(text: Any) -> TodoCreate:
    """Validate create input, raising InvalidInputError instead of ValidationError."""
    try:
        return TodoCreate(text=text)
    except ValidationError as e:
        raise InvalidInputError(_first_error(e)) from e


# PUBLIC_INTERFACE
def parse_update(**fields: Any) -> TodoUpdate:
    """Validate a patch, raising InvalidInputError instead of ValidationError."""
    try:
        return TodoUpdate(**fields)
    except ValidationError as e:
        raise InvalidInputError(_first_error(e)) from e
