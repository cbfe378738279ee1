from datetime import datetime
from typing import Annotated, Any, Generic, TypeVar

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field
from pydantic_core import PydanticCustomError

T = TypeVar("T")

# Largest value an INTEGER primary/foreign key column can hold on Postgres.
MAX_RECORD_ID = 2**31 - 1


def _not_blank(value: str) -> str:
    if not value.strip():
        raise PydanticCustomError("blank", "can't be blank")
    return value


def _not_bool(value: Any) -> Any:
    if isinstance(value, bool):
        raise PydanticCustomError("int_type", "is invalid")
    return value


def is_record_id(value: Any) -> bool:
    """True when *value* could be the primary key of a stored row."""
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 < value <= MAX_RECORD_ID
    )


RequiredText = Annotated[str, AfterValidator(_not_blank)]
RecordId = Annotated[int, BeforeValidator(_not_bool), Field(gt=0, le=MAX_RECORD_ID)]


# --- Write attributes (validated through app.changeset) ---

class PostAttrs(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: RequiredText = Field(max_length=255)
    body: RequiredText
    user_id: RecordId


class CommentAttrs(BaseModel):
    model_config = ConfigDict(extra="ignore")

    body: RequiredText
    post_id: RecordId
    user_id: RecordId


# --- Post ---

class PostResponse(BaseModel):
    id: int
    title: str
    body: str
    user_id: int
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# --- Comment ---

class CommentResponse(BaseModel):
    id: int
    body: str
    post_id: int
    user_id: int
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# --- Pagination ---

class PaginatedResponse(BaseModel, Generic[T]):
    items: list[T]
    total_count: int
    page: int
    page_size: int
    total_pages: int
    model_config = ConfigDict(from_attributes=True)


# --- Errors ---

class ValidationErrorResponse(BaseModel):
    errors: dict[str, list[str]]
