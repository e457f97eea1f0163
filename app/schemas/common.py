from datetime import datetime, timezone
from typing import Annotated, Generic, List, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict


T = TypeVar("T")


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# Timestamps are stored as naive UTC; aware inputs are converted on the way in.
UTCDateTime = Annotated[datetime, AfterValidator(_to_naive_utc)]


class RequestSchema(BaseModel):
    """Base for request bodies. Fields that are not declared are rejected."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class PaginationMeta(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class Paginated(BaseModel, Generic[T]):
    items: List[T]
    meta: PaginationMeta


def build_meta(total: int, page: int, limit: int) -> PaginationMeta:
    return PaginationMeta(
        total=total,
        page=page,
        limit=limit,
        total_pages=(total + limit - 1) // limit if limit else 0,
    )


class MessageResponse(BaseModel):
    message: str


class UploadResponse(BaseModel):
    url: str
    filename: str
