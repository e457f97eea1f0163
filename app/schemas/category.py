from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional

from .common import RequestSchema


SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


class CategoryCreate(RequestSchema):
    name: str = Field(..., min_length=2, max_length=100)
    slug: str = Field(..., min_length=1, max_length=120, pattern=SLUG_PATTERN)
    description: Optional[str] = Field(None, max_length=500)
    image: Optional[str] = None
    parent_id: Optional[int] = None
    is_active: bool = True
    order: int = Field(0, ge=0)

class CategoryUpdate(RequestSchema):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    slug: Optional[str] = Field(None, min_length=1, max_length=120, pattern=SLUG_PATTERN)
    description: Optional[str] = Field(None, max_length=500)
    image: Optional[str] = None
    parent_id: Optional[int] = None
    is_active: Optional[bool] = None
    order: Optional[int] = Field(None, ge=0)

class CategoryResponse(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    image: Optional[str] = None
    parent_id: Optional[int] = None
    is_active: bool
    order: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
