from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

from ..enums import ReviewStatus
from ..utils.text import strip_html
from .common import PaginationMeta, RequestSchema


class ReviewCreate(RequestSchema):
    product_id: int
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None

    @field_validator('comment')
    @classmethod
    def clean_comment(cls, v):
        """Reviews are plain text; markup is stripped before the length check"""
        if v is None:
            return v
        v = strip_html(v).strip()
        if len(v) > 1000:
            raise ValueError('Comment must be at most 1000 characters')
        return v or None


class ReviewStatusUpdate(RequestSchema):
    status: ReviewStatus


class UserReviewInfo(BaseModel):
    """Basic user info for review responses"""
    id: int
    first_name: str
    last_name: str

    class Config:
        from_attributes = True


class ReviewResponse(BaseModel):
    id: int
    product_id: int
    user_id: int
    rating: int
    comment: Optional[str] = None
    is_verified_purchase: bool
    status: ReviewStatus
    created_at: datetime
    updated_at: datetime
    user: Optional[UserReviewInfo] = None

    class Config:
        from_attributes = True


class ReviewListResponse(BaseModel):
    items: List[ReviewResponse]
    meta: PaginationMeta
