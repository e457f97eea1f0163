from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional
from datetime import datetime

from ..enums import CouponType
from .common import RequestSchema, UTCDateTime

class CouponBase(RequestSchema):
    """Base schema for coupons"""
    code: str = Field(..., min_length=3, max_length=30)
    description: Optional[str] = None
    type: CouponType = Field(..., description="Either 'percentage' or 'fixed'")
    value: float = Field(gt=0, description="Percentage or fixed amount")
    min_purchase: float = Field(0, ge=0, description="Minimum order amount required")
    max_discount: Optional[float] = Field(None, gt=0, description="Maximum discount for percentage types")
    expires_at: UTCDateTime
    usage_limit: int = Field(0, ge=0, description="Maximum number of uses, 0 for unlimited")
    is_active: bool = True
    applicable_categories: List[int] = []

    @field_validator('code')
    @classmethod
    def uppercase_code(cls, v):
        return v.upper()

    @model_validator(mode='after')
    def check_percentage(self):
        if self.type == CouponType.PERCENTAGE and self.value > 100:
            raise ValueError('Percentage coupons cannot exceed 100')
        return self

class CouponCreate(CouponBase):
    """Schema for creating coupons"""
    pass

class CouponUpdate(RequestSchema):
    """Schema for updating coupons"""
    code: Optional[str] = Field(None, min_length=3, max_length=30)
    description: Optional[str] = None
    type: Optional[CouponType] = None
    value: Optional[float] = Field(None, gt=0)
    min_purchase: Optional[float] = Field(None, ge=0)
    max_discount: Optional[float] = Field(None, gt=0)
    expires_at: Optional[UTCDateTime] = None
    usage_limit: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    applicable_categories: Optional[List[int]] = None

    @field_validator('code')
    @classmethod
    def uppercase_code(cls, v):
        return v.upper() if v else v

class CouponValidateRequest(RequestSchema):
    code: str
    subtotal: float = Field(..., ge=0)
    category_ids: List[int] = []

class CouponResponse(BaseModel):
    """Schema for coupon responses"""
    id: int
    code: str
    description: Optional[str] = None
    type: CouponType
    value: float
    min_purchase: float
    max_discount: Optional[float] = None
    expires_at: datetime
    usage_limit: int
    usage_count: int
    is_active: bool
    applicable_categories: List[int] = []
    created_at: datetime
    updated_at: datetime

    @field_validator('applicable_categories', mode='before')
    @classmethod
    def none_as_empty(cls, v):
        return v or []

    class Config:
        from_attributes = True

class CouponApplication(BaseModel):
    coupon: CouponResponse
    discount: float
    final_amount: float
