from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional

from ..enums import ButtonVariant, FlashDealType
from .common import RequestSchema, UTCDateTime


class FlashDealCreate(RequestSchema):
    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=500)
    type: FlashDealType
    discount_percentage: Optional[float] = Field(None, ge=0, le=100)
    min_purchase_amount: float = Field(0, ge=0)
    link: str = ""
    button_text: Optional[str] = Field(None, max_length=50)
    button_variant: ButtonVariant = ButtonVariant.DEFAULT
    active: bool = True
    start_date: UTCDateTime
    end_date: UTCDateTime
    priority: int = 0


class FlashDealUpdate(RequestSchema):
    title: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = Field(None, min_length=10, max_length=500)
    type: Optional[FlashDealType] = None
    discount_percentage: Optional[float] = Field(None, ge=0, le=100)
    min_purchase_amount: Optional[float] = Field(None, ge=0)
    link: Optional[str] = None
    button_text: Optional[str] = Field(None, max_length=50)
    button_variant: Optional[ButtonVariant] = None
    active: Optional[bool] = None
    start_date: Optional[UTCDateTime] = None
    end_date: Optional[UTCDateTime] = None
    priority: Optional[int] = None


class FlashDealResponse(BaseModel):
    id: int
    title: str
    description: str
    type: FlashDealType
    discount_percentage: Optional[float] = None
    min_purchase_amount: float
    link: str
    button_text: Optional[str] = None
    button_variant: ButtonVariant
    active: bool
    start_date: datetime
    end_date: datetime
    priority: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
