from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, Dict, List, Optional
from datetime import datetime

from ..enums import OrderStatus, PaymentStatus
from .common import PaginationMeta, RequestSchema


class ShippingAddress(RequestSchema):
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)


class OrderCreate(RequestSchema):
    shipping_address: Optional[ShippingAddress] = None
    address_id: Optional[int] = Field(None, description="A saved address to ship to instead of shipping_address")
    coupon_code: Optional[str] = None
    shipping_cost: float = Field(0, ge=0)

    @model_validator(mode="after")
    def one_destination(self):
        if (self.shipping_address is None) == (self.address_id is None):
            raise ValueError("Provide either shipping_address or address_id")
        return self


class OrderStatusUpdate(RequestSchema):
    status: OrderStatus
    tracking_number: Optional[str] = Field(None, max_length=100)
    cancellation_reason: Optional[str] = None

    @field_validator('tracking_number')
    @classmethod
    def blank_as_none(cls, v):
        # whitespace is already stripped; an empty string clears the value
        return v or None


class RefundRequest(RequestSchema):
    amount: Optional[float] = Field(None, gt=0, description="Partial refund in rupees; omit for a full refund")
    reason: Optional[str] = None


class OrderItemResponse(BaseModel):
    product_id: int
    name: str
    image: Optional[str] = ""
    quantity: int
    price: float
    total: float

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: int
    order_number: str
    user_id: int
    status: OrderStatus
    items: List[OrderItemResponse]
    shipping_address: Dict[str, Any]
    subtotal: float
    shipping_cost: float
    tax: float
    discount: float
    total: float
    amount: int
    currency: str
    coupon_id: Optional[int] = None
    payment_status: PaymentStatus
    payment_method: Optional[str] = None
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    payment_attempts: int
    paid_at: Optional[datetime] = None
    refunded_amount: int
    tracking_number: Optional[str] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OrderListResponse(BaseModel):
    items: List[OrderResponse]
    meta: PaginationMeta
