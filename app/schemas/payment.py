from pydantic import BaseModel, Field
from typing import Optional

from ..enums import PaymentStatus
from .common import RequestSchema


class RazorpayOrderRequest(RequestSchema):
    order_id: int


class VerifyPaymentRequest(RequestSchema):
    order_id: int
    razorpay_order_id: str = Field(..., min_length=1)
    razorpay_payment_id: str = Field(..., min_length=1)
    razorpay_signature: str = Field(..., min_length=1)


class RazorpayOrderResponse(BaseModel):
    id: str
    amount: int
    currency: str
    receipt: Optional[str] = None
    status: Optional[str] = None
    key_id: Optional[str] = None
    order_id: int


class PaymentVerificationResponse(BaseModel):
    success: bool
    message: str
    order_id: int
    payment_status: PaymentStatus


class WebhookAck(BaseModel):
    received: bool = True
    duplicate: bool = False
