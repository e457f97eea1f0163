from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from ..core.config import Settings
from ..core.dependencies import get_current_user, get_db, get_razorpay_client, get_settings
from ..core.responses import RawJSONResponse
from ..models import User
from ..schemas.payment import (
    PaymentVerificationResponse,
    RazorpayOrderRequest,
    RazorpayOrderResponse,
    VerifyPaymentRequest,
    WebhookAck,
)
from ..services.payment_service import PaymentService
from ..services.razorpay_client import RazorpayClient


router = APIRouter()


async def get_payment_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    client: RazorpayClient = Depends(get_razorpay_client),
) -> PaymentService:
    return PaymentService(db, settings, client)


@router.post("/razorpay/order", response_model=RazorpayOrderResponse, response_class=RawJSONResponse)
async def create_razorpay_order(
    data: RazorpayOrderRequest,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    """
    **Create Razorpay Order**

    Opens a gateway order for one of your unpaid orders. The amount (in
    paise) is taken from the stored order. Pass `id` and `key_id` to
    Razorpay Checkout.
    """
    return await service.create_razorpay_order(current_user, data.order_id)


@router.post("/razorpay/verify", response_model=PaymentVerificationResponse, response_class=RawJSONResponse)
async def verify_payment(
    data: VerifyPaymentRequest,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    """
    **Verify Payment**

    Checks the checkout signature. The order is only marked paid once the
    `payment.captured` webhook arrives.
    """
    return await service.verify_payment(current_user, data)


@router.post("/razorpay/webhook", response_model=WebhookAck)
async def razorpay_webhook(
    request: Request,
    x_razorpay_signature: Optional[str] = Header(None),
    x_razorpay_event_id: Optional[str] = Header(None),
    service: PaymentService = Depends(get_payment_service),
):
    """Gateway callback. Authenticated by the HMAC signature of the raw body."""
    body = await request.body()
    return await service.handle_webhook(body, x_razorpay_signature, x_razorpay_event_id)
