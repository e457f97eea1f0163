from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from ..core.config import Settings
from ..core.dependencies import admin_only, get_current_user, get_db, get_razorpay_client, get_settings
from ..core.responses import RawJSONResponse
from ..enums import OrderStatus
from ..models import User
from ..schemas.common import build_meta
from ..schemas.order import OrderCreate, OrderListResponse, OrderResponse, OrderStatusUpdate, RefundRequest
from ..services.email_service import EmailService
from ..services.order_service import OrderService
from ..services.payment_service import PaymentService
from ..services.razorpay_client import RazorpayClient


router = APIRouter()


async def get_order_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> OrderService:
    return OrderService(db, settings)


@router.post(
    "",
    response_model=OrderResponse,
    response_class=RawJSONResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_order(
    data: OrderCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
    settings: Settings = Depends(get_settings),
):
    """
    **Place Order**

    Converts the current cart into an order. Stock is reserved, the coupon
    (if any) is applied, and the cart is emptied.

    **Request Body:**
    - **shipping_address**: street, city, state, zip_code, country
    - **address_id**: a saved address, instead of shipping_address
    - **coupon_code**: optional coupon to apply
    - **shipping_cost**: optional, defaults to 0

    The order is returned as-is, without the response envelope.
    """
    order = await service.create_order_from_cart(current_user, data)

    email_service = EmailService(settings)
    background_tasks.add_task(
        email_service.send_order_confirmation,
        current_user.email,
        current_user.first_name,
        service.confirmation_context(order),
    )
    return order


@router.get("", response_model=List[OrderResponse])
async def list_my_orders(
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    return await service.find_all_for_user(current_user.id)


@router.get("/admin", response_model=OrderListResponse, dependencies=[admin_only])
async def list_all_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    service: OrderService = Depends(get_order_service),
):
    items, total = await service.find_all_admin(page, limit, status_filter)
    return {"items": items, "meta": build_meta(total, page, limit)}


@router.get("/order-number/{order_number}", response_model=OrderResponse)
async def get_order_by_number(
    order_number: str,
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    return await service.find_by_order_number(order_number, current_user)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    """Customers can only read their own orders; admins can read any."""
    return await service.find_one(order_id, current_user)


@router.put("/{order_id}/status", response_model=OrderResponse, dependencies=[admin_only])
async def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    service: OrderService = Depends(get_order_service),
):
    """
    **Update Order Status**

    - `shipped` / `delivered` stamp their timestamp the first time.
    - `cancelled` records the reason and returns reserved stock when the
      order was pending, paid or processing.
    """
    return await service.update_status(order_id, data)


@router.post("/{order_id}/refund", response_model=OrderResponse, dependencies=[admin_only])
async def refund_order(
    order_id: int,
    data: RefundRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    client: RazorpayClient = Depends(get_razorpay_client),
    service: OrderService = Depends(get_order_service),
):
    """Refund a captured payment in full, or partially when `amount` (rupees) is given."""
    order = await PaymentService(db, settings, client).refund_order(order_id, data)
    return await service.find_one(order.id)
