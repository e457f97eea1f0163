import logging
import secrets
import string
import time
from typing import List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..enums import OrderStatus, UserRole
from ..exceptions import BadRequestException, NotFoundException
from ..models import Order, OrderItem, Product, User
from ..models.base import utcnow
from ..schemas.order import OrderCreate, OrderStatusUpdate
from .address_service import AddressService
from .cart_service import CartService
from .coupon_service import CouponService


logger = logging.getLogger(__name__)


BASE36 = string.digits + string.ascii_uppercase

# cancelling from these states hands the reserved stock back
STOCK_HELD_STATUSES = {OrderStatus.PENDING, OrderStatus.PAID, OrderStatus.PROCESSING}


def _base36(number: int) -> str:
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(BASE36[remainder])
    return "".join(reversed(digits)) or "0"


def generate_order_number() -> str:
    """ORD-<base36 millisecond timestamp>-<6 random base36 chars>"""
    timestamp = _base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(BASE36) for _ in range(6))
    return f"ORD-{timestamp}-{suffix}"


class OrderService:
    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings
        self.cart_service = CartService()
        self.coupon_service = CouponService(db)

    async def create_order_from_cart(self, user: User, data: OrderCreate) -> Order:
        """
        Turn the user's cart into an order.

        Prices come from the cart snapshot, stock is re-checked and reserved,
        a coupon is applied when given and the cart is emptied.
        """
        cart = await self.cart_service.get_or_create_cart(user.id, self.db)
        if not cart.items:
            raise BadRequestException("Cart is empty")

        if data.address_id is not None:
            shipping_address = (await AddressService(self.db).find_one(user, data.address_id)).to_shipping_address()
        else:
            shipping_address = data.shipping_address.model_dump()

        order_items = []
        category_ids = set()
        subtotal = 0.0

        for cart_item in cart.items:
            product = await self.db.get(Product, cart_item.product_id)
            if not product:
                raise NotFoundException(f"Product {cart_item.product_id} not found")

            if not product.is_active:
                raise BadRequestException(f"Product {product.name} is not available")

            if product.stock < cart_item.quantity:
                raise BadRequestException(f"Insufficient stock for {product.name}")

            item_total = round(cart_item.price * cart_item.quantity, 2)
            subtotal += item_total
            category_ids.add(product.category_id)
            order_items.append(OrderItem(
                product_id=product.id,
                name=product.name,
                image=product.image or "",
                quantity=cart_item.quantity,
                price=cart_item.price,
                total=item_total,
            ))

        subtotal = round(subtotal, 2)

        discount = 0.0
        coupon = None
        if data.coupon_code:
            applied = await self.coupon_service.apply(data.coupon_code, subtotal, category_ids)
            coupon = applied["coupon"]
            discount = applied["discount"]

        shipping_cost = round(data.shipping_cost or 0, 2)
        tax = round(subtotal * self.settings.TAX_RATE, 2)
        total = round(subtotal + shipping_cost + tax - discount, 2)

        order = Order(
            order_number=generate_order_number(),
            user_id=user.id,
            items=order_items,
            shipping_address=shipping_address,
            subtotal=subtotal,
            shipping_cost=shipping_cost,
            tax=tax,
            discount=discount,
            total=total,
            amount=int(round(total * 100)),
            currency=self.settings.DEFAULT_CURRENCY,
            coupon_id=coupon.id if coupon else None,
            status=OrderStatus.PENDING,
        )
        self.db.add(order)

        for item in order_items:
            # guarded decrement so two concurrent checkouts cannot oversell
            result = await self.db.execute(
                update(Product)
                .where(Product.id == item.product_id, Product.stock >= item.quantity)
                .values(stock=Product.stock - item.quantity, sales_count=Product.sales_count + item.quantity)
            )
            if result.rowcount != 1:
                await self.db.rollback()
                raise BadRequestException(f"Insufficient stock for {item.name}")

        if coupon:
            await self.coupon_service.increment_usage(coupon.id)

        cart.items.clear()
        cart.total = 0.0

        await self.db.commit()
        logger.info("Order %s created for user %s (total %.2f)", order.order_number, user.id, total)
        return await self.find_one(order.id)

    async def find_all_for_user(self, user_id: int) -> List[Order]:
        result = await self.db.execute(
            select(Order).where(Order.user_id == user_id).order_by(Order.created_at.desc(), Order.id.desc())
        )
        return list(result.scalars().all())

    async def find_all_admin(
        self,
        page: int = 1,
        limit: int = 20,
        status: Optional[OrderStatus] = None,
    ) -> Tuple[List[Order], int]:
        conditions = []
        if status is not None:
            conditions.append(Order.status == status)

        total = await self.db.scalar(select(func.count()).select_from(Order).where(*conditions))
        result = await self.db.execute(
            select(Order)
            .where(*conditions)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def find_one(self, order_id: int, user: Optional[User] = None) -> Order:
        """Fetch an order; non-admin users only see their own."""
        query = select(Order).where(Order.id == order_id).execution_options(populate_existing=True)
        if user is not None and user.role != UserRole.ADMIN:
            query = query.where(Order.user_id == user.id)

        order = (await self.db.execute(query)).scalar_one_or_none()
        if not order:
            raise NotFoundException("Order not found")
        return order

    async def find_by_order_number(self, order_number: str, user: Optional[User] = None) -> Order:
        query = select(Order).where(Order.order_number == order_number)
        if user is not None and user.role != UserRole.ADMIN:
            query = query.where(Order.user_id == user.id)

        order = (await self.db.execute(query)).scalar_one_or_none()
        if not order:
            raise NotFoundException("Order not found")
        return order

    async def update_status(self, order_id: int, data: OrderStatusUpdate) -> Order:
        order = await self.find_one(order_id)
        previous_status = order.status

        if previous_status in (OrderStatus.CANCELLED, OrderStatus.REFUNDED) and data.status != previous_status:
            raise BadRequestException(f"Cannot change status of a {previous_status.value} order")

        order.status = data.status

        if data.tracking_number:
            order.tracking_number = data.tracking_number

        now = utcnow()
        if data.status == OrderStatus.SHIPPED and not order.shipped_at:
            order.shipped_at = now

        if data.status == OrderStatus.DELIVERED and not order.delivered_at:
            order.delivered_at = now

        if data.status == OrderStatus.CANCELLED and previous_status != OrderStatus.CANCELLED:
            order.cancelled_at = now
            order.cancellation_reason = data.cancellation_reason

            if previous_status in STOCK_HELD_STATUSES:
                for item in order.items:
                    await self.db.execute(
                        update(Product)
                        .where(Product.id == item.product_id)
                        .values(stock=Product.stock + item.quantity, sales_count=Product.sales_count - item.quantity)
                    )

        await self.db.commit()
        logger.info("Order %s status %s -> %s", order.order_number, previous_status.value, data.status.value)
        return await self.find_one(order.id)

    def confirmation_context(self, order: Order) -> dict:
        """Template values for the order confirmation email."""
        return {
            "order_number": order.order_number,
            "items": [{"name": i.name, "quantity": i.quantity, "total": i.total} for i in order.items],
            "subtotal": order.subtotal,
            "shipping_cost": order.shipping_cost,
            "tax": order.tax,
            "discount": order.discount,
            "total": order.total,
            "currency": order.currency,
        }
