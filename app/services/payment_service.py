import hashlib
import json
import logging
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..enums import OrderStatus, PaymentStatus
from ..exceptions import BadRequestException, NotFoundException
from ..models import Order, PaymentEvent, User
from ..models.base import utcnow
from ..schemas.order import RefundRequest
from ..schemas.payment import VerifyPaymentRequest
from .razorpay_client import RazorpayClient


logger = logging.getLogger(__name__)


PAID_STATUSES = {PaymentStatus.PAID, PaymentStatus.REFUNDED, PaymentStatus.PARTIALLY_REFUNDED}


def _entity(entities: Dict[str, Any], name: str) -> Dict[str, Any]:
    """``payload.<name>.entity`` of a webhook event, or an empty dict when absent or malformed."""
    wrapper = entities.get(name)
    entity = wrapper.get("entity") if isinstance(wrapper, dict) else None
    return entity if isinstance(entity, dict) else {}


class PaymentService:
    def __init__(self, db: AsyncSession, settings: Settings, client: RazorpayClient):
        self.db = db
        self.settings = settings
        self.client = client

    async def _get_owned_order(self, order_id: int, user: User) -> Order:
        order = await self.db.scalar(select(Order).where(Order.id == order_id, Order.user_id == user.id))
        if not order:
            raise NotFoundException("Order not found")
        return order

    async def create_razorpay_order(self, user: User, order_id: int) -> Dict[str, Any]:
        """
        Open a Razorpay order for one of the user's unpaid orders.

        The amount always comes from the stored order, never from the client.
        """
        order = await self._get_owned_order(order_id, user)

        if order.payment_status in PAID_STATUSES:
            raise BadRequestException("Order is already paid")
        if order.status == OrderStatus.CANCELLED:
            raise BadRequestException("Cannot pay for a cancelled order")

        gateway_order = await self.client.create_order(
            amount=order.amount,
            receipt=order.order_number,
            currency=order.currency,
            notes={"order_id": order.id, "order_number": order.order_number},
        )

        order.razorpay_order_id = gateway_order["id"]
        order.payment_status = PaymentStatus.CREATED
        await self.db.commit()

        return {
            "id": gateway_order["id"],
            "amount": gateway_order.get("amount", order.amount),
            "currency": gateway_order.get("currency", order.currency),
            "receipt": gateway_order.get("receipt"),
            "status": gateway_order.get("status"),
            "key_id": self.settings.RAZORPAY_KEY_ID,
            "order_id": order.id,
        }

    async def verify_payment(self, user: User, data: VerifyPaymentRequest) -> Dict[str, Any]:
        """
        Check the checkout signature returned to the browser.

        A valid signature only moves the order to VERIFICATION_PENDING; the
        ``payment.captured`` webhook is what marks it paid.
        """
        order = await self._get_owned_order(data.order_id, user)

        if order.razorpay_order_id != data.razorpay_order_id:
            raise BadRequestException("Razorpay order does not match this order")

        order.payment_attempts = (order.payment_attempts or 0) + 1

        if not self.client.verify_payment_signature(
            data.razorpay_order_id, data.razorpay_payment_id, data.razorpay_signature
        ):
            await self.db.commit()
            raise BadRequestException("Invalid payment signature")

        order.razorpay_payment_id = data.razorpay_payment_id
        if order.payment_status not in PAID_STATUSES:
            order.payment_status = PaymentStatus.VERIFICATION_PENDING
        await self.db.commit()

        logger.info("Payment %s verified for order %s", data.razorpay_payment_id, order.order_number)
        return {
            "success": True,
            "message": "Payment verified, awaiting confirmation",
            "order_id": order.id,
            "payment_status": order.payment_status,
        }

    async def handle_webhook(self, body: bytes, signature: Optional[str], event_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Apply a signed Razorpay webhook once.

        The event record and the order changes are committed together, so an
        event whose processing fails is not remembered and can be redelivered.
        """
        if not signature or not self.client.verify_webhook_signature(body, signature):
            raise BadRequestException("Invalid webhook signature")

        try:
            event = json.loads(body)
        except ValueError:
            raise BadRequestException("Invalid webhook payload")
        if not isinstance(event, dict):
            raise BadRequestException("Invalid webhook payload")

        event_type = str(event.get("event") or "unknown")
        event_id = str(event_id or event.get("id") or hashlib.sha256(body).hexdigest())

        existing = await self.db.scalar(select(PaymentEvent).where(PaymentEvent.event_id == event_id))
        if existing:
            logger.info("Webhook event %s already received, skipping", event_id)
            return {"received": True, "duplicate": True}

        entities = event.get("payload")
        if not isinstance(entities, dict):
            entities = {}
        payment = _entity(entities, "payment")

        error = None
        if event_type == "payment.captured":
            error = await self._on_payment_captured(payment)
        elif event_type == "payment.failed":
            error = await self._on_payment_failed(payment)
        elif event_type == "refund.processed":
            error = await self._on_refund_processed(_entity(entities, "refund"), payment)
        else:
            logger.info("Ignoring webhook event type %s", event_type)

        self.db.add(PaymentEvent(
            event_id=event_id, event_type=event_type, payload=event, processed=True, error=error,
        ))
        try:
            await self.db.commit()
        except IntegrityError:
            # a concurrent delivery of the same event committed first
            await self.db.rollback()
            return {"received": True, "duplicate": True}

        return {"received": True, "duplicate": False}

    async def _on_payment_captured(self, payment: Dict[str, Any]) -> Optional[str]:
        order = await self._order_by_gateway_id(payment.get("order_id"))
        if not order:
            return "Order not found"

        order.payment_status = PaymentStatus.PAID
        order.razorpay_payment_id = payment.get("id") or order.razorpay_payment_id
        order.payment_method = payment.get("method") or order.payment_method
        if not order.paid_at:
            order.paid_at = utcnow()
        if order.status == OrderStatus.PENDING:
            order.status = OrderStatus.PAID

        logger.info("Order %s paid", order.order_number)
        return None

    async def _on_payment_failed(self, payment: Dict[str, Any]) -> Optional[str]:
        order = await self._order_by_gateway_id(payment.get("order_id"))
        if not order:
            return "Order not found"

        # a late failure for an earlier attempt must not undo a capture
        if order.payment_status not in PAID_STATUSES:
            order.payment_status = PaymentStatus.FAILED
        logger.info("Payment failed for order %s", order.order_number)
        return None

    async def _on_refund_processed(self, refund: Dict[str, Any], payment: Dict[str, Any]) -> Optional[str]:
        payment_id = refund.get("payment_id") or payment.get("id")
        order = await self.db.scalar(select(Order).where(Order.razorpay_payment_id == payment_id))
        if not order:
            logger.warning("Refund webhook for unknown payment %s", payment_id)
            return "Order not found"

        refunded = payment.get("amount_refunded") or refund.get("amount") or 0
        order.refunded_amount = max(order.refunded_amount or 0, int(refunded))
        self._apply_refund_status(order)
        return None

    async def _order_by_gateway_id(self, razorpay_order_id: Optional[str]) -> Optional[Order]:
        if not razorpay_order_id:
            return None
        order = await self.db.scalar(select(Order).where(Order.razorpay_order_id == razorpay_order_id))
        if not order:
            logger.warning("Webhook for unknown Razorpay order %s", razorpay_order_id)
        return order

    @staticmethod
    def _apply_refund_status(order: Order) -> None:
        if order.refunded_amount >= order.amount:
            order.payment_status = PaymentStatus.REFUNDED
            order.status = OrderStatus.REFUNDED
        elif order.refunded_amount > 0:
            order.payment_status = PaymentStatus.PARTIALLY_REFUNDED

    async def refund_order(self, order_id: int, data: RefundRequest) -> Order:
        order = await self.db.get(Order, order_id)
        if not order:
            raise NotFoundException("Order not found")

        if order.payment_status not in (PaymentStatus.PAID, PaymentStatus.PARTIALLY_REFUNDED) or not order.razorpay_payment_id:
            raise BadRequestException("Order has no captured payment to refund")

        refundable = order.amount - (order.refunded_amount or 0)
        amount = int(round(data.amount * 100)) if data.amount is not None else refundable
        if amount > refundable:
            raise BadRequestException("Refund amount exceeds the refundable balance")

        notes = {"order_number": order.order_number}
        if data.reason:
            notes["reason"] = data.reason

        await self.client.create_refund(order.razorpay_payment_id, amount=amount, notes=notes)

        order.refunded_amount = (order.refunded_amount or 0) + amount
        self._apply_refund_status(order)
        await self.db.commit()

        logger.info("Refunded %s paise on order %s", amount, order.order_number)
        return order
