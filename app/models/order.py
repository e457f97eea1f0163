from sqlalchemy import Column, Integer, String, Text, Float, ForeignKey, DateTime, Enum, JSON
from sqlalchemy.orm import relationship

from ..db.base import Base
from ..enums import OrderStatus, PaymentStatus
from ..models.base import TimeStampMixin


class Order(Base, TimeStampMixin):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String, nullable=False, unique=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(Enum(OrderStatus), default=OrderStatus.PENDING, nullable=False, index=True)
    shipping_address = Column(JSON, nullable=False)
    subtotal = Column(Float, nullable=False)
    shipping_cost = Column(Float, nullable=False, default=0)
    tax = Column(Float, nullable=False, default=0)
    discount = Column(Float, default=0, nullable=False)
    total = Column(Float, nullable=False)
    amount = Column(Integer, nullable=False)  # total in paise, what the gateway charges
    currency = Column(String, default="INR", nullable=False)
    coupon_id = Column(Integer, ForeignKey("coupons.id"), nullable=True)

    # Payment
    payment_status = Column(Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False, index=True)
    payment_method = Column(String, nullable=True)
    razorpay_order_id = Column(String, nullable=True, unique=True, index=True)
    razorpay_payment_id = Column(String, nullable=True, index=True)
    payment_attempts = Column(Integer, default=0, nullable=False)
    paid_at = Column(DateTime, nullable=True)
    refunded_amount = Column(Integer, default=0, nullable=False)  # paise

    # Fulfilment
    tracking_number = Column(String, nullable=True)
    shipped_at = Column(DateTime, nullable=True)
    delivered_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    # Relationships
    user = relationship("User", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderItem.id",
    )
    coupon = relationship("Coupon")


    def __repr__(self):
        return f'<Order(id={self.id}, order_number={self.order_number}, status={self.status})>'
