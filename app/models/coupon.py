from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean, Enum, JSON

from ..db.base import Base
from ..enums import CouponType
from app.models.base import TimeStampMixin

class Coupon(Base, TimeStampMixin):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, nullable=False, unique=True, index=True)  # always stored uppercase
    description = Column(String, nullable=True)
    type = Column(Enum(CouponType), nullable=False)
    value = Column(Float, nullable=False)  # Either percentage or fixed amount
    min_purchase = Column(Float, nullable=False, default=0)
    max_discount = Column(Float, nullable=True)  # cap for percentage coupons
    expires_at = Column(DateTime, nullable=False)
    usage_limit = Column(Integer, nullable=False, default=0)  # 0 means unlimited
    usage_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, default=True, nullable=False)
    applicable_categories = Column(JSON, default=list)  # category ids, empty means all
