import logging
from typing import Iterable, List, Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..enums import CouponType
from ..exceptions import BadRequestException, ConflictException, NotFoundException
from ..models import Coupon, Order
from ..models.base import utcnow
from ..schemas.coupon import CouponCreate, CouponUpdate


logger = logging.getLogger(__name__)


def calculate_discount(coupon: Coupon, subtotal: float) -> float:
    """
    Discount a coupon gives on ``subtotal``.

    Percentage coupons are capped by ``max_discount``; no coupon discounts
    more than the subtotal itself.
    """
    if coupon.type == CouponType.PERCENTAGE:
        discount = subtotal * coupon.value / 100
        if coupon.max_discount:
            discount = min(discount, coupon.max_discount)
    else:
        discount = coupon.value

    return round(min(discount, subtotal), 2)


class CouponService:
    NULLABLE_FIELDS = {"description", "max_discount"}

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_all(self, include_inactive: bool = False) -> List[Coupon]:
        query = select(Coupon)
        if not include_inactive:
            query = query.where(Coupon.is_active == True, Coupon.expires_at >= utcnow())

        result = await self.db.execute(query.order_by(Coupon.created_at.desc(), Coupon.id.desc()))
        return list(result.scalars().all())

    async def find_one(self, coupon_id: int) -> Coupon:
        coupon = await self.db.get(Coupon, coupon_id)
        if not coupon:
            raise NotFoundException("Coupon not found")
        return coupon

    async def find_by_code(self, code: str) -> Coupon:
        """An active, unexpired coupon by code (case-insensitive)."""
        result = await self.db.execute(
            select(Coupon).where(
                Coupon.code == code.strip().upper(),
                Coupon.is_active == True,
                Coupon.expires_at >= utcnow(),
            )
        )
        coupon = result.scalar_one_or_none()
        if not coupon:
            raise NotFoundException("Invalid or expired coupon")
        return coupon

    async def validate(self, code: str, subtotal: float, category_ids: Optional[Iterable[int]] = None) -> Coupon:
        coupon = await self.find_by_code(code)

        if coupon.usage_limit and coupon.usage_count >= coupon.usage_limit:
            raise BadRequestException("Coupon usage limit reached")

        if subtotal < (coupon.min_purchase or 0):
            raise BadRequestException(f"Minimum purchase amount of {coupon.min_purchase:g} required")

        if coupon.applicable_categories:
            if not set(category_ids or []) & set(coupon.applicable_categories):
                raise BadRequestException("Coupon is not applicable to the items in your cart")

        return coupon

    async def apply(self, code: str, subtotal: float, category_ids: Optional[Iterable[int]] = None) -> dict:
        coupon = await self.validate(code, subtotal, category_ids)
        discount = calculate_discount(coupon, subtotal)
        return {
            "coupon": coupon,
            "discount": discount,
            "final_amount": round(subtotal - discount, 2),
        }

    async def increment_usage(self, coupon_id: int) -> None:
        # guarded increment so concurrent checkouts cannot pass the limit; the caller commits
        result = await self.db.execute(
            update(Coupon)
            .where(
                Coupon.id == coupon_id,
                or_(
                    Coupon.usage_limit.is_(None),
                    Coupon.usage_limit == 0,
                    Coupon.usage_count < Coupon.usage_limit,
                ),
            )
            .values(usage_count=Coupon.usage_count + 1)
        )
        if result.rowcount != 1:
            await self.db.rollback()
            raise BadRequestException("Coupon usage limit reached")

    async def create(self, data: CouponCreate) -> Coupon:
        await self._ensure_code_available(data.code)

        coupon = Coupon(**data.model_dump())
        self.db.add(coupon)
        await self._commit_or_conflict()
        await self.db.refresh(coupon)

        logger.info("Created coupon %s", coupon.code)
        return coupon

    async def update(self, coupon_id: int, data: CouponUpdate) -> Coupon:
        coupon = await self.find_one(coupon_id)
        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field in self.NULLABLE_FIELDS
        }

        if "code" in changes and changes["code"] != coupon.code:
            await self._ensure_code_available(changes["code"], exclude_id=coupon.id)

        new_type = changes.get("type", coupon.type)
        new_value = changes.get("value", coupon.value)
        if new_type == CouponType.PERCENTAGE and new_value > 100:
            raise BadRequestException("Percentage coupons cannot exceed 100")

        for field, value in changes.items():
            setattr(coupon, field, value)

        await self._commit_or_conflict()
        await self.db.refresh(coupon)
        return coupon

    async def remove(self, coupon_id: int) -> None:
        coupon = await self.find_one(coupon_id)
        used = await self.db.scalar(select(func.count()).select_from(Order).where(Order.coupon_id == coupon.id))
        if used:
            raise BadRequestException("Coupon has been used in orders; deactivate it instead")

        await self.db.delete(coupon)
        await self.db.commit()
        logger.info("Deleted coupon %s", coupon.code)

    async def _ensure_code_available(self, code: str, exclude_id: Optional[int] = None) -> None:
        query = select(Coupon.id).where(Coupon.code == code)
        if exclude_id is not None:
            query = query.where(Coupon.id != exclude_id)
        if await self.db.scalar(query) is not None:
            raise ConflictException("Coupon code already exists")

    async def _commit_or_conflict(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictException("Coupon code already exists")
