import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio.session import AsyncSession

from ..enums import FlashDealType
from ..exceptions import BadRequestException, NotFoundException
from ..models.base import utcnow
from ..models.flash_deal import FlashDeal
from ..schemas.flash_deal import FlashDealCreate, FlashDealUpdate


logger = logging.getLogger(__name__)


class FlashDealService:
    NULLABLE_FIELDS = {"discount_percentage", "button_text"}

    def __init__(self, db: AsyncSession):
        self.db = db


    async def find_active(
        self,
        deal_type: Optional[FlashDealType] = None,
        limit: int = 10,
        now: Optional[datetime] = None,
    ) -> List[FlashDeal]:
        """Deals switched on whose [start_date, end_date] window contains ``now``."""
        now = now or utcnow()
        query = select(FlashDeal).where(
            FlashDeal.active == True,
            FlashDeal.start_date <= now,
            FlashDeal.end_date >= now,
        )
        if deal_type is not None:
            query = query.where(FlashDeal.type == deal_type)

        result = await self.db.execute(
            query.order_by(FlashDeal.priority.desc(), FlashDeal.created_at.desc(), FlashDeal.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def find_all(
        self,
        active: Optional[bool] = None,
        deal_type: Optional[FlashDealType] = None,
        limit: int = 10,
    ) -> List[FlashDeal]:
        query = select(FlashDeal)
        if active is not None:
            query = query.where(FlashDeal.active == active)
        if deal_type is not None:
            query = query.where(FlashDeal.type == deal_type)

        result = await self.db.execute(
            query.order_by(FlashDeal.priority.desc(), FlashDeal.created_at.desc(), FlashDeal.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def find_one(self, deal_id: int) -> FlashDeal:
        deal = await self.db.get(FlashDeal, deal_id)
        if not deal:
            raise NotFoundException("Flash deal not found")
        return deal

    async def create(self, data: FlashDealCreate) -> FlashDeal:
        if data.end_date <= data.start_date:
            raise BadRequestException("endDate must be after startDate")

        if data.type == FlashDealType.DISCOUNT and data.discount_percentage is None:
            raise BadRequestException("discountPercentage is required when type is discount")

        deal = FlashDeal(**data.model_dump())
        self.db.add(deal)
        await self.db.commit()
        await self.db.refresh(deal)

        logger.info("Created flash deal %s (%s)", deal.id, deal.type.value)
        return deal

    async def update(self, deal_id: int, data: FlashDealUpdate) -> FlashDeal:
        """
        Partial update. Each date bound that is sent is checked against the
        other bound, taken from the request when present and from the stored
        record otherwise.
        """
        deal = await self.find_one(deal_id)
        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field in self.NULLABLE_FIELDS
        }

        start_date = changes.get("start_date") or deal.start_date
        end_date = changes.get("end_date") or deal.end_date

        if "start_date" in changes and start_date >= end_date:
            raise BadRequestException("startDate must be before endDate")

        if "end_date" in changes and end_date <= start_date:
            raise BadRequestException("endDate must be after startDate")

        new_type = changes.get("type", deal.type)
        new_percentage = changes.get("discount_percentage", deal.discount_percentage)
        if ("type" in changes or "discount_percentage" in changes) and \
                new_type == FlashDealType.DISCOUNT and new_percentage is None:
            raise BadRequestException("discountPercentage is required when type is discount")

        for field, value in changes.items():
            setattr(deal, field, value)

        await self.db.commit()
        await self.db.refresh(deal)

        logger.info("Updated flash deal %s", deal.id)
        return deal

    async def remove(self, deal_id: int) -> None:
        deal = await self.find_one(deal_id)
        await self.db.delete(deal)
        await self.db.commit()
        logger.info("Deleted flash deal %s", deal_id)
