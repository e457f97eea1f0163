import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import BadRequestException, NotFoundException
from ..models import Banner
from ..models.base import utcnow
from ..schemas.banner import BannerCreate, BannerUpdate
from .file_service import FileService


logger = logging.getLogger(__name__)


class BannerService:
    def __init__(self, db: AsyncSession, file_service: Optional[FileService] = None):
        self.db = db
        self.file_service = file_service

    async def find_active(self, position: Optional[str] = None, now: Optional[datetime] = None) -> List[Banner]:
        """Active banners whose optional date window contains ``now``, newest first."""
        now = now or utcnow()
        query = select(Banner).where(
            Banner.active == True,
            or_(Banner.start_date.is_(None), Banner.start_date <= now),
            or_(Banner.end_date.is_(None), Banner.end_date >= now),
        )
        if position:
            query = query.where(Banner.position == position)

        result = await self.db.execute(query.order_by(Banner.created_at.desc(), Banner.id.desc()))
        return list(result.scalars().all())

    async def find_all(self, position: Optional[str] = None) -> List[Banner]:
        query = select(Banner)
        if position:
            query = query.where(Banner.position == position)

        result = await self.db.execute(query.order_by(Banner.created_at.desc(), Banner.id.desc()))
        return list(result.scalars().all())

    async def find_one(self, banner_id: int) -> Banner:
        banner = await self.db.get(Banner, banner_id)
        if not banner:
            raise NotFoundException("Banner not found")
        return banner

    async def create(self, data: BannerCreate) -> Banner:
        banner = Banner(**data.model_dump())
        self.db.add(banner)
        await self.db.commit()
        await self.db.refresh(banner)

        logger.info("Created banner %s", banner.id)
        return banner

    async def update(self, banner_id: int, data: BannerUpdate) -> Banner:
        banner = await self.find_one(banner_id)
        changes = data.model_dump(exclude_unset=True)

        start = changes.get("start_date", banner.start_date)
        end = changes.get("end_date", banner.end_date)
        if start and end and start >= end:
            raise BadRequestException("startDate must be before endDate")

        for field, value in changes.items():
            setattr(banner, field, value)

        await self.db.commit()
        await self.db.refresh(banner)
        return banner

    async def remove(self, banner_id: int) -> None:
        """Delete a banner and, when it was uploaded here, its image file."""
        banner = await self.find_one(banner_id)
        image = banner.image

        await self.db.delete(banner)
        await self.db.commit()

        if self.file_service and await self.file_service.delete_image(image):
            logger.info("Removed banner image %s", image)
        logger.info("Deleted banner %s", banner_id)
