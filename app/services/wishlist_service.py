import logging
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import NotFoundException
from ..models import Product, User, WishlistItem


logger = logging.getLogger(__name__)


class WishlistService:
    """Saved products. Adding and removing are both idempotent."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_products(self, user: User) -> List[Product]:
        result = await self.db.execute(
            select(WishlistItem)
            .where(WishlistItem.user_id == user.id)
            .order_by(WishlistItem.created_at.desc(), WishlistItem.id.desc())
        )
        return [item.product for item in result.scalars().all()]

    async def add(self, user: User, product_id: int) -> Product:
        product = await self.db.get(Product, product_id)
        if not product:
            raise NotFoundException("Product not found")

        existing = await self.db.scalar(
            select(WishlistItem.id).where(WishlistItem.user_id == user.id, WishlistItem.product_id == product_id)
        )
        if existing is None:
            self.db.add(WishlistItem(user_id=user.id, product_id=product_id))
            try:
                await self.db.commit()
            except IntegrityError:
                # the same product was saved by a concurrent request
                await self.db.rollback()
            else:
                logger.info("User %s saved product %s", user.id, product_id)

        return await self.db.get(Product, product_id)

    async def remove(self, user: User, product_id: int) -> None:
        await self.db.execute(
            delete(WishlistItem).where(WishlistItem.user_id == user.id, WishlistItem.product_id == product_id)
        )
        await self.db.commit()
