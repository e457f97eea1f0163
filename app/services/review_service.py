import logging
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..enums import OrderStatus, ReviewStatus, UserRole
from ..exceptions import ConflictException, ForbiddenException, NotFoundException
from ..models import Order, OrderItem, Product, Review, User
from ..schemas.review import ReviewCreate


logger = logging.getLogger(__name__)


# orders that count as a completed purchase for the "verified" badge
FULFILLED_STATUSES = (OrderStatus.SHIPPED, OrderStatus.DELIVERED)


class ReviewService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_review(self, user: User, review_data: ReviewCreate) -> Review:
        """Create a review. A user can review each product once."""
        product = await self.db.get(Product, review_data.product_id)
        if not product:
            raise NotFoundException("Product not found")

        existing = await self.db.scalar(
            select(Review.id).where(Review.user_id == user.id, Review.product_id == product.id)
        )
        if existing is not None:
            raise ConflictException("You have already reviewed this product")

        review = Review(
            user_id=user.id,
            product_id=product.id,
            rating=review_data.rating,
            comment=review_data.comment,
            is_verified_purchase=await self._has_purchased(user.id, product.id),
            status=ReviewStatus.APPROVED,
        )
        self.db.add(review)

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictException("You have already reviewed this product")

        await self.update_product_rating(product.id)
        logger.info("User %s reviewed product %s (%s stars)", user.id, product.id, review.rating)
        return await self.find_one(review.id)

    async def find_all(
        self,
        product_id: Optional[int] = None,
        approved_only: bool = True,
    ) -> List[Review]:
        query = select(Review)
        if product_id is not None:
            query = query.where(Review.product_id == product_id)
        if approved_only:
            query = query.where(Review.status == ReviewStatus.APPROVED)

        result = await self.db.execute(query.order_by(Review.created_at.desc(), Review.id.desc()))
        return list(result.scalars().all())

    async def find_all_admin(
        self,
        page: int = 1,
        limit: int = 20,
        product_id: Optional[int] = None,
        status: Optional[ReviewStatus] = None,
    ) -> Tuple[List[Review], int]:
        conditions = []
        if product_id is not None:
            conditions.append(Review.product_id == product_id)
        if status is not None:
            conditions.append(Review.status == status)

        total = await self.db.scalar(select(func.count()).select_from(Review).where(*conditions))
        result = await self.db.execute(
            select(Review)
            .where(*conditions)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def find_one(self, review_id: int) -> Review:
        result = await self.db.execute(
            select(Review).where(Review.id == review_id).execution_options(populate_existing=True)
        )
        review = result.scalar_one_or_none()
        if not review:
            raise NotFoundException("Review not found")
        return review

    async def set_status(self, review_id: int, status: ReviewStatus) -> Review:
        review = await self.find_one(review_id)
        review.status = status
        await self.db.commit()

        await self.update_product_rating(review.product_id)
        logger.info("Review %s marked %s", review_id, status.value)
        return await self.find_one(review_id)

    async def approve(self, review_id: int) -> Review:
        return await self.set_status(review_id, ReviewStatus.APPROVED)

    async def reject(self, review_id: int) -> Review:
        return await self.set_status(review_id, ReviewStatus.REJECTED)

    async def remove(self, review_id: int, user: Optional[User] = None) -> None:
        """Delete a review. Only its author or an admin may do so; ``user=None`` skips the check."""
        review = await self.find_one(review_id)

        if user is not None and user.role != UserRole.ADMIN and review.user_id != user.id:
            raise ForbiddenException("You can only delete your own reviews")

        product_id = review.product_id
        await self.db.delete(review)
        await self.db.commit()

        await self.update_product_rating(product_id)
        logger.info("Deleted review %s", review_id)

    async def update_product_rating(self, product_id: int) -> None:
        """Recompute a product's average rating and review count from its approved reviews."""
        average, count = (await self.db.execute(
            select(func.avg(Review.rating), func.count(Review.id)).where(
                Review.product_id == product_id,
                Review.status == ReviewStatus.APPROVED,
            )
        )).one()

        product = await self.db.get(Product, product_id)
        if not product:
            return

        product.average_rating = round(float(average), 1) if average is not None else 0
        product.review_count = count or 0
        await self.db.commit()

    async def _has_purchased(self, user_id: int, product_id: int) -> bool:
        order_id = await self.db.scalar(
            select(Order.id)
            .join(OrderItem, OrderItem.order_id == Order.id)
            .where(
                Order.user_id == user_id,
                OrderItem.product_id == product_id,
                Order.status.in_(FULFILLED_STATUSES),
            )
            .limit(1)
        )
        return order_id is not None
