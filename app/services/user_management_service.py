import logging
from typing import List, Optional, Tuple

from fastapi import UploadFile

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import delete, func, or_

from ..enums import UserRole
from ..exceptions import BadRequestException, NotFoundException
from ..models import Address, Cart, CartItem, Order, Review, User, WishlistItem
from ..schemas.user import AdminUserUpdate, ProfileUpdate
from .file_service import FileService
from .review_service import ReviewService


logger = logging.getLogger(__name__)


class UserManagementService:

    async def update_profile(self, user: User, data: ProfileUpdate, db: AsyncSession) -> User:
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field != "phone":
                continue
            setattr(user, field, value)

        await db.commit()
        await db.refresh(user)
        return user

    async def update_avatar(self, user: User, file: UploadFile, file_service: FileService, db: AsyncSession) -> User:
        """Store a new avatar image and remove the previous upload, if any."""
        saved = await file_service.save_image(file, "avatars")
        previous = user.avatar

        user.avatar = saved["url"]
        await db.commit()
        await db.refresh(user)

        if previous:
            await file_service.delete_image(previous)

        logger.info("User %s uploaded a new avatar", user.id)
        return user

    async def get_all_users(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
    ) -> Tuple[List[User], int]:
        """Get paginated list of users, newest first"""

        conditions = []
        if search:
            conditions.append(or_(
                User.first_name.ilike(f"%{search}%"),
                User.last_name.ilike(f"%{search}%"),
                User.email.ilike(f"%{search}%"),
            ))
        if role is not None:
            conditions.append(User.role == role)
        if is_active is not None:
            conditions.append(User.is_active == is_active)

        total = await db.scalar(select(func.count()).select_from(User).where(*conditions))
        result = await db.execute(
            select(User)
            .where(*conditions)
            .order_by(User.created_at.desc(), User.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def get_user(self, db: AsyncSession, user_id: int) -> User:
        user = await db.get(User, user_id)
        if not user:
            raise NotFoundException("User not found")
        return user

    async def update_user(self, db: AsyncSession, user_id: int, data: AdminUserUpdate) -> User:
        user = await self.get_user(db, user_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field != "phone":
                continue
            setattr(user, field, value)

        await db.commit()
        await db.refresh(user)
        return user

    async def set_status(self, db: AsyncSession, user_id: int, is_active: bool, acting_admin: User) -> User:
        if user_id == acting_admin.id and not is_active:
            raise BadRequestException("You cannot deactivate your own account")

        user = await self.get_user(db, user_id)
        user.is_active = is_active
        if not is_active:
            user.refresh_tokens = []

        await db.commit()
        await db.refresh(user)
        logger.info("User %s %s by admin %s", user.id, "activated" if is_active else "deactivated", acting_admin.id)
        return user

    async def set_role(self, db: AsyncSession, user_id: int, role: str, acting_admin: User) -> User:
        try:
            new_role = UserRole(role)
        except ValueError:
            raise BadRequestException(
                f"Invalid role. Must be one of: {', '.join(r.value for r in UserRole)}"
            )

        if user_id == acting_admin.id and new_role != UserRole.ADMIN:
            raise BadRequestException("You cannot remove your own admin role")

        user = await self.get_user(db, user_id)
        user.role = new_role
        await db.commit()
        await db.refresh(user)
        logger.info("User %s role set to %s by admin %s", user.id, new_role.value, acting_admin.id)
        return user

    async def delete_user(self, db: AsyncSession, user_id: int, acting_admin: User) -> None:
        if user_id == acting_admin.id:
            raise BadRequestException("You cannot delete your own account")

        user = await self.get_user(db, user_id)

        order_count = await db.scalar(select(func.count()).select_from(Order).where(Order.user_id == user.id))
        if order_count:
            raise BadRequestException("User has orders and cannot be deleted; deactivate the account instead")

        reviewed_products = (await db.scalars(select(Review.product_id).where(Review.user_id == user.id))).all()

        cart_ids = select(Cart.id).where(Cart.user_id == user.id)
        await db.execute(delete(CartItem).where(CartItem.cart_id.in_(cart_ids)))
        await db.execute(delete(Cart).where(Cart.user_id == user.id))
        await db.execute(delete(Review).where(Review.user_id == user.id))
        await db.execute(delete(Address).where(Address.user_id == user.id))
        await db.execute(delete(WishlistItem).where(WishlistItem.user_id == user.id))
        await db.delete(user)
        await db.commit()

        review_service = ReviewService(db)
        for product_id in set(reviewed_products):
            await review_service.update_product_rating(product_id)

        logger.info("User %s deleted by admin %s", user_id, acting_admin.id)
