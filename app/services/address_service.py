import logging
from typing import List

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import NotFoundException
from ..models import Address, User
from ..schemas.address import AddressCreate, AddressUpdate


logger = logging.getLogger(__name__)


class AddressService:
    """A user's saved shipping addresses. At most one is the default."""

    NULLABLE_FIELDS = {"label"}

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_all(self, user: User) -> List[Address]:
        result = await self.db.execute(
            select(Address).where(Address.user_id == user.id).order_by(Address.id.asc())
        )
        return list(result.scalars().all())

    async def find_one(self, user: User, address_id: int) -> Address:
        address = await self.db.scalar(
            select(Address).where(Address.id == address_id, Address.user_id == user.id)
        )
        if not address:
            raise NotFoundException("Address not found")
        return address

    async def create(self, user: User, data: AddressCreate) -> List[Address]:
        if data.is_default:
            await self._clear_default(user)

        self.db.add(Address(user_id=user.id, **data.model_dump()))
        await self.db.commit()

        logger.info("User %s added an address", user.id)
        return await self.find_all(user)

    async def update(self, user: User, address_id: int, data: AddressUpdate) -> Address:
        address = await self.find_one(user, address_id)
        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field in self.NULLABLE_FIELDS
        }

        if changes.get("is_default"):
            await self._clear_default(user)

        for field, value in changes.items():
            setattr(address, field, value)

        await self.db.commit()
        await self.db.refresh(address)
        return address

    async def remove(self, user: User, address_id: int) -> None:
        address = await self.find_one(user, address_id)
        await self.db.delete(address)
        await self.db.commit()
        logger.info("User %s removed address %s", user.id, address_id)

    async def _clear_default(self, user: User) -> None:
        await self.db.execute(
            update(Address)
            .where(Address.user_id == user.id, Address.is_default == True)
            .values(is_default=False)
        )
