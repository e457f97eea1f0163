import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import BadRequestException, ConflictException, DataIntegrityException, NotFoundException
from ..models import Category, Product
from ..schemas.category import CategoryCreate, CategoryUpdate


logger = logging.getLogger(__name__)


class CategoryService:
    NULLABLE_FIELDS = {"description", "image", "parent_id"}

    def __init__(self, db: AsyncSession, max_depth: int = 32):
        self.db = db
        self.max_depth = max_depth

    async def find_all(self, include_inactive: bool = False) -> List[Category]:
        query = select(Category)
        if not include_inactive:
            query = query.where(Category.is_active == True)

        result = await self.db.execute(query.order_by(Category.order.asc(), Category.name.asc()))
        return list(result.scalars().all())

    async def find_one(self, category_id: int) -> Category:
        category = await self.db.get(Category, category_id)
        if not category:
            raise NotFoundException("Category not found")
        return category

    async def find_by_slug(self, slug: str) -> Category:
        result = await self.db.execute(select(Category).where(Category.slug == slug))
        category = result.scalar_one_or_none()
        if not category:
            raise NotFoundException("Category not found")
        return category

    async def create(self, data: CategoryCreate) -> Category:
        """Create a category. The slug must be unused and the parent, if any, must exist."""
        await self._ensure_slug_available(data.slug)

        if data.parent_id is not None:
            await self._get_parent(data.parent_id)

        category = Category(**data.model_dump())
        self.db.add(category)
        await self._commit_or_conflict()
        await self.db.refresh(category)

        logger.info("Created category %s (%s)", category.id, category.slug)
        return category

    async def update(self, category_id: int, data: CategoryUpdate) -> Category:
        category = await self.find_one(category_id)
        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field in self.NULLABLE_FIELDS
        }

        if "slug" in changes and changes["slug"] != category.slug:
            await self._ensure_slug_available(changes["slug"], exclude_id=category.id)

        if "parent_id" in changes and changes["parent_id"] != category.parent_id:
            parent_id = changes["parent_id"]
            if parent_id is not None:
                if parent_id == category.id:
                    raise BadRequestException("Category cannot be its own parent")

                await self._get_parent(parent_id)

                if await self.is_descendant(category.id, parent_id):
                    raise BadRequestException("Cannot set a descendant category as parent")

        for field, value in changes.items():
            setattr(category, field, value)

        await self._commit_or_conflict()
        await self.db.refresh(category)

        logger.info("Updated category %s", category.id)
        return category

    async def remove(self, category_id: int) -> None:
        category = await self.find_one(category_id)

        product_count = await self.db.scalar(
            select(func.count()).select_from(Product).where(Product.category_id == category.id)
        )
        if product_count:
            raise BadRequestException(
                f"Cannot delete category with {product_count} associated product(s)"
            )

        child_count = await self.db.scalar(
            select(func.count()).select_from(Category).where(Category.parent_id == category.id)
        )
        if child_count:
            raise BadRequestException(
                f"Cannot delete category with {child_count} subcategory(ies)"
            )

        await self.db.delete(category)
        await self.db.commit()
        logger.info("Deleted category %s", category_id)

    async def is_descendant(self, ancestor_id: int, candidate_id: int) -> bool:
        """
        Walk up the parent chain from ``candidate_id`` and report whether
        ``ancestor_id`` is reached before the root.

        The walk is bounded by ``max_depth``. Exceeding it, or visiting the
        same node twice, means the stored tree already contains a cycle.
        """
        visited = set()
        current_id: Optional[int] = candidate_id

        for _ in range(self.max_depth):
            if current_id is None:
                return False
            if current_id == ancestor_id:
                return True
            if current_id in visited:
                break
            visited.add(current_id)

            current_id = await self.db.scalar(
                select(Category.parent_id).where(Category.id == current_id)
            )
        else:
            if current_id is None:
                return False
            if current_id == ancestor_id:
                return True

        logger.error(
            "Category hierarchy above %s is cyclic or deeper than %s levels",
            candidate_id, self.max_depth,
        )
        raise DataIntegrityException("Category hierarchy is corrupted")

    async def _get_parent(self, parent_id: int) -> Category:
        parent = await self.db.get(Category, parent_id)
        if not parent:
            raise NotFoundException("Parent category not found")
        return parent

    async def _ensure_slug_available(self, slug: str, exclude_id: Optional[int] = None) -> None:
        query = select(Category.id).where(Category.slug == slug)
        if exclude_id is not None:
            query = query.where(Category.id != exclude_id)

        if await self.db.scalar(query) is not None:
            raise ConflictException(f"Category with slug '{slug}' already exists")

    async def _commit_or_conflict(self) -> None:
        # the unique index on slug is authoritative; the pre-check above only
        # gives a friendlier message in the common case
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictException("Category with this slug already exists")
