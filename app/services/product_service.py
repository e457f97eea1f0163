import logging
from typing import List, Tuple

from sqlalchemy import String, cast, delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..enums import ProductSortField, SortOrder
from ..exceptions import BadRequestException, ConflictException, NotFoundException
from ..models import CartItem, Category, OrderItem, Product, WishlistItem
from ..schemas.product import ProductCreate, ProductFilters, ProductUpdate
from ..utils.text import slugify


logger = logging.getLogger(__name__)


SORT_COLUMNS = {
    ProductSortField.CREATED_AT: Product.created_at,
    ProductSortField.PRICE: Product.price,
    ProductSortField.NAME: Product.name,
    ProductSortField.RATING: Product.average_rating,
    ProductSortField.SALES_COUNT: Product.sales_count,
}


class ProductService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_all(self, filters: ProductFilters) -> Tuple[List[Product], int]:
        """Filtered, sorted and paginated product listing. Returns (items, total)."""
        conditions = []
        if not filters.include_inactive:
            conditions.append(Product.is_active == True)
        if filters.search:
            term = f"%{filters.search}%"
            conditions.append(or_(Product.name.ilike(term), Product.description.ilike(term)))
        if filters.category_id is not None:
            conditions.append(Product.category_id == filters.category_id)
        if filters.tags:
            # JSON arrays are matched on their text form so this works on every backend
            conditions.append(or_(*[cast(Product.tags, String).like(f'%"{tag}"%') for tag in filters.tags]))
        if filters.min_price is not None:
            conditions.append(Product.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Product.price <= filters.max_price)
        if filters.min_rating is not None:
            conditions.append(Product.average_rating >= filters.min_rating)
        if filters.in_stock is True:
            conditions.append(Product.stock > 0)
        elif filters.in_stock is False:
            conditions.append(Product.stock <= 0)
        if filters.is_featured is not None:
            conditions.append(Product.is_featured == filters.is_featured)

        total = await self.db.scalar(select(func.count()).select_from(Product).where(*conditions))

        sort_column = SORT_COLUMNS[filters.sort_by]
        order = sort_column.asc() if filters.sort_order == SortOrder.ASC else sort_column.desc()

        result = await self.db.execute(
            select(Product)
            .where(*conditions)
            .order_by(order, Product.id.desc())
            .offset((filters.page - 1) * filters.limit)
            .limit(filters.limit)
        )
        return list(result.scalars().all()), total or 0

    async def find_featured(self, limit: int = 8) -> List[Product]:
        result = await self.db.execute(
            select(Product)
            .where(Product.is_active == True, Product.is_featured == True)
            .order_by(Product.sales_count.desc(), Product.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def find_one(self, product_id: int) -> Product:
        product = await self.db.get(Product, product_id)
        if not product:
            raise NotFoundException("Product not found")
        return product

    async def find_by_slug(self, slug: str) -> Product:
        result = await self.db.execute(select(Product).where(Product.slug == slug))
        product = result.scalar_one_or_none()
        if not product:
            raise NotFoundException("Product not found")
        return product

    async def create(self, data: ProductCreate) -> Product:
        await self._ensure_category(data.category_id)

        slug = slugify(data.name)
        if not slug:
            raise BadRequestException("Product name must contain letters or digits")
        await self._ensure_unique(slug, data.sku)

        values = data.model_dump()
        product = Product(slug=slug, **values)
        self.db.add(product)
        await self._commit_or_conflict()
        await self.db.refresh(product)

        logger.info("Created product %s (%s)", product.id, product.slug)
        return product

    async def update(self, product_id: int, data: ProductUpdate) -> Product:
        product = await self.find_one(product_id)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("category_id") is not None and changes["category_id"] != product.category_id:
            await self._ensure_category(changes["category_id"])

        if changes.get("name") and changes["name"] != product.name:
            slug = slugify(changes["name"])
            if slug != product.slug:
                await self._ensure_unique(slug, None, exclude_id=product.id)
                product.slug = slug

        if changes.get("sku") and changes["sku"] != product.sku:
            await self._ensure_unique(None, changes["sku"], exclude_id=product.id)

        for field, value in changes.items():
            if value is None and field in ("name", "description", "category_id", "price", "stock"):
                continue
            setattr(product, field, value)

        await self._commit_or_conflict()
        await self.db.refresh(product)

        logger.info("Updated product %s", product.id)
        return product

    async def remove(self, product_id: int) -> None:
        product = await self.find_one(product_id)

        ordered = await self.db.scalar(
            select(func.count()).select_from(OrderItem).where(OrderItem.product_id == product.id)
        )
        if ordered:
            raise BadRequestException("Product has orders and cannot be deleted; deactivate it instead")

        await self.db.execute(delete(CartItem).where(CartItem.product_id == product.id))
        await self.db.execute(delete(WishlistItem).where(WishlistItem.product_id == product.id))
        await self.db.delete(product)
        await self.db.commit()
        logger.info("Deleted product %s", product_id)

    async def update_stock(self, product_id: int, quantity: int) -> Product:
        """Apply a relative stock change; the result may not go below zero."""
        product = await self.find_one(product_id)
        if product.stock + quantity < 0:
            raise BadRequestException("Insufficient stock")

        product.stock = product.stock + quantity
        await self.db.commit()
        await self.db.refresh(product)
        return product

    async def _ensure_category(self, category_id: int) -> None:
        if await self.db.get(Category, category_id) is None:
            raise NotFoundException("Category not found")

    async def _ensure_unique(self, slug, sku, exclude_id=None) -> None:
        if slug:
            query = select(Product.id).where(Product.slug == slug)
            if exclude_id is not None:
                query = query.where(Product.id != exclude_id)
            if await self.db.scalar(query) is not None:
                raise ConflictException("Product with this name already exists")

        if sku:
            query = select(Product.id).where(Product.sku == sku)
            if exclude_id is not None:
                query = query.where(Product.id != exclude_id)
            if await self.db.scalar(query) is not None:
                raise ConflictException("Product with this SKU already exists")

    async def _commit_or_conflict(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictException("Product with this slug or SKU already exists")
