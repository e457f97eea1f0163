import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from ..models import Cart, CartItem, Product
from ..schemas.cart import CartItemCreate
from ..exceptions import NotFoundException, BadRequestException


logger = logging.getLogger(__name__)


class CartService:

    async def get_or_create_cart(self, user_id: int, db: AsyncSession) -> Cart:
        """Return the user's cart with its items loaded, creating an empty one on first use"""
        query = (
            select(Cart)
            .where(Cart.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        cart = (await db.execute(query)).scalar_one_or_none()

        if not cart:
            cart = Cart(user_id=user_id, total=0.0, items=[])
            db.add(cart)
            await db.commit()
            cart = (await db.execute(query)).scalar_one()

        return cart

    async def add_product_to_cart(self, user_id: int, item_data: CartItemCreate, db: AsyncSession) -> Cart:
        cart = await self.get_or_create_cart(user_id, db)
        product = await self._get_available_product(item_data.product_id, db)

        existing = self._find_item(cart, product.id)
        wanted = item_data.quantity + (existing.quantity if existing else 0)
        if product.stock < wanted:
            raise BadRequestException("Insufficient stock")

        if existing:
            existing.quantity = wanted
            existing.price = product.price
        else:
            cart.items.append(CartItem(product_id=product.id, quantity=item_data.quantity, price=product.price))

        cart.recalculate_total()
        await db.commit()
        return await self.get_or_create_cart(user_id, db)

    async def update_cart_item_quantity(self, user_id: int, product_id: int, quantity: int, db: AsyncSession) -> Cart:
        cart = await self.get_or_create_cart(user_id, db)
        item = self._find_item(cart, product_id)
        if not item:
            raise NotFoundException("Item not found in cart")

        product = await self._get_available_product(product_id, db)
        if product.stock < quantity:
            raise BadRequestException("Insufficient stock")

        item.quantity = quantity
        cart.recalculate_total()
        await db.commit()
        return await self.get_or_create_cart(user_id, db)

    async def remove_cart_item(self, user_id: int, product_id: int, db: AsyncSession) -> Cart:
        cart = await self.get_or_create_cart(user_id, db)
        item = self._find_item(cart, product_id)
        if not item:
            raise NotFoundException("Item not found in cart")

        cart.items.remove(item)
        cart.recalculate_total()
        await db.commit()
        return await self.get_or_create_cart(user_id, db)

    async def clear_cart(self, user_id: int, db: AsyncSession) -> Cart:
        cart = await self.get_or_create_cart(user_id, db)
        cart.items.clear()
        cart.total = 0.0
        await db.commit()
        return await self.get_or_create_cart(user_id, db)

    def _find_item(self, cart: Cart, product_id: int):
        return next((item for item in cart.items if item.product_id == product_id), None)

    async def _get_available_product(self, product_id: int, db: AsyncSession) -> Product:
        product = await db.get(Product, product_id)
        if not product:
            raise NotFoundException("Product not found")

        if not product.is_active:
            raise BadRequestException("Product is not available")

        return product
