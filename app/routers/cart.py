from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import get_db, get_current_user
from ..models import User
from ..schemas.cart import CartItemCreate, CartItemUpdate, CartResponse
from ..services.cart_service import CartService

router = APIRouter()
cart_service = CartService()

@router.get("", response_model=CartResponse)
async def get_cart(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get current user's cart; an empty cart is created on first access"""
    return await cart_service.get_or_create_cart(current_user.id, db)

@router.post("/items", response_model=CartResponse)
async def add_product_to_cart(
    item: CartItemCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Add a product to the cart.

    Adding a product that is already in the cart increases its quantity.
    Fails with 400 when the product is inactive or the combined quantity
    exceeds stock.
    """
    return await cart_service.add_product_to_cart(current_user.id, item, db)

@router.put("/items/{product_id}", response_model=CartResponse)
async def update_cart_item(
    product_id: int,
    item: CartItemUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Set the quantity of a product already in the cart"""
    return await cart_service.update_cart_item_quantity(current_user.id, product_id, item.quantity, db)

@router.delete("/items/{product_id}", response_model=CartResponse)
async def remove_cart_item(
    product_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Remove a product from the cart"""
    return await cart_service.remove_cart_item(current_user.id, product_id, db)

@router.delete("/clear", response_model=CartResponse)
async def clear_cart(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Remove every item from the cart"""
    return await cart_service.clear_cart(current_user.id, db)
