from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from .common import RequestSchema

class CartItemCreate(RequestSchema):
    """Schema for adding a product to the cart"""
    product_id: int
    quantity: int = Field(ge=1, default=1)

class CartItemUpdate(RequestSchema):
    quantity: int = Field(..., ge=1)

class CartProductSummary(BaseModel):
    id: int
    name: str
    slug: str
    image: Optional[str] = None
    stock: int
    is_active: bool

    class Config:
        from_attributes = True

class CartItemResponse(BaseModel):
    """Schema for cart item responses"""
    product_id: int
    quantity: int
    price: float
    product: Optional[CartProductSummary] = None

    class Config:
        from_attributes = True

class CartResponse(BaseModel):
    id: int
    user_id: int
    items: List[CartItemResponse] = []
    total: float
    updated_at: datetime

    class Config:
        from_attributes = True
