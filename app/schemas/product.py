from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict, Any, List
from datetime import datetime

from ..enums import ProductSortField, SortOrder
from ..utils.text import sanitize_rich_text
from .common import PaginationMeta, RequestSchema


class DimensionsSchema(BaseModel):
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    unit: str = "cm"


class ProductBase(RequestSchema):
    name: str = Field(..., min_length=2, max_length=200)
    description: str = Field(..., min_length=1)
    category_id: int
    price: float = Field(..., ge=0)
    compare_at_price: Optional[float] = Field(None, ge=0)
    stock: int = Field(0, ge=0)
    images: List[str] = []
    tags: List[str] = []
    sku: Optional[str] = None
    specifications: Optional[Dict[str, Any]] = None
    weight: Optional[float] = Field(None, ge=0)
    dimensions: Optional[DimensionsSchema] = None
    is_active: bool = True
    is_featured: bool = False

    @field_validator('description', mode='before')
    @classmethod
    def sanitize_html_description(cls, v):
        """Sanitize HTML description from rich text editor using bleach"""
        if not v or not isinstance(v, str):
            return v
        return sanitize_rich_text(v)

class ProductCreate(ProductBase):
    pass

class ProductUpdate(RequestSchema):
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    description: Optional[str] = None
    category_id: Optional[int] = None
    price: Optional[float] = Field(None, ge=0)
    compare_at_price: Optional[float] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    images: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    sku: Optional[str] = None
    specifications: Optional[Dict[str, Any]] = None
    weight: Optional[float] = Field(None, ge=0)
    dimensions: Optional[DimensionsSchema] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None

    @field_validator('description', mode='before')
    @classmethod
    def sanitize_html_description(cls, v):
        if not v or not isinstance(v, str):
            return v
        return sanitize_rich_text(v)

class StockUpdate(RequestSchema):
    quantity: int = Field(..., description="Change to apply; negative values remove stock")

class ProductFilters(BaseModel):
    search: Optional[str] = None
    category_id: Optional[int] = None
    tags: Optional[List[str]] = None
    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    min_rating: Optional[float] = Field(None, ge=0, le=5)
    in_stock: Optional[bool] = None
    is_featured: Optional[bool] = None
    include_inactive: bool = False
    sort_by: ProductSortField = ProductSortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC
    page: int = Field(1, ge=1)
    limit: int = Field(12, ge=1, le=100)

class ProductResponse(BaseModel):
    id: int
    name: str
    slug: str
    description: str
    category_id: int
    price: float
    compare_at_price: Optional[float] = None
    stock: int
    images: List[str] = []
    tags: List[str] = []
    sku: Optional[str] = None
    specifications: Optional[Dict[str, Any]] = None
    weight: Optional[float] = None
    dimensions: Optional[Dict[str, Any]] = None
    is_active: bool
    is_featured: bool
    average_rating: float
    review_count: int
    sales_count: int
    created_at: datetime
    updated_at: datetime

    @field_validator('images', 'tags', mode='before')
    @classmethod
    def none_as_empty(cls, v):
        return v or []

    class Config:
        from_attributes = True

class ProductListResponse(BaseModel):
    items: List[ProductResponse]
    meta: PaginationMeta
