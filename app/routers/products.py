from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from ..core.dependencies import admin_only, get_db, get_file_service
from ..enums import ProductSortField, SortOrder
from ..schemas.common import MessageResponse, UploadResponse, build_meta
from ..schemas.product import (
    ProductCreate,
    ProductFilters,
    ProductListResponse,
    ProductResponse,
    ProductUpdate,
    StockUpdate,
)
from ..services.file_service import FileService
from ..services.product_service import ProductService


router = APIRouter()


async def get_product_service(db: AsyncSession = Depends(get_db)) -> ProductService:
    return ProductService(db)


@router.get("", response_model=ProductListResponse)
async def list_products(
    search: Optional[str] = Query(None, description="Match against name and description"),
    category_id: Optional[int] = Query(None),
    tags: Optional[List[str]] = Query(None),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    min_rating: Optional[float] = Query(None, ge=0, le=5),
    in_stock: Optional[bool] = Query(None),
    is_featured: Optional[bool] = Query(None),
    sort_by: ProductSortField = Query(ProductSortField.CREATED_AT),
    sort_order: SortOrder = Query(SortOrder.DESC),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    service: ProductService = Depends(get_product_service),
):
    """
    **List Products**

    Active products with optional filtering, sorting and pagination.

    **Query Parameters:**
    - **search**: text match on name/description
    - **category_id**, **tags**, **min_price**, **max_price**, **min_rating**, **in_stock**, **is_featured**
    - **sort_by**: created_at, price, name, rating or sales_count (default: created_at)
    - **sort_order**: asc or desc (default: desc)
    - **page** / **limit**: pagination (default 1 / 12, max limit 100)
    """
    filters = ProductFilters(
        search=search,
        category_id=category_id,
        tags=tags,
        min_price=min_price,
        max_price=max_price,
        min_rating=min_rating,
        in_stock=in_stock,
        is_featured=is_featured,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    items, total = await service.find_all(filters)
    return {"items": items, "meta": build_meta(total, page, limit)}


@router.get("/featured", response_model=List[ProductResponse])
async def list_featured_products(
    limit: int = Query(8, ge=1, le=50),
    service: ProductService = Depends(get_product_service),
):
    return await service.find_featured(limit)


@router.post("/upload-image", response_model=UploadResponse, dependencies=[admin_only])
async def upload_product_image(
    file: UploadFile = File(...),
    file_service: FileService = Depends(get_file_service),
):
    """Upload a product image (admin). JPG, PNG, GIF or WebP up to 5MB."""
    return await file_service.save_image(file, "products")


@router.get("/slug/{slug}", response_model=ProductResponse)
async def get_product_by_slug(slug: str, service: ProductService = Depends(get_product_service)):
    return await service.find_by_slug(slug)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: int, service: ProductService = Depends(get_product_service)):
    return await service.find_one(product_id)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED, dependencies=[admin_only])
async def create_product(product_data: ProductCreate, service: ProductService = Depends(get_product_service)):
    """
    **Create Product** (admin)

    The slug is generated from the name and must be unique. The category
    must exist. HTML in ``description`` is sanitized.
    """
    return await service.create(product_data)


@router.put("/{product_id}", response_model=ProductResponse, dependencies=[admin_only])
async def update_product(
    product_id: int,
    product_data: ProductUpdate,
    service: ProductService = Depends(get_product_service),
):
    return await service.update(product_id, product_data)


@router.put("/{product_id}/stock", response_model=ProductResponse, dependencies=[admin_only])
async def update_product_stock(
    product_id: int,
    stock_data: StockUpdate,
    service: ProductService = Depends(get_product_service),
):
    """Add (positive) or remove (negative) units of stock (admin)."""
    return await service.update_stock(product_id, stock_data.quantity)


@router.delete("/{product_id}", response_model=MessageResponse, dependencies=[admin_only])
async def delete_product(product_id: int, service: ProductService = Depends(get_product_service)):
    await service.remove(product_id)
    return {"message": "Product deleted successfully"}
