from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from ..core.config import Settings
from ..core.dependencies import admin_only, get_db, get_file_service, get_settings
from ..schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from ..schemas.common import MessageResponse, UploadResponse
from ..services.category_service import CategoryService
from ..services.file_service import FileService


router = APIRouter()


async def get_category_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> CategoryService:
    """Dependency function that provides an instance of CategoryService."""
    return CategoryService(db, max_depth=settings.MAX_CATEGORY_DEPTH)


@router.get("", response_model=List[CategoryResponse])
async def list_categories(
    include_inactive: bool = Query(False, description="Include inactive categories"),
    service: CategoryService = Depends(get_category_service),
):
    """
    **List Categories**

    Returns categories sorted by their display order, then by name.

    **Query Parameters:**
    - **include_inactive**: also return soft-deleted categories (default: false)
    """
    return await service.find_all(include_inactive)


@router.post("/upload-image", response_model=UploadResponse, dependencies=[admin_only])
async def upload_category_image(
    file: UploadFile = File(...),
    file_service: FileService = Depends(get_file_service),
):
    """
    **Upload Category Image** (admin)

    - **Formats**: JPG, PNG, GIF, WebP
    - **Size**: Maximum 5MB

    Returns the public URL to store in the category's ``image`` field.
    """
    return await file_service.save_image(file, "categories")


@router.get("/slug/{slug}", response_model=CategoryResponse)
async def get_category_by_slug(slug: str, service: CategoryService = Depends(get_category_service)):
    return await service.find_by_slug(slug)


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: int, service: CategoryService = Depends(get_category_service)):
    return await service.find_one(category_id)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED, dependencies=[admin_only])
async def create_category(
    category_data: CategoryCreate,
    service: CategoryService = Depends(get_category_service),
):
    """
    **Create Category** (admin)

    **Request Body:**
    - **name**: Category name, 2-100 characters (required)
    - **slug**: Lowercase, hyphen-separated identifier; must be unique (required)
    - **parent_id**: Parent category ID for hierarchical structure (optional)
    - **description**, **image**, **is_active**, **order** (optional)

    **Errors:**
    - 409 when the slug is taken
    - 404 when the parent does not exist
    """
    return await service.create(category_data)


@router.put("/{category_id}", response_model=CategoryResponse, dependencies=[admin_only])
async def update_category(
    category_id: int,
    category_data: CategoryUpdate,
    service: CategoryService = Depends(get_category_service),
):
    """
    **Update Category** (admin)

    Only the fields sent are changed. A new ``parent_id`` may not be the
    category itself or any of its descendants.
    """
    return await service.update(category_id, category_data)


@router.delete("/{category_id}", response_model=MessageResponse, dependencies=[admin_only])
async def delete_category(category_id: int, service: CategoryService = Depends(get_category_service)):
    """
    **Delete Category** (admin)

    Refused while products or subcategories still reference the category.
    """
    await service.remove(category_id)
    return {"message": "Category deleted successfully"}
