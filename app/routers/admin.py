from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from ..core.config import Settings
from ..core.dependencies import get_current_admin, get_db, get_file_service, get_settings
from ..enums import ReviewStatus, RevenueGrouping, UserRole
from ..models import User
from ..schemas.admin import DashboardStats, RevenueChart, TopProduct
from ..schemas.banner import BannerCreate, BannerResponse, BannerUpdate
from ..schemas.common import MessageResponse, Paginated, UploadResponse, build_meta
from ..schemas.order import OrderResponse
from ..schemas.review import ReviewResponse, ReviewStatusUpdate
from ..schemas.user import AdminUserUpdate, UserResponse, UserRoleUpdate, UserStatusUpdate
from ..services.admin_service import AdminService
from ..services.banner_service import BannerService
from ..services.file_service import FileService
from ..services.review_service import ReviewService
from ..services.user_management_service import UserManagementService


# every route below requires an admin; the check runs before any body is parsed
router = APIRouter(dependencies=[Depends(get_current_admin)])

user_management_service = UserManagementService()


def get_admin_service(settings: Settings = Depends(get_settings)) -> AdminService:
    return AdminService(low_stock_threshold=settings.LOW_STOCK_THRESHOLD)


async def get_banner_service(
    db: AsyncSession = Depends(get_db),
    file_service: FileService = Depends(get_file_service),
) -> BannerService:
    return BannerService(db, file_service)


# Dashboard

@router.get("/dashboard", response_model=DashboardStats)
async def get_dashboard_stats(
    period: str = Query("30d", description="7d, 30d, 90d, 1y or all"),
    db: AsyncSession = Depends(get_db),
    service: AdminService = Depends(get_admin_service),
):
    """
    **Get Dashboard Stats - Admin Only**

    Headline figures for the selected period:

    - Revenue (paid, non-cancelled orders), order count and new users, each
      with the percentage change against the previous period of equal length
    - Order and payment status breakdowns
    - Low stock, product, category and pending review counts
    """
    return await service.get_dashboard_stats(db, period)


@router.get("/dashboard/revenue", response_model=RevenueChart)
async def get_dashboard_revenue(
    period: str = Query("30d"),
    group_by: Optional[RevenueGrouping] = Query(None, description="Defaults to day, week or month depending on period"),
    db: AsyncSession = Depends(get_db),
    service: AdminService = Depends(get_admin_service),
):
    """Revenue per day, week or month with empty buckets filled with zero."""
    return await service.get_revenue_chart(db, period, group_by)


@router.get("/dashboard/recent-orders", response_model=List[OrderResponse])
async def get_recent_orders(
    limit: int = Query(5, description="Clamped to 1-20"),
    db: AsyncSession = Depends(get_db),
    service: AdminService = Depends(get_admin_service),
):
    return await service.get_recent_orders(db, limit)


@router.get("/dashboard/top-products", response_model=List[TopProduct])
async def get_top_products(
    limit: int = Query(5, description="Clamped to 1-20"),
    period: str = Query("30d"),
    db: AsyncSession = Depends(get_db),
    service: AdminService = Depends(get_admin_service),
):
    return await service.get_top_products(db, limit, period)


# Users

@router.get("/users", response_model=Paginated[UserResponse])
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, description="Matches email, first or last name"),
    role: Optional[UserRole] = Query(None),
    is_active: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    users, total = await user_management_service.get_all_users(db, page, limit, search, role, is_active)
    return {"items": users, "meta": build_meta(total, page, limit)}


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)):
    return await user_management_service.get_user(db, user_id)


@router.put("/users/{user_id}", response_model=UserResponse)
async def update_user(user_id: int, data: AdminUserUpdate, db: AsyncSession = Depends(get_db)):
    return await user_management_service.update_user(db, user_id, data)


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    """
    **Delete User - Admin Only**

    Users with orders cannot be deleted; deactivate them instead. The user's
    cart and reviews are removed and affected product ratings recomputed.
    """
    await user_management_service.delete_user(db, user_id, current_admin)
    return {"message": "User deleted successfully"}


@router.put("/users/{user_id}/status", response_model=UserResponse)
async def update_user_status(
    user_id: int,
    data: UserStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    """Activate or deactivate an account. Deactivation signs the user out everywhere."""
    return await user_management_service.set_status(db, user_id, data.is_active, current_admin)


@router.put("/users/{user_id}/role", response_model=UserResponse)
async def update_user_role(
    user_id: int,
    data: UserRoleUpdate,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    return await user_management_service.set_role(db, user_id, data.role, current_admin)


# Reviews

@router.get("/reviews", response_model=Paginated[ReviewResponse])
async def list_reviews(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    product_id: Optional[int] = Query(None),
    status_filter: Optional[ReviewStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
):
    reviews, total = await ReviewService(db).find_all_admin(page, limit, product_id, status_filter)
    return {"items": reviews, "meta": build_meta(total, page, limit)}


@router.put("/reviews/{review_id}/status", response_model=ReviewResponse)
async def update_review_status(review_id: int, data: ReviewStatusUpdate, db: AsyncSession = Depends(get_db)):
    return await ReviewService(db).set_status(review_id, data.status)


@router.delete("/reviews/{review_id}", response_model=MessageResponse)
async def delete_review(review_id: int, db: AsyncSession = Depends(get_db)):
    await ReviewService(db).remove(review_id)
    return {"message": "Review deleted successfully"}


# Banners

@router.get("/banners", response_model=List[BannerResponse])
async def list_banners(
    position: Optional[str] = Query(None),
    service: BannerService = Depends(get_banner_service),
):
    """All banners, including inactive and scheduled ones."""
    return await service.find_all(position)


@router.post("/banners/upload-image", response_model=UploadResponse)
async def upload_banner_image(
    file: UploadFile = File(...),
    file_service: FileService = Depends(get_file_service),
):
    return await file_service.save_image(file, "banners")


@router.get("/banners/{banner_id}", response_model=BannerResponse)
async def get_banner(banner_id: int, service: BannerService = Depends(get_banner_service)):
    return await service.find_one(banner_id)


@router.post("/banners", response_model=BannerResponse, status_code=status.HTTP_201_CREATED)
async def create_banner(data: BannerCreate, service: BannerService = Depends(get_banner_service)):
    return await service.create(data)


@router.put("/banners/{banner_id}", response_model=BannerResponse)
async def update_banner(banner_id: int, data: BannerUpdate, service: BannerService = Depends(get_banner_service)):
    return await service.update(banner_id, data)


@router.delete("/banners/{banner_id}", response_model=MessageResponse)
async def delete_banner(banner_id: int, service: BannerService = Depends(get_banner_service)):
    """Delete a banner. An image uploaded through this API is removed with it."""
    await service.remove(banner_id)
    return {"message": "Banner deleted successfully"}
