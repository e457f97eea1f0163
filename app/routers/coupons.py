from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from ..core.dependencies import admin_only, get_current_user, get_db
from ..schemas.common import MessageResponse
from ..schemas.coupon import (
    CouponApplication,
    CouponCreate,
    CouponResponse,
    CouponUpdate,
    CouponValidateRequest,
)
from ..services.coupon_service import CouponService


router = APIRouter()


async def get_coupon_service(db: AsyncSession = Depends(get_db)) -> CouponService:
    return CouponService(db)


@router.get("", response_model=List[CouponResponse])
async def list_coupons(
    include_inactive: bool = Query(False, description="Also list inactive and expired coupons"),
    service: CouponService = Depends(get_coupon_service),
):
    return await service.find_all(include_inactive)


@router.get("/code/{code}", response_model=CouponResponse)
async def get_coupon_by_code(code: str, service: CouponService = Depends(get_coupon_service)):
    """Look up an active, unexpired coupon by its code (case-insensitive)."""
    return await service.find_by_code(code)


@router.post("/validate", response_model=CouponApplication, dependencies=[Depends(get_current_user)])
async def validate_coupon(data: CouponValidateRequest, service: CouponService = Depends(get_coupon_service)):
    """
    **Validate Coupon**

    Checks usage limit, minimum purchase and category restrictions against
    the given subtotal and returns the discount it would give.
    """
    return await service.apply(data.code, data.subtotal, data.category_ids)


@router.get("/{coupon_id}", response_model=CouponResponse)
async def get_coupon(coupon_id: int, service: CouponService = Depends(get_coupon_service)):
    return await service.find_one(coupon_id)


@router.post("", response_model=CouponResponse, status_code=status.HTTP_201_CREATED, dependencies=[admin_only])
async def create_coupon(data: CouponCreate, service: CouponService = Depends(get_coupon_service)):
    """Create a coupon (admin). Codes are stored uppercase and must be unique."""
    return await service.create(data)


@router.put("/{coupon_id}", response_model=CouponResponse, dependencies=[admin_only])
async def update_coupon(coupon_id: int, data: CouponUpdate, service: CouponService = Depends(get_coupon_service)):
    return await service.update(coupon_id, data)


@router.delete("/{coupon_id}", response_model=MessageResponse, dependencies=[admin_only])
async def delete_coupon(coupon_id: int, service: CouponService = Depends(get_coupon_service)):
    await service.remove(coupon_id)
    return {"message": "Coupon deleted successfully"}
