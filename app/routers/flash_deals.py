from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from ..core.dependencies import admin_only, get_db
from ..enums import FlashDealType
from ..schemas.common import MessageResponse
from ..schemas.flash_deal import FlashDealCreate, FlashDealResponse, FlashDealUpdate
from ..services.flash_deal_service import FlashDealService


router = APIRouter()


async def get_flash_deal_service(db: AsyncSession = Depends(get_db)) -> FlashDealService:
    return FlashDealService(db)


@router.get("", response_model=List[FlashDealResponse])
async def get_active_flash_deals(
    type: Optional[FlashDealType] = Query(None, description="Only deals of this type"),
    limit: int = Query(10, ge=1, le=100),
    service: FlashDealService = Depends(get_flash_deal_service),
):
    """
    Retrieve the flash deals that are currently running.

    A deal is returned when it is switched on and the current time falls
    inside its start/end window. Results are ordered by priority (highest
    first), then by creation time (newest first).

    Args:
        type: Optional deal type filter.
        limit: Maximum number of deals to return (1-100, default 10).
        service (FlashDealService): Injected automatically via FastAPI's dependency injection.
    Returns:
        List[FlashDealResponse]: The active deals.
    """
    return await service.find_active(type, limit)


@router.get("/all", response_model=List[FlashDealResponse], dependencies=[admin_only])
async def get_all_flash_deals(
    active: Optional[bool] = Query(None),
    type: Optional[FlashDealType] = Query(None),
    limit: int = Query(10, ge=1, le=100),
    service: FlashDealService = Depends(get_flash_deal_service),
):
    """List every flash deal regardless of its date window (admin)."""
    return await service.find_all(active, type, limit)


@router.get("/{deal_id}", response_model=FlashDealResponse, dependencies=[admin_only])
async def get_flash_deal(deal_id: int, service: FlashDealService = Depends(get_flash_deal_service)):
    return await service.find_one(deal_id)


@router.post("", response_model=FlashDealResponse, status_code=status.HTTP_201_CREATED, dependencies=[admin_only])
async def create_flash_deal(
    deal_data: FlashDealCreate,
    service: FlashDealService = Depends(get_flash_deal_service),
):
    """
    Create a flash deal (admin).

    ``end_date`` must be after ``start_date`` and discount deals need a
    ``discount_percentage``.
    """
    return await service.create(deal_data)


@router.put("/{deal_id}", response_model=FlashDealResponse, dependencies=[admin_only])
async def update_flash_deal(
    deal_id: int,
    deal_data: FlashDealUpdate,
    service: FlashDealService = Depends(get_flash_deal_service),
):
    return await service.update(deal_id, deal_data)


@router.delete("/{deal_id}", response_model=MessageResponse, dependencies=[admin_only])
async def delete_flash_deal(deal_id: int, service: FlashDealService = Depends(get_flash_deal_service)):
    await service.remove(deal_id)
    return {"message": "Flash deal deleted successfully"}
