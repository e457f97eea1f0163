from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from ..core.dependencies import get_db
from ..schemas.banner import BannerResponse
from ..services.banner_service import BannerService


router = APIRouter()


@router.get("", response_model=List[BannerResponse])
async def list_active_banners(
    position: Optional[str] = Query(None, description="Only banners for this slot, e.g. hero"),
    db: AsyncSession = Depends(get_db),
):
    """Banners that are active and inside their display window, newest first."""
    return await BannerService(db).find_active(position)
