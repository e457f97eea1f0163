from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from ..core.dependencies import admin_only, get_db
from ..schemas.analytics import (
    BestSellingProduct,
    CategorySales,
    MonthlySales,
    RevenueBucket,
    RevenueSummary,
    UserGrowthPoint,
)
from ..schemas.common import UTCDateTime
from ..services.analytics_service import AnalyticsService


router = APIRouter(dependencies=[admin_only])


async def get_analytics_service(db: AsyncSession = Depends(get_db)) -> AnalyticsService:
    return AnalyticsService(db)


@router.get("/revenue", response_model=RevenueSummary)
async def get_revenue(
    start_date: Optional[UTCDateTime] = Query(None),
    end_date: Optional[UTCDateTime] = Query(None),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """
    **Revenue Summary**

    Totals over paid and delivered orders, optionally limited to a
    creation-date window.
    """
    return await service.revenue(start_date, end_date)


@router.get("/daily-revenue", response_model=List[RevenueBucket])
async def get_daily_revenue(
    days: int = Query(30, ge=1, le=366),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await service.daily_revenue(days)


@router.get("/monthly-sales", response_model=List[MonthlySales])
async def get_monthly_sales(
    months: int = Query(12, ge=1, le=60),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await service.monthly_sales(months)


@router.get("/best-selling", response_model=List[BestSellingProduct])
async def get_best_selling(
    limit: int = Query(10, ge=1, le=100),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await service.best_selling(limit)


@router.get("/user-growth", response_model=List[UserGrowthPoint])
async def get_user_growth(
    days: int = Query(30, ge=1, le=366),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await service.user_growth(days)


@router.get("/top-categories", response_model=List[CategorySales])
async def get_top_categories(
    limit: int = Query(10, ge=1, le=100),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await service.top_categories(limit)
