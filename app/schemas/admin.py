from pydantic import BaseModel
from typing import Dict, List, Optional

from ..enums import DashboardPeriod, RevenueGrouping


class DashboardStats(BaseModel):
    period: DashboardPeriod
    total_revenue: float
    total_orders: int
    total_users: int
    new_users: int
    growth_rate: float
    revenue_change: float
    orders_change: float
    users_change: float
    average_order_value: float
    order_status_counts: Dict[str, int]
    payment_status_counts: Dict[str, int]
    low_stock_products: int
    total_products: int
    active_products: int
    total_categories: int
    pending_reviews: int


class RevenuePoint(BaseModel):
    date: str
    formatted_date: str
    revenue: float
    orders: int


class RevenueChart(BaseModel):
    period: DashboardPeriod
    group_by: RevenueGrouping
    points: List[RevenuePoint]


class TopProduct(BaseModel):
    product_id: int
    name: str
    slug: Optional[str] = None
    image: Optional[str] = None
    quantity_sold: int
    total_revenue: float
    order_count: int
