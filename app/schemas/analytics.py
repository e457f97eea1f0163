from pydantic import BaseModel
from typing import Optional


class RevenueSummary(BaseModel):
    total_revenue: float
    total_orders: int
    average_order_value: float


class RevenueBucket(BaseModel):
    date: str
    revenue: float
    orders: int


class MonthlySales(BaseModel):
    month: str
    revenue: float
    orders: int


class BestSellingProduct(BaseModel):
    product_id: int
    name: str
    slug: Optional[str] = None
    total_sold: int
    revenue: float


class UserGrowthPoint(BaseModel):
    date: str
    count: int


class CategorySales(BaseModel):
    category_id: int
    name: str
    revenue: float
    quantity: int
