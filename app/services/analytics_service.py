import logging
from collections import Counter
from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..enums import OrderStatus, RevenueGrouping
from ..models import Category, Order, OrderItem, Product, User
from ..models.base import utcnow
from .admin_service import bucket_revenue


logger = logging.getLogger(__name__)


# statuses whose orders count as sales
COUNTED_STATUSES = (OrderStatus.PAID, OrderStatus.DELIVERED)


def _midnight(day: date) -> datetime:
    return datetime(day.year, day.month, day.day)


class AnalyticsService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def revenue(self, start_date: Optional[datetime] = None, end_date: Optional[datetime] = None) -> dict:
        conditions = [Order.status.in_(COUNTED_STATUSES)]
        if start_date is not None:
            conditions.append(Order.created_at >= start_date)
        if end_date is not None:
            conditions.append(Order.created_at <= end_date)

        total, count = (await self.db.execute(
            select(func.coalesce(func.sum(Order.total), 0), func.count(Order.id)).where(*conditions)
        )).one()

        total = float(total or 0)
        return {
            "total_revenue": round(total, 2),
            "total_orders": count or 0,
            "average_order_value": round(total / count, 2) if count else 0.0,
        }

    async def _order_rows(self, since: datetime) -> list:
        result = await self.db.execute(
            select(Order.created_at, Order.total).where(
                Order.status.in_(COUNTED_STATUSES),
                Order.created_at >= since,
            )
        )
        return list(result.all())

    async def daily_revenue(self, days: int = 30, now: Optional[datetime] = None) -> List[dict]:
        """One bucket per day for the last ``days`` days, today included."""
        now = now or utcnow()
        start = _midnight(now.date() - timedelta(days=days - 1))

        rows = await self._order_rows(start)
        return [
            {"date": point["date"], "revenue": point["revenue"], "orders": point["orders"]}
            for point in bucket_revenue(rows, RevenueGrouping.DAY, start, now)
        ]

    async def monthly_sales(self, months: int = 12, now: Optional[datetime] = None) -> List[dict]:
        """One bucket per calendar month for the last ``months`` months, the current one included."""
        now = now or utcnow()
        index = now.year * 12 + now.month - 1 - (months - 1)
        start = datetime(index // 12, index % 12 + 1, 1)

        rows = await self._order_rows(start)
        return [
            {"month": point["date"], "revenue": point["revenue"], "orders": point["orders"]}
            for point in bucket_revenue(rows, RevenueGrouping.MONTH, start, now)
        ]

    async def best_selling(self, limit: int = 10) -> List[dict]:
        sold = func.sum(OrderItem.quantity).label("total_sold")
        revenue = func.sum(OrderItem.total).label("revenue")

        rows = (await self.db.execute(
            select(Product.id, Product.name, Product.slug, sold, revenue)
            .join(OrderItem, OrderItem.product_id == Product.id)
            .join(Order, Order.id == OrderItem.order_id)
            .where(Order.status.in_(COUNTED_STATUSES))
            .group_by(Product.id, Product.name, Product.slug)
            .order_by(sold.desc(), Product.id.asc())
            .limit(limit)
        )).all()

        return [
            {
                "product_id": row.id,
                "name": row.name,
                "slug": row.slug,
                "total_sold": int(row.total_sold or 0),
                "revenue": round(float(row.revenue or 0), 2),
            }
            for row in rows
        ]

    async def user_growth(self, days: int = 30, now: Optional[datetime] = None) -> List[dict]:
        now = now or utcnow()
        first_day = now.date() - timedelta(days=days - 1)

        created = await self.db.scalars(select(User.created_at).where(User.created_at >= _midnight(first_day)))
        counts = Counter(moment.date() for moment in created.all())

        return [
            {"date": (first_day + timedelta(days=offset)).isoformat(), "count": counts.get(first_day + timedelta(days=offset), 0)}
            for offset in range(days)
        ]

    async def top_categories(self, limit: int = 10) -> List[dict]:
        revenue = func.sum(OrderItem.total).label("revenue")
        quantity = func.sum(OrderItem.quantity).label("quantity")

        rows = (await self.db.execute(
            select(Category.id, Category.name, revenue, quantity)
            .join(Product, Product.category_id == Category.id)
            .join(OrderItem, OrderItem.product_id == Product.id)
            .join(Order, Order.id == OrderItem.order_id)
            .where(Order.status.in_(COUNTED_STATUSES))
            .group_by(Category.id, Category.name)
            .order_by(revenue.desc())
            .limit(limit)
        )).all()

        return [
            {
                "category_id": row.id,
                "name": row.name,
                "revenue": round(float(row.revenue or 0), 2),
                "quantity": int(row.quantity or 0),
            }
            for row in rows
        ]
