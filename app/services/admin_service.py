import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..enums import DashboardPeriod, OrderStatus, PaymentStatus, ReviewStatus, RevenueGrouping
from ..exceptions import BadRequestException
from ..models import Category, Order, OrderItem, Product, Review, User
from ..models.base import utcnow


logger = logging.getLogger(__name__)


PERIOD_DAYS = {
    DashboardPeriod.SEVEN_DAYS: 7,
    DashboardPeriod.THIRTY_DAYS: 30,
    DashboardPeriod.NINETY_DAYS: 90,
    DashboardPeriod.ONE_YEAR: 365,
}

DEFAULT_GROUPING = {
    DashboardPeriod.SEVEN_DAYS: RevenueGrouping.DAY,
    DashboardPeriod.THIRTY_DAYS: RevenueGrouping.DAY,
    DashboardPeriod.NINETY_DAYS: RevenueGrouping.WEEK,
    DashboardPeriod.ONE_YEAR: RevenueGrouping.MONTH,
    DashboardPeriod.ALL: RevenueGrouping.MONTH,
}

LOW_STOCK_THRESHOLD = 10

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def parse_period(period: str) -> DashboardPeriod:
    try:
        return DashboardPeriod(period)
    except ValueError:
        raise BadRequestException(
            f"Invalid period parameter. Must be one of: {', '.join(p.value for p in DashboardPeriod)}"
        )


def percentage_change(current: float, previous: float) -> float:
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 2)


def period_bounds(period: DashboardPeriod, now: Optional[datetime] = None) -> Tuple[Optional[datetime], datetime, Optional[datetime], Optional[datetime]]:
    """
    ``(start, end, previous_start, previous_end)`` for a dashboard period.

    Windows start at midnight and end at the last microsecond of today. The
    previous window has the same length and ends just before ``start``.
    ``all`` has no start and no previous window.
    """
    now = now or utcnow()
    end = now.replace(hour=23, minute=59, second=59, microsecond=999999)

    days = PERIOD_DAYS.get(period)
    if days is None:
        return None, end, None, None

    start = (now - timedelta(days=days)).replace(hour=0, minute=0, second=0, microsecond=0)
    previous_end = start - timedelta(microseconds=1)
    previous_start = (start - timedelta(days=days)).replace(hour=0, minute=0, second=0, microsecond=0)
    return start, end, previous_start, previous_end


def _bucket_start(moment: date, group_by: RevenueGrouping) -> date:
    if group_by == RevenueGrouping.MONTH:
        return moment.replace(day=1)
    if group_by == RevenueGrouping.WEEK:
        # weeks start on Sunday
        return moment - timedelta(days=(moment.weekday() + 1) % 7)
    return moment


def _next_bucket(bucket: date, group_by: RevenueGrouping) -> date:
    if group_by == RevenueGrouping.MONTH:
        return date(bucket.year + bucket.month // 12, bucket.month % 12 + 1, 1)
    if group_by == RevenueGrouping.WEEK:
        return bucket + timedelta(days=7)
    return bucket + timedelta(days=1)


def _bucket_key(bucket: date, group_by: RevenueGrouping) -> str:
    if group_by == RevenueGrouping.MONTH:
        return bucket.strftime("%Y-%m")
    return bucket.isoformat()


def _bucket_label(bucket: date, group_by: RevenueGrouping) -> str:
    if group_by == RevenueGrouping.MONTH:
        return MONTHS[bucket.month - 1]
    return f"{MONTHS[bucket.month - 1]} {bucket.day}"


def bucket_revenue(
    rows: List[Tuple[datetime, float]],
    group_by: RevenueGrouping,
    start: Optional[datetime],
    end: datetime,
) -> List[Dict]:
    """
    Group ``(created_at, total)`` rows into day/week/month buckets.

    Every bucket between ``start`` and ``end`` is present, empty ones with
    zero revenue. Without ``start`` the range begins at the earliest row.
    """
    totals: Dict[date, List[float]] = defaultdict(lambda: [0.0, 0])
    for created_at, total in rows:
        bucket = totals[_bucket_start(created_at.date(), group_by)]
        bucket[0] += total or 0
        bucket[1] += 1

    if start is None:
        if not rows:
            return []
        start = min(created_at for created_at, _ in rows)

    points = []
    bucket = _bucket_start(start.date(), group_by)
    last = _bucket_start(end.date(), group_by)
    while bucket <= last:
        revenue, orders = totals.get(bucket, (0.0, 0))
        points.append({
            "date": _bucket_key(bucket, group_by),
            "formatted_date": _bucket_label(bucket, group_by),
            "revenue": round(revenue, 2),
            "orders": orders,
        })
        bucket = _next_bucket(bucket, group_by)

    return points


def _revenue_conditions(start: Optional[datetime], end: Optional[datetime]) -> list:
    # revenue only counts captured payments on orders that were not cancelled
    conditions = [Order.payment_status == PaymentStatus.PAID, Order.status != OrderStatus.CANCELLED]
    if start is not None:
        conditions.append(Order.created_at >= start)
    if end is not None:
        conditions.append(Order.created_at <= end)
    return conditions


def _window(column, start: Optional[datetime], end: Optional[datetime]) -> list:
    conditions = []
    if start is not None:
        conditions.append(column >= start)
    if end is not None:
        conditions.append(column <= end)
    return conditions


class AdminService:
    def __init__(self, low_stock_threshold: int = LOW_STOCK_THRESHOLD):
        self.low_stock_threshold = low_stock_threshold

    async def get_dashboard_stats(self, db: AsyncSession, period: str = "30d") -> dict:
        """Headline numbers for the admin dashboard, compared with the previous period"""
        selected = parse_period(period)
        start, end, previous_start, previous_end = period_bounds(selected)
        has_previous = previous_start is not None
        current_window = start is not None

        revenue = await db.scalar(
            select(func.coalesce(func.sum(Order.total), 0)).where(*_revenue_conditions(start, end))
        ) or 0.0
        previous_revenue = 0.0
        if has_previous:
            previous_revenue = await db.scalar(
                select(func.coalesce(func.sum(Order.total), 0)).where(*_revenue_conditions(previous_start, previous_end))
            ) or 0.0

        order_window = _window(Order.created_at, start, end) if current_window else []
        total_orders = await db.scalar(select(func.count(Order.id)).where(*order_window)) or 0
        previous_orders = 0
        if has_previous:
            previous_orders = await db.scalar(
                select(func.count(Order.id)).where(*_window(Order.created_at, previous_start, previous_end))
            ) or 0

        total_users = await db.scalar(select(func.count(User.id))) or 0
        user_window = _window(User.created_at, start, end) if current_window else []
        new_users = await db.scalar(select(func.count(User.id)).where(*user_window)) or 0
        previous_users = 0
        if has_previous:
            previous_users = await db.scalar(
                select(func.count(User.id)).where(*_window(User.created_at, previous_start, previous_end))
            ) or 0

        status_rows = await db.execute(
            select(Order.status, func.count(Order.id)).where(*order_window).group_by(Order.status)
        )
        order_status_counts = {s.value: 0 for s in OrderStatus}
        order_status_counts.update({status.value: count for status, count in status_rows.all()})

        payment_rows = await db.execute(
            select(Order.payment_status, func.count(Order.id)).where(*order_window).group_by(Order.payment_status)
        )
        payment_status_counts = {s.value: 0 for s in PaymentStatus}
        payment_status_counts.update({status.value: count for status, count in payment_rows.all()})

        low_stock = await db.scalar(
            select(func.count(Product.id)).where(Product.stock < self.low_stock_threshold, Product.is_active == True)
        ) or 0
        total_products = await db.scalar(select(func.count(Product.id))) or 0
        active_products = await db.scalar(select(func.count(Product.id)).where(Product.is_active == True)) or 0
        total_categories = await db.scalar(select(func.count(Category.id))) or 0
        pending_reviews = await db.scalar(
            select(func.count(Review.id)).where(Review.status == ReviewStatus.PENDING)
        ) or 0

        revenue_change = percentage_change(revenue, previous_revenue)

        return {
            "period": selected,
            "total_revenue": round(revenue, 2),
            "total_orders": total_orders,
            "total_users": total_users,
            "new_users": new_users,
            "growth_rate": revenue_change,
            "revenue_change": revenue_change,
            "orders_change": percentage_change(total_orders, previous_orders),
            "users_change": percentage_change(new_users, previous_users),
            "average_order_value": round(revenue / total_orders, 2) if total_orders else 0.0,
            "order_status_counts": order_status_counts,
            "payment_status_counts": payment_status_counts,
            "low_stock_products": low_stock,
            "total_products": total_products,
            "active_products": active_products,
            "total_categories": total_categories,
            "pending_reviews": pending_reviews,
        }

    async def get_revenue_chart(
        self,
        db: AsyncSession,
        period: str = "30d",
        group_by: Optional[RevenueGrouping] = None,
    ) -> dict:
        selected = parse_period(period)
        grouping = group_by or DEFAULT_GROUPING[selected]
        start, end, _, _ = period_bounds(selected)

        result = await db.execute(
            select(Order.created_at, Order.total).where(*_revenue_conditions(start, end))
        )
        points = bucket_revenue(list(result.all()), grouping, start, end)
        return {"period": selected, "group_by": grouping, "points": points}

    async def get_recent_orders(self, db: AsyncSession, limit: int = 5) -> List[Order]:
        limit = min(max(1, limit), 20)
        result = await db.execute(
            select(Order).order_by(Order.created_at.desc(), Order.id.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def get_top_products(self, db: AsyncSession, limit: int = 5, period: str = "30d") -> List[dict]:
        """Best sellers by units sold (then revenue) among paid, non-cancelled orders"""
        selected = parse_period(period)
        limit = min(max(1, limit), 20)
        start, end, _, _ = period_bounds(selected)

        quantity = func.sum(OrderItem.quantity).label("quantity_sold")
        revenue = func.sum(OrderItem.total).label("total_revenue")
        rows = (await db.execute(
            select(
                OrderItem.product_id,
                func.max(OrderItem.name).label("name"),
                quantity,
                revenue,
                func.count(distinct(OrderItem.order_id)).label("order_count"),
            )
            .join(Order, Order.id == OrderItem.order_id)
            .where(*_revenue_conditions(start, end))
            .group_by(OrderItem.product_id)
            .order_by(quantity.desc(), revenue.desc())
            .limit(limit)
        )).all()

        products = {}
        if rows:
            result = await db.execute(select(Product).where(Product.id.in_([row.product_id for row in rows])))
            products = {p.id: p for p in result.scalars().all()}

        top = []
        for row in rows:
            product = products.get(row.product_id)
            top.append({
                "product_id": row.product_id,
                "name": product.name if product else row.name,
                "slug": product.slug if product else None,
                "image": product.image if product else None,
                "quantity_sold": int(row.quantity_sold or 0),
                "total_revenue": round(float(row.total_revenue or 0), 2),
                "order_count": row.order_count,
            })
        return top
