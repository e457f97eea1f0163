"""
Sales analytics over paid and delivered orders.
"""

from datetime import timedelta

from conftest import API
from app.enums import OrderStatus
from app.models import Order
from app.models.base import utcnow
from test_cart_orders import add_to_cart, place_order


async def counted_order(client, headers, product_id, session_factory, quantity=1, status=OrderStatus.DELIVERED):
    await add_to_cart(client, headers, product_id, quantity)
    order = (await place_order(client, headers)).json()
    async with session_factory() as session:
        stored = await session.get(Order, order["id"])
        stored.status = status
        await session.commit()
    return order


class TestAnalytics:

    async def test_requires_admin(self, client, user_headers):
        assert (await client.get(f"{API}/analytics/revenue")).status_code == 401
        assert (await client.get(f"{API}/analytics/revenue", headers=user_headers)).status_code == 403

    async def test_revenue_summary(self, client, admin_headers, user_headers, product, session_factory):
        await counted_order(client, user_headers, product.id, session_factory)
        await counted_order(client, user_headers, product.id, session_factory, quantity=2, status=OrderStatus.PAID)
        await add_to_cart(client, user_headers, product.id)
        await place_order(client, user_headers)

        summary = (await client.get(f"{API}/analytics/revenue", headers=admin_headers)).json()["data"]
        assert summary == {"total_revenue": 330.0, "total_orders": 2, "average_order_value": 165.0}

        future = (utcnow() + timedelta(days=1)).isoformat()
        summary = (await client.get(f"{API}/analytics/revenue", params={"start_date": future}, headers=admin_headers)).json()["data"]
        assert summary["total_orders"] == 0

    async def test_daily_revenue(self, client, admin_headers, user_headers, product, session_factory):
        await counted_order(client, user_headers, product.id, session_factory)

        points = (await client.get(f"{API}/analytics/daily-revenue", params={"days": 7}, headers=admin_headers)).json()["data"]
        assert len(points) == 7
        assert points[-1] == {"date": utcnow().date().isoformat(), "revenue": 110.0, "orders": 1}
        assert all(p["revenue"] == 0 for p in points[:-1])

    async def test_monthly_sales(self, client, admin_headers, user_headers, product, session_factory):
        await counted_order(client, user_headers, product.id, session_factory)

        points = (await client.get(f"{API}/analytics/monthly-sales", params={"months": 3}, headers=admin_headers)).json()["data"]
        assert len(points) == 3
        assert points[-1]["month"] == utcnow().strftime("%Y-%m")
        assert points[-1]["orders"] == 1

    async def test_best_selling_and_categories(self, client, admin_headers, user_headers, create_product, session_factory, category):
        speaker = await create_product("Speaker", price=80.0)
        cable = await create_product("Cable", price=10.0)
        await counted_order(client, user_headers, cable.id, session_factory, quantity=5)
        await counted_order(client, user_headers, speaker.id, session_factory, quantity=1)

        best = (await client.get(f"{API}/analytics/best-selling", headers=admin_headers)).json()["data"]
        assert [p["name"] for p in best] == ["Cable", "Speaker"]
        assert best[0]["total_sold"] == 5
        assert best[0]["revenue"] == 50.0

        categories = (await client.get(f"{API}/analytics/top-categories", headers=admin_headers)).json()["data"]
        assert categories == [{"category_id": category.id, "name": "Electronics", "revenue": 130.0, "quantity": 6}]

    async def test_user_growth(self, client, admin_headers, create_user):
        await create_user("newcomer@shop.io")

        points = (await client.get(f"{API}/analytics/user-growth", params={"days": 5}, headers=admin_headers)).json()["data"]
        assert len(points) == 5
        assert points[-1]["date"] == utcnow().date().isoformat()
        assert points[-1]["count"] == 2
