"""
Admin dashboard, user management and banners.
"""

from datetime import datetime, timedelta

import pytest

from conftest import API, login
from app.enums import OrderStatus, PaymentStatus, RevenueGrouping
from app.exceptions import BadRequestException
from app.models import Order
from app.models.base import utcnow
from app.services.admin_service import bucket_revenue, parse_period, percentage_change
from test_cart_orders import add_to_cart, place_order


async def paid_order(client, headers, product_id, session_factory, quantity=1):
    await add_to_cart(client, headers, product_id, quantity)
    order = (await place_order(client, headers)).json()
    async with session_factory() as session:
        stored = await session.get(Order, order["id"])
        stored.payment_status = PaymentStatus.PAID
        stored.status = OrderStatus.PAID
        await session.commit()
    return order


class TestDashboardHelpers:

    def test_percentage_change(self):
        assert percentage_change(150, 100) == 50.0
        assert percentage_change(50, 200) == -75.0
        assert percentage_change(10, 0) == 100.0
        assert percentage_change(0, 0) == 0.0

    def test_parse_period(self):
        with pytest.raises(BadRequestException) as excinfo:
            parse_period("2w")
        assert excinfo.value.detail == "Invalid period parameter. Must be one of: 7d, 30d, 90d, 1y, all"

    def test_daily_buckets_are_zero_filled(self):
        rows = [(datetime(2024, 3, 1, 10), 100.0), (datetime(2024, 3, 1, 18), 50.0), (datetime(2024, 3, 3, 9), 25.0)]
        points = bucket_revenue(rows, RevenueGrouping.DAY, datetime(2024, 3, 1), datetime(2024, 3, 4, 23, 59))

        assert [p["date"] for p in points] == ["2024-03-01", "2024-03-02", "2024-03-03", "2024-03-04"]
        assert [p["revenue"] for p in points] == [150.0, 0.0, 25.0, 0.0]
        assert [p["orders"] for p in points] == [2, 0, 1, 0]
        assert points[0]["formatted_date"] == "Mar 1"

    def test_weeks_start_on_sunday(self):
        # 2024-03-06 is a Wednesday
        rows = [(datetime(2024, 3, 6), 10.0)]
        points = bucket_revenue(rows, RevenueGrouping.WEEK, datetime(2024, 3, 6), datetime(2024, 3, 12))
        assert [p["date"] for p in points] == ["2024-03-03", "2024-03-10"]
        assert points[0]["revenue"] == 10.0

    def test_monthly_buckets_cross_year(self):
        rows = [(datetime(2024, 1, 15), 40.0)]
        points = bucket_revenue(rows, RevenueGrouping.MONTH, datetime(2023, 11, 20), datetime(2024, 1, 31))
        assert [p["date"] for p in points] == ["2023-11", "2023-12", "2024-01"]
        assert [p["formatted_date"] for p in points] == ["Nov", "Dec", "Jan"]

    def test_all_time_without_rows(self):
        assert bucket_revenue([], RevenueGrouping.MONTH, None, datetime(2024, 1, 1)) == []


class TestDashboard:

    async def test_invalid_period(self, client, admin_headers):
        response = await client.get(f"{API}/admin/dashboard", params={"period": "2w"}, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid period parameter. Must be one of: 7d, 30d, 90d, 1y, all"

    async def test_stats(self, client, admin_headers, user_headers, create_product, session_factory):
        cheap = await create_product("Cable", price=50.0, stock=3)
        await paid_order(client, user_headers, cheap.id, session_factory, quantity=2)
        await add_to_cart(client, user_headers, cheap.id)
        await place_order(client, user_headers)

        response = await client.get(f"{API}/admin/dashboard", params={"period": "7d"}, headers=admin_headers)
        assert response.status_code == 200
        stats = response.json()["data"]
        assert stats["total_revenue"] == 110.0
        assert stats["total_orders"] == 2
        assert stats["revenue_change"] == 100.0
        assert stats["average_order_value"] == 55.0
        assert stats["order_status_counts"]["paid"] == 1
        assert stats["order_status_counts"]["pending"] == 1
        assert stats["payment_status_counts"]["PAID"] == 1
        assert stats["total_users"] == 2
        assert stats["low_stock_products"] == 1

    async def test_revenue_chart(self, client, admin_headers, user_headers, product, session_factory):
        await paid_order(client, user_headers, product.id, session_factory)

        response = await client.get(f"{API}/admin/dashboard/revenue", params={"period": "7d"}, headers=admin_headers)
        chart = response.json()["data"]
        assert chart["group_by"] == "day"
        assert chart["points"][-1]["date"] == utcnow().date().isoformat()
        assert chart["points"][-1]["revenue"] == 110.0
        assert sum(p["orders"] for p in chart["points"]) == 1

    async def test_top_products_and_recent_orders(self, client, admin_headers, user_headers, product, session_factory):
        await paid_order(client, user_headers, product.id, session_factory, quantity=3)

        top = (await client.get(f"{API}/admin/dashboard/top-products", headers=admin_headers)).json()["data"]
        assert top[0]["product_id"] == product.id
        assert top[0]["quantity_sold"] == 3
        assert top[0]["total_revenue"] == 300.0

        recent = (await client.get(f"{API}/admin/dashboard/recent-orders", params={"limit": 50}, headers=admin_headers)).json()["data"]
        assert len(recent) == 1


class TestUserManagement:

    async def test_list_and_search(self, client, admin_headers, create_user):
        await create_user("alice@shop.io")
        data = (await client.get(f"{API}/admin/users", params={"search": "alice"}, headers=admin_headers)).json()["data"]
        assert data["meta"]["total"] == 1
        assert data["items"][0]["email"] == "alice@shop.io"

    async def test_deactivate(self, client, admin_headers, create_user):
        user = await create_user("bob@shop.io")
        response = await client.put(f"{API}/admin/users/{user.id}/status", json={"is_active": False}, headers=admin_headers)
        assert response.json()["data"]["is_active"] is False

        response = await client.post(f"{API}/auth/login", json={"email": "bob@shop.io", "password": "Password123"})
        assert response.status_code == 401

    async def test_invalid_role(self, client, admin_headers, create_user):
        user = await create_user("carol@shop.io")
        response = await client.put(f"{API}/admin/users/{user.id}/role", json={"role": "owner"}, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid role. Must be one of: user, admin"

    async def test_promote(self, client, admin_headers, create_user):
        user = await create_user("dave@shop.io")
        await client.put(f"{API}/admin/users/{user.id}/role", json={"role": "admin"}, headers=admin_headers)

        headers = {"Authorization": f"Bearer {await login(client, 'dave@shop.io')}"}
        assert (await client.get(f"{API}/admin/dashboard", headers=headers)).status_code == 200

    async def test_cannot_delete_self(self, client, admin_headers):
        me = (await client.get(f"{API}/auth/me", headers=admin_headers)).json()["data"]
        response = await client.delete(f"{API}/admin/users/{me['id']}", headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "You cannot delete your own account"

    async def test_delete_user_with_orders(self, client, admin_headers, user_headers, product):
        await add_to_cart(client, user_headers, product.id)
        order = (await place_order(client, user_headers)).json()

        response = await client.delete(f"{API}/admin/users/{order['user_id']}", headers=admin_headers)
        assert response.status_code == 400

    async def test_delete_user_recomputes_ratings(self, client, admin_headers, create_user, product):
        user = await create_user("critic@shop.io")
        headers = {"Authorization": f"Bearer {await login(client, 'critic@shop.io')}"}
        await client.post(f"{API}/reviews", json={"product_id": product.id, "rating": 2}, headers=headers)

        response = await client.delete(f"{API}/admin/users/{user.id}", headers=admin_headers)
        assert response.status_code == 200

        stored = (await client.get(f"{API}/products/{product.id}")).json()["data"]
        assert stored["review_count"] == 0
        assert stored["average_rating"] == 0


class TestBanners:

    async def test_public_listing_respects_window(self, client, admin_headers):
        now = utcnow()
        await client.post(f"{API}/admin/banners", json={"title": "Always", "image": "/uploads/banners/a.jpg"}, headers=admin_headers)
        await client.post(
            f"{API}/admin/banners",
            json={
                "title": "Later",
                "image": "/uploads/banners/b.jpg",
                "start_date": (now + timedelta(days=1)).isoformat(),
            },
            headers=admin_headers,
        )
        await client.post(
            f"{API}/admin/banners",
            json={"title": "Off", "image": "/uploads/banners/c.jpg", "active": False},
            headers=admin_headers,
        )

        public = (await client.get(f"{API}/banners")).json()["data"]
        assert [b["title"] for b in public] == ["Always"]

        everything = (await client.get(f"{API}/admin/banners", headers=admin_headers)).json()["data"]
        assert len(everything) == 3

    async def test_position_filter(self, client, admin_headers):
        await client.post(
            f"{API}/admin/banners", json={"title": "Hero", "image": "/x.jpg", "position": "hero"}, headers=admin_headers
        )
        await client.post(
            f"{API}/admin/banners", json={"title": "Side", "image": "/y.jpg", "position": "sidebar"}, headers=admin_headers
        )

        public = (await client.get(f"{API}/banners", params={"position": "hero"})).json()["data"]
        assert [b["title"] for b in public] == ["Hero"]

    async def test_invalid_window(self, client, admin_headers):
        now = utcnow()
        created = (await client.post(
            f"{API}/admin/banners", json={"title": "Sale", "image": "/x.jpg"}, headers=admin_headers
        )).json()["data"]

        response = await client.put(
            f"{API}/admin/banners/{created['id']}",
            json={"start_date": (now + timedelta(days=2)).isoformat(), "end_date": now.isoformat()},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["message"] == "startDate must be before endDate"

    async def test_upload_and_delete_removes_file(self, client, admin_headers, settings):
        response = await client.post(
            f"{API}/admin/banners/upload-image",
            files={"file": ("hero.png", b"\x89PNG fake image", "image/png")},
            headers=admin_headers,
        )
        assert response.status_code == 200
        url = response.json()["data"]["url"]
        assert url.startswith("/uploads/banners/")

        created = (await client.post(
            f"{API}/admin/banners", json={"title": "Hero", "image": url}, headers=admin_headers
        )).json()["data"]

        from pathlib import Path
        stored = Path(settings.UPLOAD_DIR) / url[len("/uploads/"):]
        assert stored.exists()

        response = await client.delete(f"{API}/admin/banners/{created['id']}", headers=admin_headers)
        assert response.json()["data"]["message"] == "Banner deleted successfully"
        assert not stored.exists()

    async def test_upload_rejects_non_images(self, client, admin_headers):
        response = await client.post(
            f"{API}/admin/banners/upload-image",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            headers=admin_headers,
        )
        assert response.status_code == 400
