"""
Coupon administration, validation and use at checkout.
"""

from datetime import timedelta

import pytest

from conftest import API
from app.exceptions import BadRequestException
from app.models.base import utcnow
from app.services.coupon_service import CouponService
from test_cart_orders import add_to_cart, place_order


def coupon_payload(**fields):
    payload = {
        "code": "save10",
        "type": "percentage",
        "value": 10,
        "expires_at": (utcnow() + timedelta(days=7)).isoformat(),
    }
    payload.update(fields)
    return payload


async def create_coupon(client, headers, **fields):
    response = await client.post(f"{API}/coupons", json=coupon_payload(**fields), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestCouponAdmin:

    async def test_code_is_uppercased(self, client, admin_headers):
        coupon = await create_coupon(client, admin_headers)
        assert coupon["code"] == "SAVE10"
        assert coupon["usage_count"] == 0

        response = await client.get(f"{API}/coupons/code/save10")
        assert response.json()["data"]["id"] == coupon["id"]

    async def test_duplicate_code(self, client, admin_headers):
        await create_coupon(client, admin_headers)
        response = await client.post(f"{API}/coupons", json=coupon_payload(code="SAVE10"), headers=admin_headers)
        assert response.status_code == 409

    async def test_percentage_over_hundred(self, client, admin_headers):
        response = await client.post(f"{API}/coupons", json=coupon_payload(value=150), headers=admin_headers)
        assert response.status_code == 400

    async def test_update_checks_percentage_against_stored_value(self, client, admin_headers):
        coupon = await create_coupon(client, admin_headers, code="FLAT150", type="fixed", value=150)
        url = f"{API}/coupons/{coupon['id']}"

        response = await client.put(url, json={"type": "percentage"}, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Percentage coupons cannot exceed 100"

        response = await client.put(url, json={"type": "percentage", "value": None}, headers=admin_headers)
        assert response.status_code == 400

        response = await client.put(url, json={"value": 0}, headers=admin_headers)
        assert response.status_code == 400

        response = await client.put(url, json={"type": "percentage", "value": 50}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["data"]["value"] == 50

    async def test_expired_coupon_is_hidden(self, client, admin_headers):
        await create_coupon(client, admin_headers, code="OLD", expires_at=(utcnow() - timedelta(days=1)).isoformat())

        response = await client.get(f"{API}/coupons/code/OLD")
        assert response.status_code == 404
        assert response.json()["message"] == "Invalid or expired coupon"

        assert (await client.get(f"{API}/coupons")).json()["data"] == []


class TestValidateCoupon:

    async def test_percentage_capped_by_max_discount(self, client, admin_headers, user_headers):
        await create_coupon(client, admin_headers, value=50, max_discount=30)
        response = await client.post(
            f"{API}/coupons/validate", json={"code": "SAVE10", "subtotal": 200}, headers=user_headers
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["discount"] == 30
        assert data["final_amount"] == 170

    async def test_fixed_never_exceeds_subtotal(self, client, admin_headers, user_headers):
        await create_coupon(client, admin_headers, code="FLAT500", type="fixed", value=500)
        response = await client.post(
            f"{API}/coupons/validate", json={"code": "FLAT500", "subtotal": 120}, headers=user_headers
        )
        assert response.json()["data"]["discount"] == 120

    async def test_minimum_purchase(self, client, admin_headers, user_headers):
        await create_coupon(client, admin_headers, min_purchase=500)
        response = await client.post(
            f"{API}/coupons/validate", json={"code": "SAVE10", "subtotal": 100}, headers=user_headers
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Minimum purchase amount of 500 required"

    async def test_category_restriction(self, client, admin_headers, user_headers, category):
        await create_coupon(client, admin_headers, applicable_categories=[category.id])
        response = await client.post(
            f"{API}/coupons/validate",
            json={"code": "SAVE10", "subtotal": 100, "category_ids": [category.id + 1]},
            headers=user_headers,
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Coupon is not applicable to the items in your cart"

    async def test_requires_login(self, client):
        response = await client.post(f"{API}/coupons/validate", json={"code": "SAVE10", "subtotal": 100})
        assert response.status_code == 401


class TestCouponAtCheckout:

    async def test_discount_and_usage_count(self, client, admin_headers, user_headers, product):
        coupon = await create_coupon(client, admin_headers, usage_limit=1)

        await add_to_cart(client, user_headers, product.id, 2)
        order = (await place_order(client, user_headers, coupon_code="save10")).json()
        assert order["discount"] == 20.0
        assert order["total"] == 200.0
        assert order["coupon_id"] == coupon["id"]

        stored = (await client.get(f"{API}/coupons/{coupon['id']}")).json()["data"]
        assert stored["usage_count"] == 1

        await add_to_cart(client, user_headers, product.id, 1)
        response = await place_order(client, user_headers, coupon_code="SAVE10")
        assert response.status_code == 400
        assert response.json()["message"] == "Coupon usage limit reached"

    async def test_used_coupon_cannot_be_deleted(self, client, admin_headers, user_headers, product):
        coupon = await create_coupon(client, admin_headers)
        await add_to_cart(client, user_headers, product.id)
        await place_order(client, user_headers, coupon_code="SAVE10")

        response = await client.delete(f"{API}/coupons/{coupon['id']}", headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Coupon has been used in orders; deactivate it instead"

    async def test_usage_increment_is_guarded(self, client, admin_headers, session_factory):
        coupon = await create_coupon(client, admin_headers, usage_limit=1)

        async with session_factory() as session:
            service = CouponService(session)
            await service.increment_usage(coupon["id"])
            await session.commit()

            # a second checkout that validated before the first one committed
            with pytest.raises(BadRequestException, match="Coupon usage limit reached"):
                await service.increment_usage(coupon["id"])

        stored = (await client.get(f"{API}/coupons/{coupon['id']}")).json()["data"]
        assert stored["usage_count"] == 1

    async def test_unlimited_coupon_keeps_counting(self, client, admin_headers, session_factory):
        coupon = await create_coupon(client, admin_headers)

        async with session_factory() as session:
            service = CouponService(session)
            for _ in range(3):
                await service.increment_usage(coupon["id"])
            await session.commit()

        stored = (await client.get(f"{API}/coupons/{coupon['id']}")).json()["data"]
        assert stored["usage_count"] == 3
