"""
Product reviews and the rating aggregate they maintain.
"""

from conftest import API, login
from app.enums import OrderStatus
from app.models import Order, Product
from test_cart_orders import add_to_cart, place_order


async def review(client, headers, product_id, rating=5, comment="Great sound"):
    return await client.post(
        f"{API}/reviews", json={"product_id": product_id, "rating": rating, "comment": comment}, headers=headers
    )


async def mark_order(session_factory, order_id, status):
    async with session_factory() as session:
        order = await session.get(Order, order_id)
        order.status = status
        await session.commit()


class TestCreateReview:

    async def test_create(self, client, user_headers, product):
        response = await review(client, user_headers, product.id, comment="<b>Great</b> sound")
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["rating"] == 5
        assert data["comment"] == "Great sound"
        assert data["status"] == "approved"
        assert data["is_verified_purchase"] is False
        assert data["user"]["first_name"] == "Test"

    async def test_only_once_per_product(self, client, user_headers, product):
        await review(client, user_headers, product.id)
        response = await review(client, user_headers, product.id, rating=1)
        assert response.status_code == 409
        assert response.json()["message"] == "You have already reviewed this product"

    async def test_rating_bounds(self, client, user_headers, product):
        assert (await review(client, user_headers, product.id, rating=0)).status_code == 400
        assert (await review(client, user_headers, product.id, rating=6)).status_code == 400

    async def test_comment_length(self, client, user_headers, product):
        response = await review(client, user_headers, product.id, comment="x" * 1001)
        assert response.status_code == 400
        assert "Comment must be at most 1000 characters" in response.json()["message"]

    async def test_unknown_product(self, client, user_headers):
        response = await review(client, user_headers, 999)
        assert response.status_code == 404

    async def test_verified_purchase(self, client, user_headers, product, session_factory):
        await add_to_cart(client, user_headers, product.id)
        order = (await place_order(client, user_headers)).json()
        await mark_order(session_factory, order["id"], OrderStatus.DELIVERED)

        response = await review(client, user_headers, product.id)
        assert response.json()["data"]["is_verified_purchase"] is True

    async def test_pending_order_is_not_verified(self, client, user_headers, product):
        await add_to_cart(client, user_headers, product.id)
        await place_order(client, user_headers)

        response = await review(client, user_headers, product.id)
        assert response.json()["data"]["is_verified_purchase"] is False


class TestRatingAggregate:

    async def test_average_and_count(self, client, create_user, product, session_factory, admin_headers):
        for index, rating in enumerate([5, 4, 4]):
            email = f"reviewer{index}@shop.io"
            await create_user(email)
            headers = {"Authorization": f"Bearer {await login(client, email)}"}
            await review(client, headers, product.id, rating=rating)

        async with session_factory() as session:
            stored = await session.get(Product, product.id)
            assert stored.average_rating == 4.3
            assert stored.review_count == 3

        reviews = (await client.get(f"{API}/reviews", params={"product_id": product.id})).json()["data"]
        response = await client.put(f"{API}/reviews/{reviews[0]['id']}/reject", headers=admin_headers)
        assert response.json()["data"]["status"] == "rejected"

        async with session_factory() as session:
            stored = await session.get(Product, product.id)
            assert stored.review_count == 2

        listed = (await client.get(f"{API}/reviews", params={"product_id": product.id})).json()["data"]
        assert len(listed) == 2


class TestDeleteReview:

    async def test_owner_can_delete(self, client, user_headers, product, session_factory):
        created = (await review(client, user_headers, product.id)).json()["data"]

        response = await client.delete(f"{API}/reviews/{created['id']}", headers=user_headers)
        assert response.status_code == 200
        assert response.json()["data"]["message"] == "Review deleted successfully"

        async with session_factory() as session:
            stored = await session.get(Product, product.id)
            assert stored.review_count == 0
            assert stored.average_rating == 0

    async def test_other_users_cannot_delete(self, client, user_headers, create_user, product):
        created = (await review(client, user_headers, product.id)).json()["data"]

        await create_user("nosy@shop.io")
        headers = {"Authorization": f"Bearer {await login(client, 'nosy@shop.io')}"}
        response = await client.delete(f"{API}/reviews/{created['id']}", headers=headers)
        assert response.status_code == 403
        assert response.json()["message"] == "You can only delete your own reviews"

    async def test_admin_can_delete(self, client, user_headers, admin_headers, product):
        created = (await review(client, user_headers, product.id)).json()["data"]
        response = await client.delete(f"{API}/admin/reviews/{created['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert (await client.get(f"{API}/reviews/{created['id']}")).status_code == 404
