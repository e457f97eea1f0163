"""
Cart management and the cart-to-order checkout.
"""

from conftest import API
from app.models import Product


ADDRESS = {
    "street": "12 MG Road",
    "city": "Bengaluru",
    "state": "KA",
    "zip_code": "560001",
    "country": "IN",
}


async def add_to_cart(client, headers, product_id, quantity=1):
    return await client.post(f"{API}/cart/items", json={"product_id": product_id, "quantity": quantity}, headers=headers)


async def place_order(client, headers, **fields):
    payload = {"shipping_address": ADDRESS}
    payload.update(fields)
    return await client.post(f"{API}/orders", json=payload, headers=headers)


class TestCart:

    async def test_empty_cart_is_created(self, client, user_headers):
        response = await client.get(f"{API}/cart", headers=user_headers)
        assert response.status_code == 200
        assert response.json()["data"]["items"] == []
        assert response.json()["data"]["total"] == 0

    async def test_add_merges_quantities(self, client, user_headers, product):
        await add_to_cart(client, user_headers, product.id, 2)
        response = await add_to_cart(client, user_headers, product.id, 3)
        assert response.status_code == 200
        cart = response.json()["data"]
        assert len(cart["items"]) == 1
        assert cart["items"][0]["quantity"] == 5
        assert cart["total"] == 500.0

    async def test_add_beyond_stock(self, client, user_headers, product):
        response = await add_to_cart(client, user_headers, product.id, 11)
        assert response.status_code == 400
        assert response.json()["message"] == "Insufficient stock"

    async def test_inactive_product(self, client, user_headers, create_product):
        hidden = await create_product("Retired", is_active=False)
        response = await add_to_cart(client, user_headers, hidden.id)
        assert response.status_code == 400
        assert response.json()["message"] == "Product is not available"

    async def test_update_and_remove(self, client, user_headers, product):
        await add_to_cart(client, user_headers, product.id)

        response = await client.put(f"{API}/cart/items/{product.id}", json={"quantity": 4}, headers=user_headers)
        assert response.json()["data"]["total"] == 400.0

        response = await client.delete(f"{API}/cart/items/{product.id}", headers=user_headers)
        assert response.json()["data"]["items"] == []

        response = await client.delete(f"{API}/cart/items/{product.id}", headers=user_headers)
        assert response.status_code == 404
        assert response.json()["message"] == "Item not found in cart"

    async def test_clear(self, client, user_headers, product):
        await add_to_cart(client, user_headers, product.id)
        response = await client.delete(f"{API}/cart/clear", headers=user_headers)
        assert response.json()["data"]["items"] == []


class TestCheckout:

    async def test_empty_cart(self, client, user_headers):
        response = await place_order(client, user_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Cart is empty"

    async def test_order_is_not_enveloped(self, client, user_headers, product):
        await add_to_cart(client, user_headers, product.id, 2)
        response = await place_order(client, user_headers, shipping_cost=50)

        assert response.status_code == 201
        order = response.json()
        assert "success" not in order
        assert order["order_number"].startswith("ORD-")
        assert order["status"] == "pending"
        assert order["payment_status"] == "PENDING"
        assert order["subtotal"] == 200.0
        assert order["tax"] == 20.0
        assert order["total"] == 270.0
        assert order["amount"] == 27000
        assert order["currency"] == "INR"
        assert order["items"][0]["name"] == "Headphones"
        assert order["items"][0]["image"] == "/uploads/products/cover.jpg"

    async def test_checkout_reserves_stock_and_empties_cart(self, client, user_headers, product, session_factory):
        await add_to_cart(client, user_headers, product.id, 3)
        await place_order(client, user_headers)

        cart = (await client.get(f"{API}/cart", headers=user_headers)).json()["data"]
        assert cart["items"] == []
        assert cart["total"] == 0

        async with session_factory() as session:
            stored = await session.get(Product, product.id)
            assert stored.stock == 7
            assert stored.sales_count == 3

    async def test_stock_changed_since_added(self, client, user_headers, product, session_factory):
        await add_to_cart(client, user_headers, product.id, 5)
        async with session_factory() as session:
            stored = await session.get(Product, product.id)
            stored.stock = 2
            await session.commit()

        response = await place_order(client, user_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Insufficient stock for Headphones"

        cart = (await client.get(f"{API}/cart", headers=user_headers)).json()["data"]
        assert len(cart["items"]) == 1


class TestOrderAccess:

    async def test_owner_and_admin_can_read(self, client, user_headers, admin_headers, create_user, product):
        from conftest import login

        await add_to_cart(client, user_headers, product.id)
        order = (await place_order(client, user_headers)).json()

        response = await client.get(f"{API}/orders/{order['id']}", headers=user_headers)
        assert response.json()["data"]["order_number"] == order["order_number"]

        response = await client.get(f"{API}/orders/order-number/{order['order_number']}", headers=user_headers)
        assert response.json()["data"]["id"] == order["id"]

        response = await client.get(f"{API}/orders/{order['id']}", headers=admin_headers)
        assert response.status_code == 200

        await create_user("stranger@shop.io")
        stranger = {"Authorization": f"Bearer {await login(client, 'stranger@shop.io')}"}
        response = await client.get(f"{API}/orders/{order['id']}", headers=stranger)
        assert response.status_code == 404
        assert response.json()["message"] == "Order not found"

    async def test_my_orders_and_admin_listing(self, client, user_headers, admin_headers, product):
        await add_to_cart(client, user_headers, product.id)
        await place_order(client, user_headers)

        mine = (await client.get(f"{API}/orders", headers=user_headers)).json()["data"]
        assert len(mine) == 1

        listing = (await client.get(f"{API}/orders/admin", params={"status": "pending"}, headers=admin_headers)).json()["data"]
        assert listing["meta"]["total"] == 1

        listing = (await client.get(f"{API}/orders/admin", params={"status": "shipped"}, headers=admin_headers)).json()["data"]
        assert listing["meta"]["total"] == 0


class TestOrderStatus:

    async def test_ship_and_deliver(self, client, user_headers, admin_headers, product):
        await add_to_cart(client, user_headers, product.id)
        order = (await place_order(client, user_headers)).json()

        response = await client.put(
            f"{API}/orders/{order['id']}/status",
            json={"status": "shipped", "tracking_number": "TRK123"},
            headers=admin_headers,
        )
        shipped = response.json()["data"]
        assert shipped["status"] == "shipped"
        assert shipped["tracking_number"] == "TRK123"
        assert shipped["shipped_at"] is not None

        response = await client.put(f"{API}/orders/{order['id']}/status", json={"status": "delivered"}, headers=admin_headers)
        delivered = response.json()["data"]
        assert delivered["delivered_at"] is not None
        assert delivered["shipped_at"] == shipped["shipped_at"]

    async def test_cancel_restores_stock(self, client, user_headers, admin_headers, product, session_factory):
        await add_to_cart(client, user_headers, product.id, 4)
        order = (await place_order(client, user_headers)).json()

        response = await client.put(
            f"{API}/orders/{order['id']}/status",
            json={"status": "cancelled", "cancellation_reason": "Customer request"},
            headers=admin_headers,
        )
        cancelled = response.json()["data"]
        assert cancelled["status"] == "cancelled"
        assert cancelled["cancellation_reason"] == "Customer request"
        assert cancelled["cancelled_at"] is not None

        async with session_factory() as session:
            stored = await session.get(Product, product.id)
            assert stored.stock == 10
            assert stored.sales_count == 0

        response = await client.put(f"{API}/orders/{order['id']}/status", json={"status": "processing"}, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Cannot change status of a cancelled order"

    async def test_customers_cannot_change_status(self, client, user_headers, product):
        await add_to_cart(client, user_headers, product.id)
        order = (await place_order(client, user_headers)).json()

        response = await client.put(f"{API}/orders/{order['id']}/status", json={"status": "shipped"}, headers=user_headers)
        assert response.status_code == 403
