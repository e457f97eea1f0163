"""
Account self-service: address book, wishlist and avatar.
"""

from pathlib import Path

from conftest import API
from test_cart_orders import add_to_cart, place_order


HOME = {
    "label": "Home",
    "street": "12 MG Road",
    "city": "Bengaluru",
    "state": "Karnataka",
    "zip_code": "560001",
    "country": "India",
}

OFFICE = {
    "label": "Work",
    "street": "4th Floor, Tech Park",
    "city": "Pune",
    "state": "Maharashtra",
    "zip_code": "411001",
    "country": "India",
}


async def add_address(client, headers, **fields):
    payload = {**HOME, **fields}
    response = await client.post(f"{API}/users/addresses", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestAddresses:

    async def test_add_and_list(self, client, user_headers):
        addresses = await add_address(client, user_headers)
        assert len(addresses) == 1
        assert addresses[0]["city"] == "Bengaluru"
        assert addresses[0]["is_default"] is False

        addresses = await add_address(client, user_headers, **OFFICE)
        assert [a["label"] for a in addresses] == ["Home", "Work"]

        listed = (await client.get(f"{API}/users/addresses", headers=user_headers)).json()["data"]
        assert listed == addresses

    async def test_single_default(self, client, user_headers):
        await add_address(client, user_headers, is_default=True)
        addresses = await add_address(client, user_headers, **OFFICE, is_default=True)
        assert [a["is_default"] for a in addresses] == [False, True]

        home_id = addresses[0]["id"]
        response = await client.put(f"{API}/users/addresses/{home_id}", json={"is_default": True}, headers=user_headers)
        assert response.status_code == 200

        listed = (await client.get(f"{API}/users/addresses", headers=user_headers)).json()["data"]
        assert [a["is_default"] for a in listed] == [True, False]

    async def test_update_and_delete(self, client, user_headers):
        address_id = (await add_address(client, user_headers))[0]["id"]

        response = await client.put(
            f"{API}/users/addresses/{address_id}", json={"city": "Mysuru", "label": None}, headers=user_headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["city"] == "Mysuru"
        assert response.json()["data"]["label"] is None

        response = await client.delete(f"{API}/users/addresses/{address_id}", headers=user_headers)
        assert response.json()["data"]["message"] == "Address deleted successfully"
        assert (await client.get(f"{API}/users/addresses", headers=user_headers)).json()["data"] == []

    async def test_validation(self, client, user_headers):
        response = await client.post(f"{API}/users/addresses", json={**HOME, "zip_code": "12"}, headers=user_headers)
        assert response.status_code == 400

    async def test_other_users_address(self, client, user_headers, admin_headers):
        address_id = (await add_address(client, user_headers))[0]["id"]

        response = await client.put(f"{API}/users/addresses/{address_id}", json={"city": "Delhi"}, headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["message"] == "Address not found"

        response = await client.delete(f"{API}/users/addresses/{address_id}", headers=admin_headers)
        assert response.status_code == 404

    async def test_requires_login(self, client):
        assert (await client.get(f"{API}/users/addresses")).status_code == 401


class TestCheckoutWithSavedAddress:

    async def test_order_ships_to_saved_address(self, client, user_headers, product):
        address_id = (await add_address(client, user_headers))[0]["id"]
        await add_to_cart(client, user_headers, product.id)

        response = await client.post(f"{API}/orders", json={"address_id": address_id}, headers=user_headers)
        assert response.status_code == 201, response.text
        assert response.json()["shipping_address"] == {
            "street": "12 MG Road",
            "city": "Bengaluru",
            "state": "Karnataka",
            "zip_code": "560001",
            "country": "India",
        }

    async def test_exactly_one_destination(self, client, user_headers, product):
        address_id = (await add_address(client, user_headers))[0]["id"]
        await add_to_cart(client, user_headers, product.id)

        response = await place_order(client, user_headers, address_id=address_id)
        assert response.status_code == 400
        assert "Provide either shipping_address or address_id" in response.json()["message"]

        response = await client.post(f"{API}/orders", json={}, headers=user_headers)
        assert response.status_code == 400

    async def test_unknown_address(self, client, user_headers, product):
        await add_to_cart(client, user_headers, product.id)
        response = await client.post(f"{API}/orders", json={"address_id": 999}, headers=user_headers)
        assert response.status_code == 404
        assert response.json()["message"] == "Address not found"


class TestWishlist:

    async def test_add_is_idempotent(self, client, user_headers, product):
        response = await client.post(f"{API}/users/wishlist/{product.id}", headers=user_headers)
        assert response.status_code == 201
        assert response.json()["data"]["id"] == product.id

        response = await client.post(f"{API}/users/wishlist/{product.id}", headers=user_headers)
        assert response.status_code == 201

        wishlist = (await client.get(f"{API}/users/wishlist", headers=user_headers)).json()["data"]
        assert [p["id"] for p in wishlist] == [product.id]

    async def test_unknown_product(self, client, user_headers):
        response = await client.post(f"{API}/users/wishlist/999", headers=user_headers)
        assert response.status_code == 404
        assert response.json()["message"] == "Product not found"

    async def test_remove_is_idempotent(self, client, user_headers, product):
        await client.post(f"{API}/users/wishlist/{product.id}", headers=user_headers)

        for _ in range(2):
            response = await client.delete(f"{API}/users/wishlist/{product.id}", headers=user_headers)
            assert response.status_code == 200
            assert response.json()["data"]["message"] == "Product removed from wishlist successfully"

        assert (await client.get(f"{API}/users/wishlist", headers=user_headers)).json()["data"] == []

    async def test_wishlists_are_per_user(self, client, user_headers, admin_headers, product):
        await client.post(f"{API}/users/wishlist/{product.id}", headers=user_headers)
        assert (await client.get(f"{API}/users/wishlist", headers=admin_headers)).json()["data"] == []

    async def test_deleted_product_leaves_wishlist(self, client, user_headers, admin_headers, product):
        await client.post(f"{API}/users/wishlist/{product.id}", headers=user_headers)

        response = await client.delete(f"{API}/products/{product.id}", headers=admin_headers)
        assert response.status_code == 200
        assert (await client.get(f"{API}/users/wishlist", headers=user_headers)).json()["data"] == []


class TestAvatar:

    async def test_upload_replaces_previous(self, client, user_headers, settings):
        response = await client.post(
            f"{API}/users/profile/avatar",
            files={"avatar": ("me.png", b"\x89PNG first", "image/png")},
            headers=user_headers,
        )
        assert response.status_code == 200
        first_url = response.json()["data"]["avatar"]
        assert first_url.startswith("/uploads/avatars/")
        first = Path(settings.UPLOAD_DIR) / first_url[len("/uploads/"):]
        assert first.exists()

        response = await client.post(
            f"{API}/users/profile/avatar",
            files={"avatar": ("me.jpg", b"\xff\xd8 second", "image/jpeg")},
            headers=user_headers,
        )
        second_url = response.json()["data"]["avatar"]
        assert second_url != first_url
        assert not first.exists()

        profile = (await client.get(f"{API}/users/profile", headers=user_headers)).json()["data"]
        assert profile["avatar"] == second_url

    async def test_rejects_non_images(self, client, user_headers):
        response = await client.post(
            f"{API}/users/profile/avatar",
            files={"avatar": ("notes.txt", b"hello", "text/plain")},
            headers=user_headers,
        )
        assert response.status_code == 400
        assert response.json()["message"].startswith("Invalid file type")

    async def test_file_is_required(self, client, user_headers):
        response = await client.post(f"{API}/users/profile/avatar", headers=user_headers)
        assert response.status_code == 400
