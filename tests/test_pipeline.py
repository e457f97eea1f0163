"""
Request pipeline: envelopes, guard ordering, validation and headers.
"""

from conftest import API


class TestEnvelope:

    async def test_success_is_wrapped(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Success", "data": {"status": "healthy"}}

    async def test_not_found_uses_error_envelope(self, client):
        response = await client.get(f"{API}/products/9999")
        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Product not found"
        assert body["statusCode"] == 404
        assert body["path"] == f"{API}/products/9999"
        assert body["error"] == "Not Found"
        assert "timestamp" in body

    async def test_unknown_route_is_enveloped(self, client):
        response = await client.get(f"{API}/does-not-exist")
        assert response.status_code == 404
        assert response.json()["success"] is False


class TestValidation:

    async def test_undeclared_field_is_rejected(self, client):
        response = await client.post(f"{API}/auth/register", json={
            "email": "new@shop.io",
            "password": "Password123",
            "first_name": "New",
            "last_name": "User",
            "is_admin": True,
        })
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Bad Request"
        assert "is_admin" in body["message"]

    async def test_field_errors_are_joined(self, client):
        response = await client.post(f"{API}/auth/register", json={"email": "not-an-email", "password": "short"})
        assert response.status_code == 400
        assert "; " in response.json()["message"]


class TestGuards:

    async def test_admin_route_without_token(self, client):
        response = await client.get(f"{API}/admin/dashboard")
        assert response.status_code == 401
        assert response.json()["message"] == "Authentication required!"

    async def test_admin_route_with_user_token(self, client, user_headers):
        response = await client.get(f"{API}/admin/dashboard", headers=user_headers)
        assert response.status_code == 403

    async def test_invalid_token(self, client):
        response = await client.get(f"{API}/auth/me", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired token provided!"

    async def test_authentication_runs_before_validation(self, client):
        response = await client.post(f"{API}/categories", json={"unexpected": 1})
        assert response.status_code == 401

    async def test_role_check_runs_before_validation(self, client, user_headers):
        response = await client.post(f"{API}/categories", json={"unexpected": 1}, headers=user_headers)
        assert response.status_code == 403

    async def test_deactivated_user_is_rejected(self, client, create_user, session_factory):
        from conftest import login
        from app.models import User

        user = await create_user("gone@shop.io")
        token = await login(client, "gone@shop.io")
        async with session_factory() as session:
            stored = await session.get(User, user.id)
            stored.is_active = False
            await session.commit()

        response = await client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["message"] == "Account is deactivated"


class TestHeaders:

    async def test_security_headers(self, client):
        response = await client.get("/health")
        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["x-frame-options"] == "SAMEORIGIN"
        assert response.headers["cross-origin-resource-policy"] == "cross-origin"
        assert "strict-transport-security" not in response.headers

    async def test_cors_allows_vercel_previews(self, client):
        response = await client.get("/health", headers={"Origin": "https://shop-preview.vercel.app"})
        assert response.headers["access-control-allow-origin"] == "https://shop-preview.vercel.app"
