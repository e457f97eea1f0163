"""
Shared fixtures: a fresh app and in-memory database per test.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from app import create_app
from app.core.config import Settings
from app.db.database import init_db
from app.enums import UserRole
from app.models import Category, Product, User
from app.utils.auth import hash_password


API = "/api/v1"
PASSWORD = "Password123"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        LOG_LEVEL="WARNING",
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        AUTO_CREATE_TABLES=False,
        JWT_ACCESS_SECRET="test-access-secret-0123456789abcdef",
        JWT_REFRESH_SECRET="test-refresh-secret-0123456789abcdef",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        RAZORPAY_KEY_ID="rzp_test_key",
        RAZORPAY_KEY_SECRET="rzp_test_secret",
        RAZORPAY_WEBHOOK_SECRET="rzp_webhook_secret",
        MAIL_ENABLED=False,
    )


@pytest.fixture
async def app(settings):
    application = create_app(settings)
    await init_db(application.state.engine)
    yield application
    application.dependency_overrides.clear()
    await application.state.engine.dispose()


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture
def session_factory(app):
    return app.state.session_factory


@pytest.fixture
def create_user(session_factory):
    """Insert a user directly, bypassing registration."""

    async def _create_user(email, role=UserRole.USER, password=PASSWORD, is_active=True):
        async with session_factory() as session:
            user = User(
                email=email,
                hashed_password=hash_password(password),
                first_name="Test",
                last_name="User",
                role=role,
                is_active=is_active,
                refresh_tokens=[],
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return _create_user


async def login(client, email, password=PASSWORD):
    response = await client.post(f"{API}/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["data"]["access_token"]


@pytest.fixture
async def user_headers(client, create_user):
    await create_user("customer@shop.io")
    return {"Authorization": f"Bearer {await login(client, 'customer@shop.io')}"}


@pytest.fixture
async def admin_headers(client, create_user):
    await create_user("admin@shop.io", role=UserRole.ADMIN)
    return {"Authorization": f"Bearer {await login(client, 'admin@shop.io')}"}


@pytest.fixture
async def category(session_factory):
    async with session_factory() as session:
        item = Category(name="Electronics", slug="electronics", is_active=True, order=0)
        session.add(item)
        await session.commit()
        await session.refresh(item)
        return item


@pytest.fixture
def create_product(session_factory, category):
    async def _create_product(name="Headphones", slug=None, price=100.0, stock=10, **fields):
        async with session_factory() as session:
            product = Product(
                name=name,
                slug=slug or name.lower().replace(" ", "-"),
                description="A product",
                category_id=fields.pop("category_id", category.id),
                price=price,
                stock=stock,
                images=fields.pop("images", ["/uploads/products/cover.jpg"]),
                tags=fields.pop("tags", []),
                **fields,
            )
            session.add(product)
            await session.commit()
            await session.refresh(product)
            return product

    return _create_product


@pytest.fixture
async def product(create_product):
    return await create_product()
