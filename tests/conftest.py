"""
Shared fixtures

Each test gets its own file-backed SQLite database so that separate sessions
(and the concurrency tests) see real transactional behaviour.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./storefront-test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from decimal import Decimal
import uuid

import pytest
from httpx import ASGITransport, AsyncClient

from storefront.core.database import build_engine, build_session_factory, get_db
from storefront.core.security import SecurityUtils
from storefront.main import app
from storefront.models import Base, Product, User


@pytest.fixture
async def engine(tmp_path):
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


async def _create_user(session_factory, email: str) -> User:
    async with session_factory() as session:
        user = User(email=email, full_name=email.split("@")[0].title())
        session.add(user)
        await session.commit()
        return user


@pytest.fixture
async def user(session_factory) -> User:
    return await _create_user(session_factory, "shopper@example.com")


@pytest.fixture
async def other_user(session_factory) -> User:
    return await _create_user(session_factory, "someone-else@example.com")


@pytest.fixture
def make_product(session_factory):
    async def _make_product(**overrides) -> Product:
        data = {
            "name": "Linen Shirt",
            "slug": f"linen-shirt-{uuid.uuid4().hex[:8]}",
            "description": "Breathable summer shirt",
            "price": Decimal("20.00"),
            "discount_price": Decimal("15.00"),
            "quantity": 5,
            "active": True,
            "colors": ["red", "blue"],
            "sizes": ["M", "L"],
        }
        data.update(overrides)
        product = Product(**data)
        product.refresh_status()
        async with session_factory() as session:
            session.add(product)
            await session.commit()
        return product

    return _make_product


@pytest.fixture
def auth_headers(user):
    token = SecurityUtils.create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_auth_headers(other_user):
    token = SecurityUtils.create_access_token({"sub": str(other_user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as test_client:
        yield test_client
    app.dependency_overrides.clear()
