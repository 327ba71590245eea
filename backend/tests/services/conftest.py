"""Service test fixtures — async DB + FastAPI test client.

Invariants:
    - Every test gets a fresh SQLite database file (tmp_path)
    - get_db dependency overridden to use the test database
    - db_manager patched so the readiness probe sees the test engine
    - Seed helpers use their own short-lived sessions (no shared identity map)

Design Decisions:
    - File-backed SQLite over :memory:: concurrent requests get separate
      connections, which the order race tests rely on
"""

from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

import storefront.models  # noqa: F401
from storefront.core.domain_types import Role
from storefront.db.base import Base
from storefront.infrastructure.database import get_db, DatabaseSessionManager
from storefront.infrastructure.security import create_access_token, hash_password
from storefront.models.product import Product
from storefront.models.user import User
from storefront.services.account_service import identity_of
import storefront.infrastructure.database as db_module
from storefront.main import app


@pytest.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
def make_user(test_session_factory):
    """Insert a user with a real bcrypt hash. Returns the detached User."""
    async def _make(
        email: str = "alice@example.com",
        password: str = "secret123",
        name: str = "Alice",
        role: Role = Role.USER,
    ) -> User:
        async with test_session_factory() as db:
            user = User(
                name=name, email=email,
                password_hash=await hash_password(password),
                role=role.value,
            )
            db.add(user)
            await db.commit()
            await db.refresh(user)
            return user
    return _make


@pytest.fixture
def make_product(test_session_factory):
    async def _make(
        name: str = "Widget", price: str = "10.00", stock: int = 5,
        image: str | None = None,
    ) -> Product:
        async with test_session_factory() as db:
            product = Product(
                name=name, price=Decimal(price), stock=stock, image=image,
            )
            db.add(product)
            await db.commit()
            await db.refresh(product)
            return product
    return _make


@pytest.fixture
def fetch_product(test_session_factory):
    """Read a product's current row in a fresh session (None if deleted)."""
    async def _fetch(product_id: int) -> Product | None:
        async with test_session_factory() as db:
            result = await db.execute(select(Product).where(Product.id == product_id))
            return result.scalar_one_or_none()
    return _fetch


@pytest.fixture
def auth_headers():
    """Bearer header for a seeded user."""
    def _headers(user: User) -> dict:
        token = create_access_token(identity_of(user))
        return {"Authorization": f"Bearer {token}"}
    return _headers
