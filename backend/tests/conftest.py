"""
Pytest configuration and shared test fixtures.

Tests run against a file-backed SQLite database per test (aiosqlite driver)
created from the model metadata, an in-memory cart store, and the FastAPI
application driven through httpx's ASGI transport.
"""

import os

# Settings are cached on first use; configure the test environment first.
os.environ["APP_ENVIRONMENT"] = "test"
os.environ["APP_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["APP_CART_BACKEND"] = "memory"
os.environ["APP_RATE_LIMIT_ENABLED"] = "false"
os.environ["APP_SECRET_KEY"] = "test-secret-key-for-flowershop-tests"

from datetime import date, timedelta
from decimal import Decimal
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from flowershop.api.deps import get_cart_store, get_checkout_coordinator
from flowershop.database.connection import get_db
from flowershop.database.models import (
    PENDING_STATUS_NAME,
    Address,
    Base,
    Coupon,
    DeliveryMethod,
    OrderStatus,
    Product,
    Shop,
)
from flowershop.main import app
from flowershop.services.cart.store import InMemoryCartStore
from flowershop.services.checkout.coordinator import OrderWorkflowCoordinator
from flowershop.services.checkout.orm_store import SqlAlchemyCheckoutStore
from tests.helpers import SeedData


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """
    Create a fresh SQLite database with the full schema.

    Foreign keys are enforced on every connection.
    """
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'flowershop.db'}",
        poolclass=NullPool,
    )

    @event.listens_for(test_engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def seed(session_factory: async_sessionmaker[AsyncSession]) -> SeedData:
    """
    Insert catalog, reference data and coupons.

    Coupons:
        SAVE10: bonus 200, valid for a month
        BIG500: bonus 500, valid for a month
        LASTDAY: bonus 500, expires today
        OLD: bonus 500, expired yesterday
    """
    data = SeedData()
    today = date.today()

    async with session_factory() as session:
        session.add_all(
            [
                Product(id=data.roses_id, name="Red roses", price=Decimal("150.00"), stock=10),
                Product(id=data.tulips_id, name="Tulips", price=Decimal("45.50"), stock=2),
                DeliveryMethod(id=data.delivery_method_id, name="Courier"),
                Shop(id=data.shop_id, name="Old Town"),
                OrderStatus(id=data.pending_status_id, name=PENDING_STATUS_NAME),
                Address(id=data.address_id, postal_code="11000", street="Karlova", house_number=12),
                Coupon(code="SAVE10", bonus=Decimal("200.00"), expires_on=today + timedelta(days=30)),
                Coupon(code="BIG500", bonus=Decimal("500.00"), expires_on=today + timedelta(days=30)),
                Coupon(code="LASTDAY", bonus=Decimal("500.00"), expires_on=today),
                Coupon(code="OLD", bonus=Decimal("500.00"), expires_on=today - timedelta(days=1)),
            ]
        )
        await session.commit()

    return data


# ============================================================================
# Checkout Fixtures
# ============================================================================


@pytest.fixture
def cart_store() -> InMemoryCartStore:
    return InMemoryCartStore()


@pytest.fixture
def coordinator(
    session_factory: async_sessionmaker[AsyncSession],
    cart_store: InMemoryCartStore,
) -> OrderWorkflowCoordinator:
    return OrderWorkflowCoordinator(
        session_factory,
        cart_store,
        store_factory=SqlAlchemyCheckoutStore,
    )


# ============================================================================
# API Fixtures
# ============================================================================


@pytest.fixture
async def api_client(
    session_factory: async_sessionmaker[AsyncSession],
    cart_store: InMemoryCartStore,
    coordinator: OrderWorkflowCoordinator,
) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client bound to the application with test dependencies.

    The database session, cart store and checkout coordinator are replaced
    with ones bound to the per-test database.
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    async def override_get_cart_store() -> InMemoryCartStore:
        return cart_store

    async def override_get_checkout_coordinator() -> OrderWorkflowCoordinator:
        return coordinator

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cart_store] = override_get_cart_store
    app.dependency_overrides[get_checkout_coordinator] = override_get_checkout_coordinator

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
