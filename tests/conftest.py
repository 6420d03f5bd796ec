"""
Pytest configuration and fixtures for tests.

This file is automatically loaded by pytest and provides shared fixtures
and configuration for all tests.
"""

import sys
import os
from decimal import Decimal
from unittest.mock import MagicMock
import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis, FakeRedis
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Add parent directory to Python path so tests can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Mock config module completely before any imports
config_mock = MagicMock()
config_mock.DB_URL = "sqlite+aiosqlite:///:memory:"  # In-memory test database
config_mock.TAX_RATE = Decimal("0.08")
config_mock.CURRENCY_SYMBOL = "£"
config_mock.CART_STORAGE_KEY = "cart"
config_mock.CART_STORAGE_BACKEND = "memory"
config_mock.REDIS_HOST = "localhost"
config_mock.REDIS_PORT = 6379
config_mock.REDIS_PASSWORD = None
config_mock.ORDER_NUMBER_MAX_ATTEMPTS = 3
config_mock.ORDER_SUBMISSION_ATOMIC = False
config_mock.ORDER_STATUS_REDIS_CHANNEL = "order-status-updates"
config_mock.ORDER_STATUS_RELAY_ENABLED = False
config_mock.TOKEN = "123456:ABC-DEF1234ghIkl-zyx57W2v1u123ew11"  # Test bot token
config_mock.STAFF_CHAT_ID_LIST = [123456789]  # Test staff chat
config_mock.LOG_LEVEL = "INFO"
config_mock.LOG_MASK_SECRETS = True
config_mock.LOG_RETENTION_DAYS = 5

sys.modules['config'] = config_mock


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine (in-memory SQLite, one shared connection)."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool
    )

    # Import and create all tables
    from db import Base
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Cleanup
    await engine.dispose()


@pytest_asyncio.fixture
async def test_session_maker(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )


@pytest_asyncio.fixture
async def test_session(test_session_maker):
    """Create test database session."""
    async with test_session_maker() as session:
        yield session
        await session.rollback()


# ============================================================================
# Catalog Fixtures
# ============================================================================

@pytest.fixture
def catalog_rows():
    """
    Pizza (10.00) with Small (+0) / Large (+4.00) and Extra cheese (1.50) /
    Bacon (2.00); Soda (2.50) with nothing to customize.
    """
    from models.menu_item import MenuItem
    from models.variation import Variation
    from models.addon import Addon, MenuItemAddon

    return [
        MenuItem(id="pizza", name="Margherita", description="Tomato and mozzarella", price=Decimal("10.00"),
                 category_id="mains"),
        MenuItem(id="soda", name="Soda", price=Decimal("2.50"), category_id="drinks"),
        Variation(id="small", item_id="pizza", name="Small", price_delta=Decimal("0.00")),
        Variation(id="large", item_id="pizza", name="Large", price_delta=Decimal("4.00")),
        Addon(id="cheese", name="Extra cheese", price=Decimal("1.50")),
        Addon(id="bacon", name="Bacon", price=Decimal("2.00")),
        MenuItemAddon(item_id="pizza", addon_id="cheese"),
        MenuItemAddon(item_id="pizza", addon_id="bacon"),
    ]


@pytest_asyncio.fixture
async def seeded_session(test_session, catalog_rows):
    """Test session with the catalog rows committed."""
    # Parents before children so foreign keys resolve
    test_session.add_all(catalog_rows[:2])
    await test_session.flush()
    test_session.add_all(catalog_rows[2:6])
    await test_session.flush()
    test_session.add_all(catalog_rows[6:])
    await test_session.commit()
    return test_session


@pytest.fixture
def snapshot():
    """The catalog of catalog_rows as an in-memory snapshot."""
    from models.addon import AddonDTO
    from models.menu_item import MenuItemDTO
    from models.variation import VariationDTO
    from services.catalog import CatalogSnapshot

    cheese = AddonDTO(id="cheese", name="Extra cheese", price=Decimal("1.50"))
    bacon = AddonDTO(id="bacon", name="Bacon", price=Decimal("2.00"))
    return CatalogSnapshot.build(
        items=[
            MenuItemDTO(id="pizza", name="Margherita", price=Decimal("10.00"), category_id="mains"),
            MenuItemDTO(id="soda", name="Soda", price=Decimal("2.50"), category_id="drinks"),
        ],
        variations=[
            VariationDTO(id="small", item_id="pizza", name="Small", price_delta=Decimal("0.00")),
            VariationDTO(id="large", item_id="pizza", name="Large", price_delta=Decimal("4.00")),
        ],
        addons_by_item={"pizza": [cheese, bacon]}
    )


# ============================================================================
# Cart / Session Fixtures
# ============================================================================

@pytest.fixture
def cart_storage():
    from services.cart_storage import InMemoryCartStorage
    return InMemoryCartStorage()


@pytest.fixture
def toast_sink():
    from services.notification import CollectingToastSink
    return CollectingToastSink()


@pytest.fixture
def notification_service(toast_sink):
    from services.notification import NotificationService
    return NotificationService([toast_sink])


@pytest.fixture
def cart(cart_storage, notification_service):
    from services.cart import CartStore
    return CartStore(cart_storage, notification_service=notification_service)


@pytest.fixture
def customer_session():
    from models.session import SessionContext, ProfileDTO
    return SessionContext(
        user_id="user-1",
        profile=ProfileDTO(address="1 Main St", phone="555-0100")
    )


@pytest.fixture
def staff_session():
    from enums.session_role import SessionRole
    from models.session import SessionContext
    return SessionContext(user_id="staff-1", role=SessionRole.STAFF)


# ============================================================================
# Redis Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def redis_client():
    """Create fake Redis client for testing (no real Redis server needed)."""
    client = FakeAsyncRedis(decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def sync_redis_client():
    client = FakeRedis(decode_responses=True)
    yield client
    client.close()
