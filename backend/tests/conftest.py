"""Pytest configuration and fixtures for testing."""

from datetime import datetime, timedelta
import pytest
from typing import AsyncGenerator
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from bidmarket.main import app
from bidmarket.database import Base, get_db
from bidmarket.api.deps import get_clock


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

START_TIME = datetime(2026, 3, 2, 9, 0, 0)


class FrozenClock:
    """Manually advanced clock so deadline and validity checks are deterministic."""

    def __init__(self, now: datetime = START_TIME):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture(scope="function")
async def db() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh in-memory database for each test.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
async def client(db: AsyncSession, clock: FrozenClock) -> AsyncGenerator[AsyncClient, None]:
    """
    Create test client with database and clock dependency overrides.
    """
    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def register(client: AsyncClient, name: str, role: str, **extra) -> tuple[dict, str]:
    payload = {
        "email": f"{name.lower().replace(' ', '.')}@example.com",
        "name": name,
        "role": role,
        "location": {
            "address": "1 Dock Road",
            "city": "Rotterdam",
            "state": "ZH",
            "latitude": 51.92,
            "longitude": 4.48,
        },
    }
    payload.update(extra)
    response = await client.post("/api/accounts", json=payload)
    assert response.status_code == 201, response.text
    data = response.json()
    return data, data["api_key"]


def bid_request_payload(**overrides) -> dict:
    payload = {
        "product_name": "Corrugated shipping boxes",
        "category": "packaging",
        "quantity": 1000,
        "specifications": {
            "description": "Double-wall boxes, 40x30x30cm",
            "quality_standards": "ISO 9001",
            "delivery_location": {
                "address": "1 Dock Road",
                "city": "Rotterdam",
                "state": "ZH",
                "latitude": 51.92,
                "longitude": 4.48,
            },
        },
        "budget": {
            "min_price": "2000.00",
            "max_price": "3000.00",
            "preferred_price": "2500.00",
        },
        "timeline": {"urgency": "high"},
        "bid_requirements": {"requires_certifications": ["ISO 9001"]},
    }
    payload.update(overrides)
    return payload


def bid_payload(total_price: str = "2400.00", unit_price: str = "2.40", **overrides) -> dict:
    payload = {
        "pricing": {
            "unit_price": unit_price,
            "total_price": total_price,
            "payment_terms": "Net 30",
        },
        "delivery": {
            "estimated_delivery_date": (START_TIME + timedelta(days=21)).isoformat(),
            "delivery_method": "Truck",
            "shipping_cost": "150.00",
            "production_time_days": 14,
        },
        "proposal": {
            "message": "We can deliver on time.",
            "value_proposition": "Local production, short lead time.",
        },
        "competitive_advantages": ["FSC certified board"],
        "quality_assurance": {
            "certifications": ["ISO 9001"],
            "quality_guarantee": "Replacement of defective units",
            "sample_available": True,
        },
    }
    payload.update(overrides)
    return payload


@pytest.fixture
async def warehouse_account(client: AsyncClient) -> tuple[dict, str]:
    """
    Create a warehouse account for testing.

    Returns:
        Tuple of (account_data, api_key)
    """
    return await register(client, "Harbor Warehouse", "warehouse")


@pytest.fixture
async def other_warehouse_account(client: AsyncClient) -> tuple[dict, str]:
    return await register(client, "Inland Warehouse", "warehouse")


@pytest.fixture
async def factory_account(client: AsyncClient) -> tuple[dict, str]:
    """
    Create a factory account for testing.

    Returns:
        Tuple of (account_data, api_key)
    """
    return await register(client, "Boxworks Factory", "factory", certifications=["ISO 9001"])


@pytest.fixture
async def second_factory_account(client: AsyncClient) -> tuple[dict, str]:
    return await register(client, "Cardboard Co", "factory")


@pytest.fixture
async def sample_bid_request(client: AsyncClient, warehouse_account: tuple[dict, str]) -> dict:
    """
    Create an open bid request with the default 7 day bidding window.

    Returns:
        Bid request data
    """
    _, warehouse_key = warehouse_account

    response = await client.post(
        "/api/bid-requests",
        headers={"X-Api-Key": warehouse_key},
        json=bid_request_payload()
    )
    assert response.status_code == 201, response.text
    return response.json()
