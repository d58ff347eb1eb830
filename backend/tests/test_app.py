"""Tests for liveness endpoints and the event bus."""

import asyncio

import pytest
from httpx import AsyncClient

from bidmarket.core.events import EventBus


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_root(client: AsyncClient):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json()["message"] == "BidMarket API"


@pytest.mark.asyncio
async def test_event_bus_fans_out_and_unsubscribes():
    """Test that subscribers receive published events and are dropped on close."""
    bus = EventBus()
    stream = bus.subscribe()

    pending = asyncio.ensure_future(stream.__anext__())
    await asyncio.sleep(0)
    await bus.publish("bid_submitted", {"bid_id": "b1"})

    event = await asyncio.wait_for(pending, timeout=1)
    assert event["type"] == "bid_submitted"
    assert event["data"] == {"bid_id": "b1"}
    assert "timestamp" in event

    await stream.aclose()
    assert bus._subscribers == []
