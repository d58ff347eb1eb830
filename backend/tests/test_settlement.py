"""Tests for accepting bids and settling bid requests."""

import asyncio
from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from bidmarket.core.exceptions import InvalidStateError
from bidmarket.database import Base
from bidmarket.models.account import Account
from bidmarket.models.activity_log import ActivityLog
from bidmarket.models.bid import Bid
from bidmarket.models.bid_request import BidRequest
from bidmarket.services.settlement_service import SettlementService

from conftest import START_TIME, FrozenClock, bid_payload, bid_request_payload, register


async def place_bids(client: AsyncClient, request_id: str, *bids: tuple[str, str]) -> list[dict]:
    placed = []
    for api_key, total_price in bids:
        response = await client.post(
            f"/api/bid-requests/{request_id}/bids",
            headers={"X-Api-Key": api_key},
            json=bid_payload(total_price=total_price)
        )
        assert response.status_code == 201, response.text
        placed.append(response.json())
    return placed


@pytest.mark.asyncio
async def test_accept_bid_awards_request(
    client: AsyncClient,
    sample_bid_request,
    warehouse_account,
    factory_account,
    second_factory_account
):
    """Test that accepting one bid awards the request and rejects the rest."""
    _, warehouse_key = warehouse_account
    _, factory_key = factory_account
    _, second_key = second_factory_account
    request_id = sample_bid_request["id"]

    winner, loser = await place_bids(client, request_id, (factory_key, "2400.00"), (second_key, "2200.00"))

    response = await client.post(f"/api/bids/{winner['id']}/accept", headers={"X-Api-Key": warehouse_key})

    assert response.status_code == 200
    data = response.json()
    assert data["bid"]["status"] == "accepted"
    assert data["bid_request_status"] == "awarded"
    assert data["rejected_bid_ids"] == [loser["id"]]

    detail = (await client.get(f"/api/bid-requests/{request_id}", headers={"X-Api-Key": warehouse_key})).json()
    assert detail["status"] == "awarded"
    assert detail["awarded_bid_id"] == winner["id"]
    assert detail["awarded_at"].startswith(START_TIME.isoformat())

    bids = (await client.get(f"/api/bid-requests/{request_id}/bids", headers={"X-Api-Key": warehouse_key})).json()
    statuses = {b["id"]: b["status"] for b in bids}
    assert statuses == {winner["id"]: "accepted", loser["id"]: "rejected"}


@pytest.mark.asyncio
async def test_accept_notifies_winner_and_losers(
    client: AsyncClient,
    sample_bid_request,
    warehouse_account,
    factory_account,
    second_factory_account
):
    _, warehouse_key = warehouse_account
    _, factory_key = factory_account
    _, second_key = second_factory_account

    winner, _ = await place_bids(
        client, sample_bid_request["id"], (factory_key, "2400.00"), (second_key, "2500.00")
    )
    await client.post(f"/api/bids/{winner['id']}/accept", headers={"X-Api-Key": warehouse_key})

    winner_inbox = (await client.get("/api/inbox", headers={"X-Api-Key": factory_key})).json()
    loser_inbox = (await client.get("/api/inbox", headers={"X-Api-Key": second_key})).json()

    assert [m["message_type"] for m in winner_inbox["messages"]] == ["bid_accepted"]
    assert [m["message_type"] for m in loser_inbox["messages"]] == ["bid_rejected"]
    assert loser_inbox["unread_count"] == 1

    message_id = loser_inbox["messages"][0]["id"]
    read = await client.post(f"/api/inbox/{message_id}/read", headers={"X-Api-Key": second_key})
    assert read.status_code == 200
    assert (await client.get("/api/inbox", headers={"X-Api-Key": second_key})).json()["unread_count"] == 0


@pytest.mark.asyncio
async def test_second_accept_fails(
    client: AsyncClient,
    sample_bid_request,
    warehouse_account,
    factory_account,
    second_factory_account
):
    """Test that once a request is awarded no other bid can win it."""
    _, warehouse_key = warehouse_account
    _, factory_key = factory_account
    _, second_key = second_factory_account

    first, second = await place_bids(
        client, sample_bid_request["id"], (factory_key, "2400.00"), (second_key, "2300.00")
    )
    await client.post(f"/api/bids/{first['id']}/accept", headers={"X-Api-Key": warehouse_key})

    response = await client.post(f"/api/bids/{second['id']}/accept", headers={"X-Api-Key": warehouse_key})
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "BID_NOT_SUBMITTED"

    # Accepting the winner again is refused as well
    response = await client.post(f"/api/bids/{first['id']}/accept", headers={"X-Api-Key": warehouse_key})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_accept_requires_request_owner(
    client: AsyncClient,
    sample_bid_request,
    other_warehouse_account,
    factory_account
):
    _, other_key = other_warehouse_account
    _, factory_key = factory_account
    (bid,) = await place_bids(client, sample_bid_request["id"], (factory_key, "2400.00"))

    for key in (other_key, factory_key):
        response = await client.post(f"/api/bids/{bid['id']}/accept", headers={"X-Api-Key": key})
        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "NOT_REQUEST_OWNER"


@pytest.mark.asyncio
async def test_accept_withdrawn_bid_fails(
    client: AsyncClient,
    sample_bid_request,
    warehouse_account,
    factory_account
):
    _, warehouse_key = warehouse_account
    _, factory_key = factory_account
    (bid,) = await place_bids(client, sample_bid_request["id"], (factory_key, "2400.00"))
    await client.post(f"/api/bids/{bid['id']}/withdraw", headers={"X-Api-Key": factory_key})

    response = await client.post(f"/api/bids/{bid['id']}/accept", headers={"X-Api-Key": warehouse_key})

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "BID_NOT_SUBMITTED"


@pytest.mark.asyncio
async def test_accept_on_cancelled_request_fails(
    client: AsyncClient,
    sample_bid_request,
    warehouse_account,
    factory_account
):
    _, warehouse_key = warehouse_account
    _, factory_key = factory_account
    (bid,) = await place_bids(client, sample_bid_request["id"], (factory_key, "2400.00"))
    await client.post(f"/api/bid-requests/{sample_bid_request['id']}/cancel", headers={"X-Api-Key": warehouse_key})

    response = await client.post(f"/api/bids/{bid['id']}/accept", headers={"X-Api-Key": warehouse_key})

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "REQUEST_NOT_OPEN"


@pytest.mark.asyncio
async def test_accept_after_deadline_allowed(
    client: AsyncClient,
    clock,
    sample_bid_request,
    warehouse_account,
    factory_account
):
    """Test that the deadline only closes submissions, not settlement."""
    _, warehouse_key = warehouse_account
    _, factory_key = factory_account
    (bid,) = await place_bids(client, sample_bid_request["id"], (factory_key, "2400.00"))
    clock.advance(days=10)

    response = await client.post(f"/api/bids/{bid['id']}/accept", headers={"X-Api-Key": warehouse_key})

    assert response.status_code == 200
    assert response.json()["bid_request_status"] == "awarded"


@pytest.mark.asyncio
async def test_accept_expired_bid_fails(
    client: AsyncClient,
    clock,
    sample_bid_request,
    warehouse_account,
    factory_account
):
    _, warehouse_key = warehouse_account
    _, factory_key = factory_account
    (bid,) = await place_bids(client, sample_bid_request["id"], (factory_key, "2400.00"))
    clock.advance(days=31)

    response = await client.post(f"/api/bids/{bid['id']}/accept", headers={"X-Api-Key": warehouse_key})

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "BID_EXPIRED"


@pytest.mark.asyncio
async def test_accept_unknown_bid(client: AsyncClient, warehouse_account):
    _, warehouse_key = warehouse_account

    response = await client.post("/api/bids/missing/accept", headers={"X-Api-Key": warehouse_key})

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_settlement_leaves_audit_trail(
    db: AsyncSession,
    client: AsyncClient,
    sample_bid_request,
    warehouse_account,
    factory_account,
    second_factory_account
):
    _, warehouse_key = warehouse_account
    _, factory_key = factory_account
    _, second_key = second_factory_account
    winner, _ = await place_bids(
        client, sample_bid_request["id"], (factory_key, "2400.00"), (second_key, "2600.00")
    )

    await client.post(f"/api/bids/{winner['id']}/accept", headers={"X-Api-Key": warehouse_key})

    result = await db.execute(
        select(ActivityLog.event_type)
        .where(ActivityLog.bid_request_id == sample_bid_request["id"])
        .order_by(ActivityLog.id)
    )
    assert result.scalars().all() == [
        "bid_request_created",
        "bid_submitted",
        "bid_submitted",
        "bid_accepted",
        "bid_request_awarded",
        "bid_rejected",
    ]


@pytest.mark.asyncio
async def test_award_stands_when_notifications_fail(
    db,
    clock,
    monkeypatch,
    client: AsyncClient,
    sample_bid_request,
    warehouse_account,
    factory_account
):
    """Test that a failed inbox write after commit does not turn a stored award into an error."""
    warehouse_data, _ = warehouse_account
    _, factory_key = factory_account
    (bid,) = await place_bids(client, sample_bid_request["id"], (factory_key, "2400.00"))

    async def failing_message(*args, **kwargs):
        raise RuntimeError("inbox unavailable")

    monkeypatch.setattr("bidmarket.services.settlement_service.create_auto_message", failing_message)

    result = await SettlementService(clock).accept_bid(db, bid["id"], warehouse_data["account_id"])

    assert result.bid.status == "accepted"
    assert result.bid_request.status == "awarded"
    stored = await db.execute(
        select(BidRequest.status).where(BidRequest.id == sample_bid_request["id"])
    )
    assert stored.scalar_one() == "awarded"


@pytest.mark.asyncio
async def test_concurrent_accepts_have_single_winner(tmp_path):
    """Test that two accepts racing on separate sessions cannot both award the request."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'race.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    now = START_TIME
    async with session_factory() as session:
        warehouse = Account(email="w@example.com", name="W", role="warehouse", api_key_hash="w", address="x")
        factory_a = Account(email="a@example.com", name="A", role="factory", api_key_hash="a", address="x")
        factory_b = Account(email="b@example.com", name="B", role="factory", api_key_hash="b", address="x")
        session.add_all([warehouse, factory_a, factory_b])
        await session.flush()

        request = BidRequest(
            warehouse_id=warehouse.id,
            product_name="Boxes",
            category="packaging",
            quantity=10,
            description="Boxes",
            delivery_location={"address": "x"},
            budget_min=1,
            budget_max=2,
            budget_preferred=1,
            bidding_deadline=now + timedelta(days=7),
        )
        session.add(request)
        await session.flush()

        bids = [
            Bid(
                bid_request_id=request.id,
                factory_id=factory.id,
                unit_price=1,
                total_price=price,
                discount_offered=0,
                payment_terms="Net 30",
                estimated_delivery_date=now + timedelta(days=20),
                delivery_method="Truck",
                shipping_cost=0,
                production_time_days=5,
                message="m",
                value_proposition="v",
                valid_until=now + timedelta(days=30),
                submitted_at=now,
            )
            for factory, price in ((factory_a, 10), (factory_b, 12))
        ]
        session.add_all(bids)
        await session.commit()
        warehouse_id = warehouse.id
        request_id = request.id
        bid_ids = [b.id for b in bids]

    service = SettlementService(FrozenClock(now))

    async def accept(bid_id: str):
        async with session_factory() as session:
            return await service.accept_bid(session, bid_id, warehouse_id)

    results = await asyncio.gather(*(accept(bid_id) for bid_id in bid_ids), return_exceptions=True)

    winners = [r for r in results if not isinstance(r, Exception)]
    failures = [r for r in results if isinstance(r, Exception)]
    assert len(winners) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], InvalidStateError)

    async with session_factory() as session:
        stored = (await session.execute(select(BidRequest).where(BidRequest.id == request_id))).scalar_one()
        statuses = (await session.execute(
            select(Bid.status).where(Bid.bid_request_id == request_id)
        )).scalars().all()

    assert stored.status == "awarded"
    assert stored.awarded_bid_id == winners[0].bid.id
    assert sorted(statuses) == ["accepted", "rejected"]

    await engine.dispose()


@pytest.mark.asyncio
async def test_full_auction_round(
    client: AsyncClient,
    warehouse_account,
    factory_account,
    second_factory_account
):
    """Test one request through duplicate, withdrawal, award and late submission."""
    _, warehouse_key = warehouse_account
    _, f1_key = factory_account
    _, f2_key = second_factory_account
    _, f3_key = await register(client, "Late Factory", "factory")

    request = (await client.post(
        "/api/bid-requests",
        headers={"X-Api-Key": warehouse_key},
        json=bid_request_payload(quantity=100, bidding_deadline="2026-03-07T09:00:00")
    )).json()
    request_id = request["id"]

    (b1,) = await place_bids(client, request_id, (f1_key, "1000.00"))
    duplicate = await client.post(
        f"/api/bid-requests/{request_id}/bids",
        headers={"X-Api-Key": f1_key},
        json=bid_payload(unit_price="10.00", total_price="1000.00")
    )
    assert duplicate.status_code == 409

    (b2,) = await place_bids(client, request_id, (f2_key, "950.00"))

    withdrawn = await client.post(f"/api/bids/{b1['id']}/withdraw", headers={"X-Api-Key": f1_key})
    assert withdrawn.json()["status"] == "withdrawn"

    accepted = await client.post(f"/api/bids/{b2['id']}/accept", headers={"X-Api-Key": warehouse_key})
    assert accepted.status_code == 200
    assert accepted.json()["rejected_bid_ids"] == []

    bids = (await client.get(f"/api/bid-requests/{request_id}/bids", headers={"X-Api-Key": warehouse_key})).json()
    assert {b["id"]: b["status"] for b in bids} == {b1["id"]: "withdrawn", b2["id"]: "accepted"}

    again = await client.post(f"/api/bids/{b1['id']}/accept", headers={"X-Api-Key": warehouse_key})
    assert again.status_code == 400

    late = await client.post(
        f"/api/bid-requests/{request_id}/bids",
        headers={"X-Api-Key": f3_key},
        json=bid_payload()
    )
    assert late.status_code == 400
    assert late.json()["detail"]["code"] == "REQUEST_NOT_OPEN"
