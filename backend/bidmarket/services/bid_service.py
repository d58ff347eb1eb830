"""Bid submission, withdrawal and listings."""

from datetime import timedelta
import logging
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bidmarket.config import settings
from bidmarket.core.clock import Clock, system_clock
from bidmarket.core.events import event_bus
from bidmarket.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
)
from bidmarket.models.bid import Bid, BidStatus
from bidmarket.models.bid_request import BidRequest, BidRequestStatus
from bidmarket.schemas.bid import BidCreate
from bidmarket.services.account_service import get_user
from bidmarket.services.activity_service import record_activity
from bidmarket.services.bid_request_service import get_bid_request_or_404
from bidmarket.services.message_service import create_auto_message

logger = logging.getLogger(__name__)


async def get_bid_or_404(db: AsyncSession, bid_id: str) -> Bid:
    result = await db.execute(select(Bid).where(Bid.id == bid_id))
    bid = result.scalar_one_or_none()
    if not bid:
        raise NotFoundError(f"Bid {bid_id} not found", code="BID_NOT_FOUND")
    return bid


class BidService:
    """Factory-side bid operations plus the warehouse's view of incoming bids."""

    def __init__(self, clock: Clock = system_clock):
        self.clock = clock

    async def submit_bid(
        self,
        db: AsyncSession,
        bid_request_id: str,
        factory_id: str,
        data: BidCreate
    ) -> Bid:
        """
        Place a bid on an open request.

        Checks run in this order: request exists, caller is a factory,
        request is open, deadline not passed, no live bid from this factory.

        Args:
            db: Database session
            bid_request_id: Target request
            factory_id: Caller; must be a factory
            data: Bid terms

        Returns:
            Created Bid in status 'submitted'

        Raises:
            NotFoundError: If the request does not exist
            ForbiddenError: If the caller is not a factory
            InvalidStateError: If the request is not open or its deadline passed
            ConflictError: If the factory already has a live bid on the request
            InvalidInputError: If valid_until is not in the future
        """
        # Row lock serialises submissions against settlement on the same request
        result = await db.execute(
            select(BidRequest)
            .where(BidRequest.id == bid_request_id)
            .with_for_update()
        )
        bid_request = result.scalar_one_or_none()
        if not bid_request:
            raise NotFoundError(f"Bid request {bid_request_id} not found", code="BID_REQUEST_NOT_FOUND")

        factory = await get_user(db, factory_id)
        if not factory or not factory.is_factory:
            raise ForbiddenError("Only factories can submit bids", code="FACTORY_ONLY")

        if bid_request.status != BidRequestStatus.OPEN.value:
            raise InvalidStateError(
                f"Bid request is {bid_request.status}, not accepting bids",
                code="REQUEST_NOT_OPEN"
            )

        now = self.clock()
        if now > bid_request.bidding_deadline:
            raise InvalidStateError("Bidding deadline has passed", code="DEADLINE_PASSED")

        if await self._has_live_bid(db, bid_request_id, factory_id):
            raise ConflictError(
                "You already have an active bid on this request",
                code="DUPLICATE_BID"
            )

        valid_until = data.valid_until or now + timedelta(days=settings.DEFAULT_BID_VALIDITY_DAYS)
        if valid_until <= now:
            raise InvalidInputError("valid_until must be in the future", code="VALIDITY_IN_PAST")

        pricing = data.pricing
        delivery = data.delivery
        proposal = data.proposal
        bid = Bid(
            bid_request_id=bid_request_id,
            factory_id=factory_id,
            unit_price=pricing.unit_price,
            total_price=pricing.total_price,
            discount_offered=pricing.discount_offered,
            payment_terms=pricing.payment_terms,
            price_breakdown=(
                pricing.price_breakdown.model_dump(mode="json")
                if pricing.price_breakdown else None
            ),
            estimated_delivery_date=delivery.estimated_delivery_date,
            delivery_method=delivery.delivery_method,
            shipping_cost=delivery.shipping_cost,
            production_time_days=delivery.production_time_days,
            message=proposal.message,
            value_proposition=proposal.value_proposition,
            risk_mitigation=proposal.risk_mitigation,
            alternative_specs=proposal.alternative_specs,
            competitive_advantages=data.competitive_advantages,
            quality_assurance=(
                data.quality_assurance.model_dump(mode="json")
                if data.quality_assurance else None
            ),
            factory_capacity=(
                data.factory_capacity.model_dump(mode="json")
                if data.factory_capacity else None
            ),
            status=BidStatus.SUBMITTED.value,
            valid_until=valid_until,
            submitted_at=now,
            updated_at=now,
        )
        db.add(bid)
        try:
            await db.flush()
        except IntegrityError:
            # Lost a race against a concurrent submission from the same factory
            await db.rollback()
            raise ConflictError(
                "You already have an active bid on this request",
                code="DUPLICATE_BID"
            )

        warehouse_id = bid_request.warehouse_id
        product_name = bid_request.product_name
        expected_total = pricing.unit_price * bid_request.quantity

        record_activity(
            db,
            event_type="bid_submitted",
            account_id=factory_id,
            bid_request_id=bid_request_id,
            bid_id=bid.id,
            data={
                "total_price": str(pricing.total_price),
                "unit_price": str(pricing.unit_price),
            }
        )
        await create_auto_message(
            db,
            message_type="bid_received",
            from_account_id=factory_id,
            to_account_id=warehouse_id,
            bid_request_id=bid_request_id,
            bid_id=bid.id,
            content_data={
                "bid_request_id": bid_request_id,
                "bid_id": bid.id,
                "factory_name": factory.name,
                "product_name": product_name,
                "total_price": str(pricing.total_price),
            },
            commit=False
        )
        await db.commit()
        await db.refresh(bid)

        if pricing.total_price != expected_total:
            logger.info(
                f"Bid {bid.id} total {pricing.total_price} differs from "
                f"unit price x quantity ({expected_total}); keeping quoted total"
            )
        logger.info(f"Bid {bid.id} submitted by {factory_id} on {bid_request_id}")

        await event_bus.publish("bid_submitted", {
            "bid_id": bid.id,
            "bid_request_id": bid_request_id,
            "factory_id": factory_id,
            "total_price": str(pricing.total_price),
        })

        return bid

    async def _has_live_bid(self, db: AsyncSession, bid_request_id: str, factory_id: str) -> bool:
        """Early duplicate check. The partial unique index on bids is authoritative."""
        result = await db.execute(
            select(Bid.id).where(
                Bid.bid_request_id == bid_request_id,
                Bid.factory_id == factory_id,
                Bid.status != BidStatus.WITHDRAWN.value
            )
        )
        return result.first() is not None

    async def withdraw_bid(
        self,
        db: AsyncSession,
        bid_id: str,
        factory_id: str
    ) -> Bid:
        """
        Withdraw a submitted bid. Withdrawal is final.

        Raises:
            NotFoundError: If the bid does not exist
            ForbiddenError: If the caller did not place the bid
            InvalidStateError: If the bid is no longer submitted
        """
        bid = await get_bid_or_404(db, bid_id)

        if bid.factory_id != factory_id:
            raise ForbiddenError("Not your bid", code="NOT_BID_OWNER")

        if bid.status != BidStatus.SUBMITTED.value:
            raise InvalidStateError(
                f"Cannot withdraw bid with status '{bid.status}'",
                code="BID_NOT_SUBMITTED"
            )

        now = self.clock()
        result = await db.execute(
            update(Bid)
            .where(Bid.id == bid_id, Bid.status == BidStatus.SUBMITTED.value)
            .values(
                status=BidStatus.WITHDRAWN.value,
                withdrawn_at=now,
                updated_at=now
            )
        )
        if result.rowcount != 1:
            await db.rollback()
            raise InvalidStateError("Bid is no longer submitted", code="BID_NOT_SUBMITTED")

        bid_request = await get_bid_request_or_404(db, bid.bid_request_id)

        record_activity(
            db,
            event_type="bid_withdrawn",
            account_id=factory_id,
            bid_request_id=bid_request.id,
            bid_id=bid_id
        )
        await create_auto_message(
            db,
            message_type="bid_withdrawn",
            from_account_id=factory_id,
            to_account_id=bid_request.warehouse_id,
            bid_request_id=bid_request.id,
            bid_id=bid_id,
            content_data={
                "bid_request_id": bid_request.id,
                "bid_id": bid_id,
                "product_name": bid_request.product_name,
            },
            commit=False
        )
        await db.commit()
        await db.refresh(bid)

        logger.info(f"Bid {bid_id} withdrawn by {factory_id}")

        await event_bus.publish("bid_withdrawn", {
            "bid_id": bid_id,
            "bid_request_id": bid.bid_request_id,
            "factory_id": factory_id,
        })

        return bid

    async def list_bids_for_request(
        self,
        db: AsyncSession,
        bid_request_id: str,
        warehouse_id: str,
        status_filter: Optional[str] = None
    ) -> List[Bid]:
        """
        All bids on a request, cheapest total first, ties by submission time.
        Each bid comes with its factory loaded.

        Raises:
            NotFoundError: If the request does not exist
            ForbiddenError: If the caller does not own the request
        """
        bid_request = await get_bid_request_or_404(db, bid_request_id)
        if bid_request.warehouse_id != warehouse_id:
            raise ForbiddenError("Not your bid request", code="NOT_REQUEST_OWNER")

        query = (
            select(Bid)
            .options(selectinload(Bid.factory))
            .where(Bid.bid_request_id == bid_request_id)
        )
        if status_filter:
            query = query.where(Bid.status == status_filter)
        query = query.order_by(Bid.total_price.asc(), Bid.submitted_at.asc())

        result = await db.execute(query)
        return list(result.scalars().all())

    async def list_my_bids(
        self,
        db: AsyncSession,
        factory_id: str,
        status_filter: Optional[str] = None
    ) -> List[Bid]:
        """A factory's own bids with their parent requests, newest first."""
        factory = await get_user(db, factory_id)
        if not factory or not factory.is_factory:
            raise ForbiddenError("Only factories place bids", code="FACTORY_ONLY")

        query = (
            select(Bid)
            .options(selectinload(Bid.bid_request))
            .where(Bid.factory_id == factory_id)
        )
        if status_filter:
            query = query.where(Bid.status == status_filter)
        query = query.order_by(Bid.submitted_at.desc())

        result = await db.execute(query)
        return list(result.scalars().all())
