"""Bid request lifecycle: posting, discovery, ownership-checked reads and cancellation."""

from datetime import timedelta
import logging
from typing import List, Optional, Tuple

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from bidmarket.config import settings
from bidmarket.core.clock import Clock, system_clock
from bidmarket.core.events import event_bus
from bidmarket.core.exceptions import (
    ForbiddenError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
)
from bidmarket.models.bid import Bid, BidStatus
from bidmarket.models.bid_request import BidRequest, BidRequestStatus
from bidmarket.schemas.bid_request import BidRequestCreate
from bidmarket.services.account_service import get_user
from bidmarket.services.activity_service import record_activity
from bidmarket.services.message_service import create_auto_message

logger = logging.getLogger(__name__)


async def get_bid_request_or_404(db: AsyncSession, bid_request_id: str) -> BidRequest:
    result = await db.execute(
        select(BidRequest).where(BidRequest.id == bid_request_id)
    )
    bid_request = result.scalar_one_or_none()
    if not bid_request:
        raise NotFoundError(f"Bid request {bid_request_id} not found", code="BID_REQUEST_NOT_FOUND")
    return bid_request


async def count_bids(db: AsyncSession, bid_request_ids: List[str]) -> dict[str, int]:
    """Count non-withdrawn bids per request."""
    if not bid_request_ids:
        return {}

    result = await db.execute(
        select(Bid.bid_request_id, func.count(Bid.id))
        .where(
            Bid.bid_request_id.in_(bid_request_ids),
            Bid.status != BidStatus.WITHDRAWN.value
        )
        .group_by(Bid.bid_request_id)
    )
    counts = {request_id: count for request_id, count in result.all()}
    return {request_id: counts.get(request_id, 0) for request_id in bid_request_ids}


class BidRequestService:
    """Warehouse-side operations on bid requests."""

    def __init__(self, clock: Clock = system_clock):
        self.clock = clock

    async def create_bid_request(
        self,
        db: AsyncSession,
        warehouse_id: str,
        data: BidRequestCreate
    ) -> BidRequest:
        """
        Post a new bid request.

        Args:
            db: Database session
            warehouse_id: Caller; must be a warehouse
            data: Request details

        Returns:
            Created BidRequest in status 'open'

        Raises:
            ForbiddenError: If the caller is not a warehouse
            InvalidInputError: If the bidding deadline is not in the future
        """
        warehouse = await get_user(db, warehouse_id)
        if not warehouse or not warehouse.is_warehouse:
            raise ForbiddenError("Only warehouses can create bid requests", code="WAREHOUSE_ONLY")

        now = self.clock()
        deadline = data.bidding_deadline or now + timedelta(days=settings.DEFAULT_BIDDING_WINDOW_DAYS)
        if deadline <= now:
            raise InvalidInputError("Bidding deadline must be in the future", code="DEADLINE_IN_PAST")

        specs = data.specifications
        bid_request = BidRequest(
            warehouse_id=warehouse_id,
            product_name=data.product_name,
            category=data.category,
            quantity=data.quantity,
            description=specs.description,
            custom_requirements=specs.custom_requirements,
            quality_standards=specs.quality_standards,
            packaging_requirements=specs.packaging_requirements,
            delivery_location=specs.delivery_location.model_dump(mode="json"),
            budget_min=data.budget.min_price,
            budget_max=data.budget.max_price,
            budget_preferred=data.budget.preferred_price,
            requested_delivery_date=data.timeline.requested_delivery_date,
            urgency=data.timeline.urgency,
            minimum_factory_rating=data.bid_requirements.minimum_factory_rating,
            preferred_max_distance=data.bid_requirements.preferred_max_distance,
            required_certifications=data.bid_requirements.requires_certifications,
            payment_terms=data.bid_requirements.payment_terms,
            notes=data.notes,
            status=BidRequestStatus.OPEN.value,
            bidding_deadline=deadline,
            created_at=now,
            updated_at=now,
        )
        db.add(bid_request)
        await db.flush()

        record_activity(
            db,
            event_type="bid_request_created",
            account_id=warehouse_id,
            bid_request_id=bid_request.id,
            data={
                "product_name": bid_request.product_name,
                "category": bid_request.category,
                "quantity": bid_request.quantity,
                "bidding_deadline": deadline.isoformat(),
            }
        )
        await db.commit()
        await db.refresh(bid_request)

        logger.info(
            f"Bid request {bid_request.id} created by {warehouse_id} "
            f"({bid_request.category}, deadline {deadline.isoformat()})"
        )

        await event_bus.publish("bid_request_created", {
            "bid_request_id": bid_request.id,
            "warehouse_id": warehouse_id,
            "category": bid_request.category,
            "product_name": bid_request.product_name,
            "bidding_deadline": deadline.isoformat(),
        })

        return bid_request

    async def list_open_bid_requests(
        self,
        db: AsyncSession,
        category: Optional[str] = None,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[BidRequest], int]:
        """
        Discover requests that are open and still before their deadline.

        Returns:
            Tuple of (bid_requests newest first, total matching)
        """
        now = self.clock()
        query = select(BidRequest).where(
            BidRequest.status == BidRequestStatus.OPEN.value,
            BidRequest.bidding_deadline > now
        )
        if category:
            query = query.where(BidRequest.category == category)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await db.execute(count_query)).scalar()

        query = query.order_by(BidRequest.created_at.desc()).offset(offset).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all()), total

    async def get_bid_request(
        self,
        db: AsyncSession,
        bid_request_id: str,
        caller_id: str
    ) -> Tuple[BidRequest, int]:
        """
        Read a single request with its live bid count.

        Factories may read any request. A warehouse may only read its own.

        Raises:
            NotFoundError: If the request does not exist
            ForbiddenError: If a warehouse reads another warehouse's request
        """
        bid_request = await get_bid_request_or_404(db, bid_request_id)

        caller = await get_user(db, caller_id)
        if not caller:
            raise ForbiddenError("Unknown caller", code="ACCOUNT_NOT_FOUND")
        if caller.is_warehouse and bid_request.warehouse_id != caller_id:
            raise ForbiddenError("Not your bid request", code="NOT_REQUEST_OWNER")

        counts = await count_bids(db, [bid_request.id])
        return bid_request, counts[bid_request.id]

    async def list_my_bid_requests(
        self,
        db: AsyncSession,
        warehouse_id: str,
        status_filter: Optional[str] = None
    ) -> List[Tuple[BidRequest, int]]:
        """A warehouse's own requests, newest first, each with its live bid count."""
        warehouse = await get_user(db, warehouse_id)
        if not warehouse or not warehouse.is_warehouse:
            raise ForbiddenError("Only warehouses own bid requests", code="WAREHOUSE_ONLY")

        query = select(BidRequest).where(BidRequest.warehouse_id == warehouse_id)
        if status_filter:
            query = query.where(BidRequest.status == status_filter)
        query = query.order_by(BidRequest.created_at.desc())

        result = await db.execute(query)
        bid_requests = list(result.scalars().all())
        counts = await count_bids(db, [r.id for r in bid_requests])
        return [(r, counts[r.id]) for r in bid_requests]

    async def cancel_bid_request(
        self,
        db: AsyncSession,
        bid_request_id: str,
        warehouse_id: str
    ) -> BidRequest:
        """
        Cancel an open request.

        Bids on the request keep their status. Factories holding a submitted
        bid are notified through their inbox, and settlement refuses the
        request from here on.

        Raises:
            NotFoundError: If the request does not exist
            ForbiddenError: If the caller does not own the request
            InvalidStateError: If the request is no longer open
        """
        bid_request = await get_bid_request_or_404(db, bid_request_id)

        if bid_request.warehouse_id != warehouse_id:
            raise ForbiddenError("Not your bid request", code="NOT_REQUEST_OWNER")

        if bid_request.status != BidRequestStatus.OPEN.value:
            raise InvalidStateError(
                f"Cannot cancel bid request with status '{bid_request.status}'",
                code="REQUEST_NOT_OPEN"
            )

        now = self.clock()
        result = await db.execute(
            update(BidRequest)
            .where(
                BidRequest.id == bid_request_id,
                BidRequest.status == BidRequestStatus.OPEN.value
            )
            .values(
                status=BidRequestStatus.CANCELLED.value,
                cancelled_at=now,
                updated_at=now
            )
        )
        if result.rowcount != 1:
            await db.rollback()
            raise InvalidStateError("Bid request is no longer open", code="REQUEST_NOT_OPEN")

        result = await db.execute(
            select(Bid.id, Bid.factory_id).where(
                Bid.bid_request_id == bid_request_id,
                Bid.status == BidStatus.SUBMITTED.value
            )
        )
        bidders = result.all()

        record_activity(
            db,
            event_type="bid_request_cancelled",
            account_id=warehouse_id,
            bid_request_id=bid_request_id,
            data={"open_bids": len(bidders)}
        )
        for bid_id, factory_id in bidders:
            await create_auto_message(
                db,
                message_type="bid_request_cancelled",
                from_account_id=warehouse_id,
                to_account_id=factory_id,
                bid_request_id=bid_request_id,
                bid_id=bid_id,
                content_data={
                    "bid_request_id": bid_request_id,
                    "bid_id": bid_id,
                    "product_name": bid_request.product_name,
                },
                commit=False
            )

        await db.commit()
        await db.refresh(bid_request)

        logger.info(f"Bid request {bid_request_id} cancelled, {len(bidders)} factories notified")

        await event_bus.publish("bid_request_cancelled", {
            "bid_request_id": bid_request_id,
            "warehouse_id": warehouse_id,
        })

        return bid_request
