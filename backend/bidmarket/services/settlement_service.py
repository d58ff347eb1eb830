"""Settlement: awarding a bid request to exactly one bid."""

from dataclasses import dataclass, field
import logging
from typing import List

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from bidmarket.core.clock import Clock, system_clock
from bidmarket.core.events import event_bus
from bidmarket.core.exceptions import ForbiddenError, InvalidStateError
from bidmarket.models.bid import Bid, BidStatus
from bidmarket.models.bid_request import BidRequest, BidRequestStatus
from bidmarket.services.activity_service import record_activity
from bidmarket.services.bid_service import get_bid_or_404
from bidmarket.services.message_service import create_auto_message

logger = logging.getLogger(__name__)


@dataclass
class SettlementResult:
    bid: Bid
    bid_request: BidRequest
    rejected_bids: List[tuple[str, str]] = field(default_factory=list)  # (bid_id, factory_id)

    @property
    def rejected_bid_ids(self) -> List[str]:
        return [bid_id for bid_id, _ in self.rejected_bids]


class SettlementService:
    """
    Accepts one bid and closes out its request.

    The request is awarded, the chosen bid accepted and every other
    submitted bid rejected in a single transaction. Both status changes are
    conditional updates, so of two concurrent accepts on the same request
    at most one can commit.
    """

    def __init__(self, clock: Clock = system_clock):
        self.clock = clock

    async def accept_bid(
        self,
        db: AsyncSession,
        bid_id: str,
        warehouse_id: str
    ) -> SettlementResult:
        """
        Accept a bid on behalf of the warehouse that owns its request.

        Args:
            db: Database session
            bid_id: Bid to accept
            warehouse_id: Caller; must own the parent request

        Returns:
            SettlementResult with the accepted bid, awarded request and rejected bids

        Raises:
            NotFoundError: If the bid does not exist
            ForbiddenError: If the caller does not own the parent request
            InvalidStateError: If the bid is not submitted, has expired, or
                the request is no longer open
        """
        bid = await get_bid_or_404(db, bid_id)

        result = await db.execute(
            select(BidRequest)
            .where(BidRequest.id == bid.bid_request_id)
            .with_for_update()
        )
        bid_request = result.scalar_one()

        if bid_request.warehouse_id != warehouse_id:
            raise ForbiddenError("Not your bid request", code="NOT_REQUEST_OWNER")

        if bid.status != BidStatus.SUBMITTED.value:
            raise InvalidStateError(
                f"Cannot accept bid with status '{bid.status}'",
                code="BID_NOT_SUBMITTED"
            )

        if bid_request.status != BidRequestStatus.OPEN.value:
            raise InvalidStateError(
                f"Bid request is {bid_request.status}",
                code="REQUEST_NOT_OPEN"
            )

        now = self.clock()
        if bid.is_expired(now):
            raise InvalidStateError("Bid validity has expired", code="BID_EXPIRED")

        bid_request_id = bid_request.id
        product_name = bid_request.product_name
        winner_factory_id = bid.factory_id

        try:
            awarded = await db.execute(
                update(BidRequest)
                .where(
                    BidRequest.id == bid_request_id,
                    BidRequest.status == BidRequestStatus.OPEN.value
                )
                .values(
                    status=BidRequestStatus.AWARDED.value,
                    awarded_bid_id=bid_id,
                    awarded_at=now,
                    updated_at=now
                )
            )
            if awarded.rowcount != 1:
                raise InvalidStateError("Bid request is no longer open", code="REQUEST_NOT_OPEN")

            accepted = await db.execute(
                update(Bid)
                .where(Bid.id == bid_id, Bid.status == BidStatus.SUBMITTED.value)
                .values(
                    status=BidStatus.ACCEPTED.value,
                    decided_at=now,
                    updated_at=now
                )
            )
            if accepted.rowcount != 1:
                raise InvalidStateError("Bid is no longer submitted", code="BID_NOT_SUBMITTED")

            result = await db.execute(
                select(Bid.id, Bid.factory_id).where(
                    Bid.bid_request_id == bid_request_id,
                    Bid.id != bid_id,
                    Bid.status == BidStatus.SUBMITTED.value
                )
            )
            rejected = [(row.id, row.factory_id) for row in result.all()]

            if rejected:
                await db.execute(
                    update(Bid)
                    .where(
                        Bid.id.in_([rejected_id for rejected_id, _ in rejected]),
                        Bid.status == BidStatus.SUBMITTED.value
                    )
                    .values(
                        status=BidStatus.REJECTED.value,
                        decided_at=now,
                        updated_at=now
                    )
                )

            record_activity(
                db,
                event_type="bid_accepted",
                account_id=warehouse_id,
                bid_request_id=bid_request_id,
                bid_id=bid_id,
                data={"factory_id": winner_factory_id}
            )
            record_activity(
                db,
                event_type="bid_request_awarded",
                account_id=warehouse_id,
                bid_request_id=bid_request_id,
                bid_id=bid_id,
                data={"rejected_bid_ids": [rejected_id for rejected_id, _ in rejected]}
            )
            for rejected_id, factory_id in rejected:
                record_activity(
                    db,
                    event_type="bid_rejected",
                    account_id=factory_id,
                    bid_request_id=bid_request_id,
                    bid_id=rejected_id
                )

            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            f"Bid request {bid_request_id} awarded to bid {bid_id} "
            f"({len(rejected)} other bids rejected)"
        )

        # Award is committed at this point; notification failures are logged, not raised
        try:
            await self._notify_factories(
                db, warehouse_id, bid_request_id, product_name, bid_id, winner_factory_id, rejected
            )
        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to notify factories for bid request {bid_request_id}: {e}")

        await db.refresh(bid)
        await db.refresh(bid_request)

        await event_bus.publish("bid_accepted", {
            "bid_id": bid_id,
            "bid_request_id": bid_request_id,
            "factory_id": winner_factory_id,
            "warehouse_id": warehouse_id,
        })
        await event_bus.publish("bid_request_awarded", {
            "bid_request_id": bid_request_id,
            "awarded_bid_id": bid_id,
            "rejected_bid_ids": [rejected_id for rejected_id, _ in rejected],
        })

        return SettlementResult(bid=bid, bid_request=bid_request, rejected_bids=rejected)

    async def _notify_factories(
        self,
        db: AsyncSession,
        warehouse_id: str,
        bid_request_id: str,
        product_name: str,
        winning_bid_id: str,
        winner_factory_id: str,
        rejected: List[tuple[str, str]]
    ) -> None:
        await create_auto_message(
            db,
            message_type="bid_accepted",
            from_account_id=warehouse_id,
            to_account_id=winner_factory_id,
            bid_request_id=bid_request_id,
            bid_id=winning_bid_id,
            content_data={
                "bid_request_id": bid_request_id,
                "bid_id": winning_bid_id,
                "product_name": product_name,
            },
            commit=False
        )
        for rejected_id, factory_id in rejected:
            await create_auto_message(
                db,
                message_type="bid_rejected",
                from_account_id=warehouse_id,
                to_account_id=factory_id,
                bid_request_id=bid_request_id,
                bid_id=rejected_id,
                content_data={
                    "bid_request_id": bid_request_id,
                    "bid_id": rejected_id,
                    "product_name": product_name,
                },
                commit=False
            )
        await db.commit()
