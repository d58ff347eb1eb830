"""Bids API router."""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from bidmarket.database import get_db
from bidmarket.api.deps import get_bid_service, get_current_account, get_settlement_service
from bidmarket.models.account import Account
from bidmarket.schemas.bid import BidAcceptResponse, BidResponse, FactoryBidResponse
from bidmarket.services.bid_service import BidService
from bidmarket.services.settlement_service import SettlementService

router = APIRouter()


@router.get("/mine", response_model=List[FactoryBidResponse])
async def list_my_bids(
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by bid status"),
    current_account: Account = Depends(get_current_account),
    service: BidService = Depends(get_bid_service),
    db: AsyncSession = Depends(get_db)
):
    """
    List the authenticated factory's bids with their requests, newest first.
    """
    bids = await service.list_my_bids(db, current_account.id, status_filter=status_filter)
    return [FactoryBidResponse.model_validate(b) for b in bids]


@router.post("/{bid_id}/withdraw", response_model=BidResponse)
async def withdraw_bid(
    bid_id: str,
    current_account: Account = Depends(get_current_account),
    service: BidService = Depends(get_bid_service),
    db: AsyncSession = Depends(get_db)
):
    """
    Withdraw a submitted bid (bid owner only). Withdrawal cannot be undone.
    """
    bid = await service.withdraw_bid(db, bid_id, current_account.id)
    return BidResponse.model_validate(bid)


@router.post("/{bid_id}/accept", response_model=BidAcceptResponse)
async def accept_bid(
    bid_id: str,
    current_account: Account = Depends(get_current_account),
    service: SettlementService = Depends(get_settlement_service),
    db: AsyncSession = Depends(get_db)
):
    """
    Accept a bid (request owner only).

    Awards the request to this bid and rejects every other submitted bid.
    """
    result = await service.accept_bid(db, bid_id, current_account.id)

    return BidAcceptResponse(
        message="Bid accepted successfully",
        bid=BidResponse.model_validate(result.bid),
        bid_request_id=result.bid_request.id,
        bid_request_status=result.bid_request.status,
        rejected_bid_ids=result.rejected_bid_ids
    )
