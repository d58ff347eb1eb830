"""Bid requests API router."""

from typing import List, Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession

from bidmarket.database import get_db
from bidmarket.api.deps import (
    get_bid_request_service,
    get_bid_service,
    get_clock,
    get_current_account,
)
from bidmarket.core.clock import Clock
from bidmarket.models.account import Account
from bidmarket.schemas.bid import BidCreate, BidResponse, RankedBidResponse
from bidmarket.schemas.bid_request import (
    BidRequestCreate,
    BidRequestResponse,
    BidRequestList,
)
from bidmarket.services.bid_request_service import BidRequestService
from bidmarket.services.bid_service import BidService

router = APIRouter()


@router.post("", response_model=BidRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_bid_request(
    request_data: BidRequestCreate,
    current_account: Account = Depends(get_current_account),
    service: BidRequestService = Depends(get_bid_request_service),
    clock: Clock = Depends(get_clock),
    db: AsyncSession = Depends(get_db)
):
    """
    Post a new bid request (warehouses only).

    The bidding deadline defaults to 7 days out and must be in the future.
    """
    bid_request = await service.create_bid_request(db, current_account.id, request_data)
    return BidRequestResponse.from_model(bid_request, clock(), bid_count=0)


@router.get("", response_model=BidRequestList)
async def list_open_bid_requests(
    category: Optional[str] = Query(None, description="Filter by product category"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_account: Account = Depends(get_current_account),
    service: BidRequestService = Depends(get_bid_request_service),
    clock: Clock = Depends(get_clock),
    db: AsyncSession = Depends(get_db)
):
    """
    Browse bid requests that are open and still before their deadline, newest first.
    """
    bid_requests, total = await service.list_open_bid_requests(
        db,
        category=category,
        limit=limit,
        offset=offset
    )
    now = clock()

    return BidRequestList(
        bid_requests=[BidRequestResponse.from_model(r, now) for r in bid_requests],
        total=total,
        limit=limit,
        offset=offset
    )


@router.get("/mine", response_model=List[BidRequestResponse])
async def list_my_bid_requests(
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by stored status"),
    current_account: Account = Depends(get_current_account),
    service: BidRequestService = Depends(get_bid_request_service),
    clock: Clock = Depends(get_clock),
    db: AsyncSession = Depends(get_db)
):
    """
    List the authenticated warehouse's own bid requests with bid counts.
    """
    rows = await service.list_my_bid_requests(db, current_account.id, status_filter=status_filter)
    now = clock()
    return [BidRequestResponse.from_model(r, now, bid_count=count) for r, count in rows]


@router.get("/{bid_request_id}", response_model=BidRequestResponse)
async def get_bid_request(
    bid_request_id: str,
    current_account: Account = Depends(get_current_account),
    service: BidRequestService = Depends(get_bid_request_service),
    clock: Clock = Depends(get_clock),
    db: AsyncSession = Depends(get_db)
):
    """
    Get bid request details.

    Factories can read any request; warehouses only their own.
    """
    bid_request, bid_count = await service.get_bid_request(db, bid_request_id, current_account.id)
    return BidRequestResponse.from_model(bid_request, clock(), bid_count=bid_count)


@router.post("/{bid_request_id}/cancel", response_model=BidRequestResponse)
async def cancel_bid_request(
    bid_request_id: str,
    current_account: Account = Depends(get_current_account),
    service: BidRequestService = Depends(get_bid_request_service),
    clock: Clock = Depends(get_clock),
    db: AsyncSession = Depends(get_db)
):
    """
    Cancel an open bid request (owner only).
    """
    bid_request = await service.cancel_bid_request(db, bid_request_id, current_account.id)
    return BidRequestResponse.from_model(bid_request, clock())


@router.post("/{bid_request_id}/bids", response_model=BidResponse, status_code=status.HTTP_201_CREATED)
async def submit_bid(
    bid_request_id: str,
    bid_data: BidCreate,
    current_account: Account = Depends(get_current_account),
    service: BidService = Depends(get_bid_service),
    db: AsyncSession = Depends(get_db)
):
    """
    Submit a bid on an open request (factories only, one live bid per request).
    """
    bid = await service.submit_bid(db, bid_request_id, current_account.id, bid_data)
    return BidResponse.model_validate(bid)


@router.get("/{bid_request_id}/bids", response_model=List[RankedBidResponse])
async def list_bids_for_request(
    bid_request_id: str,
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by bid status"),
    current_account: Account = Depends(get_current_account),
    service: BidService = Depends(get_bid_service),
    db: AsyncSession = Depends(get_db)
):
    """
    List bids on a request, cheapest total first, each with the bidding factory's
    profile (request owner only).
    """
    bids = await service.list_bids_for_request(
        db,
        bid_request_id,
        current_account.id,
        status_filter=status_filter
    )
    return [RankedBidResponse.model_validate(b) for b in bids]
