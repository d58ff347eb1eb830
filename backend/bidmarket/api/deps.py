"""API dependencies for authentication, clock and service wiring."""

from fastapi import Depends, HTTPException, status, Header
from sqlalchemy.ext.asyncio import AsyncSession

from bidmarket.database import get_db
from bidmarket.core.clock import Clock, system_clock
from bidmarket.models.account import Account
from bidmarket.services.account_service import get_account_by_api_key
from bidmarket.services.bid_request_service import BidRequestService
from bidmarket.services.bid_service import BidService
from bidmarket.services.settlement_service import SettlementService


async def get_current_account(
    x_api_key: str = Header(..., description="API key for authentication"),
    db: AsyncSession = Depends(get_db)
) -> Account:
    """
    Dependency that validates the X-Api-Key header and returns the authenticated account.

    Raises:
        HTTPException: 401 if API key is invalid
    """
    account = await get_account_by_api_key(db, x_api_key)
    if account:
        return account

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={
            "code": "INVALID_API_KEY",
            "message": "Invalid API key provided"
        }
    )


def get_clock() -> Clock:
    """Time source for the auction engine. Overridden in tests."""
    return system_clock


def get_bid_request_service(clock: Clock = Depends(get_clock)) -> BidRequestService:
    return BidRequestService(clock)


def get_bid_service(clock: Clock = Depends(get_clock)) -> BidService:
    return BidService(clock)


def get_settlement_service(clock: Clock = Depends(get_clock)) -> SettlementService:
    return SettlementService(clock)
