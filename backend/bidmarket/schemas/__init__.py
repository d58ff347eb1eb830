"""Pydantic schemas package."""

from bidmarket.schemas.common import Location
from bidmarket.schemas.account import (
    AccountCreate,
    AccountPublic,
    AccountResponse,
    AccountRegisterResponse,
)
from bidmarket.schemas.bid_request import (
    BidRequestCreate,
    BidRequestResponse,
    BidRequestBrief,
    BidRequestList,
)
from bidmarket.schemas.bid import (
    BidCreate,
    BidResponse,
    RankedBidResponse,
    FactoryBidResponse,
    BidAcceptResponse,
)
from bidmarket.schemas.message import (
    MessageResponse,
    MessageList,
    MarkReadResponse,
)

__all__ = [
    "Location",
    # Account schemas
    "AccountCreate",
    "AccountPublic",
    "AccountResponse",
    "AccountRegisterResponse",
    # Bid request schemas
    "BidRequestCreate",
    "BidRequestResponse",
    "BidRequestBrief",
    "BidRequestList",
    # Bid schemas
    "BidCreate",
    "BidResponse",
    "RankedBidResponse",
    "FactoryBidResponse",
    "BidAcceptResponse",
    # Message schemas
    "MessageResponse",
    "MessageList",
    "MarkReadResponse",
]
