"""Database models package."""

from bidmarket.models.account import Account, AccountRole
from bidmarket.models.bid_request import BidRequest, BidRequestStatus, Urgency
from bidmarket.models.bid import Bid, BidStatus
from bidmarket.models.message import Message
from bidmarket.models.activity_log import ActivityLog

__all__ = [
    "Account",
    "AccountRole",
    "BidRequest",
    "BidRequestStatus",
    "Urgency",
    "Bid",
    "BidStatus",
    "Message",
    "ActivityLog",
]
