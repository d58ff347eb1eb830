"""Business logic services package."""

from bidmarket.services.account_service import (
    AccountIdentity,
    create_account,
    get_account_by_id,
    get_account_by_api_key,
    get_user,
)
from bidmarket.services.bid_request_service import BidRequestService
from bidmarket.services.bid_service import BidService
from bidmarket.services.settlement_service import SettlementService, SettlementResult
from bidmarket.services.message_service import create_auto_message, get_inbox, mark_as_read

__all__ = [
    # Identity directory
    "AccountIdentity",
    "create_account",
    "get_account_by_id",
    "get_account_by_api_key",
    "get_user",
    # Auction engine
    "BidRequestService",
    "BidService",
    "SettlementService",
    "SettlementResult",
    # Message service
    "create_auto_message",
    "get_inbox",
    "mark_as_read",
]
