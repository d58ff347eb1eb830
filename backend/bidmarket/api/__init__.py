"""API routers package."""

from bidmarket.api import accounts, bid_requests, bids, inbox, events, deps

__all__ = [
    "accounts",
    "bid_requests",
    "bids",
    "inbox",
    "events",
    "deps",
]
