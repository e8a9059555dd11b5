"""Query filter enums shared by the market endpoints."""

from enum import Enum


class ListingStatus(str, Enum):
    """Filter for market listings: end time after now / before now."""
    ACTIVE = "active"
    ENDED = "ended"


class BidStatus(str, Enum):
    """Filter for a bidder's standing bids."""
    ALL = "all"
    ACTIVE = "active"
    ENDED = "ended"
