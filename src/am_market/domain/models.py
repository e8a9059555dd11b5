"""Domain models for am_market: pure dataclasses, no business logic.

Derived auction state (leader, current price, time left, active/ended,
winning/won) is never stored; see domain/rules.py.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.am_post.domain.models import Post


@dataclass
class Bid:
    """A bidder's standing bid on a post (one row per post+bidder)."""

    id: str
    post_id: str
    bidder_id: str
    amount: Decimal
    created_at: datetime
    updated_at: datetime | None = None
    bidder_name: str | None = None


@dataclass
class TopBid:
    """The leading bid of a post, as joined into list queries."""

    id: str
    bidder_id: str
    amount: Decimal
    bidder_name: str | None = None


@dataclass
class Listing:
    """A post with its leading bid and bid count, for listing pages and stats."""

    post: Post
    top_bid: TopBid | None
    bid_count: int
    author_name: str | None = None


@dataclass
class UserBid:
    """A bidder's standing bid joined with its post and the post's current leader."""

    bid: Bid
    post: Post
    leading_bid_id: str | None
    leading_amount: Decimal | None


@dataclass
class MarketCounts:
    active_auctions: int
    ended_auctions: int
    total_bids: int
