"""Pydantic schemas for am_market requests and responses.

Amounts are Decimal; routers dump in JSON mode so they serialize as
strings ("150.00"), next to a "$150.00" display string.
"""

import math
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from src.am_common.money import amount_to_display
from src.am_market.domain.models import Bid, Listing
from src.am_post.application.schemas import PostResponse

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class ListPostRequest(BaseModel):
    # Positivity is checked by the listing rules so every caller gets the same error code
    starting_price: Decimal = Field(..., max_digits=12, decimal_places=2)
    reserve_price: Decimal | None = Field(None, max_digits=12, decimal_places=2)
    duration_hours: Decimal = Field(..., max_digits=8, decimal_places=3)


class PlaceBidRequest(BaseModel):
    amount: Decimal = Field(..., max_digits=12, decimal_places=2)


# ---------------------------------------------------------------------------
# Shared pieces
# ---------------------------------------------------------------------------


class Pagination(BaseModel):
    page: int
    page_size: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, page_size: int, total: int) -> "Pagination":
        return cls(page=page, page_size=page_size, total=total, pages=math.ceil(total / page_size))


class BidOut(BaseModel):
    id: str
    post_id: str
    bidder_id: str
    bidder_name: str | None
    amount: Decimal
    amount_display: str
    created_at: datetime
    updated_at: datetime | None

    @classmethod
    def from_domain(cls, b: Bid) -> "BidOut":
        return cls(
            id=b.id,
            post_id=b.post_id,
            bidder_id=b.bidder_id,
            bidder_name=b.bidder_name,
            amount=b.amount,
            amount_display=amount_to_display(b.amount) or "",
            created_at=b.created_at,
            updated_at=b.updated_at,
        )


# ---------------------------------------------------------------------------
# Bid ledger
# ---------------------------------------------------------------------------


class PlaceBidResponse(BaseModel):
    bid: BidOut
    replaced: bool  # True when the bidder's earlier standing bid was overwritten


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


class ListingItem(BaseModel):
    post: PostResponse
    author_name: str | None
    current_price: Decimal | None
    current_price_display: str | None
    highest_bidder_id: str | None
    highest_bidder_name: str | None
    bid_count: int
    time_left_ms: int

    @classmethod
    def from_listing(cls, listing: Listing, price: Decimal | None, left_ms: int) -> "ListingItem":
        return cls(
            post=PostResponse.from_domain(listing.post),
            author_name=listing.author_name,
            current_price=price,
            current_price_display=amount_to_display(price),
            highest_bidder_id=listing.top_bid.bidder_id if listing.top_bid else None,
            highest_bidder_name=listing.top_bid.bidder_name if listing.top_bid else None,
            bid_count=listing.bid_count,
            time_left_ms=left_ms,
        )


class ListingListResponse(BaseModel):
    items: list[ListingItem]
    pagination: Pagination


# ---------------------------------------------------------------------------
# Auction detail
# ---------------------------------------------------------------------------


class AuctionDetailResponse(BaseModel):
    post: PostResponse
    bids: list[BidOut]  # newest first
    bid_count: int
    current_price: Decimal | None
    current_price_display: str | None
    leader: BidOut | None
    time_left_ms: int
    is_active: bool


# ---------------------------------------------------------------------------
# A bidder's bids
# ---------------------------------------------------------------------------


class UserBidItem(BaseModel):
    bid: BidOut
    post: PostResponse
    leading_bid_id: str | None
    leading_amount: Decimal | None
    is_winning: bool
    has_won: bool
    auction_status: str  # "active" | "ended"
    time_left_ms: int


class UserBidListResponse(BaseModel):
    items: list[UserBidItem]
    pagination: Pagination


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


class HighestSaleOut(BaseModel):
    """Ended listing with the MOST BIDS; final_price is its top bid (0 if none)."""

    post: PostResponse
    author_name: str | None
    bid_count: int
    final_price: Decimal
    final_price_display: str


class MarketStatsResponse(BaseModel):
    active_auctions: int
    ended_auctions: int
    total_bids: int
    highest_sale: HighestSaleOut | None
