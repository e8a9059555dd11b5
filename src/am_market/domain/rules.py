"""Auction rules: pure functions over Post/Bid facts and a `now` timestamp.

Validation functions raise AppError subclasses; derivation functions are
side-effect free so the same rule drives writes (bid ledger) and reads
(query view).
"""

from collections.abc import Iterable
from datetime import datetime, timedelta
from decimal import Decimal

from src.am_common.datetime_utils import hours_to_timedelta, ms_until
from src.am_common.errors import (
    AlreadyListedError,
    AuctionEndedError,
    BidTooLowError,
    InvalidBidAmountError,
    InvalidListingError,
    ListingHasBidsError,
    NotListedError,
    NotPostOwnerError,
    SelfBidError,
)
from src.am_common.money import MAX_AMOUNT, is_valid_amount, is_whole_cents
from src.am_market.domain.models import Bid
from src.am_post.domain.models import Post

# ---------------------------------------------------------------------------
# Listing lifecycle
# ---------------------------------------------------------------------------


def validate_listing_terms(
    starting_price: Decimal,
    reserve_price: Decimal | None,
    duration_hours: Decimal,
) -> None:
    if not is_valid_amount(starting_price):
        raise InvalidListingError(
            f"starting price must be a positive amount in whole cents, got {starting_price}"
        )
    if reserve_price is not None and not (
        reserve_price.is_finite()
        and Decimal(0) <= reserve_price <= MAX_AMOUNT
        and is_whole_cents(reserve_price)
    ):
        raise InvalidListingError(
            f"reserve price must be a non-negative amount in whole cents, got {reserve_price}"
        )
    if not (duration_hours.is_finite() and duration_hours > 0):
        raise InvalidListingError(f"duration must be positive, got {duration_hours}")
    # the end time is kept at millisecond resolution
    try:
        span = hours_to_timedelta(duration_hours)
    except OverflowError:
        raise InvalidListingError(f"duration is too long: {duration_hours}") from None
    if span <= timedelta(0):
        raise InvalidListingError(f"duration is shorter than one millisecond: {duration_hours}")


def check_can_list(post: Post, seller_id: str) -> None:
    if not post.is_authored_by(seller_id):
        raise NotPostOwnerError(post.id)
    if post.is_in_market:
        raise AlreadyListedError(post.id)


def check_can_unlist(post: Post, seller_id: str, bid_count: int) -> None:
    if not post.is_authored_by(seller_id):
        raise NotPostOwnerError(post.id)
    if not post.is_in_market:
        raise NotListedError(post.id)
    if bid_count > 0:
        raise ListingHasBidsError(post.id)


# ---------------------------------------------------------------------------
# Bid ledger
# ---------------------------------------------------------------------------


def check_bid_amount(amount: Decimal) -> None:
    if not is_valid_amount(amount):
        raise InvalidBidAmountError(amount)


def check_can_bid(post: Post, bidder_id: str, now: datetime) -> None:
    """Steps 2-4 of a bid: listed, not the author, not expired (no grace period)."""
    if not post.is_in_market or post.auction_end_at is None:
        raise NotListedError(post.id)
    if post.is_authored_by(bidder_id):
        raise SelfBidError()
    if now >= post.auction_end_at:
        raise AuctionEndedError(post.id)


def highest_or_starting(post: Post, highest_bid: Decimal | None) -> Decimal:
    """The amount a new bid must beat: global max bid, else the starting price."""
    if highest_bid is not None:
        return highest_bid
    return post.starting_price if post.starting_price is not None else Decimal(0)


def check_beats(amount: Decimal, current_highest: Decimal) -> None:
    """Strictly greater; an equal bid is rejected."""
    if amount <= current_highest:
        raise BidTooLowError(amount, current_highest)


# ---------------------------------------------------------------------------
# Derived state
# ---------------------------------------------------------------------------


def pick_leader(bids: Iterable[Bid]) -> Bid | None:
    """Max amount; ties go to the earliest created_at, then the lowest id."""
    leader: Bid | None = None
    for bid in bids:
        if leader is None or _ranks_above(bid, leader):
            leader = bid
    return leader


def _ranks_above(a: Bid, b: Bid) -> bool:
    if a.amount != b.amount:
        return a.amount > b.amount
    if a.created_at != b.created_at:
        return a.created_at < b.created_at
    # snowflake ids: shorter string is the smaller number
    return (len(a.id), a.id) < (len(b.id), b.id)


def current_price(post: Post, leading_amount: Decimal | None) -> Decimal | None:
    """Leader's amount if any bid exists, else the starting price."""
    if leading_amount is not None:
        return leading_amount
    return post.starting_price


def time_left_ms(post: Post, now: datetime) -> int:
    return ms_until(post.auction_end_at, now)


def is_active(post: Post, now: datetime) -> bool:
    return post.auction_end_at is not None and now < post.auction_end_at


def is_winning(bid_id: str, leading_bid_id: str | None) -> bool:
    return leading_bid_id is not None and bid_id == leading_bid_id


def has_won(post: Post, bid_id: str, leading_bid_id: str | None, now: datetime) -> bool:
    """Ended and leading at query time. Nothing is ever materialised."""
    return not is_active(post, now) and is_winning(bid_id, leading_bid_id)
