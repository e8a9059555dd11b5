# src/am_market/domain/repository.py
"""Repository Protocol: dependency inversion for testability.

Unit tests inject an in-memory implementation that conforms to this
Protocol. Infrastructure layer provides the PostgreSQL implementation.

Write methods assume the caller holds the post row lock (lock_post) in the
current transaction.
"""

from datetime import datetime
from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.am_market.domain.models import Bid, Listing, MarketCounts, UserBid
from src.am_post.domain.models import Post


class MarketRepositoryProtocol(Protocol):
    # --- posts -------------------------------------------------------------

    async def get_post(self, db: AsyncSession, post_id: str) -> Post | None: ...

    async def lock_post(self, db: AsyncSession, post_id: str) -> Post | None: ...

    async def set_market_fields(
        self,
        db: AsyncSession,
        post_id: str,
        is_in_market: bool,
        starting_price: Decimal | None,
        reserve_price: Decimal | None,
        auction_end_at: datetime | None,
    ) -> Post: ...

    # --- bids --------------------------------------------------------------

    async def count_bids(self, db: AsyncSession, post_id: str) -> int: ...

    async def get_highest_amount(self, db: AsyncSession, post_id: str) -> Decimal | None: ...

    async def get_bid_by_bidder(
        self, db: AsyncSession, post_id: str, bidder_id: str
    ) -> Bid | None: ...

    async def insert_bid(self, db: AsyncSession, bid: Bid) -> Bid: ...

    async def update_bid_amount(self, db: AsyncSession, bid_id: str, amount: Decimal) -> Bid: ...

    async def list_bids_for_post(self, db: AsyncSession, post_id: str) -> list[Bid]: ...

    # --- read-side views ---------------------------------------------------

    async def list_listings(
        self,
        db: AsyncSession,
        status: str,
        category: str | None,
        now: datetime,
        limit: int,
        offset: int,
    ) -> list[Listing]: ...

    async def count_listings(
        self, db: AsyncSession, status: str, category: str | None, now: datetime
    ) -> int: ...

    async def list_user_bids(
        self,
        db: AsyncSession,
        bidder_id: str,
        status: str,
        now: datetime,
        limit: int,
        offset: int,
    ) -> list[UserBid]: ...

    async def count_user_bids(
        self, db: AsyncSession, bidder_id: str, status: str, now: datetime
    ) -> int: ...

    async def get_market_counts(self, db: AsyncSession, now: datetime) -> MarketCounts: ...

    async def get_most_bid_ended_listing(
        self, db: AsyncSession, now: datetime
    ) -> Listing | None: ...
