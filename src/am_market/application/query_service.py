"""MarketQueryService: read-only auction views.

Nothing here writes. Leader, current price, time left and won/winning are
derived per request against a single `now`, so one response is internally
consistent even when an auction ends mid-request.
"""

from collections.abc import Callable
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.am_common.datetime_utils import utc_now
from src.am_common.enums import BidStatus, ListingStatus
from src.am_common.errors import NotListedError, PostNotFoundError
from src.am_common.money import amount_to_display
from src.am_market.application.schemas import (
    AuctionDetailResponse,
    BidOut,
    HighestSaleOut,
    ListingItem,
    ListingListResponse,
    MarketStatsResponse,
    Pagination,
    UserBidItem,
    UserBidListResponse,
)
from src.am_market.domain import rules
from src.am_market.domain.models import UserBid
from src.am_market.domain.repository import MarketRepositoryProtocol
from src.am_market.infrastructure.persistence import MarketRepository
from src.am_post.application.schemas import PostResponse


class MarketQueryService:
    def __init__(
        self,
        repo: MarketRepositoryProtocol | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repo: MarketRepositoryProtocol = repo or MarketRepository()
        self._clock = clock

    async def get_market_listings(
        self,
        db: AsyncSession,
        status: ListingStatus = ListingStatus.ACTIVE,
        page: int = 1,
        page_size: int = 12,
        category: str | None = None,
    ) -> ListingListResponse:
        """One page of listed posts, soonest-ending first."""
        now = self._clock()
        total = await self._repo.count_listings(db, status.value, category, now)
        listings = await self._repo.list_listings(
            db, status.value, category, now, page_size, (page - 1) * page_size
        )
        items = [
            ListingItem.from_listing(
                lst,
                rules.current_price(lst.post, lst.top_bid.amount if lst.top_bid else None),
                rules.time_left_ms(lst.post, now),
            )
            for lst in listings
        ]
        return ListingListResponse(items=items, pagination=Pagination.build(page, page_size, total))

    async def get_auction_detail(self, db: AsyncSession, post_id: str) -> AuctionDetailResponse:
        post = await self._repo.get_post(db, post_id)
        if post is None:
            raise PostNotFoundError(post_id)
        if not post.is_in_market:
            raise NotListedError(post_id)

        now = self._clock()
        bids = await self._repo.list_bids_for_post(db, post_id)
        leader = rules.pick_leader(bids)
        price = rules.current_price(post, leader.amount if leader else None)
        return AuctionDetailResponse(
            post=PostResponse.from_domain(post),
            bids=[BidOut.from_domain(b) for b in bids],
            bid_count=len(bids),
            current_price=price,
            current_price_display=amount_to_display(price),
            leader=BidOut.from_domain(leader) if leader else None,
            time_left_ms=rules.time_left_ms(post, now),
            is_active=rules.is_active(post, now),
        )

    async def get_user_bids(
        self,
        db: AsyncSession,
        bidder_id: str,
        status: BidStatus = BidStatus.ALL,
        page: int = 1,
        page_size: int = 10,
    ) -> UserBidListResponse:
        now = self._clock()
        total = await self._repo.count_user_bids(db, bidder_id, status.value, now)
        rows = await self._repo.list_user_bids(
            db, bidder_id, status.value, now, page_size, (page - 1) * page_size
        )
        return UserBidListResponse(
            items=[self._user_bid_item(ub, now) for ub in rows],
            pagination=Pagination.build(page, page_size, total),
        )

    @staticmethod
    def _user_bid_item(ub: UserBid, now: datetime) -> UserBidItem:
        active = rules.is_active(ub.post, now)
        return UserBidItem(
            bid=BidOut.from_domain(ub.bid),
            post=PostResponse.from_domain(ub.post),
            leading_bid_id=ub.leading_bid_id,
            leading_amount=ub.leading_amount,
            is_winning=rules.is_winning(ub.bid.id, ub.leading_bid_id),
            has_won=rules.has_won(ub.post, ub.bid.id, ub.leading_bid_id, now),
            auction_status=ListingStatus.ACTIVE.value if active else ListingStatus.ENDED.value,
            time_left_ms=rules.time_left_ms(ub.post, now),
        )

    async def get_market_stats(self, db: AsyncSession) -> MarketStatsResponse:
        """Counts plus the ended listing that drew the most bids."""
        now = self._clock()
        counts = await self._repo.get_market_counts(db, now)
        top = await self._repo.get_most_bid_ended_listing(db, now)

        highest_sale = None
        if top is not None:
            final = top.top_bid.amount if top.top_bid else Decimal(0)
            highest_sale = HighestSaleOut(
                post=PostResponse.from_domain(top.post),
                author_name=top.author_name,
                bid_count=top.bid_count,
                final_price=final,
                final_price_display=amount_to_display(final) or "",
            )
        return MarketStatsResponse(
            active_auctions=counts.active_auctions,
            ended_auctions=counts.ended_auctions,
            total_bids=counts.total_bids,
            highest_sale=highest_sale,
        )
