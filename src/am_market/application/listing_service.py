"""ListingService: move a post into the market and back out.

Both transitions lock the post row first, so unlist's zero-bid check and a
concurrent place_bid on the same post are serialized by PostgreSQL.
"""

import logging
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.am_common.datetime_utils import hours_to_timedelta, utc_now
from src.am_common.errors import PostNotFoundError
from src.am_common.money import to_amount
from src.am_market.domain import rules
from src.am_market.domain.repository import MarketRepositoryProtocol
from src.am_market.infrastructure.persistence import MarketRepository
from src.am_post.application.schemas import PostResponse

logger = logging.getLogger(__name__)


class ListingService:
    def __init__(
        self,
        repo: MarketRepositoryProtocol | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repo: MarketRepositoryProtocol = repo or MarketRepository()
        self._clock = clock

    async def list_post(
        self,
        db: AsyncSession,
        post_id: str,
        seller_id: str,
        starting_price: Decimal,
        reserve_price: Decimal | None,
        duration_hours: Decimal,
    ) -> PostResponse:
        rules.validate_listing_terms(starting_price, reserve_price, duration_hours)
        try:
            post = await self._repo.lock_post(db, post_id)
            if post is None:
                raise PostNotFoundError(post_id)
            rules.check_can_list(post, seller_id)

            end_at = self._clock() + hours_to_timedelta(duration_hours)
            updated = await self._repo.set_market_fields(
                db,
                post_id,
                is_in_market=True,
                starting_price=to_amount(starting_price),
                reserve_price=to_amount(reserve_price) if reserve_price is not None else None,
                auction_end_at=end_at,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Post %s listed by %s: start=%s ends=%s",
            post_id, seller_id, updated.starting_price, end_at.isoformat(),
        )
        return PostResponse.from_domain(updated)

    async def unlist_post(self, db: AsyncSession, post_id: str, seller_id: str) -> PostResponse:
        try:
            post = await self._repo.lock_post(db, post_id)
            if post is None:
                raise PostNotFoundError(post_id)
            bid_count = await self._repo.count_bids(db, post_id) if post.is_in_market else 0
            rules.check_can_unlist(post, seller_id, bid_count)

            updated = await self._repo.set_market_fields(
                db,
                post_id,
                is_in_market=False,
                starting_price=None,
                reserve_price=None,
                auction_end_at=None,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Post %s withdrawn from market by %s", post_id, seller_id)
        return PostResponse.from_domain(updated)
