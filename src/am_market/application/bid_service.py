"""BidService: accept or reject a bid against a listed post.

Every step runs inside one transaction that starts by taking the post row
lock, so two bidders racing on the same post see each other's committed
amount when they recompute the current highest bid.
"""

import logging
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.am_common.datetime_utils import utc_now
from src.am_common.errors import AppError, PostNotFoundError
from src.am_common.id_generator import generate_id
from src.am_common.money import to_amount
from src.am_market.application.schemas import BidOut, PlaceBidResponse
from src.am_market.domain import rules
from src.am_market.domain.models import Bid
from src.am_market.domain.repository import MarketRepositoryProtocol
from src.am_market.infrastructure.persistence import MarketRepository

logger = logging.getLogger(__name__)


class BidService:
    def __init__(
        self,
        repo: MarketRepositoryProtocol | None = None,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = generate_id,
    ) -> None:
        self._repo: MarketRepositoryProtocol = repo or MarketRepository()
        self._clock = clock
        self._id_factory = id_factory

    async def place_bid(
        self, db: AsyncSession, post_id: str, bidder_id: str, amount: Decimal
    ) -> PlaceBidResponse:
        rules.check_bid_amount(amount)
        amount = to_amount(amount)
        try:
            post = await self._repo.lock_post(db, post_id)
            if post is None:
                raise PostNotFoundError(post_id)
            now = self._clock()
            rules.check_can_bid(post, bidder_id, now)

            highest = await self._repo.get_highest_amount(db, post_id)
            rules.check_beats(amount, rules.highest_or_starting(post, highest))

            existing = await self._repo.get_bid_by_bidder(db, post_id, bidder_id)
            if existing is not None:
                bid = await self._repo.update_bid_amount(db, existing.id, amount)
            else:
                bid = await self._repo.insert_bid(
                    db,
                    Bid(
                        id=self._id_factory(),
                        post_id=post_id,
                        bidder_id=bidder_id,
                        amount=amount,
                        created_at=now,
                    ),
                )
            await db.commit()
        except AppError as e:
            await db.rollback()
            logger.info(
                "Bid rejected on post %s by %s: %d %s", post_id, bidder_id, e.code, e.message
            )
            raise
        except Exception:
            await db.rollback()
            raise

        replaced = existing is not None
        logger.info(
            "Bid %s on post %s by %s: amount=%s replaced=%s",
            bid.id, post_id, bidder_id, bid.amount, replaced,
        )
        return PlaceBidResponse(bid=BidOut.from_domain(bid), replaced=replaced)
