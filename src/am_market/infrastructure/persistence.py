"""MarketRepository: concrete implementation of MarketRepositoryProtocol.

All queries use raw text() SQL (no ORM).
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.

Leader ordering everywhere: amount DESC, created_at ASC, id ASC.
Transaction ownership: the application service commits / rolls back.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.am_common.errors import InternalError
from src.am_market.domain.models import Bid, Listing, MarketCounts, TopBid, UserBid
from src.am_post.domain.models import Post
from src.am_post.infrastructure.persistence import POST_COLUMNS, PostRepository, row_to_post

# ---------------------------------------------------------------------------
# SQL: posts
# ---------------------------------------------------------------------------

_SET_MARKET_FIELDS_SQL = text(f"""
    UPDATE posts
    SET is_in_market   = :is_in_market,
        starting_price = :starting_price,
        reserve_price  = :reserve_price,
        auction_end_at = :auction_end_at,
        updated_at     = NOW()
    WHERE id = :post_id
    RETURNING {POST_COLUMNS}
""")

# ---------------------------------------------------------------------------
# SQL: bids
# ---------------------------------------------------------------------------

_BID_COLUMNS = "id, post_id, bidder_id, amount, created_at, updated_at"

_MAX_AMOUNT_SQL = text("SELECT MAX(amount) FROM bids WHERE post_id = :post_id")

_GET_BIDDER_BID_SQL = text(f"""
    SELECT {_BID_COLUMNS}
    FROM bids
    WHERE post_id = :post_id AND bidder_id = :bidder_id
""")

_INSERT_BID_SQL = text(f"""
    INSERT INTO bids (id, post_id, bidder_id, amount, created_at)
    VALUES (:id, :post_id, :bidder_id, :amount, :created_at)
    RETURNING {_BID_COLUMNS}
""")

# created_at is kept: the standing bid keeps its original position
_UPDATE_BID_AMOUNT_SQL = text(f"""
    UPDATE bids
    SET amount = :amount, updated_at = NOW()
    WHERE id = :bid_id
    RETURNING {_BID_COLUMNS}
""")

_LIST_POST_BIDS_SQL = text("""
    SELECT b.id, b.post_id, b.bidder_id, b.amount, b.created_at, b.updated_at,
           u.first_name || ' ' || u.last_name AS bidder_name
    FROM bids b
    JOIN users u ON u.id = b.bidder_id
    WHERE b.post_id = :post_id
    ORDER BY b.created_at DESC, b.id DESC
""")

# ---------------------------------------------------------------------------
# SQL: read-side views
# ---------------------------------------------------------------------------

_P_COLUMNS = """
    p.id, p.author_id, p.title, p.description, p.image_url, p.image_key, p.category,
    p.is_in_market, p.starting_price, p.reserve_price, p.auction_end_at,
    p.created_at, p.updated_at
"""

_LEADER_LATERAL = """
    LEFT JOIN LATERAL (
        SELECT lb.id, lb.bidder_id, lb.amount,
               lu.first_name || ' ' || lu.last_name AS bidder_name
        FROM bids lb
        JOIN users lu ON lu.id = lb.bidder_id
        WHERE lb.post_id = {post_ref}
        ORDER BY lb.amount DESC, lb.created_at ASC, lb.id ASC
        LIMIT 1
    ) top ON TRUE
"""

# active: end > now, ended: end < now (a post ending exactly now is in neither)
_STATUS_FILTER = """
    (
        (CAST(:status AS TEXT) = 'all')
        OR (CAST(:status AS TEXT) = 'active' AND p.auction_end_at > :now)
        OR (CAST(:status AS TEXT) = 'ended' AND p.auction_end_at < :now)
    )
"""

_LISTING_WHERE = f"""
    WHERE p.is_in_market
      AND (CAST(:category AS TEXT) IS NULL OR p.category = CAST(:category AS TEXT))
      AND {_STATUS_FILTER}
"""

_LISTING_SELECT = f"""
    SELECT {_P_COLUMNS},
           au.first_name || ' ' || au.last_name AS author_name,
           top.id AS top_bid_id, top.bidder_id AS top_bidder_id, top.amount AS top_amount,
           top.bidder_name AS top_bidder_name,
           (SELECT COUNT(*) FROM bids cb WHERE cb.post_id = p.id) AS bid_count
    FROM posts p
    JOIN users au ON au.id = p.author_id
    {_LEADER_LATERAL.format(post_ref="p.id")}
"""

_LIST_LISTINGS_SQL = text(f"""
    {_LISTING_SELECT}
    {_LISTING_WHERE}
    ORDER BY p.auction_end_at ASC, p.id ASC
    LIMIT :limit OFFSET :offset
""")

_COUNT_LISTINGS_SQL = text(f"""
    SELECT COUNT(*) FROM posts p
    {_LISTING_WHERE}
""")

# Ranked by number of bids, not by amount (see DESIGN.md, "highest sale").
_MOST_BID_ENDED_SQL = text(f"""
    {_LISTING_SELECT}
    WHERE p.is_in_market AND p.auction_end_at < :now
    ORDER BY bid_count DESC, p.auction_end_at DESC, p.id DESC
    LIMIT 1
""")

_MARKET_COUNTS_SQL = text("""
    SELECT
        COUNT(*) FILTER (WHERE is_in_market AND auction_end_at > :now) AS active_auctions,
        COUNT(*) FILTER (WHERE is_in_market AND auction_end_at < :now) AS ended_auctions,
        (SELECT COUNT(*) FROM bids) AS total_bids
    FROM posts
""")

_USER_BIDS_FROM = f"""
    FROM bids b
    JOIN posts p ON p.id = b.post_id
    WHERE b.bidder_id = :bidder_id
      AND {_STATUS_FILTER}
"""

_LIST_USER_BIDS_SQL = text(f"""
    SELECT b.id, b.post_id, b.bidder_id, b.amount, b.created_at, b.updated_at,
           p.author_id AS p_author_id, p.title AS p_title,
           p.description AS p_description, p.image_url AS p_image_url,
           p.image_key AS p_image_key, p.category AS p_category,
           p.is_in_market AS p_is_in_market, p.starting_price AS p_starting_price,
           p.reserve_price AS p_reserve_price, p.auction_end_at AS p_auction_end_at,
           p.created_at AS p_created_at, p.updated_at AS p_updated_at,
           top.id AS top_bid_id, top.amount AS top_amount
    FROM bids b
    JOIN posts p ON p.id = b.post_id
    {_LEADER_LATERAL.format(post_ref="b.post_id")}
    WHERE b.bidder_id = :bidder_id
      AND {_STATUS_FILTER}
    ORDER BY b.created_at DESC, b.id DESC
    LIMIT :limit OFFSET :offset
""")

_COUNT_USER_BIDS_SQL = text(f"""
    SELECT COUNT(*)
    {_USER_BIDS_FROM}
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_bid(row: Any) -> Bid:
    return Bid(
        id=row.id,
        post_id=row.post_id,
        bidder_id=str(row.bidder_id),
        amount=row.amount,
        created_at=row.created_at,
        updated_at=row.updated_at,
        bidder_name=getattr(row, "bidder_name", None),
    )


def _row_to_listing(row: Any) -> Listing:
    top = None
    if row.top_bid_id is not None:
        top = TopBid(
            id=row.top_bid_id,
            bidder_id=str(row.top_bidder_id),
            amount=row.top_amount,
            bidder_name=row.top_bidder_name,
        )
    return Listing(
        post=row_to_post(row),
        top_bid=top,
        bid_count=int(row.bid_count),
        author_name=row.author_name,
    )


def _row_to_user_bid(row: Any) -> UserBid:
    post = Post(
        id=row.post_id,
        author_id=str(row.p_author_id),
        title=row.p_title,
        description=row.p_description,
        image_url=row.p_image_url,
        image_key=row.p_image_key,
        category=row.p_category,
        is_in_market=row.p_is_in_market,
        starting_price=row.p_starting_price,
        reserve_price=row.p_reserve_price,
        auction_end_at=row.p_auction_end_at,
        created_at=row.p_created_at,
        updated_at=row.p_updated_at,
    )
    return UserBid(
        bid=_row_to_bid(row),
        post=post,
        leading_bid_id=row.top_bid_id,
        leading_amount=row.top_amount,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class MarketRepository:
    """PostgreSQL repository for listings and bids."""

    def __init__(self, posts: PostRepository | None = None) -> None:
        self._posts = posts or PostRepository()

    # --- posts -------------------------------------------------------------

    async def get_post(self, db: AsyncSession, post_id: str) -> Post | None:
        return await self._posts.get_post(db, post_id)

    async def lock_post(self, db: AsyncSession, post_id: str) -> Post | None:
        return await self._posts.lock_post(db, post_id)

    async def set_market_fields(
        self,
        db: AsyncSession,
        post_id: str,
        is_in_market: bool,
        starting_price: Decimal | None,
        reserve_price: Decimal | None,
        auction_end_at: datetime | None,
    ) -> Post:
        result = await db.execute(
            _SET_MARKET_FIELDS_SQL,
            {
                "post_id": post_id,
                "is_in_market": is_in_market,
                "starting_price": starting_price,
                "reserve_price": reserve_price,
                "auction_end_at": auction_end_at,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError(f"Locked post vanished during update: {post_id}")
        return row_to_post(row)

    # --- bids --------------------------------------------------------------

    async def count_bids(self, db: AsyncSession, post_id: str) -> int:
        return await self._posts.count_bids(db, post_id)

    async def get_highest_amount(self, db: AsyncSession, post_id: str) -> Decimal | None:
        result = await db.execute(_MAX_AMOUNT_SQL, {"post_id": post_id})
        return result.scalar_one_or_none()

    async def get_bid_by_bidder(
        self, db: AsyncSession, post_id: str, bidder_id: str
    ) -> Bid | None:
        result = await db.execute(
            _GET_BIDDER_BID_SQL, {"post_id": post_id, "bidder_id": bidder_id}
        )
        row = result.fetchone()
        return _row_to_bid(row) if row else None

    async def insert_bid(self, db: AsyncSession, bid: Bid) -> Bid:
        result = await db.execute(
            _INSERT_BID_SQL,
            {
                "id": bid.id,
                "post_id": bid.post_id,
                "bidder_id": bid.bidder_id,
                "amount": bid.amount,
                "created_at": bid.created_at,
            },
        )
        return _row_to_bid(result.fetchone())

    async def update_bid_amount(self, db: AsyncSession, bid_id: str, amount: Decimal) -> Bid:
        result = await db.execute(_UPDATE_BID_AMOUNT_SQL, {"bid_id": bid_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            raise InternalError(f"Standing bid vanished during update: {bid_id}")
        return _row_to_bid(row)

    async def list_bids_for_post(self, db: AsyncSession, post_id: str) -> list[Bid]:
        result = await db.execute(_LIST_POST_BIDS_SQL, {"post_id": post_id})
        return [_row_to_bid(row) for row in result.fetchall()]

    # --- read-side views ---------------------------------------------------

    async def list_listings(
        self,
        db: AsyncSession,
        status: str,
        category: str | None,
        now: datetime,
        limit: int,
        offset: int,
    ) -> list[Listing]:
        result = await db.execute(
            _LIST_LISTINGS_SQL,
            {
                "status": status,
                "category": category,
                "now": now,
                "limit": limit,
                "offset": offset,
            },
        )
        return [_row_to_listing(row) for row in result.fetchall()]

    async def count_listings(
        self, db: AsyncSession, status: str, category: str | None, now: datetime
    ) -> int:
        result = await db.execute(
            _COUNT_LISTINGS_SQL, {"status": status, "category": category, "now": now}
        )
        return int(result.scalar_one())

    async def list_user_bids(
        self,
        db: AsyncSession,
        bidder_id: str,
        status: str,
        now: datetime,
        limit: int,
        offset: int,
    ) -> list[UserBid]:
        result = await db.execute(
            _LIST_USER_BIDS_SQL,
            {
                "bidder_id": bidder_id,
                "status": status,
                "now": now,
                "limit": limit,
                "offset": offset,
            },
        )
        return [_row_to_user_bid(row) for row in result.fetchall()]

    async def count_user_bids(
        self, db: AsyncSession, bidder_id: str, status: str, now: datetime
    ) -> int:
        result = await db.execute(
            _COUNT_USER_BIDS_SQL, {"bidder_id": bidder_id, "status": status, "now": now}
        )
        return int(result.scalar_one())

    async def get_market_counts(self, db: AsyncSession, now: datetime) -> MarketCounts:
        result = await db.execute(_MARKET_COUNTS_SQL, {"now": now})
        row = result.fetchone()
        return MarketCounts(
            active_auctions=int(row.active_auctions),
            ended_auctions=int(row.ended_auctions),
            total_bids=int(row.total_bids),
        )

    async def get_most_bid_ended_listing(
        self, db: AsyncSession, now: datetime
    ) -> Listing | None:
        result = await db.execute(_MOST_BID_ENDED_SQL, {"now": now})
        row = result.fetchone()
        return _row_to_listing(row) if row else None
